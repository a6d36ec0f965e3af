"""
Collaborator Interfaces
=======================
Contracts for the collaborators the conversation engine consumes but does
not own. Any object with matching methods satisfies them.
"""

# Python Packages
from typing import Any, Awaitable, Dict, List, Optional
from typing import Protocol

# Schemas
from .schemas import AnalysisData, ContextWindow, ConversationMessage





class AnalysisProvider(Protocol):
    def get_analysis(self, analysis_id: str) -> AnalysisData: ...


class MessageStore(Protocol):
    def get_messages(self, conversation_id: str) -> List[ConversationMessage]:
        """Messages in append order."""
        ...


class SecurityLogger(Protocol):
    def log_security_event(self, event_type: str, category: str, success: bool, details: Dict[str, Any]) -> None:
        """Fire-and-forget; must never raise into the caller."""
        ...


class Cache(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any, ttl: int) -> None: ...

    def clear(self) -> None: ...


class ModelCompletion(Protocol):
    def __call__(self, context: ContextWindow) -> Awaitable[str]: ...
