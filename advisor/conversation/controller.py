"""
Conversation Controller
Orchestrates between handler and the conversation engine.
"""

# Python Packages
from typing import Any, Dict, List, Optional

# Config
from .config import tier_limits, token_budget

# Schemas
from .schemas import AnalysisData, parse_messages

# Services
from .services.conversation_engine import ConversationEngine
from .services.conversation_service import ConversationService





class ConversationController:

    def __init__(self, engine: ConversationEngine, conversation_service: Optional[ConversationService] = None):
        """ Engine is built once per app; the message store is per request... """

        self.engine               = engine
        self.conversation_service = conversation_service or ConversationService()



    def validate_input(
        self,
        message: str,
        tier: str = tier_limits.DEFAULT_TIER,
        request_context: Optional[Dict[str, Any]] = None
    ) -> dict:
        """
        Screen a user message.

        Returns:
            ValidationResult dict plus an excessive_repetition flag.
        """

        result = self.engine.input_validator.validate_user_input(message, tier, request_context or {})
        data = result.to_dict()
        data["excessive_repetition"] = self.engine.input_validator.detect_excessive_repetition(message)
        return data



    def validate_response(self, response: str, query: Optional[str] = None) -> dict:
        """
        Screen a model response.

        Returns:
            validation, hallucination, the response with disclaimers added,
            and relevance when a query is supplied.
        """

        validator = self.engine.response_validator
        data = {
            "validation": validator.validate_response(response).to_dict(),
            "hallucination": validator.detect_hallucination(response).to_dict(),
            "response_with_disclaimers": validator.add_disclaimers(response),
        }
        if query:
            data["relevance"] = validator.check_relevance(response, query).to_dict()
        return data



    def build_context(
        self,
        analysis: Dict,
        query: str,
        messages: Optional[List[Dict]] = None,
        session_id: Optional[str] = None,
        max_tokens: int = token_budget.DEFAULT_MAX_TOKENS,
        use_cache: bool = True
    ) -> dict:
        """
        Build a context window. History comes from *messages* when given,
        otherwise from the stored conversation *session_id*.
        """

        history = self._history(messages, session_id)
        manager = self.engine.context_window_manager

        window = manager.build_context(AnalysisData.from_dict(analysis), history, query, max_tokens, use_cache)

        return {
            "context": window.to_dict(),
            "budget": manager.get_token_budget(max_tokens).to_dict(),
            "breakdown": manager.get_token_breakdown(window),
            "within_budget": manager.validate_budget(window, max_tokens),
        }



    def find_similar_query(
        self,
        query: str,
        messages: Optional[List[Dict]] = None,
        session_id: Optional[str] = None,
        threshold: Optional[float] = None,
        include_cache: bool = False
    ) -> dict:
        history = self._history(messages, session_id)
        dedup = self.engine.deduplication_service

        if include_cache:
            result = dedup.lookup(query, history, session_id, threshold)
        else:
            result = dedup.find_similar_query(query, history, threshold)
        return result.to_dict()



    def initial_questions(self, analysis: Dict) -> List[dict]:
        questions = self.engine.question_generator.generate_initial_questions(AnalysisData.from_dict(analysis))
        return [question.to_dict() for question in questions]



    def follow_up_questions(
        self,
        analysis: Dict,
        messages: Optional[List[Dict]] = None,
        session_id: Optional[str] = None,
        existing: Optional[List[str]] = None
    ) -> List[dict]:
        generator = self.engine.question_generator
        questions = generator.generate_follow_up_questions(
            AnalysisData.from_dict(analysis), self._history(messages, session_id)
        )
        if existing:
            questions = generator.filter_existing_questions(questions, existing)
        return [question.to_dict() for question in questions]



    def rate_limit_status(self, user_id: str, tier: str, conversation_id: Optional[str] = None) -> dict:
        return self.engine.rate_limiter.check_limit(user_id, tier, conversation_id).to_dict()



    def get_dedup_stats(self) -> dict:
        return self.engine.deduplication_service.get_deduplication_stats().to_dict()



    def reset_dedup_stats(self) -> dict:
        self.engine.deduplication_service.reset_stats()
        return self.get_dedup_stats()



    def get_messages(self, session_id: str, limit: Optional[int] = None) -> dict:
        history = self.conversation_service.get_conversation_history(session_id, limit = limit)
        return {"session_id": session_id, "messages": history, "total": len(history)}



    def add_message(self, session_id: str, role: str, content: str, user_id: Optional[str] = None) -> dict:
        self.conversation_service.get_or_create_conversation(session_id = session_id, user_id = user_id)
        message = self.conversation_service.add_message(session_id = session_id, role = role, content = content)
        return message.to_dict()



    def clear_conversation(self, session_id: str) -> bool:
        return self.conversation_service.clear_conversation(session_id)



    def _history(self, messages: Optional[List[Dict]], session_id: Optional[str]):
        if messages is not None:
            return parse_messages(messages)
        if session_id:
            return self.conversation_service.get_messages(session_id)
        return []
