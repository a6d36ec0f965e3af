"""
Conversation Services Package

Exports all service classes used by ConversationController.

Service responsibilities:
  ConversationEngine          composition root and per-turn pipeline
  ContextWindowManager        bounded context window for the model call
  ContextOptimizer            analysis trimming, window trimming, analysis cache
  HistorySummarizer           summary + recent tail for long conversations
  TokenEstimator              approximate token counts
  InputValidator              user input sanitization and rejection
  ResponseValidator           model output screening and disclaimers
  QueryDeduplicationService   near-duplicate question detection and cache
  ConversationRateLimiter     per-tier usage ceilings and in-flight guard
  QuestionGenerator           suggested next questions
  ConversationService         SQL-backed message store
  PatternRegistry             compiled, ordered pattern tables
  InMemoryTTLCache            default cache backend
"""

from .token_estimator import TokenEstimator
from .pattern_registry import PatternRegistry
from .cache import InMemoryTTLCache, FailSafeCache
from .security_logger import LoggingSecurityLogger
from .history_summarizer import HistorySummarizer
from .context_optimizer import ContextOptimizer
from .context_window_manager import ContextWindowManager
from .input_validator import InputValidator
from .response_validator import ResponseValidator
from .query_deduplication_service import QueryDeduplicationService
from .rate_limiter import ConversationRateLimiter
from .question_generator import QuestionGenerator
from .conversation_engine import ConversationEngine
from .conversation_service import ConversationService

__all__ = [
    "TokenEstimator",
    "PatternRegistry",
    "InMemoryTTLCache",
    "FailSafeCache",
    "LoggingSecurityLogger",
    "HistorySummarizer",
    "ContextOptimizer",
    "ContextWindowManager",
    "InputValidator",
    "ResponseValidator",
    "QueryDeduplicationService",
    "ConversationRateLimiter",
    "QuestionGenerator",
    "ConversationEngine",
    "ConversationService",
]
