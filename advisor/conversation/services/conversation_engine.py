"""
Service: ConversationEngine

Composition root for the conversation services and the per-turn pipeline:

  in-flight guard + usage reservation   (one atomic check-and-count)
    → input validation            (rejected input never reaches the model)
    → duplicate lookup            (history scan, then query cache; hit skips the model)
    → context window build
    → await model_completion()    (the only suspension point)
    → disclaimers + response screening
    → query cache write           (only for responses that passed screening)
    → reservation committed, follow-up questions suggested
      (rejected turns and model failures give the reservation back)

Every service is an injected instance; build one engine per process (or
per test) with ConversationEngine.create().
"""

# Python Packages
from dataclasses import replace
from typing import Any, Dict, Optional, Sequence

# Config
from ..config import prompts, tier_limits, token_budget

# Constants
from ...base import constants

# Schemas
from ..schemas import AnalysisData, ConversationMessage, TurnResult

# Interfaces
from ..interfaces import AnalysisProvider, Cache, MessageStore, ModelCompletion, SecurityLogger

# Services
from .cache import InMemoryTTLCache
from .context_optimizer import ContextOptimizer
from .context_window_manager import ContextWindowManager
from .history_summarizer import HistorySummarizer
from .input_validator import InputValidator
from .query_deduplication_service import QueryDeduplicationService
from .question_generator import QuestionGenerator
from .rate_limiter import ConversationRateLimiter
from .response_validator import ResponseValidator
from .security_logger import LoggingSecurityLogger
from .token_estimator import TokenEstimator

# Exceptions
from ...util.exceptions import StructuralException
from ...util import messages as error_messages

# Logger
from ...util.logger import get_logger


logger = get_logger(__name__)





class ConversationEngine:

    def __init__(
        self,
        context_window_manager: ContextWindowManager,
        input_validator: InputValidator,
        response_validator: ResponseValidator,
        deduplication_service: QueryDeduplicationService,
        rate_limiter: ConversationRateLimiter,
        question_generator: QuestionGenerator,
        message_store: Optional[MessageStore] = None,
        analysis_provider: Optional[AnalysisProvider] = None
    ):
        self.context_window_manager = context_window_manager
        self.input_validator        = input_validator
        self.response_validator     = response_validator
        self.deduplication_service  = deduplication_service
        self.rate_limiter           = rate_limiter
        self.question_generator     = question_generator
        self.message_store          = message_store
        self.analysis_provider      = analysis_provider



    @classmethod
    def create(
        cls,
        analysis_cache: Optional[Cache] = None,
        query_cache: Optional[Cache] = None,
        security_logger: Optional[SecurityLogger] = None,
        message_store: Optional[MessageStore] = None,
        analysis_provider: Optional[AnalysisProvider] = None,
        use_cache: bool = True
    ) -> "ConversationEngine":
        """
        Wire the default services. With use_cache=True and no caches given,
        each cache is a fresh InMemoryTTLCache; use_cache=False runs cacheless.
        """

        if use_cache:
            analysis_cache = analysis_cache or InMemoryTTLCache(default_ttl = constants.ANALYSIS_CACHE_TTL_SECONDS)
            query_cache = query_cache or InMemoryTTLCache(default_ttl = constants.QUERY_CACHE_TTL_SECONDS)
        else:
            analysis_cache = query_cache = None

        token_estimator = TokenEstimator()
        deduplication_service = QueryDeduplicationService(cache = query_cache)

        return cls(
            context_window_manager = ContextWindowManager(
                token_estimator = token_estimator,
                history_summarizer = HistorySummarizer(),
                context_optimizer = ContextOptimizer(cache = analysis_cache, token_estimator = token_estimator)
            ),
            input_validator = InputValidator(security_logger = security_logger or LoggingSecurityLogger()),
            response_validator = ResponseValidator(),
            deduplication_service = deduplication_service,
            rate_limiter = ConversationRateLimiter(),
            question_generator = QuestionGenerator(deduplication_service = deduplication_service),
            message_store = message_store,
            analysis_provider = analysis_provider
        )

    # ── Turn Pipeline ──────────────────────────────────────────────────────────

    async def process_turn(
        self,
        user_id: str,
        conversation_id: str,
        query: str,
        analysis,
        model_completion: ModelCompletion,
        messages: Optional[Sequence] = None,
        tier: str = tier_limits.DEFAULT_TIER,
        request_context: Optional[Dict[str, Any]] = None,
        max_tokens: int = token_budget.DEFAULT_MAX_TOKENS
    ) -> TurnResult:
        """
        Run one user turn.

        Args:
            user_id:          Owner of the conversation.
            conversation_id:  Conversation / session id.
            query:            Raw user message.
            analysis:         AnalysisData, a dict, or an analysis id for the AnalysisProvider.
            model_completion: async callable(ContextWindow) -> str.
            messages:         Prior history; loaded from the MessageStore when None.
            tier:             User tier.
            request_context:  ip_address / user_agent for security logging.
            max_tokens:       Context window budget.
        """

        with self.rate_limiter.in_flight(conversation_id) as acquired:
            if not acquired:
                return TurnResult(
                    status = "rate_limited",
                    rate_limit = self.rate_limiter.check_limit(user_id, tier, conversation_id)
                )

            with self.rate_limiter.reservation(user_id, tier, conversation_id) as reservation:
                if not reservation.allowed:
                    return TurnResult(status = "rate_limited", rate_limit = reservation.status)

                result = await self._run_turn(
                    user_id, conversation_id, query, analysis, model_completion,
                    messages, tier, request_context, max_tokens
                )

                if result.status != "rejected":
                    reservation.commit()

        return replace(result, rate_limit = self.rate_limiter.check_limit(user_id, tier, conversation_id))



    async def _run_turn(self, user_id, conversation_id, query, analysis, model_completion, messages, tier, request_context, max_tokens) -> TurnResult:
        """ Pipeline body, run while the conversation guard and a usage reservation are held... """

        analysis = self._resolve_analysis(analysis)
        history = self._resolve_history(conversation_id, messages)

        context = dict(request_context or {}, user_id = user_id, conversation_id = conversation_id)
        validation = self.input_validator.validate_user_input(query, tier, context)
        if not validation.is_valid:
            return TurnResult(status = "rejected", input_validation = validation)

        question = validation.sanitized

        duplicate = self.deduplication_service.lookup(question, history, conversation_id)
        if duplicate.is_similar:
            return TurnResult(
                status = "cached",
                response = duplicate.cached_response,
                input_validation = validation,
                similarity = duplicate,
                suggested_questions = self._follow_ups(analysis, history, question, duplicate.cached_response)
            )

        window = self.context_window_manager.build_context(analysis, history, question, max_tokens)

        raw_response = await model_completion(window)

        response = self.response_validator.add_disclaimers(raw_response)
        content_validation = self.response_validator.validate_response(response)

        if content_validation.is_valid:
            self.deduplication_service.cache_query_response(question, response, conversation_id)
            turn_status = "answered"
        else:
            logger.warning(
                "Model response failed screening",
                extra = {"payload": {
                    "conversation_id": conversation_id,
                    "issues": content_validation.issues,
                    "severity": content_validation.severity
                }}
            )
            response = prompts.FLAGGED_RESPONSE_FALLBACK
            turn_status = "flagged"

        return TurnResult(
            status = turn_status,
            response = response,
            input_validation = validation,
            content_validation = content_validation,
            similarity = duplicate,
            context = window,
            suggested_questions = self._follow_ups(analysis, history, question, response)
        )

    # ── Helpers ────────────────────────────────────────────────────────────────

    def _resolve_analysis(self, analysis) -> AnalysisData:
        if isinstance(analysis, AnalysisData):
            return analysis
        if isinstance(analysis, (str, int)) and self.analysis_provider is not None:
            return self.analysis_provider.get_analysis(str(analysis))
        return AnalysisData.from_dict(analysis)



    def _resolve_history(self, conversation_id, messages):
        if messages is None:
            if self.message_store is None:
                return []
            messages = self.message_store.get_messages(conversation_id)

        if not isinstance(messages, (list, tuple)):
            raise StructuralException(error_messages.ERROR["INVALID_MESSAGES"])
        return [
            message if isinstance(message, ConversationMessage) else ConversationMessage.from_dict(message)
            for message in messages
        ]



    def _follow_ups(self, analysis, history, question, response):
        turn = [ConversationMessage(role = "user", content = question)]
        if response:
            turn.append(ConversationMessage(role = "assistant", content = response))
        return self.question_generator.generate_follow_up_questions(analysis, list(history) + turn)
