"""
Service: QueryDeduplicationService

Detects near-duplicate questions so the model is not called twice for
the same thing.

Similarity is word-set Jaccard: lowercase, punctuation removed, words of
two characters or fewer ignored; two empty sets score 0.

Two lookup paths:
  find_similar_query()          scans the last DEDUP_RECENT_USER_MESSAGES user
                                messages of the supplied history, newest first;
                                the reply is the assistant message right after
                                the matched one.
  check_cached_similar_query()  TTL cache filled by cache_query_response(),
                                scoped by conversation id (None = shared scope),
                                exact hash first, then fuzzy scan.

Every lookup counts once in DeduplicationStats (hits add AVG_API_CALL_COST
to cost_savings). Counters are per service instance and lock-guarded.
"""

# Python Packages
import hashlib
import re
import threading
from typing import List, Optional, Sequence

# Config
from ..config import thresholds

# Constants
from ...base import constants

# Schemas
from ..schemas import ConversationMessage, DeduplicationStats, SimilarQueryResult

# Interfaces
from ..interfaces import Cache

# Services
from .cache import FailSafeCache

# Logger
from ...util.logger import get_logger


logger = get_logger(__name__)

SHARED_SCOPE = "global"
PUNCTUATION_PATTERN = re.compile(r"[^\w\s]")
NO_MATCH = SimilarQueryResult(is_similar = False, similarity = 0.0)





class QueryDeduplicationService:

    def __init__(
        self,
        cache: Optional[Cache] = None,
        similarity_threshold: float = thresholds.DEDUP_SIMILARITY_THRESHOLD,
        recent_user_messages: int = thresholds.DEDUP_RECENT_USER_MESSAGES,
        min_word_length: int = thresholds.DEDUP_MIN_WORD_LENGTH,
        cost_per_call: float = thresholds.AVG_API_CALL_COST,
        cache_ttl: int = constants.QUERY_CACHE_TTL_SECONDS,
        max_cached_per_scope: int = thresholds.DEDUP_CACHE_ENTRIES_PER_CONVERSATION
    ):
        self.cache = cache if isinstance(cache, FailSafeCache) else FailSafeCache(cache)
        self.similarity_threshold = similarity_threshold
        self.recent_user_messages = recent_user_messages
        self.min_word_length = min_word_length
        self.cost_per_call = cost_per_call
        self.cache_ttl = cache_ttl
        self.max_cached_per_scope = max_cached_per_scope

        self._stats_lock = threading.Lock()
        self._cache_lock = threading.Lock()
        self._total = 0
        self._hits = 0
        self._misses = 0
        self._cost_savings = 0.0

    # ── Similarity ─────────────────────────────────────────────────────────────

    def calculate_similarity(self, first, second) -> float:
        first_words = self._word_set(first)
        second_words = self._word_set(second)

        union = first_words | second_words
        if not union:
            return 0.0
        return len(first_words & second_words) / len(union)

    # ── History Scan ───────────────────────────────────────────────────────────

    def find_similar_query(self, query: str, recent_messages: Sequence, threshold: Optional[float] = None) -> SimilarQueryResult:
        result = self._scan_history(query, recent_messages, self._threshold(threshold))
        self._record(result.is_similar)
        return result

    # ── Cross-Conversation Cache ───────────────────────────────────────────────

    def check_cached_similar_query(self, query: str, conversation_id = None, threshold: Optional[float] = None) -> SimilarQueryResult:
        result = self._scan_cache(query, conversation_id, self._threshold(threshold))
        self._record(result.is_similar)
        return result



    def cache_query_response(self, query: str, response: str, conversation_id = None) -> None:
        """
        Store a question/answer pair. The scope's entry list is rebuilt in
        full and written in one set() call.
        """

        if not self._word_set(query) or not isinstance(response, str) or not response:
            return

        scope = self._scope(conversation_id)
        entry = {"query": query, "response": response}

        with self._cache_lock:
            entries = self.cache.get(self._index_key(scope))
            entries = [item for item in entries if isinstance(item, dict)] if isinstance(entries, list) else []
            entries = (entries + [entry])[-self.max_cached_per_scope:]

            self.cache.set(self._exact_key(scope, query), entry, self.cache_ttl)
            self.cache.set(self._index_key(scope), entries, self.cache_ttl)



    def lookup(self, query: str, recent_messages: Sequence, conversation_id = None, threshold: Optional[float] = None) -> SimilarQueryResult:
        """
        History scan, then the cache; counted as a single query.
        """

        threshold = self._threshold(threshold)
        result = self._scan_history(query, recent_messages, threshold)
        if not result.is_similar:
            result = self._scan_cache(query, conversation_id, threshold)

        if result.is_similar:
            logger.info(
                "Duplicate query answered without a model call",
                extra = {"payload": {"conversation_id": conversation_id, "similarity": result.similarity}}
            )

        self._record(result.is_similar)
        return result

    # ── Stats ──────────────────────────────────────────────────────────────────

    def get_deduplication_stats(self) -> DeduplicationStats:
        with self._stats_lock:
            return DeduplicationStats(
                total_queries = self._total,
                cache_hits = self._hits,
                cache_misses = self._misses,
                hit_rate = (self._hits / self._total) if self._total else 0.0,
                cost_savings = round(self._cost_savings, 4)
            )



    def reset_stats(self) -> None:
        with self._stats_lock:
            self._total = 0
            self._hits = 0
            self._misses = 0
            self._cost_savings = 0.0



    def clear_cache(self) -> None:
        self.cache.clear()

    # ── Internals ──────────────────────────────────────────────────────────────

    def _scan_history(self, query: str, recent_messages: Sequence, threshold: float) -> SimilarQueryResult:
        history = self._as_messages(recent_messages)
        if not history or not self._word_set(query):
            return NO_MATCH

        user_positions = [index for index, message in enumerate(history) if message.role == "user"]
        window = user_positions[-self.recent_user_messages:] if self.recent_user_messages > 0 else []

        for index in reversed(window):
            similarity = self.calculate_similarity(query, history[index].content)
            if similarity < threshold:
                continue

            reply = history[index + 1] if index + 1 < len(history) else None
            if reply is None or reply.role != "assistant":
                continue

            return SimilarQueryResult(
                is_similar = True,
                similarity = round(similarity, 4),
                cached_response = reply.content,
                matched_query = history[index].content
            )

        return NO_MATCH



    def _scan_cache(self, query: str, conversation_id, threshold: float) -> SimilarQueryResult:
        if not self.cache.enabled or not self._word_set(query):
            return NO_MATCH

        scope = self._scope(conversation_id)

        exact = self.cache.get(self._exact_key(scope, query))
        if isinstance(exact, dict) and isinstance(exact.get("response"), str):
            return SimilarQueryResult(
                is_similar = True,
                similarity = 1.0,
                cached_response = exact["response"],
                matched_query = exact.get("query")
            )

        entries = self.cache.get(self._index_key(scope))
        if not isinstance(entries, list):
            return NO_MATCH

        for entry in reversed(entries):
            if not isinstance(entry, dict):
                continue
            similarity = self.calculate_similarity(query, entry.get("query"))
            if similarity >= threshold and isinstance(entry.get("response"), str):
                return SimilarQueryResult(
                    is_similar = True,
                    similarity = round(similarity, 4),
                    cached_response = entry["response"],
                    matched_query = entry.get("query")
                )

        return NO_MATCH



    def _record(self, hit: bool) -> None:
        with self._stats_lock:
            self._total += 1
            if hit:
                self._hits += 1
                self._cost_savings += self.cost_per_call
            else:
                self._misses += 1



    def _threshold(self, threshold: Optional[float]) -> float:
        return self.similarity_threshold if threshold is None else threshold



    def _word_set(self, text) -> set:
        if not isinstance(text, str):
            return set()
        normalized = PUNCTUATION_PATTERN.sub("", text.lower())
        return {word for word in normalized.split() if len(word) >= self.min_word_length}



    def _normalized_key(self, text: str) -> str:
        return " ".join(sorted(self._word_set(text)))



    def _exact_key(self, scope: str, query: str) -> str:
        digest = hashlib.sha256(self._normalized_key(query).encode("utf-8")).hexdigest()
        return f"dedup:exact:{scope}:{digest}"



    @staticmethod
    def _index_key(scope: str) -> str:
        return f"dedup:index:{scope}"



    @staticmethod
    def _scope(conversation_id) -> str:
        return SHARED_SCOPE if conversation_id is None else str(conversation_id)



    @staticmethod
    def _as_messages(messages: Sequence) -> List[ConversationMessage]:
        """ Accept ConversationMessage objects or plain dicts; skip anything malformed... """

        parsed = []
        for message in messages or []:
            if isinstance(message, ConversationMessage):
                parsed.append(message)
            elif isinstance(message, dict) and isinstance(message.get("content"), str) \
                    and message.get("role") in ("user", "assistant"):
                parsed.append(ConversationMessage(role = message["role"], content = message["content"]))
        return parsed
