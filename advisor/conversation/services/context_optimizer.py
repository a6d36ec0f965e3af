"""
Service: ContextOptimizer

Keeps analysis data and an assembled context window inside the token
budget, and caches rendered analysis context per analysis id.

Trim order for an oversized window:
  1. conversation_history  (oldest lines dropped first)
  2. analysis_context      (tail dropped first)
system_prompt and current_query are bounded upstream and never touched here.

Caching goes through FailSafeCache: pass cache=None to run without a
cache; a failing backend behaves like a miss.
"""

# Python Packages
import re
import threading
from dataclasses import replace
from typing import Optional

# Config
from ..config import thresholds, token_budget, prompts

# Constants
from ...base import constants

# Schemas
from ..schemas import AnalysisData, ContextWindow

# Interfaces
from ..interfaces import Cache

# Services
from .cache import FailSafeCache
from .token_estimator import TokenEstimator

# Logger
from ...util.logger import get_logger


logger = get_logger(__name__)

ANALYSIS_CACHE_PREFIX = "analysis_context:"





class ContextOptimizer:

    def __init__(
        self,
        cache: Optional[Cache] = None,
        token_estimator: Optional[TokenEstimator] = None,
        cache_ttl: int = constants.ANALYSIS_CACHE_TTL_SECONDS
    ):
        self.cache = cache if isinstance(cache, FailSafeCache) else FailSafeCache(cache)
        self.token_estimator = token_estimator or TokenEstimator()
        self.cache_ttl = cache_ttl

        self._stats_lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    # ── Analysis Data ──────────────────────────────────────────────────────────

    def optimize_analysis_data(self, analysis: AnalysisData, top_n: int = thresholds.ANALYSIS_TOP_GAPS) -> AnalysisData:
        """
        Copy of *analysis* with only the top_n highest-scoring gaps
        (stable: equal scores keep their original order) and the first
        top_n competitors.
        """

        top_n = max(0, int(top_n))
        ranked = sorted(analysis.top_gaps, key = lambda gap: -(gap.score or 0))

        return replace(
            analysis,
            top_gaps = tuple(ranked[:top_n]),
            competitors = tuple(analysis.competitors[:top_n])
        )

    # ── Window Trimming ────────────────────────────────────────────────────────

    def optimize_context_window(self, context: ContextWindow, max_tokens: int = token_budget.DEFAULT_MAX_TOKENS) -> ContextWindow:
        history = self.compact_whitespace(context.conversation_history)
        analysis = self.compact_whitespace(context.analysis_context)

        total = self._total(context.system_prompt, analysis, history, context.current_query)

        if total > max_tokens:
            overflow = total - max_tokens
            history_tokens = self.token_estimator.estimate_tokens(history)
            history = self.trim_oldest(history, max(0, history_tokens - overflow))
            total = self._total(context.system_prompt, analysis, history, context.current_query)

        if total > max_tokens:
            overflow = total - max_tokens
            analysis_tokens = self.token_estimator.estimate_tokens(analysis)
            analysis = self.trim_newest(analysis, max(0, analysis_tokens - overflow))
            total = self._total(context.system_prompt, analysis, history, context.current_query)

        degraded = total > max_tokens
        if degraded:
            logger.warning(
                "Context window still over budget after trimming",
                extra = {"payload": {"total_tokens": total, "max_tokens": max_tokens}}
            )

        return replace(
            context,
            analysis_context = analysis,
            conversation_history = history,
            total_tokens = total,
            degraded = degraded
        )



    def trim_oldest(self, text: str, max_tokens: int) -> str:
        """ Keep the newest part of *text* that fits, cut at a line boundary... """

        if self.token_estimator.estimate_tokens(text) <= max_tokens:
            return text

        marker = prompts.HISTORY_TRIM_MARKER + "\n"
        room = self.token_estimator.max_chars(max_tokens) - len(marker)
        if room <= 0:
            return ""

        tail = text[-room:]
        newline = tail.find("\n")
        if 0 <= newline < len(tail) - 1:
            tail = tail[newline + 1:]
        return marker + tail.lstrip()



    def trim_newest(self, text: str, max_tokens: int) -> str:
        """ Keep the leading part of *text* that fits... """

        if self.token_estimator.estimate_tokens(text) <= max_tokens:
            return text

        marker = "\n" + prompts.HISTORY_TRIM_MARKER
        room = self.token_estimator.max_chars(max_tokens) - len(marker)
        if room <= 0:
            return ""
        return text[:room].rstrip() + marker



    @staticmethod
    def compact_whitespace(text: str) -> str:
        if not text:
            return ""
        text = re.sub(r"[ \t]+", " ", text)
        text = re.sub(r" *\n *", "\n", text)
        text = re.sub(r"\n{3,}", "\n\n", text)
        return text.strip()

    # ── Analysis Context Cache ─────────────────────────────────────────────────

    def get_cached_analysis_context(self, analysis_id) -> Optional[str]:
        if analysis_id is None:
            return None

        value = self.cache.get(f"{ANALYSIS_CACHE_PREFIX}{analysis_id}")
        with self._stats_lock:
            if isinstance(value, str):
                self._hits += 1
                return value
            self._misses += 1
        return None



    def cache_analysis_context(self, analysis_id, text: str) -> None:
        if analysis_id is None or not isinstance(text, str):
            return
        self.cache.set(f"{ANALYSIS_CACHE_PREFIX}{analysis_id}", text, self.cache_ttl)



    def clear_cache(self) -> None:
        self.cache.clear()
        with self._stats_lock:
            self._hits = 0
            self._misses = 0
        logger.info("Analysis context cache cleared")



    def get_cache_stats(self) -> dict:
        with self._stats_lock:
            return {"hits": self._hits, "misses": self._misses, "size": self.cache.size()}



    def _total(self, *segments) -> int:
        return self.token_estimator.estimate_tokens_for_segments(segments)
