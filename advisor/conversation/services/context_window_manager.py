"""
Service: ContextWindowManager

Builds the bounded context window handed to the model call:

  system_prompt         fixed advisor identity text
  analysis_context      rendered analysis summary (cached per analysis id)
  conversation_history  raw tail, or summary + recent tail for long chats
  current_query         the user's question, truncated but never dropped

Segment budgets come from get_token_budget(max_tokens). If the assembled
window is still over max_tokens, ContextOptimizer trims history, then
analysis context; if that is not enough the best-effort window is
returned with degraded=True instead of failing.
"""

# Python Packages
from typing import Dict, List, Optional, Sequence

# Config
from ..config import thresholds, token_budget, prompts

# Schemas
from ..schemas import AnalysisData, ContextWindow, ConversationMessage, TokenBudget, parse_messages

# Services
from .token_estimator import TokenEstimator
from .history_summarizer import HistorySummarizer
from .context_optimizer import ContextOptimizer

# Exceptions
from ...util.exceptions import StructuralException
from ...util import messages as error_messages

# Logger
from ...util.logger import get_logger


logger = get_logger(__name__)





class ContextWindowManager:

    def __init__(
        self,
        token_estimator: Optional[TokenEstimator] = None,
        history_summarizer: Optional[HistorySummarizer] = None,
        context_optimizer: Optional[ContextOptimizer] = None,
        system_prompt: str = prompts.SYSTEM_PROMPT,
        analysis_top_gaps: int = thresholds.ANALYSIS_TOP_GAPS
    ):
        self.token_estimator    = token_estimator or TokenEstimator()
        self.history_summarizer = history_summarizer or HistorySummarizer()
        self.context_optimizer  = context_optimizer or ContextOptimizer(token_estimator = self.token_estimator)
        self.system_prompt      = system_prompt
        self.analysis_top_gaps  = analysis_top_gaps

    # ── Build ──────────────────────────────────────────────────────────────────

    def build_context(
        self,
        analysis,
        messages: Sequence,
        current_query: str,
        max_tokens: int = token_budget.DEFAULT_MAX_TOKENS,
        use_cache: bool = True
    ) -> ContextWindow:
        """
        Assemble a context window for one turn.

        Args:
            analysis:       AnalysisData, or a dict accepted by AnalysisData.from_dict.
            messages:       Prior messages in append order (ConversationMessage or dicts).
            current_query:  The new user question.
            max_tokens:     Total budget for the window.
            use_cache:      Reuse / store the rendered analysis context.

        Raises:
            StructuralException: malformed analysis, messages or query.
        """

        analysis, history, current_query = self._parse_inputs(analysis, messages, current_query)
        budget = self.get_token_budget(max_tokens)

        analysis_context = self._analysis_context(analysis, budget.analysis_context, use_cache)
        conversation_history = self._conversation_history(history, budget.conversation_history)
        query = self._bounded_query(current_query, budget.current_query)

        total = self.token_estimator.estimate_tokens_for_segments(
            [self.system_prompt, analysis_context, conversation_history, query]
        )

        context = ContextWindow(
            system_prompt = self.system_prompt,
            analysis_context = analysis_context,
            conversation_history = conversation_history,
            current_query = query,
            total_tokens = total
        )

        if total > max_tokens:
            context = self.context_optimizer.optimize_context_window(context, max_tokens)

        logger.debug(
            "Context window built",
            extra = {"payload": {"breakdown": self.get_token_breakdown(context), "max_tokens": max_tokens}}
        )

        return context

    # ── Budget ─────────────────────────────────────────────────────────────────

    def get_token_budget(self, max_tokens: int = token_budget.DEFAULT_MAX_TOKENS) -> TokenBudget:
        """
        Scale the reference allocation to *max_tokens*. Each input segment
        is floored; the response buffer receives the rest, so the parts
        always sum to max_tokens.
        """

        if isinstance(max_tokens, bool) or not isinstance(max_tokens, int) or max_tokens <= 0:
            return TokenBudget(0, 0, 0, 0, 0)

        shares = {
            name: max_tokens * tokens // token_budget.REFERENCE_TOTAL
            for name, tokens in token_budget.REFERENCE_ALLOCATION.items()
        }

        return TokenBudget(
            system_prompt = shares["system_prompt"],
            analysis_context = shares["analysis_context"],
            conversation_history = shares["conversation_history"],
            current_query = shares["current_query"],
            response_buffer = max_tokens - sum(shares.values())
        )



    def validate_budget(self, context: ContextWindow, max_tokens: int = token_budget.DEFAULT_MAX_TOKENS) -> bool:
        return context.total_tokens <= max_tokens



    def estimate_tokens(self, text) -> int:
        return self.token_estimator.estimate_tokens(text)



    def get_token_breakdown(self, context: ContextWindow) -> Dict[str, int]:
        breakdown = self.token_estimator.get_token_breakdown(context.segments())
        breakdown["total"] = sum(breakdown.values())
        return breakdown



    def clear_cache(self) -> None:
        self.context_optimizer.clear_cache()

    # ── Segments ───────────────────────────────────────────────────────────────

    def _analysis_context(self, analysis: AnalysisData, budget_tokens: int, use_cache: bool) -> str:
        rendered = None
        if use_cache:
            rendered = self.context_optimizer.get_cached_analysis_context(analysis.analysis_id)

        if rendered is None:
            rendered = self.render_analysis(analysis)
            if use_cache:
                self.context_optimizer.cache_analysis_context(analysis.analysis_id, rendered)

        return self.context_optimizer.trim_newest(rendered, budget_tokens)



    def render_analysis(self, analysis: AnalysisData) -> str:
        optimized = self.context_optimizer.optimize_analysis_data(analysis, self.analysis_top_gaps)

        lines = [
            prompts.ANALYSIS_HEADER.format(search_query = optimized.search_query),
            prompts.ANALYSIS_SCORE_LINE.format(
                innovation_score = optimized.innovation_score,
                feasibility_rating = optimized.feasibility_rating
            ),
        ]

        if optimized.top_gaps:
            lines.append(prompts.ANALYSIS_GAPS_HEADER)
            for index, gap in enumerate(optimized.top_gaps, start = 1):
                lines.append(prompts.ANALYSIS_GAP_LINE.format(
                    index = index,
                    title = gap.title,
                    score = _format_score(gap.score),
                    description = _shorten(gap.description, thresholds.GAP_DESCRIPTION_MAX_LENGTH)
                ))

        if optimized.competitors:
            lines.append(prompts.ANALYSIS_COMPETITORS_HEADER)
            for competitor in optimized.competitors:
                lines.append(prompts.ANALYSIS_COMPETITOR_LINE.format(
                    name = competitor.name,
                    description = _shorten(competitor.description, thresholds.COMPETITOR_DESCRIPTION_MAX_LENGTH)
                ))

        if optimized.action_plan_phases:
            lines.append(prompts.ANALYSIS_PHASES_LINE.format(phases = ", ".join(optimized.action_plan_phases)))

        return "\n".join(lines)



    def _conversation_history(self, history: List[ConversationMessage], budget_tokens: int) -> str:
        if not history:
            return ""

        if self.history_summarizer.needs_summarization(len(history)):
            summarized = self.history_summarizer.summarize_history(history)
            text = self.history_summarizer.format_for_context(summarized)
            return self.context_optimizer.trim_oldest(text, budget_tokens)

        # Newest first until the budget is used; older messages are dropped
        kept = []
        for message in reversed(history):
            line = self.history_summarizer.format_message(message)
            candidate = "\n".join([line] + kept)
            if self.token_estimator.estimate_tokens(candidate) > budget_tokens:
                if not kept:
                    kept.append(self.context_optimizer.trim_oldest(line, budget_tokens))
                break
            kept.insert(0, line)

        return "\n".join(line for line in kept if line)



    def _bounded_query(self, query: str, budget_tokens: int) -> str:
        """ Cut to the segment's character allowance, then mark the cut... """

        max_chars = self.token_estimator.max_chars(budget_tokens)
        if len(query) <= max_chars:
            return query

        return query[:max(1, max_chars)] + token_budget.TRUNCATION_MARKER



    def _parse_inputs(self, analysis, messages, current_query):
        if not isinstance(analysis, AnalysisData):
            analysis = AnalysisData.from_dict(analysis)

        history = [
            message if isinstance(message, ConversationMessage) else ConversationMessage.from_dict(message)
            for message in (messages or [])
        ] if isinstance(messages, (list, tuple)) else parse_messages(messages)

        if not isinstance(current_query, str):
            raise StructuralException(error_messages.ERROR["INVALID_MESSAGE"])

        return analysis, history, current_query





def _shorten(text: str, limit: int) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit - 3].rstrip() + "..."


def _format_score(score) -> str:
    if score is None:
        return "n/a"
    if float(score).is_integer():
        return str(int(score))
    return f"{score:.1f}"
