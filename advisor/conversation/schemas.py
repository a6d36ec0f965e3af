"""
Conversation Schemas
====================
Value types passed between the conversation services and the HTTP layer.

Inbound payloads (messages, analysis snapshots) are parsed with
from_dict(), which accepts snake_case or camelCase keys and raises
StructuralException before any processing happens. Outbound types expose
to_dict() for JSON responses.
"""

# Python Packages
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

# Exceptions
from ..util.exceptions import StructuralException
from ..util import messages


ROLES = ("user", "assistant")
FEASIBILITY_RATINGS = ("low", "medium", "high")
SEVERITIES = ("low", "medium", "high")





def _pick(data: Dict, *keys, default = None):
    """Return the first key present in data (snake_case first, then camelCase)."""

    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _jsonable(value):
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value





class Serializable:
    """to_dict() for dataclasses, with datetimes rendered as ISO strings."""

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))



# ── Conversation Messages ──────────────────────────────────────────────────────

@dataclass(frozen = True)
class ConversationMessage(Serializable):
    """One immutable turn of a conversation."""

    role: str
    content: str
    id: Optional[int] = None
    conversation_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Any) -> "ConversationMessage":
        if not isinstance(data, dict):
            raise StructuralException(messages.ERROR["INVALID_MESSAGES"])

        content = data.get("content")
        if content is None:
            raise StructuralException(messages.ERROR["MISSING_CONTENT"])
        if not isinstance(content, str):
            raise StructuralException(messages.ERROR["INVALID_CONTENT"])

        role = data.get("role")
        if role not in ROLES:
            raise StructuralException(messages.ERROR["INVALID_ROLE"], details = f"role={role!r}")

        created_at = _pick(data, "created_at", "createdAt")
        if isinstance(created_at, str):
            try:
                created_at = datetime.fromisoformat(created_at)
            except ValueError:
                created_at = None

        conversation_id = _pick(data, "conversation_id", "conversationId")

        return cls(
            role = role,
            content = content,
            id = data.get("id"),
            conversation_id = str(conversation_id) if conversation_id is not None else None,
            created_at = created_at
        )


def parse_messages(data: Any) -> List[ConversationMessage]:
    """Parse a list of message dicts, keeping the supplied order."""

    if data is None:
        return []
    if not isinstance(data, list):
        raise StructuralException(messages.ERROR["INVALID_MESSAGES"])
    return [ConversationMessage.from_dict(item) for item in data]



# ── Analysis Snapshot ──────────────────────────────────────────────────────────

@dataclass(frozen = True)
class Gap(Serializable):
    title: str
    description: str = ""
    score: Optional[float] = None


@dataclass(frozen = True)
class Competitor(Serializable):
    name: str
    description: str = ""


@dataclass(frozen = True)
class AnalysisData(Serializable):
    """
    Read-only snapshot of a gap analysis, supplied by the analysis provider.
    Services return modified copies (dataclasses.replace), never mutate it.
    """

    search_query: str
    innovation_score: int = 0
    feasibility_rating: str = "medium"
    top_gaps: Tuple[Gap, ...] = ()
    competitors: Tuple[Competitor, ...] = ()
    action_plan_phases: Tuple[str, ...] = ()
    analysis_id: Optional[str] = None

    @property
    def top_gap(self) -> Optional[Gap]:
        """Highest-scoring gap; earliest wins on ties."""

        if not self.top_gaps:
            return None
        best = self.top_gaps[0]
        for gap in self.top_gaps[1:]:
            if (gap.score or 0) > (best.score or 0):
                best = gap
        return best

    @classmethod
    def from_dict(cls, data: Any) -> "AnalysisData":
        if data is None:
            raise StructuralException(messages.ERROR["MISSING_ANALYSIS"])
        if not isinstance(data, dict):
            raise StructuralException(messages.ERROR["INVALID_ANALYSIS"])

        search_query = _pick(data, "search_query", "searchQuery")
        if not isinstance(search_query, str) or not search_query.strip():
            raise StructuralException(messages.ERROR["MISSING_SEARCH_QUERY"])

        innovation_score = _pick(data, "innovation_score", "innovationScore", default = 0)
        if isinstance(innovation_score, bool) or not isinstance(innovation_score, (int, float)) \
                or not 0 <= innovation_score <= 100:
            raise StructuralException(messages.ERROR["INVALID_INNOVATION_SCORE"])

        feasibility = str(_pick(data, "feasibility_rating", "feasibilityRating", default = "medium")).lower()
        if feasibility not in FEASIBILITY_RATINGS:
            raise StructuralException(messages.ERROR["INVALID_FEASIBILITY"])

        raw_gaps = _pick(data, "top_gaps", "topGaps", default = [])
        if not isinstance(raw_gaps, list) or not all(isinstance(gap, dict) for gap in raw_gaps):
            raise StructuralException(messages.ERROR["INVALID_GAPS"])

        raw_competitors = data.get("competitors") or []
        if not isinstance(raw_competitors, list) or not all(isinstance(item, dict) for item in raw_competitors):
            raise StructuralException(messages.ERROR["INVALID_COMPETITORS"])

        gaps = []
        for gap in raw_gaps:
            score = gap.get("score")
            gaps.append(Gap(
                title = str(gap.get("title") or ""),
                description = str(gap.get("description") or ""),
                score = score if isinstance(score, (int, float)) and not isinstance(score, bool) else None
            ))

        competitors = tuple(
            Competitor(name = str(item.get("name") or ""), description = str(item.get("description") or ""))
            for item in raw_competitors
        )

        action_plan = _pick(data, "action_plan", "actionPlan", default = {})
        phases = action_plan.get("phases", []) if isinstance(action_plan, dict) else []
        phase_names = []
        for phase in phases if isinstance(phases, list) else []:
            if isinstance(phase, dict):
                name = _pick(phase, "name", "title")
                if name:
                    phase_names.append(str(name))
            elif isinstance(phase, str):
                phase_names.append(phase)

        analysis_id = _pick(data, "analysis_id", "analysisId", "id")

        return cls(
            search_query = search_query.strip(),
            innovation_score = int(innovation_score),
            feasibility_rating = feasibility,
            top_gaps = tuple(gaps),
            competitors = competitors,
            action_plan_phases = tuple(phase_names),
            analysis_id = str(analysis_id) if analysis_id is not None else None
        )



# ── Context Window ─────────────────────────────────────────────────────────────

@dataclass(frozen = True)
class TokenBudget(Serializable):
    system_prompt: int
    analysis_context: int
    conversation_history: int
    current_query: int
    response_buffer: int

    @property
    def total(self) -> int:
        return (self.system_prompt + self.analysis_context + self.conversation_history
                + self.current_query + self.response_buffer)


@dataclass(frozen = True)
class ContextWindow(Serializable):
    """
    Bounded payload handed to the model call. total_tokens is the estimate
    over the four text segments; degraded is set when trimming could not
    bring the window under budget.
    """

    system_prompt: str
    analysis_context: str
    conversation_history: str
    current_query: str
    total_tokens: int
    degraded: bool = False

    def segments(self) -> Dict[str, str]:
        return {
            "system_prompt": self.system_prompt,
            "analysis_context": self.analysis_context,
            "conversation_history": self.conversation_history,
            "current_query": self.current_query,
        }


@dataclass(frozen = True)
class SummarizedHistory(Serializable):
    summary: str
    recent_messages: Tuple[ConversationMessage, ...]
    summarized_count: int = 0
    total_messages: int = 0



# ── Validation Results ─────────────────────────────────────────────────────────

@dataclass(frozen = True)
class ValidationResult(Serializable):
    """Outcome of screening user input. A rejection always carries a reason."""

    is_valid: bool
    sanitized: str
    reason: Optional[str] = None
    severity: Optional[str] = None
    pattern_name: Optional[str] = None

    def __post_init__(self):
        if not self.is_valid and not self.reason:
            raise ValueError("Rejected ValidationResult requires a reason")


@dataclass(frozen = True)
class StructureCheck(Serializable):
    is_valid: bool
    error: Optional[str] = None


@dataclass(frozen = True)
class ContentValidationResult(Serializable):
    is_valid: bool
    issues: List[str] = field(default_factory = list)
    severity: str = "low"


@dataclass(frozen = True)
class RelevanceResult(Serializable):
    is_relevant: bool
    confidence: float


@dataclass(frozen = True)
class HallucinationAssessment(Serializable):
    likely_hallucination: bool
    indicators: List[str] = field(default_factory = list)



# ── Deduplication ──────────────────────────────────────────────────────────────

@dataclass(frozen = True)
class SimilarQueryResult(Serializable):
    is_similar: bool
    similarity: float = 0.0
    cached_response: Optional[str] = None
    matched_query: Optional[str] = None


@dataclass(frozen = True)
class DeduplicationStats(Serializable):
    total_queries: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    hit_rate: float = 0.0
    cost_savings: float = 0.0



# ── Suggestions & Limits ───────────────────────────────────────────────────────

@dataclass(frozen = True)
class SuggestedQuestion(Serializable):
    text: str
    category: str
    priority: float
    relevance_score: float


@dataclass(frozen = True)
class RateLimitStatus(Serializable):
    """
    Structured allow/deny answer from the rate limiter.
    remaining_questions is -1 when no ceiling applies to the tier.
    """

    allowed: bool
    remaining_questions: int
    tier: str
    reset_at: Optional[datetime] = None
    limit: Optional[int] = None
    reason: Optional[str] = None



# ── Turn Outcome ───────────────────────────────────────────────────────────────

@dataclass(frozen = True)
class TurnResult(Serializable):
    """
    status:
      "answered"       model was called and the response passed screening
      "flagged"        model was called but the response failed screening
      "cached"         a near-duplicate question was answered from history/cache
      "rejected"       input failed validation, nothing was sent to the model
      "rate_limited"   usage ceiling reached or a request is already in flight
    """

    status: str
    response: Optional[str] = None
    input_validation: Optional[ValidationResult] = None
    content_validation: Optional[ContentValidationResult] = None
    rate_limit: Optional[RateLimitStatus] = None
    similarity: Optional[SimilarQueryResult] = None
    context: Optional[ContextWindow] = None
    suggested_questions: List[SuggestedQuestion] = field(default_factory = list)
