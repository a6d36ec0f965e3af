"""
prompts.py — System Prompt & Context Section Labels
===================================================
The system prompt is fixed text and must stay well under the
system_prompt share of the token budget (200 tokens at 8000).
"""

# ── System Prompt ──────────────────────────────────────────────────────────────
SYSTEM_PROMPT = (
    "You are an AI advisor for the Unbuilt platform, helping founders explore "
    "market gaps and innovation opportunities. Answer using the analysis "
    "context and the conversation so far. Be specific and practical, say when "
    "figures are estimates, and do not give medical, legal or personalised "
    "financial advice."
)

# ── Analysis Context Sections ──────────────────────────────────────────────────
ANALYSIS_HEADER             = "Analysis for: {search_query}"
ANALYSIS_SCORE_LINE         = "Innovation score: {innovation_score}/100 | Feasibility: {feasibility_rating}"
ANALYSIS_GAPS_HEADER        = "Top gaps:"
ANALYSIS_GAP_LINE           = "{index}. {title} (score {score}): {description}"
ANALYSIS_COMPETITORS_HEADER = "Competitors:"
ANALYSIS_COMPETITOR_LINE    = "- {name}: {description}"
ANALYSIS_PHASES_LINE        = "Action plan phases: {phases}"

# ── Conversation History ───────────────────────────────────────────────────────
ROLE_LABELS = {
    "user":         "User",
    "assistant":    "Assistant",
}

SUMMARY_HEADER              = "[Earlier conversation: {count} messages]"
SUMMARY_TOPICS_HEADER       = "Topics discussed:"
HISTORY_TRIM_MARKER         = "[...]"

# Placeholder used when an analysis has no gaps
DEFAULT_GAP_TITLE           = "this opportunity"

# Shown instead of a model response that failed screening
FLAGGED_RESPONSE_FALLBACK   = (
    "I'm not able to share that answer. Could you rephrase your question "
    "or ask about a different aspect of the analysis?"
)
