"""
thresholds.py — Heuristic Thresholds
====================================
Every cut-off used by the conversation services lives here. Each value
can be overridden from the environment (python-decouple) and each service
also accepts it as a constructor keyword, so tests can pin values
without touching the environment.

Similarity is word-set Jaccard (see QueryDeduplicationService):
  similarity >= DEDUP_SIMILARITY_THRESHOLD → treated as the same question
"""

# Python Packages
from decouple import config


# ── Query Deduplication ────────────────────────────────────────────────────────
# One value for the history scan, the cross-conversation cache and the API default.
DEDUP_SIMILARITY_THRESHOLD      = config("DEDUP_SIMILARITY_THRESHOLD", default = 0.8, cast = float)
DEDUP_RECENT_USER_MESSAGES      = config("DEDUP_RECENT_USER_MESSAGES", default = 10, cast = int)
DEDUP_MIN_WORD_LENGTH           = 3        # words of 2 chars or fewer are ignored
DEDUP_CACHE_ENTRIES_PER_CONVERSATION = config("DEDUP_CACHE_ENTRIES_PER_CONVERSATION", default = 50, cast = int)

# Estimated model cost avoided by every dedup hit (USD)
AVG_API_CALL_COST               = config("AVG_API_CALL_COST", default = 0.05, cast = float)

# ── History Summarization ──────────────────────────────────────────────────────
SUMMARIZE_AFTER_MESSAGES        = config("SUMMARIZE_AFTER_MESSAGES", default = 10, cast = int)
SUMMARY_RECENT_MESSAGES         = config("SUMMARY_RECENT_MESSAGES", default = 5, cast = int)
SUMMARY_MAX_KEY_POINTS          = 5
SUMMARY_TOPIC_MAX_LENGTH        = 80

# ── Context Optimization ───────────────────────────────────────────────────────
ANALYSIS_TOP_GAPS               = config("ANALYSIS_TOP_GAPS", default = 3, cast = int)
GAP_DESCRIPTION_MAX_LENGTH      = 200
COMPETITOR_DESCRIPTION_MAX_LENGTH = 120

# ── Input Screening ────────────────────────────────────────────────────────────
REPEATED_CHARACTER_RUN          = config("REPEATED_CHARACTER_RUN", default = 10, cast = int)
REPEATED_WORD_COUNT             = config("REPEATED_WORD_COUNT", default = 5, cast = int)
REPEATED_WORD_MIN_LENGTH        = 4        # only words longer than 3 chars count

# Obfuscation: share of special characters above which a message is refused
OBFUSCATION_SPECIAL_CHAR_RATIO  = config("OBFUSCATION_SPECIAL_CHAR_RATIO", default = 0.2, cast = float)
OBFUSCATION_MIN_LENGTH          = 20       # shorter messages skip the ratio check

# ── Response Screening ─────────────────────────────────────────────────────────
RESPONSE_MIN_LENGTH             = config("RESPONSE_MIN_LENGTH", default = 10, cast = int)
RESPONSE_MAX_LENGTH             = config("RESPONSE_MAX_LENGTH", default = 5000, cast = int)
RELEVANCE_CONFIDENCE_THRESHOLD  = config("RELEVANCE_CONFIDENCE_THRESHOLD", default = 0.2, cast = float)
RELEVANCE_MIN_WORD_LENGTH       = 4        # query/response words of 3 chars or fewer are ignored
HALLUCINATION_MIN_INDICATORS    = config("HALLUCINATION_MIN_INDICATORS", default = 2, cast = int)

# Distinct trigger terms needed before an advice heuristic fires
MEDICAL_TERM_THRESHOLD          = config("MEDICAL_TERM_THRESHOLD", default = 2, cast = int)
FINANCIAL_TERM_THRESHOLD        = config("FINANCIAL_TERM_THRESHOLD", default = 2, cast = int)
LEGAL_TERM_THRESHOLD            = config("LEGAL_TERM_THRESHOLD", default = 2, cast = int)

# Confidence-indicator check: long answers with several figures need qualifiers
CONFIDENCE_CHECK_MIN_LENGTH     = 200
CONFIDENCE_CHECK_MIN_NUMBERS    = 3

# ── Suggested Questions ────────────────────────────────────────────────────────
SUGGESTED_QUESTION_COUNT        = 5
QUESTION_DUPLICATE_THRESHOLD    = config("QUESTION_DUPLICATE_THRESHOLD", default = 0.7, cast = float)
QUESTION_HISTORY_THRESHOLD      = config("QUESTION_HISTORY_THRESHOLD", default = 0.5, cast = float)
QUESTION_DISCUSSED_DECAY        = config("QUESTION_DISCUSSED_DECAY", default = 10, cast = int)
QUESTION_UNDISCUSSED_BOOST      = config("QUESTION_UNDISCUSSED_BOOST", default = 15, cast = int)
QUESTIONS_PER_CATEGORY          = 2
