"""
tier_limits.py — Per-Tier Usage Ceilings
========================================
None means unlimited.

  free        500 chars,  5 questions per conversation,  20 per day
  pro        1000 chars,  unlimited per conversation,   500 per day (soft)
  enterprise 2000 chars,  unlimited,                    unlimited

Unknown tiers fall back to DEFAULT_TIER (the most restrictive).
"""

DEFAULT_TIER = "free"

TIER_LIMITS = {
    "free": {
        "max_message_length":           500,
        "questions_per_conversation":   5,
        "questions_per_day":            20,
    },
    "pro": {
        "max_message_length":           1000,
        "questions_per_conversation":   None,
        "questions_per_day":            500,
    },
    "enterprise": {
        "max_message_length":           2000,
        "questions_per_conversation":   None,
        "questions_per_day":            None,
    },
}

# Billing plan names mapped onto engine tiers
TIER_ALIASES = {
    "business":     "enterprise",
    "premium":      "pro",
}

# Reported as remaining_questions when no ceiling applies
UNLIMITED_QUESTIONS = -1
