"""
Tier name normalization shared by InputValidator and ConversationRateLimiter.
"""

# Config
from ..config import tier_limits





def normalize_tier(tier) -> str:
    """ Case-insensitive tier lookup; aliases resolved, unknown → DEFAULT_TIER... """

    if not isinstance(tier, str):
        return tier_limits.DEFAULT_TIER

    name = tier.strip().lower()
    name = tier_limits.TIER_ALIASES.get(name, name)
    if name not in tier_limits.TIER_LIMITS:
        return tier_limits.DEFAULT_TIER
    return name
