"""
token_budget.py — Context Window Budget
=======================================
The default window is 8000 tokens. Segment shares are fixed proportions
of the requested total; floor rounding is applied per segment and the
response buffer takes whatever is left, so the segments always add up to
exactly the total.

  system_prompt          200 / 8000  = 2.5%
  analysis_context      2000 / 8000  = 25%
  conversation_history  1500 / 8000  = 18.75%
  current_query          500 / 8000  = 6.25%
  response_buffer       3000 / 8000  = 37.5%   (+ remainder)
"""

# Python Packages
from decouple import config


DEFAULT_MAX_TOKENS      = config("DEFAULT_MAX_TOKENS", default = 8000, cast = int)
MIN_MAX_TOKENS          = 100
MAX_MAX_TOKENS          = 200_000

# Reference allocation for an 8000-token window
REFERENCE_TOTAL         = 8000
REFERENCE_ALLOCATION    = {
    "system_prompt":          200,
    "analysis_context":      2000,
    "conversation_history":  1500,
    "current_query":          500,
}

# Characters per estimated token
CHARS_PER_TOKEN         = 4

# Appended to a truncated query
TRUNCATION_MARKER       = "..."
