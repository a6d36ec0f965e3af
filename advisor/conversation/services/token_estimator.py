"""
Service: TokenEstimator

Approximate token counts (one token per CHARS_PER_TOKEN characters,
rounded up). Not a model tokenizer; used for budgeting only.
Never raises: anything that is not a non-blank string counts as 0.
"""

# Python Packages
import math
from typing import Dict, Iterable

# Config
from ..config import token_budget





class TokenEstimator:

    def __init__(self, chars_per_token: int = token_budget.CHARS_PER_TOKEN):
        self.chars_per_token = chars_per_token



    def estimate_tokens(self, text) -> int:
        if not isinstance(text, str) or not text.strip():
            return 0
        return math.ceil(len(text) / self.chars_per_token)



    def estimate_tokens_for_segments(self, segments: Iterable) -> int:
        if segments is None:
            return 0
        return sum(self.estimate_tokens(segment) for segment in segments)



    def get_token_breakdown(self, segments: Dict[str, str]) -> Dict[str, int]:
        """ Per-segment counts, for logging and diagnostics... """

        if not isinstance(segments, dict):
            return {}
        return {name: self.estimate_tokens(text) for name, text in segments.items()}



    def max_chars(self, tokens: int) -> int:
        """ Largest character length that still estimates within *tokens*... """

        return max(0, tokens) * self.chars_per_token
