"""
conversation/config/__init__.py
===============================
Public surface of the conversation configuration package.

Config files:
  thresholds          — similarity, relevance, repetition and hallucination cut-offs
  token_budget        — default context budget and its per-segment proportions
  tier_limits         — per-tier message length and usage ceilings
  patterns            — security and prompt-injection pattern registries
  content_policy      — response screening registries and disclaimer text
  prompts             — system prompt and context section labels
  question_templates  — suggested-question templates, categories and weights
"""

from . import thresholds
from . import token_budget
from . import tier_limits
from . import patterns
from . import content_policy
from . import prompts
from . import question_templates
