"""
content_policy.py — Response Screening Registries
=================================================
Pattern tables and disclaimer text used by ResponseValidator.

Advice heuristics count DISTINCT rule names that match; a heuristic fires
once the count reaches its threshold in thresholds.py. Medical advice is
rejected whether or not a disclaimer is present. Financial and legal
advice are accepted only with their disclaimer.
"""

# Python Packages
import re

# Config
from .patterns import PatternRule



# ── Inappropriate Content ──────────────────────────────────────────────────────
INAPPROPRIATE_PATTERNS = (
    PatternRule("hate_speech",      r"\b(hate\s+speech|racial\s+slur|racist|sexist|bigot(ed|s)?)\b"),
    PatternRule("violence",         r"\b(kill|murder|assault|massacre|terroris[mt]|violent\s+attack)\b"),
    PatternRule("self_harm",        r"\b(self[-\s]harm|suicide)\b"),
    PatternRule("weapons",          r"\b(build|make)\s+(a\s+)?(bomb|explosive|weapon)s?\b"),
)


# ── Advice Triggers ────────────────────────────────────────────────────────────
MEDICAL_PATTERNS = (
    PatternRule("diagnosis",        r"\bdiagnos(e|es|ed|is|ing)\b"),
    PatternRule("treatment",        r"\btreat(ment|ments|ing)?\b"),
    PatternRule("medication",       r"\b(medication|medicine|prescri(be|bed|ption)|dosage|dose)\b"),
    PatternRule("symptoms",         r"\bsymptoms?\b"),
    PatternRule("disease",          r"\b(disease|illness|infection|disorder)\b"),
    PatternRule("cure",             r"\bcur(e|es|ed|ing)\b"),
)

FINANCIAL_PATTERNS = (
    PatternRule("investment",       r"\binvest(ment|ments|ing|ors?)?\b"),
    PatternRule("return_on_investment", r"\b(roi|return\s+on\s+investment)\b"),
    PatternRule("returns",          r"\breturns?\b"),
    PatternRule("stocks",           r"\b(stocks?|shares|equity)\b"),
    PatternRule("portfolio",        r"\bportfolio\b"),
    PatternRule("valuation",        r"\bvaluation\b"),
    PatternRule("profit",           r"\bprofit(s|able|ability)?\b"),
    PatternRule("funding",          r"\b(funding\s+rounds?|venture\s+capital|ipo)\b"),
)

LEGAL_PATTERNS = (
    PatternRule("regulation",       r"\b(regulations?|regulatory|compliance)\b"),
    PatternRule("contract",         r"\b(contracts?|agreements?)\b"),
    PatternRule("intellectual_property", r"\b(patents?|trademarks?|copyrights?|intellectual\s+property)\b"),
    PatternRule("liability",        r"\b(liability|liable|lawsuits?|litigation)\b"),
    PatternRule("licensing",        r"\blicens(e|es|ing)\b"),
)


# ── Disclaimers ────────────────────────────────────────────────────────────────
# Both parts of a disclaimer must be present for it to count.
FINANCIAL_DISCLAIMER_PATTERNS = (
    re.compile(r"\bnot\s+financial\s+advice\b", re.IGNORECASE),
    re.compile(r"\bconsult\b[^.]{0,60}\b(financial\s+)?(advisor|adviser|professional|planner)\b", re.IGNORECASE),
)

LEGAL_DISCLAIMER_PATTERNS = (
    re.compile(r"\bnot\s+legal\s+advice\b", re.IGNORECASE),
    re.compile(r"\bconsult\b[^.]{0,60}\b(attorney|lawyer|legal\s+(professional|counsel))\b", re.IGNORECASE),
)

FINANCIAL_DISCLAIMER = (
    "Disclaimer: This is not financial advice. "
    "Please consult a qualified financial advisor before making any investment decisions."
)

LEGAL_DISCLAIMER = (
    "Disclaimer: This is not legal advice. "
    "Please consult a qualified attorney for guidance on your specific situation."
)


# ── Misleading Claims ──────────────────────────────────────────────────────────
ABSOLUTE_CLAIM_PATTERNS = (
    PatternRule("guaranteed",       r"\b100\s*%\s*(guaranteed|certain|sure)|\bguaranteed\s+(success|results?|returns?|to\s+\w+)"),
    PatternRule("never_fails",      r"\b(never|cannot|can't|won't)\s+fail\b|\bnever\s+fails\b"),
    PatternRule("no_risk",          r"\b(no|zero)\s+risks?\b|\brisk[-\s]free\b"),
    PatternRule("always_works",     r"\balways\s+(works|succeeds)\b"),
)


# ── Confidence Indicators ──────────────────────────────────────────────────────
NUMERIC_CLAIM_PATTERN = r"\$?\b\d[\d,]*(\.\d+)?\s*(%|percent|million|billion|thousand|k\b|m\b|bn\b)?"

QUALIFIER_WORDS = (
    "approximately", "approx", "about", "around", "roughly", "estimated",
    "estimate", "based on", "could", "might", "may", "likely", "typically",
    "suggests", "according to",
)


# ── Hallucination Indicators ───────────────────────────────────────────────────
SPECIFIC_DATE_PATTERN = (
    r"\b\d{4}-\d{2}-\d{2}\b|"
    r"\b(january|february|march|april|may|june|july|august|september|october|november|december)"
    r"\s+\d{1,2}(st|nd|rd|th)?,\s*\d{4}\b"
)

PRECISE_STATISTIC_PATTERN = r"\b\d+\.\d+\s*%"

NAMED_ROLE_PATTERN = r"\b(?i:ceo|cto|cfo|coo|founder|co-founder|president|chairman)\s+(?i:of\s+)?[A-Z][a-z]+"

ATTRIBUTION_PATTERN = r"\b(according\s+to|based\s+on|source[sd]?|reported\s+by|data\s+from|cited\s+in|per\s+the)\b"

ROLE_QUALIFIER_PATTERN = r"\b(company|organization|organisation|startup|firm|publicly|reportedly)\b"


# ── Relevance ──────────────────────────────────────────────────────────────────
STOP_WORDS = frozenset({
    "the", "and", "for", "are", "but", "not", "you", "all", "can", "her",
    "was", "one", "our", "out", "has", "have", "had", "his", "how", "its",
    "may", "new", "now", "see", "who", "did", "get", "use", "way", "what",
    "when", "where", "which", "while", "with", "would", "could", "should",
    "this", "that", "these", "those", "there", "their", "they", "them",
    "then", "than", "from", "into", "about", "your", "yours", "will",
    "been", "being", "were", "does", "doing", "some", "such", "only",
    "also", "just", "more", "most", "very", "much", "many", "like", "make",
})
