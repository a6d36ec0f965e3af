"""
patterns.py — Input Security Registries
=======================================
Ordered registries checked by InputValidator. The first rule that matches
is reported by name, so order matters only for which name is logged.

How to extend:
  - Append a PatternRule to MALICIOUS_PATTERNS for new injection syntax
  - Append a PatternRule to PROMPT_INJECTION_PATTERNS for new jailbreak phrasing
  - Append a PatternRule to OBFUSCATION_ENCODING_PATTERNS for new escape runs
  - Keep phrases specific: "act" alone is ordinary business language
    ("how should I act when pitching investors")
"""

# Python Packages
import re
from typing import NamedTuple





class PatternRule(NamedTuple):
    """One registry entry: a named regex and the severity it reports."""

    name: str
    pattern: str
    severity: str = "high"
    flags: int = re.IGNORECASE



# ── Malicious Payloads (checked against raw input) ─────────────────────────────
MALICIOUS_PATTERNS = (
    PatternRule("sql_union_select",     r"\bunion\s+(all\s+)?select\b"),
    PatternRule("sql_drop_statement",   r"\b(drop|truncate|alter)\s+(table|database|schema)\b"),
    PatternRule("sql_select_from",      r"\bselect\s+[\w\*,\s]+\s+from\s+\w+\s*(where\b|;|--)"),
    PatternRule("sql_insert_into",      r"\binsert\s+into\s+\w+\s*(\(|values\b)"),
    PatternRule("sql_delete_from",      r"\bdelete\s+from\s+\w+"),
    PatternRule("sql_tautology",        r"'\s*or\s+'?\w+'?\s*=\s*'?\w+"),
    PatternRule("sql_comment_terminator", r";\s*--"),
    PatternRule("sql_stored_procedure", r"\bexec(ute)?\s+(xp_|sp_)\w+"),
    PatternRule("script_tag",           r"<\s*/?\s*script\b"),
    PatternRule("event_handler",        r"\bon(load|error|click|dblclick|mouse\w+|focus|blur|change|submit|key\w+)\s*="),
    PatternRule("javascript_protocol",  r"\bjavascript\s*:"),
    PatternRule("embedded_frame",       r"<\s*(iframe|object|embed)\b"),
    PatternRule("path_traversal",       r"\.\.[/\\]|%2e%2e%2f"),
    PatternRule("null_byte",            r"\x00|%00"),
)


# ── Prompt Injection (checked against sanitized input) ─────────────────────────
PROMPT_INJECTION_PATTERNS = (
    PatternRule(
        "ignore_previous_instructions",
        r"\b(ignore|disregard|forget|override)\s+(all\s+|any\s+)?(of\s+)?(the\s+|your\s+)?"
        r"(previous|prior|above|earlier|preceding)\s+(instructions?|prompts?|commands?|directions?|rules?)",
        "medium"
    ),
    PatternRule("role_reassignment",    r"\byou\s+are\s+now\s+(a|an|the|my|in)\b", "medium"),
    PatternRule("from_now_on_override", r"\bfrom\s+now\s+on,?\s+you\s+(are|will|must|should)\b", "medium"),
    PatternRule(
        "system_prompt_extraction",
        r"\b(reveal|show|print|repeat|display|output|leak)\b[^.?!]{0,40}\b(system\s+prompt|initial\s+instructions|hidden\s+instructions)\b",
        "medium"
    ),
    PatternRule("jailbreak_keyword",    r"\bjailbr(eak|oken)\b", "medium"),
    PatternRule("mode_override",        r"\b(dan|developer|god|admin|unrestricted|unfiltered)\s+mode\b", "medium"),
    PatternRule(
        "safety_bypass",
        r"\b(bypass|disable|turn\s+off|remove|ignore)\s+(your\s+|the\s+|all\s+|any\s+)?(safety|content\s+)?(filters?|restrictions?|guardrails?|safeguards?|guidelines)\b",
        "medium"
    ),
    PatternRule(
        "roleplay_override",
        r"\b(pretend\s+(to\s+be|you\s+are)|role-?play\s+as|act\s+as\s+(if\s+you\s+(are|were)\s+)?(an?\s+)?"
        r"(unrestricted|unfiltered|uncensored|evil|jailbroken|different\s+(ai|assistant|model)))\b",
        "medium"
    ),
    PatternRule(
        "role_simulation",
        r"\b(simulate|behave\s+(like|as))\s+(a|an)\s+(\w+\s+)?(ai|assistant|chatbot|bot|"
        r"unrestricted|unfiltered|uncensored|evil|jailbroken|hacker)\b",
        "medium"
    ),
    PatternRule(
        "system_prompt_question",
        r"\bwhat\s+(is|are|were)\s+your\s+(instructions?|prompts?|system\s+prompt|rules)\b"
        r"|\b(tell|show)\s+me\s+your\s+(instructions?|prompts?|system\s+prompt)\b"
        r"|\bwhat\s+were\s+you\s+told\b|\bwhat\s+are\s+you\s+programmed\s+to\b",
        "medium"
    ),
    PatternRule(
        "context_manipulation",
        r"\bignore\s+everything\s+(above|before|prior)\b"
        r"|\bdisregard\s+the\s+(context|conversation|history)\b"
        r"|\b(everything\s+(above|before)\s+this|the\s+(above|previous)\s+(text|content|message))\s+(is|was)\s+(fake|false|incorrect|wrong|a\s+test)\b",
        "medium"
    ),
    PatternRule("delimiter_injection",   r"(```|---|===)\s*(system|instruction|prompt)\b", "medium"),
    PatternRule("chat_markup_injection", r"\[/?(system|inst)\]|<\|(system|assistant|user|im_start)\|>|^\s*###\s*(system|instruction)", "medium", re.IGNORECASE | re.MULTILINE),
)


# ── Obfuscation (checked against sanitized input) ──────────────────────────────
# Characters outside this set count as "special" for the ratio check
OBFUSCATION_PLAIN_CHARACTERS = r"\w\s.,!?'\"\-:;()%$/&+"
SPECIAL_CHARACTER_RULE       = PatternRule("special_character_ratio", r"[^%s]" % OBFUSCATION_PLAIN_CHARACTERS, "medium")

# Runs of escaped bytes: URL, hex, unicode
OBFUSCATION_ENCODING_PATTERNS = (
    PatternRule("url_encoded_run",     r"(%[0-9a-f]{2}){5,}", "medium"),
    PatternRule("hex_escape_run",      r"(\\x[0-9a-f]{2}){5,}", "medium"),
    PatternRule("unicode_escape_run",  r"(\\u[0-9a-f]{4}){3,}", "medium"),
)
