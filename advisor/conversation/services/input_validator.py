"""
Service: InputValidator

Screens a user message before anything else touches it.

Order of checks (first failure wins):
  1. empty / whitespace-only            → reason "Message cannot be empty"
  2. tier length limit                  → sanitized truncated to exactly the limit
  3. malicious-pattern registry (raw)   → severity "high", security event logged
  4. sanitize: strip HTML, collapse blank lines and spaces
  5. prompt-injection registry          → severity "medium", security event logged
  6. obfuscation (special-character      → severity "medium", security event logged
     ratio, runs of escaped bytes)
  7. pass                               → sanitized text

Tier names are normalized the same way as ConversationRateLimiter.
"""

# Python Packages
import re
from collections import Counter
from typing import Any, Dict, Iterable, Optional

# Config
from ..config import thresholds, tier_limits
from ..config.patterns import (
    MALICIOUS_PATTERNS,
    OBFUSCATION_ENCODING_PATTERNS,
    PROMPT_INJECTION_PATTERNS,
    SPECIAL_CHARACTER_RULE,
    PatternRule
)

# Schemas
from ..schemas import StructureCheck, ValidationResult

# Interfaces
from ..interfaces import SecurityLogger

# Services
from .pattern_registry import PatternRegistry
from .security_logger import LoggingSecurityLogger
from .tiers import normalize_tier


HTML_TAG_PATTERN      = re.compile(r"<[^>]*>")
BLANK_LINES_PATTERN   = re.compile(r"\n\s*\n+")
SPACE_RUN_PATTERN     = re.compile(r"[ \t]+")

DISPLAY_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "/": "&#x2F;",
}





class InputValidator:

    def __init__(
        self,
        security_logger: Optional[SecurityLogger] = None,
        malicious_patterns: Iterable[PatternRule] = MALICIOUS_PATTERNS,
        injection_patterns: Iterable[PatternRule] = PROMPT_INJECTION_PATTERNS,
        tier_config: Optional[Dict[str, Dict[str, Any]]] = None,
        repeated_character_run: int = thresholds.REPEATED_CHARACTER_RUN,
        repeated_word_count: int = thresholds.REPEATED_WORD_COUNT,
        special_char_ratio: float = thresholds.OBFUSCATION_SPECIAL_CHAR_RATIO
    ):
        self.security_logger = security_logger or LoggingSecurityLogger()
        self.malicious_registry = PatternRegistry(malicious_patterns)
        self.injection_registry = PatternRegistry(injection_patterns)
        self.encoding_registry = PatternRegistry(OBFUSCATION_ENCODING_PATTERNS)
        self.special_char_ratio = special_char_ratio
        self._special_char_regex = re.compile(SPECIAL_CHARACTER_RULE.pattern, SPECIAL_CHARACTER_RULE.flags)
        self.tier_config = tier_config or tier_limits.TIER_LIMITS
        self.repeated_word_count = repeated_word_count
        self._repeated_char_regex = re.compile(r"(.)\1{%d,}" % max(0, repeated_character_run - 1))

    # ── Main Entry ─────────────────────────────────────────────────────────────

    def validate_user_input(self, text, tier: str = tier_limits.DEFAULT_TIER, context: Optional[Dict[str, Any]] = None) -> ValidationResult:
        """
        Args:
            text:     Raw user message.
            tier:     free / pro / enterprise (aliases and any case accepted).
            context:  Request metadata for security logging:
                      user_id, conversation_id, ip_address, user_agent.
        """

        context = context or {}

        if not isinstance(text, str) or not text.strip():
            return ValidationResult(is_valid = False, sanitized = "", reason = "Message cannot be empty", severity = "low")

        tier_name = normalize_tier(tier)
        max_length = self.get_max_length(tier_name)
        if len(text) > max_length:
            return ValidationResult(
                is_valid = False,
                sanitized = text[:max_length],
                reason = f"Message exceeds the {max_length} character limit for the {tier_name} tier",
                severity = "low"
            )

        malicious = self.malicious_registry.first_match(text)
        if malicious:
            self._log_rejection("malicious_input", malicious, context)
            return ValidationResult(
                is_valid = False,
                sanitized = "",
                reason = "Message contains potentially malicious content",
                severity = malicious.severity,
                pattern_name = malicious.name
            )

        sanitized = self.sanitize(text)
        if not sanitized:
            return ValidationResult(is_valid = False, sanitized = "", reason = "Message cannot be empty", severity = "low")

        injection = self.injection_registry.first_match(sanitized)
        if injection:
            self._log_rejection("prompt_injection", injection, context)
            return ValidationResult(
                is_valid = False,
                sanitized = sanitized,
                reason = "Message contains instructions the advisor cannot follow",
                severity = injection.severity,
                pattern_name = injection.name
            )

        obfuscation = self._obfuscation_match(sanitized)
        if obfuscation:
            self._log_rejection("prompt_injection", obfuscation, context)
            return ValidationResult(
                is_valid = False,
                sanitized = sanitized,
                reason = "Message appears to be encoded or obfuscated",
                severity = obfuscation.severity,
                pattern_name = obfuscation.name
            )

        return ValidationResult(is_valid = True, sanitized = sanitized)

    # ── Helpers ────────────────────────────────────────────────────────────────

    def get_max_length(self, tier: str) -> int:
        limits = self.tier_config.get(normalize_tier(tier)) or self.tier_config[tier_limits.DEFAULT_TIER]
        return limits["max_message_length"]



    @staticmethod
    def sanitize(text: str) -> str:
        text = HTML_TAG_PATTERN.sub("", text)
        text = text.replace("\r\n", "\n")
        text = BLANK_LINES_PATTERN.sub("\n\n", text)
        text = SPACE_RUN_PATTERN.sub(" ", text)
        return "\n".join(line.strip() for line in text.split("\n")).strip()



    def validate_message_structure(self, data) -> StructureCheck:
        if not isinstance(data, dict):
            return StructureCheck(is_valid = False, error = "Message must be an object")
        if "content" not in data or data["content"] is None:
            return StructureCheck(is_valid = False, error = "Message content is required")
        if not isinstance(data["content"], str):
            return StructureCheck(is_valid = False, error = "Message content must be a string")
        return StructureCheck(is_valid = True)



    def detect_excessive_repetition(self, text) -> bool:
        """
        True for a long run of one character, or a word longer than three
        characters that appears repeated_word_count times or more.
        """

        if not isinstance(text, str) or not text:
            return False

        if self._repeated_char_regex.search(text):
            return True

        words = re.findall(r"[a-z0-9']+", text.lower())
        counts = Counter(word for word in words if len(word) >= thresholds.REPEATED_WORD_MIN_LENGTH)
        return any(count >= self.repeated_word_count for count in counts.values())



    def detect_obfuscation(self, text) -> bool:
        """
        True when more than special_char_ratio of a message (20+ chars) is
        special characters, or it carries a run of URL, hex or unicode escapes.
        """

        return self._obfuscation_match(text) is not None



    def _obfuscation_match(self, text) -> Optional[PatternRule]:
        if not isinstance(text, str) or not text:
            return None

        if len(text) >= thresholds.OBFUSCATION_MIN_LENGTH:
            special = len(self._special_char_regex.findall(text))
            if special / len(text) > self.special_char_ratio:
                return SPECIAL_CHARACTER_RULE

        return self.encoding_registry.first_match(text)



    @staticmethod
    def sanitize_for_display(text) -> str:
        if not isinstance(text, str):
            return ""
        return "".join(DISPLAY_ESCAPES.get(char, char) for char in text)



    def _log_rejection(self, event_type: str, rule: PatternRule, context: Dict[str, Any]) -> None:
        try:
            self.security_logger.log_security_event(
                event_type,
                "input_validation",
                False,
                {
                    "user_id": context.get("user_id"),
                    "conversation_id": context.get("conversation_id"),
                    "ip_address": context.get("ip_address"),
                    "user_agent": context.get("user_agent"),
                    "pattern_name": rule.name,
                    "severity": rule.severity,
                }
            )
        except Exception as exc:
            print(f"⚠️  security logger raised ({event_type}): {exc}")
