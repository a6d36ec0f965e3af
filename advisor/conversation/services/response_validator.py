"""
Service: ResponseValidator

Screens model output before it reaches the user.

validate_response() composes these checks; the highest severity wins and
the response is valid only when every issue is "low":

  structural        empty (high), too short / too long (medium)
  inappropriate     hate / violence keywords                    → high
  medical advice    diagnosis / treatment / medication language → high, disclaimers ignored
  financial advice  ROI / returns / investment language         → medium unless disclaimed
  legal advice      regulation / contract / patent language     → medium unless disclaimed
  absolute claims   "100% guaranteed", "never fails", "no risk" → medium
  confidence        many figures, no qualifying language        → low (informational)
"""

# Python Packages
import re
from typing import Iterable, List, Optional

# Config
from ..config import thresholds, content_policy
from ..config.patterns import PatternRule

# Schemas
from ..schemas import ContentValidationResult, HallucinationAssessment, RelevanceResult

# Services
from .pattern_registry import PatternRegistry


SEVERITY_RANK = {"low": 0, "medium": 1, "high": 2}





def highest_severity(severities: Iterable[str]) -> str:
    highest = "low"
    for severity in severities:
        if SEVERITY_RANK.get(severity, 0) > SEVERITY_RANK[highest]:
            highest = severity
    return highest





class ResponseValidator:

    def __init__(
        self,
        inappropriate_patterns: Iterable[PatternRule] = content_policy.INAPPROPRIATE_PATTERNS,
        medical_patterns: Iterable[PatternRule] = content_policy.MEDICAL_PATTERNS,
        financial_patterns: Iterable[PatternRule] = content_policy.FINANCIAL_PATTERNS,
        legal_patterns: Iterable[PatternRule] = content_policy.LEGAL_PATTERNS,
        absolute_claim_patterns: Iterable[PatternRule] = content_policy.ABSOLUTE_CLAIM_PATTERNS,
        min_length: int = thresholds.RESPONSE_MIN_LENGTH,
        max_length: int = thresholds.RESPONSE_MAX_LENGTH,
        relevance_threshold: float = thresholds.RELEVANCE_CONFIDENCE_THRESHOLD,
        hallucination_min_indicators: int = thresholds.HALLUCINATION_MIN_INDICATORS,
        medical_term_threshold: int = thresholds.MEDICAL_TERM_THRESHOLD,
        financial_term_threshold: int = thresholds.FINANCIAL_TERM_THRESHOLD,
        legal_term_threshold: int = thresholds.LEGAL_TERM_THRESHOLD
    ):
        self.inappropriate_registry = PatternRegistry(inappropriate_patterns)
        self.medical_registry       = PatternRegistry(medical_patterns)
        self.financial_registry     = PatternRegistry(financial_patterns)
        self.legal_registry         = PatternRegistry(legal_patterns)
        self.absolute_registry      = PatternRegistry(absolute_claim_patterns)

        self.min_length                     = min_length
        self.max_length                     = max_length
        self.relevance_threshold            = relevance_threshold
        self.hallucination_min_indicators   = hallucination_min_indicators
        self.medical_term_threshold         = medical_term_threshold
        self.financial_term_threshold       = financial_term_threshold
        self.legal_term_threshold           = legal_term_threshold

        self._numeric_claim = re.compile(content_policy.NUMERIC_CLAIM_PATTERN, re.IGNORECASE)
        self._specific_date = re.compile(content_policy.SPECIFIC_DATE_PATTERN, re.IGNORECASE)
        self._precise_stat  = re.compile(content_policy.PRECISE_STATISTIC_PATTERN)
        self._named_role    = re.compile(content_policy.NAMED_ROLE_PATTERN)
        self._attribution   = re.compile(content_policy.ATTRIBUTION_PATTERN, re.IGNORECASE)
        self._role_context  = re.compile(content_policy.ROLE_QUALIFIER_PATTERN, re.IGNORECASE)

    # ── Full Screening ─────────────────────────────────────────────────────────

    def validate_response(self, response) -> ContentValidationResult:
        structural = self.validate_response_structure(response)
        if not isinstance(response, str) or not response.strip():
            return structural

        issues: List[str] = list(structural.issues)
        severities: List[str] = [structural.severity] if structural.issues else []

        inappropriate = self.inappropriate_registry.matching_names(response)
        if inappropriate:
            issues.append(f"Inappropriate content detected ({', '.join(inappropriate)})")
            severities.append("high")

        if self.medical_registry.count_matches(response) >= self.medical_term_threshold:
            issues.append("Response contains medical advice")
            severities.append("high")

        if self._needs_financial_disclaimer(response):
            issues.append("Financial advice without a financial disclaimer")
            severities.append("medium")

        if self._needs_legal_disclaimer(response):
            issues.append("Legal advice without a legal disclaimer")
            severities.append("medium")

        absolute = self.absolute_registry.matching_names(response)
        if absolute:
            issues.append(f"Misleading absolute claims ({', '.join(absolute)})")
            severities.append("medium")

        if self._missing_confidence_indicators(response):
            issues.append("Specific figures stated without confidence qualifiers")
            severities.append("low")

        severity = highest_severity(severities)

        return ContentValidationResult(
            is_valid = not issues or severity == "low",
            issues = issues,
            severity = severity
        )



    def validate_response_structure(self, response) -> ContentValidationResult:
        if not isinstance(response, str) or not response.strip():
            return ContentValidationResult(is_valid = False, issues = ["Response is empty"], severity = "high")

        length = len(response.strip())
        if length < self.min_length:
            return ContentValidationResult(is_valid = False, issues = ["Response is too short"], severity = "medium")
        if length > self.max_length:
            return ContentValidationResult(is_valid = False, issues = ["Response is too long"], severity = "medium")

        return ContentValidationResult(is_valid = True, issues = [], severity = "low")

    # ── Relevance & Hallucination ──────────────────────────────────────────────

    def check_relevance(self, response, query) -> RelevanceResult:
        """
        Share of the query's significant words that also appear in the
        response.
        """

        query_words = self._significant_words(query)
        if not query_words:
            return RelevanceResult(is_relevant = False, confidence = 0.0)

        response_words = self._significant_words(response)
        confidence = len(query_words & response_words) / len(query_words)

        return RelevanceResult(is_relevant = confidence >= self.relevance_threshold, confidence = round(confidence, 4))



    def detect_hallucination(self, response) -> HallucinationAssessment:
        if not isinstance(response, str) or not response.strip():
            return HallucinationAssessment(likely_hallucination = False, indicators = [])

        indicators = []
        attributed = bool(self._attribution.search(response))

        if not attributed and self._specific_date.search(response):
            indicators.append("Specific date without attribution")

        if not attributed and self._precise_stat.search(response):
            indicators.append("Precise statistic without attribution")

        if self._named_role.search(response) and not self._role_context.search(response):
            indicators.append("Named role without context")

        return HallucinationAssessment(
            likely_hallucination = len(indicators) >= self.hallucination_min_indicators,
            indicators = indicators
        )

    # ── Disclaimers ────────────────────────────────────────────────────────────

    def add_disclaimers(self, response) -> str:
        """ Append missing financial / legal disclaimers. Safe to call repeatedly... """

        if not isinstance(response, str) or not response.strip():
            return response if isinstance(response, str) else ""

        additions = []
        if self._needs_financial_disclaimer(response):
            additions.append(content_policy.FINANCIAL_DISCLAIMER)
        if self._needs_legal_disclaimer(response):
            additions.append(content_policy.LEGAL_DISCLAIMER)

        if not additions:
            return response
        return response.rstrip() + "\n\n" + "\n\n".join(additions)



    def has_financial_disclaimer(self, response: str) -> bool:
        return all(pattern.search(response) for pattern in content_policy.FINANCIAL_DISCLAIMER_PATTERNS)



    def has_legal_disclaimer(self, response: str) -> bool:
        return all(pattern.search(response) for pattern in content_policy.LEGAL_DISCLAIMER_PATTERNS)

    # ── Internals ──────────────────────────────────────────────────────────────

    def _needs_financial_disclaimer(self, response: str) -> bool:
        return (self.financial_registry.count_matches(response) >= self.financial_term_threshold
                and not self.has_financial_disclaimer(response))



    def _needs_legal_disclaimer(self, response: str) -> bool:
        return (self.legal_registry.count_matches(response) >= self.legal_term_threshold
                and not self.has_legal_disclaimer(response))



    def _missing_confidence_indicators(self, response: str) -> bool:
        if len(response) <= thresholds.CONFIDENCE_CHECK_MIN_LENGTH:
            return False

        numbers = [match for match in self._numeric_claim.finditer(response) if match.group(0).strip()]
        if len(numbers) < thresholds.CONFIDENCE_CHECK_MIN_NUMBERS:
            return False

        lowered = response.lower()
        return not any(re.search(r"\b%s\b" % re.escape(word), lowered) for word in content_policy.QUALIFIER_WORDS)



    @staticmethod
    def _significant_words(text: Optional[str]) -> set:
        if not isinstance(text, str):
            return set()
        words = re.findall(r"[a-z0-9]+", text.lower())
        return {
            word for word in words
            if len(word) >= thresholds.RELEVANCE_MIN_WORD_LENGTH and word not in content_policy.STOP_WORDS
        }
