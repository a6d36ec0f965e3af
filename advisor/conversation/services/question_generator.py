"""
Service: QuestionGenerator

Suggests the next questions a founder could ask about an analysis.

  generate_initial_questions(analysis)            one opener per category
  generate_follow_up_questions(analysis, msgs)    full template pool, minus
                                                  anything already asked, with
                                                  discussed categories decayed
                                                  and untouched ones boosted

Both return SUGGESTED_QUESTION_COUNT questions sorted by priority, highest first.
Textual similarity comes from QueryDeduplicationService.calculate_similarity.
"""

# Python Packages
import re
from typing import Dict, Iterable, List, Optional, Sequence

# Config
from ..config import thresholds, prompts, question_templates

# Schemas
from ..schemas import AnalysisData, ConversationMessage, SuggestedQuestion

# Services
from .query_deduplication_service import QueryDeduplicationService





class QuestionGenerator:

    def __init__(
        self,
        deduplication_service: Optional[QueryDeduplicationService] = None,
        templates: Optional[Dict[str, Sequence[str]]] = None,
        question_count: int = thresholds.SUGGESTED_QUESTION_COUNT,
        duplicate_threshold: float = thresholds.QUESTION_DUPLICATE_THRESHOLD,
        history_threshold: float = thresholds.QUESTION_HISTORY_THRESHOLD,
        discussed_decay: int = thresholds.QUESTION_DISCUSSED_DECAY,
        undiscussed_boost: int = thresholds.QUESTION_UNDISCUSSED_BOOST
    ):
        self.deduplication_service = deduplication_service or QueryDeduplicationService()
        self.templates = templates or question_templates.QUESTION_TEMPLATES
        self.question_count = question_count
        self.duplicate_threshold = duplicate_threshold
        self.history_threshold = history_threshold
        self.discussed_decay = discussed_decay
        self.undiscussed_boost = undiscussed_boost

    # ── Generation ─────────────────────────────────────────────────────────────

    def generate_initial_questions(self, analysis) -> List[SuggestedQuestion]:
        analysis = self._as_analysis(analysis)
        priorities = self._category_priorities(analysis)
        gap_title, gap_score = self._top_gap(analysis)

        # Openers first; deeper templates only if there are too few categories
        questions = []
        depth = 0
        longest = max((len(items) for items in self.templates.values()), default = 0)
        while len(questions) < self.question_count and depth < longest:
            for category in self._categories():
                category_templates = self.templates.get(category) or ()
                if depth < len(category_templates):
                    questions.append(self._question(
                        category_templates[depth], gap_title, gap_score, category, priorities[category] - depth
                    ))
            depth += 1

        return self._rank(questions)[:self.question_count]



    def generate_follow_up_questions(self, analysis, messages: Sequence) -> List[SuggestedQuestion]:
        analysis = self._as_analysis(analysis)
        history = [
            message if isinstance(message, ConversationMessage) else ConversationMessage.from_dict(message)
            for message in (messages or [])
        ]

        gap_title, gap_score = self._top_gap(analysis)
        priorities = self._category_priorities(analysis)
        mentions = self._category_mentions(history)
        total_mentions = sum(mentions.values())

        for category in priorities:
            count = mentions.get(category, 0)
            if count:
                priorities[category] -= count * self.discussed_decay
            elif total_mentions:
                priorities[category] += self.undiscussed_boost
            priorities[category] = _clamp(priorities[category])

        candidates = []
        for category in self._categories():
            for depth, template in enumerate(self.templates.get(category) or ()):
                candidates.append(self._question(template, gap_title, gap_score, category, priorities[category] - depth))

        asked = [message.content for message in history if message.role == "user"]
        candidates = [
            question for question in candidates
            if not self._similar_to_any(question.text, asked, self.history_threshold)
        ]

        candidates = self._rank(self.deduplicate_questions(candidates))
        return self._rank(self._select_diverse(candidates))

    # ── Filtering ──────────────────────────────────────────────────────────────

    def deduplicate_questions(self, questions: Sequence[SuggestedQuestion]) -> List[SuggestedQuestion]:
        """
        Collapse near-identical texts, keeping the highest-priority copy.
        Survivors keep their input order.
        """

        kept_ids = set()
        kept_texts: List[str] = []
        for question in self._rank(questions):
            if self._similar_to_any(question.text, kept_texts, self.duplicate_threshold):
                continue
            kept_ids.add(id(question))
            kept_texts.append(question.text)

        return [question for question in questions if id(question) in kept_ids]



    def filter_existing_questions(self, candidates: Sequence[SuggestedQuestion], existing: Iterable) -> List[SuggestedQuestion]:
        existing_texts = [
            item.text if isinstance(item, SuggestedQuestion) else item
            for item in (existing or [])
            if isinstance(item, (str, SuggestedQuestion))
        ]
        return [
            candidate for candidate in candidates
            if not self._similar_to_any(candidate.text, existing_texts, self.duplicate_threshold)
        ]

    # ── Internals ──────────────────────────────────────────────────────────────

    def _categories(self) -> List[str]:
        ordered = [category for category in question_templates.CATEGORIES if category in self.templates]
        return ordered + [category for category in self.templates if category not in ordered]



    def _category_priorities(self, analysis: AnalysisData) -> Dict[str, float]:
        priorities = {
            category: question_templates.BASE_PRIORITY.get(category, 50)
            for category in self._categories()
        }

        if "market_validation" in priorities:
            priorities["market_validation"] += analysis.innovation_score // 10

        if analysis.feasibility_rating == "low" and "risk_assessment" in priorities:
            priorities["risk_assessment"] += question_templates.LOW_FEASIBILITY_RISK_BOOST

        if analysis.feasibility_rating == "high" and "execution_strategy" in priorities:
            priorities["execution_strategy"] += question_templates.HIGH_FEASIBILITY_EXECUTION_BOOST

        if len(analysis.competitors) > question_templates.MANY_COMPETITORS and "competitive_analysis" in priorities:
            priorities["competitive_analysis"] += question_templates.COMPETITIVE_DENSITY_BOOST

        return {category: _clamp(priority) for category, priority in priorities.items()}



    def _category_mentions(self, history: List[ConversationMessage]) -> Dict[str, int]:
        words = re.findall(r"[a-z]+", " ".join(message.content for message in history).lower())
        mentions = {}
        for category, keywords in question_templates.CATEGORY_KEYWORDS.items():
            keyword_set = set(keywords)
            mentions[category] = sum(1 for word in words if word in keyword_set)
        return mentions



    def _select_diverse(self, ranked: List[SuggestedQuestion]) -> List[SuggestedQuestion]:
        selected = []
        per_category: Dict[str, int] = {}

        for question in ranked:
            if len(selected) >= self.question_count:
                break
            if per_category.get(question.category, 0) >= thresholds.QUESTIONS_PER_CATEGORY:
                continue
            selected.append(question)
            per_category[question.category] = per_category.get(question.category, 0) + 1

        for question in ranked:
            if len(selected) >= self.question_count:
                break
            if question not in selected:
                selected.append(question)

        return selected



    def _question(self, template: str, gap_title: str, gap_score, category: str, priority: float) -> SuggestedQuestion:
        priority = _clamp(priority)
        weight = question_templates.GAP_SCORE_RELEVANCE_WEIGHT
        gap_component = min(1.0, max(0.0, gap_score / 100)) if gap_score is not None else 0.5

        return SuggestedQuestion(
            text = template.format(gap = gap_title),
            category = category,
            priority = priority,
            relevance_score = round((1 - weight) * priority / 100 + weight * gap_component, 3)
        )



    def _similar_to_any(self, text: str, others: Iterable[str], threshold: float) -> bool:
        return any(
            self.deduplication_service.calculate_similarity(text, other) >= threshold
            for other in others
        )



    @staticmethod
    def _rank(questions: Iterable[SuggestedQuestion]) -> List[SuggestedQuestion]:
        return sorted(questions, key = lambda question: -question.priority)



    @staticmethod
    def _top_gap(analysis: AnalysisData):
        gap = analysis.top_gap
        if gap is None or not gap.title.strip():
            return prompts.DEFAULT_GAP_TITLE, None
        return gap.title.strip(), gap.score



    @staticmethod
    def _as_analysis(analysis) -> AnalysisData:
        if isinstance(analysis, AnalysisData):
            return analysis
        return AnalysisData.from_dict(analysis)





def _clamp(value: float) -> float:
    return max(0, min(100, value))
