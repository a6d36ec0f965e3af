"""
Service: HistorySummarizer

Compresses long conversations into a short extractive synopsis of the
older turns plus the most recent messages verbatim.

  needs_summarization(n)  → n > SUMMARIZE_AFTER_MESSAGES
  summarize_history(msgs) → SummarizedHistory(summary, recent tail)
  format_for_context(s)   → "summary\n\nUser: ...\nAssistant: ..."

The synopsis is always shorter than the text it replaces, and
recent_messages is the exact tail of the input in its original order.
"""

# Python Packages
import re
from typing import List, Sequence

# Config
from ..config import thresholds, prompts

# Schemas
from ..schemas import ConversationMessage, SummarizedHistory





class HistorySummarizer:

    def __init__(
        self,
        summarize_after: int = thresholds.SUMMARIZE_AFTER_MESSAGES,
        recent_messages: int = thresholds.SUMMARY_RECENT_MESSAGES,
        max_key_points: int = thresholds.SUMMARY_MAX_KEY_POINTS,
        topic_max_length: int = thresholds.SUMMARY_TOPIC_MAX_LENGTH
    ):
        self.summarize_after = summarize_after
        self.recent_count = max(0, recent_messages)
        self.max_key_points = max_key_points
        self.topic_max_length = topic_max_length



    def needs_summarization(self, message_count) -> bool:
        if not isinstance(message_count, int):
            return False
        return message_count > self.summarize_after



    def summarize_history(self, messages: Sequence[ConversationMessage]) -> SummarizedHistory:
        messages = list(messages or [])
        total = len(messages)

        if total <= self.recent_count:
            return SummarizedHistory(summary = "", recent_messages = tuple(messages), total_messages = total)

        split_at = total - self.recent_count
        older, recent = messages[:split_at], messages[split_at:]

        summary = self._build_summary(older)

        return SummarizedHistory(
            summary = summary,
            recent_messages = tuple(recent),
            summarized_count = len(older),
            total_messages = total
        )



    def format_for_context(self, summarized: SummarizedHistory) -> str:
        lines = [self.format_message(message) for message in summarized.recent_messages]
        body = "\n".join(lines)

        if not summarized.summary:
            return body
        if not body:
            return summarized.summary
        return f"{summarized.summary}\n\n{body}"



    def format_message(self, message: ConversationMessage) -> str:
        label = prompts.ROLE_LABELS.get(message.role, message.role.capitalize())
        return f"{label}: {message.content}"



    def get_stats(self, summarized: SummarizedHistory) -> dict:
        total = summarized.total_messages
        return {
            "total_messages": total,
            "recent_messages": len(summarized.recent_messages),
            "summarized_messages": summarized.summarized_count,
            "compression_ratio": (len(summarized.recent_messages) / total) if total else 1.0,
        }



    # ── Extraction ─────────────────────────────────────────────────────────────

    def _build_summary(self, older: List[ConversationMessage]) -> str:
        """
        Header plus one topic line per distinct user question, most recent
        topics kept when there are more than max_key_points. Cut down until
        it is shorter than the raw text it replaces.
        """

        raw_length = sum(len(message.content) for message in older)
        header = prompts.SUMMARY_HEADER.format(count = len(older))

        topics = []
        for message in older:
            if message.role != "user":
                continue
            topic = self._extract_topic(message.content)
            if topic and topic not in topics:
                topics.append(topic)
        topics = topics[-self.max_key_points:] if self.max_key_points > 0 else []

        candidates = []
        if topics:
            candidates.append("\n".join([header, prompts.SUMMARY_TOPICS_HEADER] + [f"- {t}" for t in topics]))
        candidates.append(header)

        for candidate in candidates:
            if len(candidate) < raw_length:
                return candidate

        return header[:max(0, raw_length - 1)]



    def _extract_topic(self, content: str) -> str:
        text = re.sub(r"\s+", " ", content or "").strip()
        if not text:
            return ""

        first_sentence = re.split(r"(?<=[.!?])\s", text, maxsplit = 1)[0]
        if len(first_sentence) <= self.topic_max_length:
            return first_sentence
        return first_sentence[:self.topic_max_length - 3].rstrip() + "..."
