"""Tests for ContextWindowManager."""

import pytest

from advisor.conversation.config import prompts
from advisor.conversation.schemas import ConversationMessage
from advisor.conversation.services.cache import InMemoryTTLCache
from advisor.conversation.services.context_optimizer import ContextOptimizer
from advisor.conversation.services.context_window_manager import ContextWindowManager
from advisor.util.exceptions import StructuralException

from conftest import TOP_GAP_TITLE


def _messages(count, length = 190):
    roles = ("user", "assistant")
    return [
        ConversationMessage(role = roles[index % 2], content = (f"message {index} " + "x" * length)[:length])
        for index in range(count)
    ]


class TestTokenBudget:

    def test_reference_allocation(self):
        budget = ContextWindowManager().get_token_budget(8000)
        assert budget.system_prompt == 200
        assert budget.analysis_context == 2000
        assert budget.conversation_history == 1500
        assert budget.current_query == 500
        assert budget.response_buffer == 3800

    @pytest.mark.parametrize("max_tokens", [1, 7, 100, 999, 4000, 8000, 12345, 100000])
    def test_parts_sum_to_total(self, max_tokens):
        budget = ContextWindowManager().get_token_budget(max_tokens)
        assert budget.total == max_tokens
        assert min(budget.to_dict().values()) >= 0

    def test_proportional_scaling(self):
        budget = ContextWindowManager().get_token_budget(4000)
        assert budget.analysis_context == 1000
        assert budget.conversation_history == 750

    @pytest.mark.parametrize("max_tokens", [0, -10, None, "8000", True])
    def test_invalid_budget_is_all_zero(self, max_tokens):
        assert ContextWindowManager().get_token_budget(max_tokens).total == 0


class TestBuildContext:

    def test_basic_window(self, analysis):
        manager = ContextWindowManager()
        messages = _messages(4, length = 60)

        window = manager.build_context(analysis, messages, "How do I validate demand?")

        assert window.system_prompt == prompts.SYSTEM_PROMPT
        assert "AI tools for rural clinics" in window.analysis_context
        assert TOP_GAP_TITLE in window.analysis_context
        assert window.current_query == "How do I validate demand?"
        assert window.conversation_history.split("\n")[0] == "User: " + messages[0].content
        assert window.total_tokens <= 8000
        assert window.degraded is False

    def test_accepts_plain_dicts(self, analysis_payload):
        window = ContextWindowManager().build_context(
            analysis_payload,
            [{"role": "user", "content": "Hello"}, {"role": "assistant", "content": "Hi, how can I help?"}],
            "What next?"
        )
        assert window.conversation_history == "User: Hello\nAssistant: Hi, how can I help?"

    def test_analysis_renders_only_top_gaps(self, analysis):
        window = ContextWindowManager().build_context(analysis, [], "Question?")
        assert "Offline intake forms" not in window.analysis_context
        assert "Staff training hub" in window.analysis_context

    def test_long_query_is_truncated_not_dropped(self, analysis):
        window = ContextWindowManager().build_context(analysis, [], "q" * 2500)
        assert window.current_query == "q" * 2000 + "..."

    def test_long_history_is_summarized(self, analysis):
        messages = _messages(14, length = 120)
        window = ContextWindowManager().build_context(analysis, messages, "And the risks?")

        assert window.conversation_history.startswith("[Earlier conversation: 9 messages]")
        assert window.conversation_history.endswith(messages[-1].content)
        assert messages[0].content not in window.conversation_history

    def test_short_history_keeps_newest_within_budget(self, analysis):
        messages = _messages(8)
        window = ContextWindowManager().build_context(analysis, messages, "What now?", max_tokens = 800)

        assert window.conversation_history.endswith(messages[-1].content)
        assert messages[0].content not in window.conversation_history
        assert window.total_tokens <= 800

    @pytest.mark.parametrize("max_tokens", [1000, 2000, 4000, 8000])
    def test_total_never_exceeds_budget(self, analysis, max_tokens):
        window = ContextWindowManager().build_context(analysis, _messages(20, length = 300), "q" * 3000, max_tokens)
        assert window.total_tokens <= max_tokens
        assert ContextWindowManager().validate_budget(window, max_tokens) is True

    def test_breakdown_matches_total(self, analysis):
        manager = ContextWindowManager()
        window = manager.build_context(analysis, _messages(3), "Question?")
        breakdown = manager.get_token_breakdown(window)

        assert breakdown["total"] == window.total_tokens
        assert set(breakdown) == {"system_prompt", "analysis_context", "conversation_history", "current_query", "total"}

    def test_estimate_tokens_delegates(self):
        assert ContextWindowManager().estimate_tokens("abcdefgh") == 2


class TestAnalysisCaching:

    def test_second_build_hits_cache(self, analysis):
        optimizer = ContextOptimizer(cache = InMemoryTTLCache())
        manager = ContextWindowManager(context_optimizer = optimizer)

        first = manager.build_context(analysis, [], "Question?")
        second = manager.build_context(analysis, [], "Question?")

        assert first.analysis_context == second.analysis_context
        assert optimizer.get_cache_stats()["hits"] == 1

    def test_same_result_with_cache_disabled(self, analysis):
        cached = ContextWindowManager(context_optimizer = ContextOptimizer(cache = InMemoryTTLCache()))
        uncached = ContextWindowManager(context_optimizer = ContextOptimizer(cache = None))

        cached.build_context(analysis, [], "Question?")
        assert (cached.build_context(analysis, [], "Question?").analysis_context
                == uncached.build_context(analysis, [], "Question?").analysis_context)

    def test_use_cache_false_skips_lookup(self, analysis):
        optimizer = ContextOptimizer(cache = InMemoryTTLCache())
        manager = ContextWindowManager(context_optimizer = optimizer)

        manager.build_context(analysis, [], "Question?", use_cache = False)

        assert optimizer.get_cache_stats() == {"hits": 0, "misses": 0, "size": 0}

    def test_clear_cache(self, analysis):
        optimizer = ContextOptimizer(cache = InMemoryTTLCache())
        manager = ContextWindowManager(context_optimizer = optimizer)
        manager.build_context(analysis, [], "Question?")

        manager.clear_cache()

        assert optimizer.get_cache_stats()["size"] == 0


class TestMalformedInput:

    def test_malformed_analysis(self):
        with pytest.raises(StructuralException):
            ContextWindowManager().build_context({"innovation_score": 50}, [], "Question?")

    def test_malformed_message(self, analysis):
        with pytest.raises(StructuralException):
            ContextWindowManager().build_context(analysis, [{"role": "user"}], "Question?")

    def test_non_string_query(self, analysis):
        with pytest.raises(StructuralException):
            ContextWindowManager().build_context(analysis, [], None)
