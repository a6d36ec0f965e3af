"""Tests for QueryDeduplicationService."""

import threading
from unittest.mock import Mock

import pytest

from advisor.conversation.services.cache import InMemoryTTLCache
from advisor.conversation.services.query_deduplication_service import QueryDeduplicationService

from conftest import make_history


MARKET_PAIR = ("What is the market size?", "Roughly $2B across rural clinics.")


def _filler(count):
    return [(f"Tell me about competitor number {index}", f"Competitor {index} sells scheduling.") for index in range(count)]


@pytest.fixture
def service():
    return QueryDeduplicationService(cache = InMemoryTTLCache())


class TestCalculateSimilarity:

    @pytest.mark.parametrize("text", ["What is the market size?", "pricing model", "a b c d e f g h"])
    def test_identical_text(self, service, text):
        expected = 1.0 if service._word_set(text) else 0.0
        assert service.calculate_similarity(text, text) == expected

    def test_reordered_words(self, service):
        assert service.calculate_similarity("What is the market size?", "What is the size of the market?") > 0.8

    def test_disjoint(self, service):
        assert service.calculate_similarity("market size", "hiring engineers") == 0.0

    def test_short_words_only(self, service):
        assert service.calculate_similarity("is it", "an of") == 0.0

    def test_non_string(self, service):
        assert service.calculate_similarity(None, "market size") == 0.0

    def test_range(self, service):
        value = service.calculate_similarity("market size for clinics", "market size for dentists")
        assert 0.0 <= value <= 1.0


class TestFindSimilarQuery:

    def test_finds_reworded_question(self, service):
        result = service.find_similar_query("What is the size of the market?", make_history([MARKET_PAIR]))

        assert result.is_similar is True
        assert result.similarity > 0.8
        assert result.cached_response == MARKET_PAIR[1]
        assert result.matched_query == MARKET_PAIR[0]

    def test_old_question_outside_window_is_not_found(self, service):
        history = make_history([MARKET_PAIR] + _filler(15))
        result = service.find_similar_query("What is the size of the market?", history)
        assert result.is_similar is False

    def test_question_inside_window_is_found(self, service):
        history = make_history([MARKET_PAIR] + _filler(9))
        assert service.find_similar_query("What is the size of the market?", history).is_similar is True

    def test_unanswered_question_is_skipped(self, service):
        history = make_history([(MARKET_PAIR[0], None)])
        assert service.find_similar_query("What is the market size?", history).is_similar is False

    def test_newest_match_wins(self, service):
        history = make_history([(MARKET_PAIR[0], "Old answer."), (MARKET_PAIR[0], "New answer.")])
        assert service.find_similar_query(MARKET_PAIR[0], history).cached_response == "New answer."

    def test_threshold_override(self, service):
        history = make_history([("What is the market size today?", "About $2B.")])
        assert service.find_similar_query("What is the market size?", history, threshold = 0.9).is_similar is False
        assert service.find_similar_query("What is the market size?", history, threshold = 0.8).is_similar is True

    def test_accepts_dict_messages(self, service):
        history = [{"role": "user", "content": MARKET_PAIR[0]}, {"role": "assistant", "content": MARKET_PAIR[1]}]
        assert service.find_similar_query(MARKET_PAIR[0], history).is_similar is True


class TestQueryCache:

    def test_exact_hit(self, service):
        service.cache_query_response("What is the market size?", "About $2B.", conversation_id = "conv-1")
        result = service.check_cached_similar_query("what is the MARKET size", conversation_id = "conv-1")

        assert result.is_similar is True
        assert result.similarity == 1.0
        assert result.cached_response == "About $2B."

    def test_fuzzy_hit(self, service):
        service.cache_query_response("What is the market size?", "About $2B.", conversation_id = "conv-1")
        result = service.check_cached_similar_query("What is the size of the market today?", conversation_id = "conv-1")

        assert result.is_similar is True
        assert result.similarity == 0.8

    def test_scoped_by_conversation(self, service):
        service.cache_query_response("What is the market size?", "About $2B.", conversation_id = "conv-1")
        assert service.check_cached_similar_query("What is the market size?", conversation_id = "conv-2").is_similar is False

    def test_shared_scope(self, service):
        service.cache_query_response("What is the market size?", "About $2B.")
        assert service.check_cached_similar_query("What is the market size?").is_similar is True

    def test_scope_keeps_newest_entries(self):
        service = QueryDeduplicationService(cache = InMemoryTTLCache(), max_cached_per_scope = 2)
        for topic in ("pricing strategy", "hiring engineers", "regional expansion"):
            service.cache_query_response(f"Thoughts on {topic}?", topic, conversation_id = "conv-1")

        entries = service.cache.get("dedup:index:conv-1")
        assert [entry["response"] for entry in entries] == ["hiring engineers", "regional expansion"]

    def test_no_cache_always_misses(self):
        service = QueryDeduplicationService(cache = None)
        service.cache_query_response("What is the market size?", "About $2B.")
        assert service.check_cached_similar_query("What is the market size?").is_similar is False

    def test_failing_backend_behaves_as_miss(self):
        backend = Mock()
        backend.get.side_effect = TimeoutError("cache timeout")
        backend.set.side_effect = TimeoutError("cache timeout")
        service = QueryDeduplicationService(cache = backend)

        service.cache_query_response("What is the market size?", "About $2B.")
        assert service.check_cached_similar_query("What is the market size?").is_similar is False

    def test_clear_cache(self, service):
        service.cache_query_response("What is the market size?", "About $2B.")
        service.clear_cache()
        assert service.check_cached_similar_query("What is the market size?").is_similar is False


class TestLookup:

    def test_history_then_cache(self, service):
        service.cache_query_response("How do I price this?", "Start with value-based pricing.", conversation_id = "conv-1")

        result = service.lookup("How do I price this?", make_history([MARKET_PAIR]), conversation_id = "conv-1")

        assert result.cached_response == "Start with value-based pricing."
        assert service.get_deduplication_stats().total_queries == 1


class TestStats:

    def test_hit_rate_and_savings(self, service):
        history = make_history([MARKET_PAIR])
        service.find_similar_query("What is the size of the market?", history)
        service.find_similar_query("What is the market size?", history)
        service.find_similar_query("Who should I hire first?", history)

        stats = service.get_deduplication_stats()
        assert stats.total_queries == 3
        assert stats.cache_hits == 2
        assert stats.cache_misses == 1
        assert stats.hit_rate == pytest.approx(2 / 3)
        assert stats.cost_savings == pytest.approx(0.1)

    def test_reset(self, service):
        service.find_similar_query("What is the market size?", make_history([MARKET_PAIR]))
        service.reset_stats()

        stats = service.get_deduplication_stats()
        assert stats.total_queries == 0
        assert stats.cache_hits == 0
        assert stats.cache_misses == 0
        assert stats.hit_rate == 0.0
        assert stats.cost_savings == 0.0

    def test_counters_are_thread_safe(self, service):
        history = make_history([MARKET_PAIR])

        def worker():
            for _ in range(100):
                service.find_similar_query("What is the market size?", history)

        threads = [threading.Thread(target = worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        stats = service.get_deduplication_stats()
        assert stats.total_queries == 800
        assert stats.cache_hits == 800
