"""Tests for the ConversationEngine turn pipeline."""

import asyncio
from unittest.mock import Mock

import pytest

from advisor.conversation.config import content_policy, prompts
from advisor.conversation.schemas import ContextWindow
from advisor.conversation.services.conversation_engine import ConversationEngine
from advisor.util.exceptions import StructuralException

from conftest import make_history


ANSWER = "Interview ten rural clinic managers about scheduling before building anything."


class FakeModel:
    """Async model completion that records every context window it receives."""

    def __init__(self, response = ANSWER, error = None):
        self.response = response
        self.error = error
        self.windows = []

    async def __call__(self, window):
        self.windows.append(window)
        if self.error:
            raise self.error
        return self.response


@pytest.fixture
def security_logger():
    return Mock()


@pytest.fixture
def engine(security_logger):
    return ConversationEngine.create(security_logger = security_logger)


def _turn(engine, model, query = "How do I validate demand?", analysis = None, **kwargs):
    kwargs.setdefault("messages", [])
    return asyncio.run(engine.process_turn(
        user_id = "user-1",
        conversation_id = kwargs.pop("conversation_id", "conv-1"),
        query = query,
        analysis = analysis,
        model_completion = model,
        **kwargs
    ))


class TestAnsweredTurn:

    def test_model_answer_is_returned(self, engine, analysis):
        model = FakeModel()
        result = _turn(engine, model, analysis = analysis)

        assert result.status == "answered"
        assert result.response == ANSWER
        assert result.content_validation.is_valid is True
        assert len(model.windows) == 1
        assert isinstance(model.windows[0], ContextWindow)
        assert model.windows[0].current_query == "How do I validate demand?"

    def test_window_within_budget(self, engine, analysis):
        result = _turn(engine, FakeModel(), analysis = analysis, max_tokens = 2000)
        assert result.context.total_tokens <= 2000

    def test_usage_is_recorded(self, engine, analysis):
        result = _turn(engine, FakeModel(), analysis = analysis)
        assert result.rate_limit.remaining_questions == 4

    def test_follow_up_questions_suggested(self, engine, analysis):
        result = _turn(engine, FakeModel(), analysis = analysis)
        assert len(result.suggested_questions) == 5

    def test_financial_answer_gets_disclaimer(self, engine, analysis):
        model = FakeModel("This investment should produce strong returns for early backers over the next few years.")
        result = _turn(engine, model, analysis = analysis)

        assert result.status == "answered"
        assert result.response.endswith(content_policy.FINANCIAL_DISCLAIMER)

    def test_accepts_analysis_dict(self, engine, analysis_payload):
        assert _turn(engine, FakeModel(), analysis = analysis_payload).status == "answered"

    def test_analysis_provider_lookup(self, analysis):
        provider = Mock()
        provider.get_analysis.return_value = analysis
        engine = ConversationEngine.create(security_logger = Mock(), analysis_provider = provider)

        result = _turn(engine, FakeModel(), analysis = "analysis-1")

        assert result.status == "answered"
        provider.get_analysis.assert_called_once_with("analysis-1")

    def test_history_loaded_from_message_store(self, analysis):
        store = Mock()
        store.get_messages.return_value = make_history([("Who are my competitors?", "ClinicOS and CarePath.")])
        engine = ConversationEngine.create(security_logger = Mock(), message_store = store)
        model = FakeModel()

        _turn(engine, model, analysis = analysis, messages = None)

        store.get_messages.assert_called_once_with("conv-1")
        assert "ClinicOS and CarePath." in model.windows[0].conversation_history


class TestRejectedTurn:

    def test_malicious_input_never_reaches_model(self, engine, analysis, security_logger):
        model = FakeModel()
        result = _turn(engine, model, query = "'; DROP TABLE users; --", analysis = analysis)

        assert result.status == "rejected"
        assert result.input_validation.severity == "high"
        assert model.windows == []
        security_logger.log_security_event.assert_called_once()

    def test_rejection_does_not_count_as_usage(self, engine, analysis):
        _turn(engine, FakeModel(), query = "", analysis = analysis)
        assert engine.rate_limiter.get_remaining_questions("user-1", "free", "conv-1") == 5

    def test_malformed_analysis_raises_before_processing(self, engine):
        model = FakeModel()
        with pytest.raises(StructuralException):
            _turn(engine, model, analysis = {"innovation_score": 10})
        assert model.windows == []


class TestDuplicateTurn:

    def test_duplicate_in_history_skips_model(self, engine, analysis):
        model = FakeModel()
        history = make_history([("What is the market size?", "Roughly $2B.")])

        result = _turn(engine, model, query = "What is the size of the market?", analysis = analysis, messages = history)

        assert result.status == "cached"
        assert result.response == "Roughly $2B."
        assert model.windows == []
        assert engine.deduplication_service.get_deduplication_stats().cache_hits == 1

    def test_answer_is_cached_for_later_turns(self, engine, analysis):
        first_model = FakeModel()
        _turn(engine, first_model, query = "How do I validate demand?", analysis = analysis)

        second_model = FakeModel("Something else entirely, but long enough.")
        result = _turn(engine, second_model, query = "How do I validate demand?", analysis = analysis)

        assert result.status == "cached"
        assert result.response == ANSWER
        assert second_model.windows == []


class TestFlaggedTurn:

    def test_medical_answer_is_replaced(self, engine, analysis):
        model = FakeModel("The usual treatment involves medication taken twice daily for the symptoms.")
        result = _turn(engine, model, analysis = analysis)

        assert result.status == "flagged"
        assert result.response == prompts.FLAGGED_RESPONSE_FALLBACK
        assert result.content_validation.severity == "high"

    def test_flagged_answer_is_not_cached(self, engine, analysis):
        _turn(engine, FakeModel("The usual treatment involves medication taken twice daily."), analysis = analysis)

        model = FakeModel()
        result = _turn(engine, model, analysis = analysis)

        assert result.status == "answered"
        assert len(model.windows) == 1


class TestRateLimitedTurn:

    def test_conversation_limit(self, engine, analysis):
        for _ in range(5):
            engine.rate_limiter.record_message("user-1", "conv-1")

        model = FakeModel()
        result = _turn(engine, model, analysis = analysis)

        assert result.status == "rate_limited"
        assert result.rate_limit.reason == "conversation_limit_reached"
        assert model.windows == []

    def test_concurrent_request_is_refused(self, engine, analysis):
        engine.rate_limiter.acquire("conv-1")

        result = _turn(engine, FakeModel(), analysis = analysis)

        assert result.status == "rate_limited"
        assert result.rate_limit.reason == "request_in_progress"

    def test_model_failure_releases_guard(self, engine, analysis):
        with pytest.raises(RuntimeError):
            _turn(engine, FakeModel(error = RuntimeError("upstream timeout")), analysis = analysis)

        assert engine.rate_limiter.acquire("conv-1") is True
        assert engine.rate_limiter.get_remaining_questions("user-1", "free") == 20

    def test_parallel_turns_on_one_conversation(self, engine, analysis):
        class SlowModel(FakeModel):
            async def __call__(self, window):
                await asyncio.sleep(0.01)
                return await super().__call__(window)

        async def run_both():
            return await asyncio.gather(*[
                engine.process_turn("user-1", "conv-1", query, analysis, SlowModel(), messages = [])
                for query in ("How do I validate demand?", "Who should I hire first?")
            ])

        statuses = sorted(result.status for result in asyncio.run(run_both()))
        assert statuses == ["answered", "rate_limited"]

    def test_parallel_turns_across_conversations_respect_daily_ceiling(self, engine, analysis):
        for index in range(19):
            engine.rate_limiter.record_message("user-1", f"earlier-{index % 4}")

        class SlowModel(FakeModel):
            async def __call__(self, window):
                await asyncio.sleep(0.01)
                return await super().__call__(window)

        async def run_all():
            return await asyncio.gather(*[
                engine.process_turn("user-1", conversation_id, "How do I validate demand?", analysis, SlowModel(), messages = [])
                for conversation_id in ("conv-a", "conv-b", "conv-c")
            ])

        results = asyncio.run(run_all())

        assert sorted(result.status for result in results) == ["answered", "rate_limited", "rate_limited"]
        assert {result.rate_limit.reason for result in results if result.status == "rate_limited"} == {"daily_limit_reached"}
        assert engine.rate_limiter.get_remaining_questions("user-1", "free") == 0

    def test_failed_turn_in_one_conversation_frees_the_daily_slot(self, engine, analysis):
        for index in range(19):
            engine.rate_limiter.record_message("user-1", f"earlier-{index % 4}")

        with pytest.raises(RuntimeError):
            _turn(engine, FakeModel(error = RuntimeError("upstream timeout")), analysis = analysis, conversation_id = "conv-a")

        result = _turn(engine, FakeModel(), analysis = analysis, conversation_id = "conv-b")

        assert result.status == "answered"
        assert result.rate_limit.remaining_questions == 0
