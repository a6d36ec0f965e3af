"""Tests for the conversation HTTP endpoints."""

from advisor.config.swagger import swagger_doc_path

from conftest import ANALYSIS_PAYLOAD


BASE = "/conversations"


class TestValidateInput:

    def test_valid_message(self, client):
        response = client.post(f"{BASE}/validate-input", json = {"message": "What is the market size?"})
        body = response.get_json()

        assert response.status_code == 200
        assert body["status"] == "success"
        assert body["data"]["is_valid"] is True
        assert body["data"]["excessive_repetition"] is False

    def test_sql_injection(self, client):
        response = client.post(f"{BASE}/validate-input", json = {"message": "'; DROP TABLE users; --"})
        data = response.get_json()["data"]

        assert response.status_code == 200
        assert data["is_valid"] is False
        assert data["severity"] == "high"

    def test_missing_body(self, client):
        response = client.post(f"{BASE}/validate-input")

        assert response.status_code == 400
        assert response.get_json()["error_code"] == "INVALID_REQUEST"

    def test_missing_message(self, client):
        response = client.post(f"{BASE}/validate-input", json = {"tier": "free"})
        assert response.get_json()["error_code"] == "MISSING_MESSAGE"


class TestValidateResponse:

    def test_with_relevance(self, client):
        response = client.post(f"{BASE}/validate-response", json = {
            "response": "The rural telehealth market is growing quickly.",
            "query": "How large is the market for rural telehealth?",
        })
        data = response.get_json()["data"]

        assert response.status_code == 200
        assert data["validation"]["is_valid"] is True
        assert data["relevance"]["is_relevant"] is True
        assert "likely_hallucination" in data["hallucination"]


class TestBuildContext:

    def test_context_within_budget(self, client):
        response = client.post(f"{BASE}/context", json = {
            "analysis": ANALYSIS_PAYLOAD,
            "query": "How do I validate demand?",
            "messages": [{"role": "user", "content": "Hi"}, {"role": "assistant", "content": "Hello!"}],
            "max_tokens": 4000,
        })
        data = response.get_json()["data"]

        assert response.status_code == 200
        assert data["within_budget"] is True
        assert data["budget"]["analysis_context"] == 1000
        assert data["breakdown"]["total"] == data["context"]["total_tokens"]

    def test_malformed_analysis(self, client):
        response = client.post(f"{BASE}/context", json = {"analysis": {"innovation_score": 10}, "query": "Hi"})

        assert response.status_code == 422
        assert response.get_json()["error_code"] == "MALFORMED_PAYLOAD"

    def test_invalid_max_tokens(self, client):
        response = client.post(f"{BASE}/context", json = {"analysis": ANALYSIS_PAYLOAD, "query": "Hi", "max_tokens": 5})
        assert response.status_code == 400


class TestSimilarQuery:

    def test_reworded_question(self, client):
        response = client.post(f"{BASE}/similar-query", json = {
            "query": "What is the size of the market?",
            "messages": [
                {"role": "user", "content": "What is the market size?"},
                {"role": "assistant", "content": "Roughly $2B."},
            ],
        })
        data = response.get_json()["data"]

        assert data["is_similar"] is True
        assert data["cached_response"] == "Roughly $2B."

    def test_stats_and_reset(self, client):
        client.post(f"{BASE}/similar-query", json = {"query": "Who should I hire?", "messages": []})

        stats = client.get(f"{BASE}/dedup-stats").get_json()["data"]
        assert stats["total_queries"] == 1
        assert stats["cache_misses"] == 1

        reset = client.delete(f"{BASE}/dedup-stats").get_json()["data"]
        assert reset["total_queries"] == 0


class TestSuggestions:

    def test_initial(self, client):
        response = client.post(f"{BASE}/suggestions/initial", json = {"analysis": ANALYSIS_PAYLOAD})
        questions = response.get_json()["data"]["questions"]

        assert len(questions) == 5
        assert questions[0]["category"] == "market_validation"

    def test_follow_up_excludes_existing(self, client):
        initial = client.post(f"{BASE}/suggestions/initial", json = {"analysis": ANALYSIS_PAYLOAD}).get_json()
        shown = [question["text"] for question in initial["data"]["questions"]]

        response = client.post(f"{BASE}/suggestions/follow-up", json = {"analysis": ANALYSIS_PAYLOAD, "existing": shown})
        texts = [question["text"] for question in response.get_json()["data"]["questions"]]

        assert not set(texts) & set(shown)


class TestRateLimit:

    def test_fresh_user(self, client):
        response = client.get(f"{BASE}/rate-limit/user-1?tier=premium&conversation_id=conv-1")
        data = response.get_json()["data"]

        assert response.status_code == 200
        assert data["allowed"] is True
        assert data["tier"] == "pro"
        assert data["remaining_questions"] == 500


class TestMessages:

    def test_store_and_read(self, client):
        created = client.post(f"{BASE}/session-1/messages", json = {"role": "user", "content": "Hello", "user_id": "user-1"})
        client.post(f"{BASE}/session-1/messages", json = {"role": "assistant", "content": "Hi there"})

        assert created.status_code == 201

        data = client.get(f"{BASE}/session-1/messages").get_json()["data"]
        assert data["total"] == 2
        assert [message["content"] for message in data["messages"]] == ["Hello", "Hi there"]

    def test_context_from_stored_history(self, client):
        client.post(f"{BASE}/session-1/messages", json = {"role": "user", "content": "Who are my competitors?"})

        response = client.post(f"{BASE}/context", json = {
            "analysis": ANALYSIS_PAYLOAD, "query": "And the risks?", "session_id": "session-1"
        })

        assert response.get_json()["data"]["context"]["conversation_history"] == "User: Who are my competitors?"

    def test_invalid_role(self, client):
        response = client.post(f"{BASE}/session-1/messages", json = {"role": "system", "content": "Hello"})
        assert response.status_code == 422

    def test_clear(self, client):
        client.post(f"{BASE}/session-1/messages", json = {"role": "user", "content": "Hello"})

        body = client.delete(f"{BASE}/session-1/messages").get_json()

        assert body["data"]["cleared"] is True
        assert body["message"] == "Conversation cleared."
        assert client.get(f"{BASE}/session-1/messages").get_json()["data"]["total"] == 0


class TestSwagger:

    def test_spec_is_served(self, client):
        response = client.get("/swagger.json")

        assert response.status_code == 200
        assert response.get_json()["info"]["title"] == "Advisor"
        assert "/conversations/validate-input" in response.get_json()["paths"]

    def test_docs_hidden_in_production(self):
        assert swagger_doc_path("production") is False
        assert swagger_doc_path("development") == "/swagger/"
