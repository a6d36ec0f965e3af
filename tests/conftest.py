"""Shared fixtures for the advisor test suite."""

from datetime import datetime, timezone

import pytest

from advisor.conversation.schemas import AnalysisData, ConversationMessage


ANALYSIS_PAYLOAD = {
    "analysis_id": "analysis-1",
    "search_query": "AI tools for rural clinics",
    "innovation_score": 72,
    "feasibility_rating": "medium",
    "top_gaps": [
        {"title": "Offline intake forms", "description": "Paper-free intake that works without signal.", "score": 68},
        {"title": "Rural telehealth scheduling", "description": "Booking that fits shared-device households.", "score": 91},
        {"title": "Supply forecasting", "description": "Predict stock-outs for small clinics.", "score": 75},
        {"title": "Staff training hub", "description": "Short refresher courses for nurses.", "score": 75},
    ],
    "competitors": [
        {"name": "ClinicOS", "description": "Practice management for urban clinics."},
        {"name": "CarePath", "description": "Scheduling add-on for hospital networks."},
        {"name": "MedQueue", "description": "SMS reminders."},
        {"name": "TeleNow", "description": "Video visits."},
    ],
    "action_plan": {"phases": [{"name": "Discovery"}, {"name": "Pilot"}, {"name": "Scale"}]},
}

TOP_GAP_TITLE = "Rural telehealth scheduling"


def make_history(pairs):
    """[(question, answer), ...] -> alternating user/assistant messages."""

    messages = []
    for question, answer in pairs:
        messages.append(ConversationMessage(role = "user", content = question))
        if answer is not None:
            messages.append(ConversationMessage(role = "assistant", content = answer))
    return messages


@pytest.fixture
def analysis_payload():
    return {**ANALYSIS_PAYLOAD}


@pytest.fixture
def analysis():
    return AnalysisData.from_dict(ANALYSIS_PAYLOAD)


@pytest.fixture
def fixed_now():
    return datetime(2026, 3, 10, 15, 30, tzinfo = timezone.utc)


@pytest.fixture
def app():
    from advisor.app import create_app
    from advisor.config.database import db

    app = create_app({"TESTING": True, "SQLALCHEMY_DATABASE_URI": "sqlite://"})
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()
