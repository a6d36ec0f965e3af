"""
Models Package
Registers all SQLAlchemy ORM models so they are discoverable by Flask-SQLAlchemy.

Import order matters: models with foreign keys must be imported after
the models they reference.
"""

from .conversation import Conversation
from .conversation_message import ConversationMessageRecord

__all__ = [
    "Conversation",
    "ConversationMessageRecord",
]
