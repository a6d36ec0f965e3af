"""
Model: Conversation
Table: advisor_conversations

A chat session about one analysis. Identified by a client-facing
session_id; messages live in advisor_conversation_messages.
"""

# Python Packages
from sqlalchemy import func

# Database
from ..config.database import db





class Conversation(db.Model):
    """A chat session between a user and the advisor."""

    __tablename__ = "advisor_conversations"

    conversation_id = db.Column(db.Integer, primary_key = True, autoincrement = True)

    session_id = db.Column(
        db.String(255),
        nullable = False,
        index = True,
        unique = True,
        doc = "UUID-based identifier passed by the client."
    )

    user_id = db.Column(
        db.String(255),
        nullable = True,
        index = True,
        doc = "Owner of the session."
    )

    analysis_id = db.Column(
        db.String(255),
        nullable = True,
        doc = "Analysis the conversation is about."
    )

    tier = db.Column(
        db.String(50),
        nullable = True,
        doc = "User tier at session creation (free / pro / enterprise)."
    )

    created_at = db.Column(
        db.DateTime(timezone = True),
        nullable = False,
        server_default = func.now()
    )

    updated_at = db.Column(
        db.DateTime(timezone = True),
        nullable = False,
        server_default = func.now(),
        onupdate = func.now()
    )

    def __repr__(self):
        return f"<Conversation {self.session_id}>"
