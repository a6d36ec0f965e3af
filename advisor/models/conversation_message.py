"""
Model: ConversationMessageRecord
Table: advisor_conversation_messages

One stored turn of a conversation. Rows are append-only; history is read
back in (created_at, message_id) order.

message_metadata holds screening results for assistant turns:
  {"status": "answered" | "flagged" | "cached",
   "issues": [...], "severity": "low" | "medium" | "high",
   "similarity": 0.92}
"""

# Python Packages
from sqlalchemy import func

# Database
from ..config.database import db

# Schemas
from ..conversation.schemas import ConversationMessage





class ConversationMessageRecord(db.Model):
    """ One message (user or assistant turn) in a conversation... """

    # Table Name
    __tablename__ = "advisor_conversation_messages"

    message_id = db.Column(db.Integer, primary_key = True, autoincrement = True)

    conversation_id = db.Column(
        db.Integer,
        db.ForeignKey("advisor_conversations.conversation_id", ondelete = "CASCADE"),
        nullable = False,
        index = True
    )

    role = db.Column(
        db.String(50),
        nullable = False,
        doc = "'user' or 'assistant'."
    )

    content = db.Column(db.Text, nullable = False)

    message_metadata = db.Column(
        db.JSON,
        nullable = True,
        doc = "Screening results. See module docstring."
    )

    created_at = db.Column(
        db.DateTime(timezone = True),
        nullable = False,
        server_default = func.now()
    )

    # Relationship
    conversation = db.relationship("Conversation", backref = db.backref("messages", cascade = "all, delete-orphan"))

    def to_message(self, session_id: str = None) -> ConversationMessage:
        return ConversationMessage(
            id = self.message_id,
            conversation_id = session_id,
            role = self.role,
            content = self.content,
            created_at = self.created_at
        )

    def __repr__(self):
        return f"<ConversationMessageRecord {self.message_id} role={self.role}>"
