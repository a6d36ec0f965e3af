"""
Service: ConversationService

SQL-backed MessageStore: creates sessions and reads/writes their messages.

Data tables:
  advisor_conversations         → one row per session_id
  advisor_conversation_messages → one row per message turn

Design:
  - get_or_create_conversation() is idempotent: safe to call on every request.
  - Writes roll back on failure so a failed write never poisons the
    SQLAlchemy session for later queries in the same request.
  - get_messages() returns history in append order (oldest first).
"""

# Python Packages
from typing import Dict, List, Optional
import uuid

# Database
from ...config.database import db

# Models
from ...models.conversation import Conversation
from ...models.conversation_message import ConversationMessageRecord

# Schemas
from ..schemas import ConversationMessage, ROLES

# Constants
from ...base import constants

# Exceptions
from ...util.exceptions import NotFoundException, ServiceException, StructuralException
from ...util import messages

# Logger
from ...util.logger import get_logger


logger = get_logger(__name__)





class ConversationService:
    """
    Manages conversation sessions and message persistence.
    """

    # ── Session Management ─────────────────────────────────────────────────────

    def get_or_create_conversation(
        self,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
        analysis_id: Optional[str] = None,
        tier: Optional[str] = None
    ) -> Conversation:
        """
        Return an existing conversation or create a new one.

        Args:
            session_id:  Client-supplied id, or None to generate a UUID.
            user_id:     Owner of the session.
            analysis_id: Analysis being discussed.
            tier:        User tier at creation time.
        """
        if session_id:
            conversation = Conversation.query.filter_by(session_id = session_id).first()
            if conversation:
                return conversation

        conversation = Conversation(
            session_id = session_id or str(uuid.uuid4()),
            user_id = user_id,
            analysis_id = analysis_id,
            tier = tier
        )
        db.session.add(conversation)
        db.session.commit()

        logger.info("New conversation created", extra = {"payload": {"session_id": conversation.session_id}})
        return conversation



    def get_conversation(self, session_id: str) -> Conversation:
        conversation = Conversation.query.filter_by(session_id = session_id).first()
        if not conversation:
            raise NotFoundException(messages.ERROR["CONVERSATION_NOT_FOUND"])
        return conversation

    # ── Message Persistence ────────────────────────────────────────────────────

    def add_message(
        self,
        session_id: str,
        role: str,
        content: str,
        metadata: Optional[Dict] = None
    ) -> ConversationMessage:
        """
        Append a message to a conversation.

        Raises:
            StructuralException: role or content malformed.
            NotFoundException:   unknown session.
            ServiceException:    the write failed (rolled back).
        """
        if role not in ROLES:
            raise StructuralException(messages.ERROR["INVALID_ROLE"])
        if not isinstance(content, str):
            raise StructuralException(messages.ERROR["INVALID_CONTENT"])

        conversation = self.get_conversation(session_id)

        try:
            record = ConversationMessageRecord(
                conversation_id  = conversation.conversation_id,
                role             = role,
                content          = content,
                message_metadata = metadata
            )
            db.session.add(record)
            db.session.commit()
            return record.to_message(session_id)

        except Exception as exc:
            db.session.rollback()
            logger.error("add_message failed", extra = {"payload": {"session_id": session_id, "error": str(exc)}})
            raise ServiceException("MESSAGE_STORE_FAILED", messages.ERROR["MESSAGE_STORE_FAILED"], details = str(exc))

    # ── History Retrieval ──────────────────────────────────────────────────────

    def get_messages(
        self,
        conversation_id: str,
        limit: Optional[int] = None
    ) -> List[ConversationMessage]:
        """
        Messages of a session in append order; the newest *limit* when given.
        Unknown sessions have no messages.
        """
        conversation = Conversation.query.filter_by(session_id = conversation_id).first()
        if not conversation:
            return []

        query = (
            ConversationMessageRecord.query
            .filter_by(conversation_id = conversation.conversation_id)
            .order_by(ConversationMessageRecord.created_at.desc(), ConversationMessageRecord.message_id.desc())
        )
        if limit:
            query = query.limit(limit)

        # Reverse so callers receive oldest → newest
        return [record.to_message(conversation_id) for record in reversed(query.all())]



    def get_conversation_history(self, session_id: str, limit: int = constants.CONVERSATION_MESSAGES_LIMIT) -> List[Dict]:
        return [message.to_dict() for message in self.get_messages(session_id, limit = limit)]

    # ── Conversation Lifecycle ─────────────────────────────────────────────────

    def clear_conversation(self, session_id: str) -> bool:
        """
        Delete a conversation and all its messages.

        Returns:
            True if deleted, False if not found.
        """
        conversation = Conversation.query.filter_by(session_id = session_id).first()
        if not conversation:
            return False

        try:
            ConversationMessageRecord.query.filter_by(
                conversation_id = conversation.conversation_id
            ).delete()
            db.session.delete(conversation)
            db.session.commit()

        except Exception as exc:
            db.session.rollback()
            raise ServiceException("CONVERSATION_CLEAR_FAILED", "Unable to clear conversation.", details = str(exc))

        logger.info("Cleared conversation", extra = {"payload": {"session_id": session_id}})
        return True
