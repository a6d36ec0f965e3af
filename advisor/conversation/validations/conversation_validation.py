"""
Conversation validation for all conversation endpoints.

Request-shape checks only; content screening is InputValidator's job.
"""

# Exceptions
from ...util.exceptions import ValidationException

# Messages
from ...util import messages

# Config
from ..config import token_budget





class ConversationValidation:

    @staticmethod
    def validate_body(data):
        if not data or not isinstance(data, dict):
            raise ValidationException(
                error_code = "INVALID_REQUEST",
                message = messages.ERROR["INVALID_REQUEST"]
            )


    @staticmethod
    def validate_user_id(user_id):
        if not user_id:
            raise ValidationException(
                error_code = "MISSING_USER_ID",
                message = messages.ERROR["MISSING_USER_ID"]
            )

        if not isinstance(user_id, str) or len(user_id.strip()) == 0:
            raise ValidationException(
                error_code = "INVALID_USER_ID",
                message = messages.ERROR["INVALID_USER_ID"]
            )


    @staticmethod
    def validate_session_id(session_id):
        if not session_id or not isinstance(session_id, str) or not session_id.strip():
            raise ValidationException(
                error_code = "MISSING_SESSION_ID",
                message = messages.ERROR["MISSING_SESSION_ID"]
            )


    @staticmethod
    def validate_message(message):
        """ Empty text is allowed through; InputValidator reports it... """

        if message is None:
            raise ValidationException(
                error_code = "MISSING_MESSAGE",
                message = messages.ERROR["MISSING_MESSAGE"]
            )

        if not isinstance(message, str):
            raise ValidationException(
                error_code = "INVALID_MESSAGE",
                message = messages.ERROR["INVALID_MESSAGE"]
            )


    @staticmethod
    def validate_response_text(response):
        if response is None:
            raise ValidationException(
                error_code = "MISSING_RESPONSE",
                message = messages.ERROR["MISSING_RESPONSE"]
            )

        if not isinstance(response, str):
            raise ValidationException(
                error_code = "INVALID_RESPONSE",
                message = messages.ERROR["INVALID_RESPONSE"]
            )


    @staticmethod
    def validate_tier(tier):
        if tier is not None and not isinstance(tier, str):
            raise ValidationException(
                error_code = "INVALID_TIER",
                message = messages.ERROR["INVALID_TIER"]
            )


    @staticmethod
    def validate_messages(items):
        if items is not None and not isinstance(items, list):
            raise ValidationException(
                error_code = "INVALID_MESSAGES",
                message = messages.ERROR["INVALID_MESSAGES"]
            )


    @staticmethod
    def validate_max_tokens(max_tokens):
        if isinstance(max_tokens, bool) or not isinstance(max_tokens, int) \
                or not token_budget.MIN_MAX_TOKENS <= max_tokens <= token_budget.MAX_MAX_TOKENS:
            raise ValidationException(
                error_code = "INVALID_MAX_TOKENS",
                message = messages.ERROR["INVALID_MAX_TOKENS"].format(token_budget.MIN_MAX_TOKENS, token_budget.MAX_MAX_TOKENS)
            )


    @staticmethod
    def validate_threshold(threshold):
        if threshold is None:
            return

        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)) or not 0 <= threshold <= 1:
            raise ValidationException(
                error_code = "INVALID_THRESHOLD",
                message = messages.ERROR["INVALID_THRESHOLD"]
            )
