from .conversation_validation import ConversationValidation
