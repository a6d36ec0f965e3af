"""
Conversation Handler
API endpoints for the advisor conversation engine.
"""

# Python Packages
from flask import current_app, request
from flask_restx import Namespace, Resource

# Validations
from .validations import ConversationValidation

# Controller
from .controller import ConversationController

# Exceptions & messages
from ..util.exceptions import AppException, InternalServerException
from ..util import messages

# Config
from .config import tier_limits, token_budget

# Namespace
conversation_namespace = Namespace("conversations", description = "Conversation context and quality operations")

ENGINE_EXTENSION_KEY = "advisor_engine"





def get_controller() -> ConversationController:
    """ Controller bound to the engine the app factory registered... """

    return ConversationController(current_app.extensions[ENGINE_EXTENSION_KEY])


def request_metadata(user_id = None, conversation_id = None) -> dict:
    return {
        "user_id": user_id,
        "conversation_id": conversation_id,
        "ip_address": request.headers.get("X-Forwarded-For", request.remote_addr),
        "user_agent": request.headers.get("User-Agent"),
    }


def internal_error(error):
    error = InternalServerException(details = str(error))
    return error.to_dict(), error.status_code



# ── POST /conversations/validate-input ────────────────────────────────────────
@conversation_namespace.route("/validate-input")
class ValidateInput(Resource):
    """ Screen a user message before it is sent to the model... """

    def post(self):
        """
        Request:
        {
            "message":         "What is the market size?",
            "tier":            "free",        // optional: free | pro | enterprise
            "user_id":         "user-123",    // optional: used for security logging
            "conversation_id": "abc-xyz"      // optional
        }

        Response data:
        {
            "is_valid": true, "sanitized": "...", "reason": null,
            "severity": null, "pattern_name": null, "excessive_repetition": false
        }
        """

        try:
            data = request.get_json(silent = True)
            ConversationValidation.validate_body(data)

            message = data.get("message")
            tier    = data.get("tier", tier_limits.DEFAULT_TIER)

            ConversationValidation.validate_message(message)
            ConversationValidation.validate_tier(tier)

            result = get_controller().validate_input(
                message = message,
                tier = tier,
                request_context = request_metadata(data.get("user_id"), data.get("conversation_id"))
            )

            return {"status": "success", "data": result}, 200

        except AppException as error:
            return error.to_dict(), error.status_code

        except Exception as error:
            return internal_error(error)



# ── POST /conversations/validate-response ─────────────────────────────────────
@conversation_namespace.route("/validate-response")
class ValidateResponse(Resource):
    """ Screen a model response before it reaches the user... """

    def post(self):
        """
        Request:
        {
            "response": "The addressable market is estimated at ...",
            "query":    "What is the market size?"   // optional: enables relevance
        }
        """

        try:
            data = request.get_json(silent = True)
            ConversationValidation.validate_body(data)

            response = data.get("response")
            ConversationValidation.validate_response_text(response)

            result = get_controller().validate_response(response = response, query = data.get("query"))

            return {"status": "success", "data": result}, 200

        except AppException as error:
            return error.to_dict(), error.status_code

        except Exception as error:
            return internal_error(error)



# ── POST /conversations/context ───────────────────────────────────────────────
@conversation_namespace.route("/context")
class BuildContext(Resource):
    """ Build the bounded context window for a model call... """

    def post(self):
        """
        Request:
        {
            "analysis":   {"search_query": "...", "innovation_score": 72, ...},
            "query":      "How do I validate demand?",
            "messages":   [{"role": "user", "content": "..."}],   // optional
            "session_id": "abc-xyz",     // optional: load history from the store instead
            "max_tokens": 8000,          // optional
            "use_cache":  true           // optional
        }
        """

        try:
            data = request.get_json(silent = True)
            ConversationValidation.validate_body(data)

            query      = data.get("query")
            messages_  = data.get("messages")
            max_tokens = data.get("max_tokens", token_budget.DEFAULT_MAX_TOKENS)

            ConversationValidation.validate_message(query)
            ConversationValidation.validate_messages(messages_)
            ConversationValidation.validate_max_tokens(max_tokens)

            result = get_controller().build_context(
                analysis = data.get("analysis"),
                query = query,
                messages = messages_,
                session_id = data.get("session_id"),
                max_tokens = max_tokens,
                use_cache = bool(data.get("use_cache", True))
            )

            return {"status": "success", "data": result}, 200

        except AppException as error:
            return error.to_dict(), error.status_code

        except Exception as error:
            return internal_error(error)



# ── POST /conversations/similar-query ─────────────────────────────────────────
@conversation_namespace.route("/similar-query")
class SimilarQuery(Resource):
    """ Look for a near-duplicate of a question in recent history... """

    def post(self):
        """
        Request:
        {
            "query":         "What is the size of the market?",
            "messages":      [...],        // optional
            "session_id":    "abc-xyz",    // optional
            "threshold":     0.8,          // optional
            "include_cache": false         // optional: also search the query cache
        }
        """

        try:
            data = request.get_json(silent = True)
            ConversationValidation.validate_body(data)

            query     = data.get("query")
            messages_ = data.get("messages")
            threshold = data.get("threshold")

            ConversationValidation.validate_message(query)
            ConversationValidation.validate_messages(messages_)
            ConversationValidation.validate_threshold(threshold)

            result = get_controller().find_similar_query(
                query = query,
                messages = messages_,
                session_id = data.get("session_id"),
                threshold = threshold,
                include_cache = bool(data.get("include_cache", False))
            )

            return {"status": "success", "data": result}, 200

        except AppException as error:
            return error.to_dict(), error.status_code

        except Exception as error:
            return internal_error(error)



# ── POST /conversations/suggestions/initial ───────────────────────────────────
@conversation_namespace.route("/suggestions/initial")
class InitialSuggestions(Resource):
    """ Opening questions for a fresh conversation... """

    def post(self):
        try:
            data = request.get_json(silent = True)
            ConversationValidation.validate_body(data)

            result = get_controller().initial_questions(analysis = data.get("analysis"))

            return {"status": "success", "data": {"questions": result}}, 200

        except AppException as error:
            return error.to_dict(), error.status_code

        except Exception as error:
            return internal_error(error)



# ── POST /conversations/suggestions/follow-up ─────────────────────────────────
@conversation_namespace.route("/suggestions/follow-up")
class FollowUpSuggestions(Resource):
    """ Next questions, given the conversation so far... """

    def post(self):
        """
        Request:
        {
            "analysis":   {...},
            "messages":   [...],          // optional
            "session_id": "abc-xyz",      // optional
            "existing":   ["..."]         // optional: questions already shown
        }
        """

        try:
            data = request.get_json(silent = True)
            ConversationValidation.validate_body(data)

            messages_ = data.get("messages")
            ConversationValidation.validate_messages(messages_)

            result = get_controller().follow_up_questions(
                analysis = data.get("analysis"),
                messages = messages_,
                session_id = data.get("session_id"),
                existing = data.get("existing")
            )

            return {"status": "success", "data": {"questions": result}}, 200

        except AppException as error:
            return error.to_dict(), error.status_code

        except Exception as error:
            return internal_error(error)



# ── GET /conversations/rate-limit/<user_id> ───────────────────────────────────
@conversation_namespace.route("/rate-limit/<user_id>")
class RateLimit(Resource):
    """ Remaining questions for a user... """

    def get(self, user_id):
        """
        Query params: tier (default free), conversation_id (optional).
        Always 200; a breach is reported as allowed=false with reset_at.
        """

        try:
            ConversationValidation.validate_user_id(user_id)

            result = get_controller().rate_limit_status(
                user_id = user_id,
                tier = request.args.get("tier", tier_limits.DEFAULT_TIER),
                conversation_id = request.args.get("conversation_id")
            )

            return {"status": "success", "data": result}, 200

        except AppException as error:
            return error.to_dict(), error.status_code

        except Exception as error:
            return internal_error(error)



# ── GET / DELETE /conversations/dedup-stats ───────────────────────────────────
@conversation_namespace.route("/dedup-stats")
class DedupStats(Resource):
    """ Duplicate-query counters... """

    def get(self):
        try:
            return {"status": "success", "data": get_controller().get_dedup_stats()}, 200

        except Exception as error:
            return internal_error(error)


    def delete(self):
        try:
            result = get_controller().reset_dedup_stats()
            return {"status": "success", "message": messages.SUCCESS["STATS_RESET"], "data": result}, 200

        except Exception as error:
            return internal_error(error)



# ── GET / POST / DELETE /conversations/<session_id>/messages ──────────────────
@conversation_namespace.route("/<session_id>/messages")
class ConversationMessages(Resource):
    """ Stored conversation history... """

    def get(self, session_id):
        """ Messages in append order... """

        try:
            limit = request.args.get("limit", type = int)
            result = get_controller().get_messages(session_id = session_id, limit = limit)
            return {"status": "success", "data": result}, 200

        except AppException as error:
            return error.to_dict(), error.status_code

        except Exception as error:
            return internal_error(error)


    def post(self, session_id):
        """
        Request:
        {
            "role":    "user",
            "content": "What is the market size?",
            "user_id": "user-123"      // optional: owner when the session is new
        }
        """

        try:
            data = request.get_json(silent = True)
            ConversationValidation.validate_body(data)
            ConversationValidation.validate_session_id(session_id)

            result = get_controller().add_message(
                session_id = session_id,
                role = data.get("role"),
                content = data.get("content"),
                user_id = data.get("user_id")
            )

            return {"status": "success", "message": messages.SUCCESS["MESSAGE_STORED"], "data": result}, 201

        except AppException as error:
            return error.to_dict(), error.status_code

        except Exception as error:
            return internal_error(error)


    def delete(self, session_id):
        """ Clear a conversation... """

        try:
            cleared = get_controller().clear_conversation(session_id)
            return {
                "status": "success",
                "message": messages.SUCCESS["CONVERSATION_CLEARED"],
                "data": {"session_id": session_id, "cleared": cleared}
            }, 200

        except AppException as error:
            return error.to_dict(), error.status_code

        except Exception as error:
            return internal_error(error)
