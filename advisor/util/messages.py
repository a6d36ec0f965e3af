""" All Error and Success Message declare here... """


# SUCCESS MESSAGES
SUCCESS = {
    "STATS_RESET"               :   "Deduplication statistics reset.",
    "CONVERSATION_CLEARED"      :   "Conversation cleared.",
    "MESSAGE_STORED"            :   "Message stored."
}


# ERROR MESSAGES
ERROR = {
    # Request Errors
    "INVALID_REQUEST"           :   "Request body is required",
    "MISSING_USER_ID"           :   "user_id is required",
    "INVALID_USER_ID"           :   "user_id must be a non-empty string",
    "MISSING_SESSION_ID"        :   "session_id is required",
    "INVALID_TIER"              :   "tier must be a string",
    "INVALID_MAX_TOKENS"        :   "max_tokens must be an integer between {} and {}",
    "INVALID_THRESHOLD"         :   "threshold must be a number between 0 and 1",

    # Message Errors
    "MISSING_MESSAGE"           :   "message is required",
    "INVALID_MESSAGE"           :   "message must be a string",
    "MISSING_CONTENT"           :   "Message content is required",
    "INVALID_CONTENT"           :   "Message content must be a string",
    "INVALID_ROLE"              :   "Message role must be 'user' or 'assistant'",
    "INVALID_MESSAGES"          :   "messages must be a list",

    # Analysis Errors
    "MISSING_ANALYSIS"          :   "analysis is required",
    "INVALID_ANALYSIS"          :   "analysis must be an object",
    "MISSING_SEARCH_QUERY"      :   "analysis.search_query is required",
    "INVALID_INNOVATION_SCORE"  :   "analysis.innovation_score must be an integer between 0 and 100",
    "INVALID_FEASIBILITY"       :   "analysis.feasibility_rating must be one of low, medium, high",
    "INVALID_GAPS"              :   "analysis.top_gaps must be a list of objects",
    "INVALID_COMPETITORS"       :   "analysis.competitors must be a list of objects",

    # Response Errors
    "MISSING_RESPONSE"          :   "response is required",
    "INVALID_RESPONSE"          :   "response must be a string",

    # Conversation Errors
    "CONVERSATION_NOT_FOUND"    :   "Conversation with given session ID does not exist.",
    "MESSAGE_STORE_FAILED"      :   "Unable to store message."
}
