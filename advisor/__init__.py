""" Advisor: conversation context & quality engine for the AI advisor chat... """
