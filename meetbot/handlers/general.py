"""
Greeting, help and fallback replies. No provider calls.
"""

from ..models.intent import Intent
from ..orchestrator.base_handler import BaseHandler, HandlerResponse, Turn

GREETING_TEXT = (
    "Hello! I'm your Zoom assistant. I can help you manage meetings, recordings, and users. "
    "Type 'help' to see what I can do!"
)

HELP_TEXT = (
    "Here's what I can help you with:\n\n"
    "MEETINGS:\n"
    "- Schedule a meeting: \"Schedule a meeting tomorrow at 2pm\"\n"
    "- List meetings: \"Show my meetings this week\"\n"
    "- Get meeting details: \"Tell me about meeting 1\"\n"
    "- Update meeting: \"Reschedule meeting 1 to 3pm\"\n"
    "- Cancel meeting: \"Cancel meeting 2\"\n\n"
    "RECORDINGS:\n"
    "- List recordings: \"Show my recordings\"\n"
    "- Get recording: \"Get recording 1\"\n"
    "- Download recording: \"Download recording 1\"\n\n"
    "USERS:\n"
    "- Get user: \"Show user john@example.com\"\n"
    "- List users: \"List all users\"\n"
    "- Create user: \"Add user jane@example.com\"\n\n"
    "Say 'cancel' at any point to drop what we're working on.\n"
    "Just ask in natural language, and I'll do my best to help!"
)

UNKNOWN_TEXT = "I'm not sure I understood that. Could you rephrase, or type 'help' to see what I can do?"


class GreetingHandler(BaseHandler):
    intent = Intent.GREETING
    description = "Say hello"

    async def handle(self, turn: Turn) -> HandlerResponse:
        return HandlerResponse(content=GREETING_TEXT)


class HelpHandler(BaseHandler):
    intent = Intent.HELP
    description = "List what the assistant can do"

    async def handle(self, turn: Turn) -> HandlerResponse:
        return HandlerResponse(content=HELP_TEXT)


class UnknownHandler(BaseHandler):
    intent = Intent.UNKNOWN
    description = "Fallback when nothing matched"

    async def handle(self, turn: Turn) -> HandlerResponse:
        return HandlerResponse(content=UNKNOWN_TEXT)
