"""
User directory handlers — get, list, create.
"""

import logging

from ..core.errors import ActionProviderError
from ..models.intent import Intent
from ..models.meeting import ZoomUser
from ..orchestrator.base_handler import (
    BaseHandler,
    HandlerResponse,
    HandlerStatus,
    Slot,
    SlotFillingHandler,
    Turn,
)

logger = logging.getLogger(__name__)

_USER_TYPES = {1: "Basic", 2: "Licensed", 3: "On-prem"}


def _describe(user: ZoomUser) -> str:
    kind = _USER_TYPES.get(user.type, str(user.type))
    return f"{user.display_name} <{user.email}> ({kind}, {user.status})"


class GetUserHandler(BaseHandler):
    intent = Intent.GET_USER
    description = "Look up a user by email"

    async def handle(self, turn: Turn) -> HandlerResponse:
        email = turn.entities.get("email")
        if not email:
            return HandlerResponse(content="Please provide the user's email address.", needs_input="email")

        try:
            user: ZoomUser = await self.dispatch(turn, {"user_id": email})
        except ActionProviderError as e:
            return HandlerResponse(
                content=self.failure_message(
                    e, "look up that user", not_found=f"I couldn't find a user with email {email}.",
                ),
                status=HandlerStatus.FAILED,
                metadata={"error": e.category},
            )

        lines = [
            "User Details:",
            "",
            f"Name: {user.display_name}",
            f"Email: {user.email}",
            f"Type: {_USER_TYPES.get(user.type, user.type)}",
            f"Status: {user.status}",
        ]
        return HandlerResponse(content="\n".join(lines), metadata={"user_id": user.id})


class ListUsersHandler(BaseHandler):
    intent = Intent.LIST_USERS
    description = "List users in the account"

    async def handle(self, turn: Turn) -> HandlerResponse:
        try:
            users: list[ZoomUser] = await self.dispatch(turn, {"page_size": 30})
        except ActionProviderError as e:
            return HandlerResponse(
                content=self.failure_message(e, "list users"),
                status=HandlerStatus.FAILED,
                metadata={"error": e.category},
            )

        if not users:
            return HandlerResponse(content="There are no users in your organization yet.")
        lines = ["Users in your organization:", ""]
        lines += [f"{i}. {_describe(u)}" for i, u in enumerate(users, start=1)]
        return HandlerResponse(content="\n".join(lines), metadata={"count": len(users)})


class CreateUserHandler(SlotFillingHandler):
    intent = Intent.CREATE_USER
    description = "Add a user to the account"
    slots = (
        Slot("email", "newUserEmail",
             "Sure! What's the new user's email address?"),
    )

    async def execute(self, turn: Turn, values: dict) -> HandlerResponse:
        email = values["newUserEmail"]
        user: ZoomUser = await self.dispatch(turn, {"email": email, "type": 1})
        logger.info("Created user %s", user.id)
        return HandlerResponse(
            content=f"User {user.email} has been created.\n\n"
                    "They'll receive an email to activate their account.",
            metadata={"user_id": user.id},
        )

    def describe_failure(self, exc: ActionProviderError) -> str:
        return self.failure_message(exc, "create that user")
