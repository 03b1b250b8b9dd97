"""
Action providers — the things that actually create, list and delete meetings.

One logical operation: perform(intent, params, credential). Parameters are
already validated and UTC-normalized. Results are model objects; failures
are typed ActionProviderError subclasses.

  ZoomActionProvider      — Zoom REST API (FF_USE_ZOOM=true)
  InMemoryActionProvider  — process-local fallback, also used by tests
"""

import itertools
import logging
from dataclasses import replace
from typing import Any, Optional

from ..core.config import get_settings
from ..core.errors import ActionFailedError, NotFoundError
from ..core.flags import get_flags
from ..models.intent import Intent
from ..models.meeting import Meeting, Recording, ZoomUser
from . import zoom
from .credentials import CredentialProvider, LocalCredentialProvider, StaticCredentialProvider

logger = logging.getLogger(__name__)

_OPERATIONS = {
    Intent.SCHEDULE_MEETING: "create_meeting",
    Intent.LIST_MEETINGS: "list_meetings",
    Intent.GET_MEETING: "get_meeting",
    Intent.UPDATE_MEETING: "update_meeting",
    Intent.DELETE_MEETING: "delete_meeting",
    Intent.LIST_RECORDINGS: "list_recordings",
    Intent.GET_RECORDING: "get_recording",
    Intent.DOWNLOAD_RECORDING: "get_recording",
    Intent.GET_USER: "get_user",
    Intent.LIST_USERS: "list_users",
    Intent.CREATE_USER: "create_user",
}


class ActionProvider:
    """Base class. Subclasses implement one coroutine per operation."""

    name: str = ""

    async def perform(self, intent: Intent, params: dict, credential: str) -> Any:
        operation = _OPERATIONS.get(intent)
        if operation is None:
            raise ActionFailedError(f"No action for intent {intent.name}")
        logger.debug("%s: %s(%s)", self.name, operation, sorted(params))
        return await getattr(self, operation)(params, credential)

    async def create_meeting(self, params: dict, credential: str) -> Meeting:
        raise NotImplementedError

    async def list_meetings(self, params: dict, credential: str) -> list[Meeting]:
        raise NotImplementedError

    async def get_meeting(self, params: dict, credential: str) -> Meeting:
        raise NotImplementedError

    async def update_meeting(self, params: dict, credential: str) -> None:
        raise NotImplementedError

    async def delete_meeting(self, params: dict, credential: str) -> None:
        raise NotImplementedError

    async def list_recordings(self, params: dict, credential: str) -> list[Recording]:
        raise NotImplementedError

    async def get_recording(self, params: dict, credential: str) -> Recording:
        raise NotImplementedError

    async def get_user(self, params: dict, credential: str) -> ZoomUser:
        raise NotImplementedError

    async def list_users(self, params: dict, credential: str) -> list[ZoomUser]:
        raise NotImplementedError

    async def create_user(self, params: dict, credential: str) -> ZoomUser:
        raise NotImplementedError


def _meeting_payload(params: dict) -> dict:
    settings = {
        "host_video": True,
        "participant_video": True,
        "waiting_room": True,
    }
    invitees = params.get("invitees") or []
    if invitees:
        settings["meeting_invitees"] = [{"email": e} for e in invitees]
    return {
        "topic": params.get("topic", "Scheduled Meeting"),
        "type": 2,                                      # scheduled
        "start_time": params["start_time"],
        "duration": params["duration"],
        "timezone": params.get("timezone", "UTC"),
        "settings": settings,
    }


class ZoomActionProvider(ActionProvider):
    name = "zoom"

    async def create_meeting(self, params, credential):
        data = await zoom.create_meeting(credential, _meeting_payload(params))
        return Meeting.from_api(data)

    async def list_meetings(self, params, credential):
        rows = await zoom.list_meetings(
            credential,
            meeting_type=params.get("type", "scheduled"),
            page_size=params.get("page_size", 10),
        )
        return [Meeting.from_api(r) for r in rows]

    async def get_meeting(self, params, credential):
        return Meeting.from_api(await zoom.get_meeting(credential, params["meeting_id"]))

    async def update_meeting(self, params, credential):
        changes = {k: params[k] for k in ("start_time", "duration", "topic") if k in params}
        if "start_time" in changes:
            changes["timezone"] = params.get("timezone", "UTC")
        await zoom.update_meeting(credential, params["meeting_id"], changes)

    async def delete_meeting(self, params, credential):
        await zoom.delete_meeting(credential, params["meeting_id"])

    async def list_recordings(self, params, credential):
        rows = await zoom.list_recordings(
            credential,
            from_date=params.get("from"),
            to_date=params.get("to"),
            page_size=params.get("page_size", 10),
        )
        return [Recording.from_api(r) for r in rows]

    async def get_recording(self, params, credential):
        return Recording.from_api(await zoom.get_meeting_recordings(credential, params["meeting_id"]))

    async def get_user(self, params, credential):
        return ZoomUser.from_api(await zoom.get_user(credential, params.get("user_id", "me")))

    async def list_users(self, params, credential):
        rows = await zoom.list_users(credential, page_size=params.get("page_size", 30))
        return [ZoomUser.from_api(r) for r in rows]

    async def create_user(self, params, credential):
        data = await zoom.create_user(
            credential,
            params["email"],
            first_name=params.get("first_name", ""),
            last_name=params.get("last_name", ""),
            user_type=params.get("type", 1),
        )
        return ZoomUser.from_api(data)


class InMemoryActionProvider(ActionProvider):
    """
    Keeps meetings and recordings per credential, users in one shared directory.
    Meeting IDs are 11 digits, like Zoom's.
    """

    name = "in_memory"

    def __init__(self):
        self._ids = itertools.count(85000000001)
        self._meetings: dict[str, dict[str, Meeting]] = {}
        self._recordings: dict[str, dict[str, Recording]] = {}
        self._users: dict[str, ZoomUser] = {}
        self.calls: list[tuple[Intent, dict]] = []

    async def perform(self, intent: Intent, params: dict, credential: str) -> Any:
        self.calls.append((intent, dict(params)))
        return await super().perform(intent, params, credential)

    def _owned(self, credential: str) -> dict[str, Meeting]:
        return self._meetings.setdefault(credential, {})

    def _find(self, credential: str, meeting_id: str) -> Meeting:
        meeting = self._owned(credential).get(str(meeting_id))
        if meeting is None:
            raise NotFoundError(f"Meeting {meeting_id} not found")
        return meeting

    async def create_meeting(self, params, credential):
        meeting_id = str(next(self._ids))
        meeting = Meeting(
            id=meeting_id,
            topic=params.get("topic", "Scheduled Meeting"),
            start_time=f"{params['start_time']}Z",
            duration=int(params["duration"]),
            timezone=params.get("timezone", "UTC"),
            join_url=f"https://zoom.us/j/{meeting_id}",
            password=meeting_id[-6:],
            invitees=list(params.get("invitees") or []),
            waiting_room=True,
            host_video=True,
            participant_video=True,
        )
        self._owned(credential)[meeting_id] = meeting
        return replace(meeting)

    async def list_meetings(self, params, credential):
        meetings = sorted(self._owned(credential).values(), key=lambda m: m.start_time or "")
        return [replace(m) for m in meetings[: params.get("page_size", 10)]]

    async def get_meeting(self, params, credential):
        return replace(self._find(credential, params["meeting_id"]))

    async def update_meeting(self, params, credential):
        meeting = self._find(credential, params["meeting_id"])
        if "start_time" in params:
            meeting.start_time = f"{params['start_time']}Z"
        if "duration" in params:
            meeting.duration = int(params["duration"])
        if "topic" in params:
            meeting.topic = params["topic"]

    async def delete_meeting(self, params, credential):
        self._find(credential, params["meeting_id"])
        del self._owned(credential)[str(params["meeting_id"])]

    def add_recording(self, credential: str, recording: Recording) -> None:
        self._recordings.setdefault(credential, {})[recording.meeting_id] = recording

    async def list_recordings(self, params, credential):
        recordings = list(self._recordings.get(credential, {}).values())
        return recordings[: params.get("page_size", 10)]

    async def get_recording(self, params, credential):
        recording = self._recordings.get(credential, {}).get(str(params["meeting_id"]))
        if recording is None:
            raise NotFoundError(f"No recordings for meeting {params['meeting_id']}")
        return recording

    async def get_user(self, params, credential):
        key = params.get("user_id", "me")
        if key == "me":
            owner = credential.split(":", 1)[-1]
            return ZoomUser(id=owner, email=f"{owner}@local", first_name=owner)
        user = self._users.get(key.lower())
        if user is None:
            raise NotFoundError(f"User {key} not found")
        return user

    async def list_users(self, params, credential):
        return list(self._users.values())[: params.get("page_size", 30)]

    async def create_user(self, params, credential):
        email = params["email"].lower()
        if email in self._users:
            raise ActionFailedError(f"User {email} already exists")
        user = ZoomUser(
            id=f"u{len(self._users) + 1}",
            email=email,
            first_name=params.get("first_name", ""),
            last_name=params.get("last_name", ""),
            type=params.get("type", 1),
            status="pending",
        )
        self._users[email] = user
        return user


# ── Global providers ─────────────────────────────────────────────────

_provider: Optional[ActionProvider] = None
_credentials: Optional[CredentialProvider] = None


def get_action_provider() -> ActionProvider:
    """Zoom or in-memory, by FF_USE_ZOOM."""
    global _provider
    if _provider is None:
        _provider = ZoomActionProvider() if get_flags().use_zoom else InMemoryActionProvider()
        logger.info("Action provider: %s", _provider.name)
    return _provider


def get_credential_provider() -> CredentialProvider:
    global _credentials
    if _credentials is None:
        if get_flags().use_zoom:
            _credentials = StaticCredentialProvider(get_settings().zoom_access_token)
        else:
            _credentials = LocalCredentialProvider()
    return _credentials
