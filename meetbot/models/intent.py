"""
Intent — the closed set of user goals the assistant recognizes.
"""

from enum import Enum


class Intent(str, Enum):
    # Meetings
    SCHEDULE_MEETING = "schedule_meeting"
    LIST_MEETINGS = "list_meetings"
    GET_MEETING = "get_meeting"
    UPDATE_MEETING = "update_meeting"
    DELETE_MEETING = "delete_meeting"

    # Recordings
    LIST_RECORDINGS = "list_recordings"
    GET_RECORDING = "get_recording"
    DOWNLOAD_RECORDING = "download_recording"

    # Users
    GET_USER = "get_user"
    LIST_USERS = "list_users"
    CREATE_USER = "create_user"

    # General
    HELP = "help"
    GREETING = "greeting"
    UNKNOWN = "unknown"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @property
    def requires_authentication(self) -> bool:
        return self not in (Intent.GREETING, Intent.HELP, Intent.UNKNOWN)

    @property
    def is_write_operation(self) -> bool:
        return self in _WRITE_INTENTS


_DESCRIPTIONS = {
    Intent.SCHEDULE_MEETING: "Schedule a new meeting",
    Intent.LIST_MEETINGS: "List upcoming meetings",
    Intent.GET_MEETING: "Get specific meeting details",
    Intent.UPDATE_MEETING: "Update an existing meeting",
    Intent.DELETE_MEETING: "Cancel/delete a meeting",
    Intent.LIST_RECORDINGS: "List available recordings",
    Intent.GET_RECORDING: "Get specific recording details",
    Intent.DOWNLOAD_RECORDING: "Download a recording",
    Intent.GET_USER: "Get user information",
    Intent.LIST_USERS: "List users in organization",
    Intent.CREATE_USER: "Create new user",
    Intent.HELP: "Show available commands",
    Intent.GREETING: "User greeting",
    Intent.UNKNOWN: "Intent not recognized",
}

_WRITE_INTENTS = frozenset({
    Intent.SCHEDULE_MEETING,
    Intent.UPDATE_MEETING,
    Intent.DELETE_MEETING,
    Intent.CREATE_USER,
})
