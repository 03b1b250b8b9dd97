"""
Action-provider result types — meetings, recordings, users.

Each has a from_api() that reads the Zoom REST payload shape; the
in-memory provider builds them directly.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Meeting:
    id: str
    topic: str = "Meeting"
    start_time: Optional[str] = None                    # UTC, e.g. "2024-01-15T14:00:00Z"
    duration: Optional[int] = None                      # minutes
    timezone: str = "UTC"
    join_url: str = ""
    password: str = ""
    invitees: list[str] = field(default_factory=list)
    waiting_room: Optional[bool] = None
    host_video: Optional[bool] = None
    participant_video: Optional[bool] = None

    @classmethod
    def from_api(cls, data: dict) -> "Meeting":
        settings = data.get("settings") or {}
        invitees = [
            i.get("email", "")
            for i in settings.get("meeting_invitees") or []
            if i.get("email")
        ]
        return cls(
            id=str(data.get("id", "")),
            topic=data.get("topic") or "Meeting",
            start_time=data.get("start_time"),
            duration=data.get("duration"),
            timezone=data.get("timezone") or "UTC",
            join_url=data.get("join_url", ""),
            password=data.get("password", ""),
            invitees=invitees,
            waiting_room=settings.get("waiting_room"),
            host_video=settings.get("host_video"),
            participant_video=settings.get("participant_video"),
        )


@dataclass
class RecordingFile:
    id: str
    file_type: str = ""
    file_size: int = 0
    download_url: str = ""
    play_url: str = ""

    @classmethod
    def from_api(cls, data: dict) -> "RecordingFile":
        return cls(
            id=str(data.get("id", "")),
            file_type=data.get("file_type", ""),
            file_size=int(data.get("file_size") or 0),
            download_url=data.get("download_url", ""),
            play_url=data.get("play_url", ""),
        )


@dataclass
class Recording:
    meeting_id: str
    topic: str = "Recording"
    start_time: Optional[str] = None
    duration: Optional[int] = None
    share_url: str = ""
    files: list[RecordingFile] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict) -> "Recording":
        return cls(
            meeting_id=str(data.get("id") or data.get("meeting_id") or ""),
            topic=data.get("topic") or "Recording",
            start_time=data.get("start_time"),
            duration=data.get("duration"),
            share_url=data.get("share_url", ""),
            files=[RecordingFile.from_api(f) for f in data.get("recording_files") or []],
        )


@dataclass
class ZoomUser:
    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    type: int = 1                                       # 1 basic, 2 licensed
    status: str = "active"

    @property
    def display_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.email

    @classmethod
    def from_api(cls, data: dict) -> "ZoomUser":
        return cls(
            id=str(data.get("id", "")),
            email=data.get("email", ""),
            first_name=data.get("first_name", ""),
            last_name=data.get("last_name", ""),
            type=int(data.get("type") or 1),
            status=data.get("status", "active"),
        )
