"""
Meeting handlers — schedule, list, get, update, delete.

Schedule, update and delete are write intents and collect their
parameters with the slot-filling protocol. List and get call the
provider directly.
"""

import logging
import re
from typing import Optional

from ..core.errors import ActionProviderError
from ..models.intent import Intent
from ..models.meeting import Meeting
from ..nlu import timezones
from ..orchestrator.base_handler import (
    BaseHandler,
    HandlerResponse,
    HandlerStatus,
    Slot,
    SlotFillingHandler,
    Turn,
)
from .references import find_reference, remember_listing

logger = logging.getLogger(__name__)

DEFAULT_TOPIC = "Scheduled Meeting"

TOPIC_PATTERN = re.compile(r"\b(?:titled|called|named|about)\s+[\"']([^\"']{1,200})[\"']", re.IGNORECASE)


def _when(meeting: Meeting, zone_id: Optional[str]) -> Optional[str]:
    if not meeting.start_time:
        return None
    return timezones.utc_to_local(meeting.start_time, zone_id)


def _no_reference(verb: str) -> str:
    return (
        f"Please list your meetings first, then say '{verb} meeting 1'.\n\n"
        "Or provide a specific meeting ID."
    )


def _unknown_position(position: int) -> str:
    return (
        f"I don't have a meeting {position} from your last list. "
        "Say 'list my meetings' to refresh the numbering."
    )


# ── Schedule ─────────────────────────────────────────────────────────

class ScheduleMeetingHandler(SlotFillingHandler):
    intent = Intent.SCHEDULE_MEETING
    description = "Schedule a new Zoom meeting"
    slots = (
        Slot("date", "meetingDate",
             "I'd be happy to schedule a meeting! What date would you like? "
             "(e.g., 'tomorrow', '2024-01-15', or 'next Monday')"),
        Slot("time", "meetingTime",
             "Got it! What time works for you? (e.g., '2pm', '14:00', or '2:30pm')"),
        Slot("email", "participantEmail", "", required=False),
        Slot("duration", "meetingDuration", "", required=False),
        Slot("topic", "meetingTopic", "", required=False),
    )

    def __init__(self, *args, default_duration: int = 60, **kwargs):
        super().__init__(*args, **kwargs)
        self.default_duration = default_duration

    def remember(self, turn: Turn) -> None:
        super().remember(turn)
        m = TOPIC_PATTERN.search(turn.message)
        if m:
            turn.session.set_value("meetingTopic", m.group(1).strip())

    async def execute(self, turn: Turn, values: dict) -> HandlerResponse:
        date, time = values["meetingDate"], values["meetingTime"]
        zone = turn.timezone
        duration = int(values.get("meetingDuration") or self.default_duration)
        participant = values.get("participantEmail")

        params = {
            "topic": values.get("meetingTopic") or DEFAULT_TOPIC,
            "start_time": timezones.local_to_utc(date, time, zone),
            "duration": duration,
            "timezone": "UTC",
            "invitees": [participant] if participant else [],
        }
        meeting: Meeting = await self.dispatch(turn, params)
        logger.info("Scheduled meeting %s for user=%s", meeting.id, turn.user_id)

        lines = [
            "Meeting scheduled successfully!",
            "",
            f"Topic: {meeting.topic}",
            f"When: {timezones.format_local_datetime(date, time, zone)}",
            f"Duration: {duration} minutes",
            f"Meeting ID: {meeting.id}",
        ]
        if meeting.password:
            lines.append(f"Password: {meeting.password}")
        if meeting.join_url:
            lines += ["", f"Join URL: {meeting.join_url}"]
        if participant:
            lines += ["", f"Invitation added for {participant}."]
        return HandlerResponse(
            content="\n".join(lines),
            metadata={"meeting_id": meeting.id},
        )

    def describe_failure(self, exc: ActionProviderError) -> str:
        return self.failure_message(exc, "create the meeting")


# ── List ─────────────────────────────────────────────────────────────

class ListMeetingsHandler(BaseHandler):
    intent = Intent.LIST_MEETINGS
    description = "List upcoming meetings"

    async def handle(self, turn: Turn) -> HandlerResponse:
        try:
            meetings: list[Meeting] = await self.dispatch(turn, {"type": "scheduled", "page_size": 10})
        except ActionProviderError as e:
            return HandlerResponse(
                content=self.failure_message(e, "fetch your meetings"),
                status=HandlerStatus.FAILED,
                metadata={"error": e.category},
            )

        remember_listing(turn.session, "meeting", [m.id for m in meetings])
        if not meetings:
            return HandlerResponse(
                content="You have no upcoming meetings.\n\n"
                        "Would you like to schedule one? Just say 'schedule a meeting tomorrow at 2pm'",
            )

        lines = ["Your upcoming meetings:", ""]
        for i, meeting in enumerate(meetings, start=1):
            lines.append(f"{i}. {meeting.topic}")
            when = _when(meeting, turn.timezone)
            if when:
                lines.append(f"   {when}")
            lines.append(f"   ID: {meeting.id}")
            lines.append("")
        lines.append("Tip: Say 'get meeting 1' for details or 'delete meeting 2' to cancel.")
        return HandlerResponse(content="\n".join(lines), metadata={"count": len(meetings)})


# ── Get ──────────────────────────────────────────────────────────────

class GetMeetingHandler(BaseHandler):
    intent = Intent.GET_MEETING
    description = "Show one meeting's details"

    async def handle(self, turn: Turn) -> HandlerResponse:
        ref = find_reference(turn.message, turn.session, "meeting")
        if ref is None:
            return HandlerResponse(content=_no_reference("get"), needs_input="meeting")
        if not ref.resolved:
            return HandlerResponse(content=_unknown_position(ref.position), needs_input="meeting")

        try:
            meeting: Meeting = await self.dispatch(turn, {"meeting_id": ref.external_id})
        except ActionProviderError as e:
            return HandlerResponse(
                content=self.failure_message(
                    e, "fetch the meeting details",
                    not_found="Meeting not found. It may have been deleted or the ID is incorrect.",
                ),
                status=HandlerStatus.FAILED,
                metadata={"error": e.category},
            )

        lines = ["Meeting Details:", "", f"Topic: {meeting.topic}"]
        when = _when(meeting, turn.timezone)
        if when:
            lines.append(f"When: {when}")
        if meeting.duration:
            lines.append(f"Duration: {meeting.duration} minutes")
        lines.append(f"Meeting ID: {meeting.id}")
        if meeting.password:
            lines.append(f"Password: {meeting.password}")
        if meeting.join_url:
            lines += ["", f"Join URL: {meeting.join_url}"]
        if meeting.waiting_room is not None:
            lines += [
                "",
                "Settings:",
                f"   - Waiting room: {'Enabled' if meeting.waiting_room else 'Disabled'}",
                f"   - Host video: {'On' if meeting.host_video else 'Off'}",
                f"   - Participant video: {'On' if meeting.participant_video else 'Off'}",
            ]
        return HandlerResponse(content="\n".join(lines), metadata={"meeting_id": meeting.id})


# ── Update ───────────────────────────────────────────────────────────

WHAT_TO_UPDATE = Slot(
    "change", "",
    "What would you like to update?\n\n"
    "You can change:\n"
    "- Date (e.g., 'reschedule to tomorrow')\n"
    "- Time (e.g., 'change to 3pm')\n"
    "- Duration (e.g., 'make it 90 minutes')",
)


class UpdateMeetingHandler(SlotFillingHandler):
    intent = Intent.UPDATE_MEETING
    description = "Change a meeting's date, time or duration"
    slots = (
        Slot("meeting", "updateMeetingId",
             "Which meeting would you like to update? "
             "Say 'list my meetings' first and then 'meeting 1', or give me the meeting ID."),
        Slot("date", "updateDate",
             "What date should it move to? (e.g., 'tomorrow' or '2024-01-15')", required=False),
        Slot("time", "updateTime",
             "What time should it start? (e.g., '3pm' or '15:00')", required=False),
        Slot("duration", "updateDuration", "", required=False),
    )

    def remember(self, turn: Turn) -> None:
        super().remember(turn)
        session = turn.session
        ref = find_reference(
            turn.message, session, "meeting",
            allow_bare=not session.has_value("updateMeetingId"),
        )
        if ref is not None and ref.resolved:
            session.set_value("updateMeetingId", ref.external_id)

    def missing_slot(self, turn: Turn) -> Optional[Slot]:
        session = turn.session
        meeting, date, time, duration = self.slots
        if not session.has_value(meeting.context_key):
            return meeting

        has_date = session.has_value(date.context_key)
        has_time = session.has_value(time.context_key)
        if not (has_date or has_time or session.has_value(duration.context_key)):
            return WHAT_TO_UPDATE
        if has_date and not has_time:
            return time
        if has_time and not has_date:
            return date
        return None

    async def execute(self, turn: Turn, values: dict) -> HandlerResponse:
        meeting_id = values["updateMeetingId"]
        params: dict = {"meeting_id": meeting_id}
        changes = []

        date, time = values.get("updateDate"), values.get("updateTime")
        if date and time:
            params["start_time"] = timezones.local_to_utc(date, time, turn.timezone)
            params["timezone"] = "UTC"
            changes.append(f"When: {timezones.format_local_datetime(date, time, turn.timezone)}")
        if values.get("updateDuration"):
            params["duration"] = int(values["updateDuration"])
            changes.append(f"Duration: {params['duration']} minutes")

        await self.dispatch(turn, params)
        logger.info("Updated meeting %s for user=%s", meeting_id, turn.user_id)
        return HandlerResponse(
            content="Meeting updated successfully!\n\n" + "\n".join(changes),
            metadata={"meeting_id": meeting_id},
        )

    def describe_failure(self, exc: ActionProviderError) -> str:
        return self.failure_message(
            exc, "update the meeting",
            not_found="Meeting not found. It may have been deleted.",
        )


# ── Delete ───────────────────────────────────────────────────────────

class DeleteMeetingHandler(SlotFillingHandler):
    intent = Intent.DELETE_MEETING
    description = "Cancel a meeting"
    slots = (
        Slot("meeting", "deleteMeetingId",
             "Which meeting would you like to cancel? "
             "Say 'list my meetings' first and then 'meeting 1', or give me the meeting ID."),
    )

    def remember(self, turn: Turn) -> None:
        session = turn.session
        ref = find_reference(
            turn.message, session, "meeting",
            allow_bare=not session.has_value("deleteMeetingId"),
        )
        if ref is not None and ref.resolved:
            session.set_value("deleteMeetingId", ref.external_id)

    async def execute(self, turn: Turn, values: dict) -> HandlerResponse:
        meeting_id = values["deleteMeetingId"]
        await self.dispatch(turn, {"meeting_id": meeting_id})
        logger.info("Deleted meeting %s for user=%s", meeting_id, turn.user_id)
        # Positions from the last listing no longer line up
        turn.session.remove_prefix("meeting_")
        return HandlerResponse(
            content="Meeting cancelled successfully!\n\n"
                    "Cancellation emails have been sent to all participants.",
            metadata={"meeting_id": meeting_id},
        )

    def describe_failure(self, exc: ActionProviderError) -> str:
        return self.failure_message(
            exc, "cancel the meeting",
            not_found="Meeting not found. It may have already been cancelled.",
        )
