"""
Cloud recording handlers — list, get, download. Read-only.
"""

from ..core.errors import ActionProviderError
from ..models.intent import Intent
from ..models.meeting import Recording
from ..nlu import timezones
from ..orchestrator.base_handler import BaseHandler, HandlerResponse, HandlerStatus, Turn
from .references import find_reference, remember_listing

RECORDING_NOT_FOUND = "I couldn't find recordings for that meeting. They may have been deleted or not processed yet."


def _size(num_bytes: int) -> str:
    size = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


class ListRecordingsHandler(BaseHandler):
    intent = Intent.LIST_RECORDINGS
    description = "List cloud recordings"

    async def handle(self, turn: Turn) -> HandlerResponse:
        try:
            recordings: list[Recording] = await self.dispatch(turn, {"page_size": 10})
        except ActionProviderError as e:
            return HandlerResponse(
                content=self.failure_message(e, "fetch your recordings"),
                status=HandlerStatus.FAILED,
                metadata={"error": e.category},
            )

        remember_listing(turn.session, "recording", [r.meeting_id for r in recordings])
        if not recordings:
            return HandlerResponse(content="You don't have any cloud recordings yet.")

        lines = ["Your recordings:", ""]
        for i, rec in enumerate(recordings, start=1):
            lines.append(f"{i}. {rec.topic}")
            if rec.start_time:
                lines.append(f"   {timezones.utc_to_local(rec.start_time, turn.timezone)}")
            lines.append(f"   Files: {len(rec.files)}")
            lines.append("")
        lines.append("Tip: Say 'get recording 1' for details or 'download recording 1' for links.")
        return HandlerResponse(content="\n".join(lines), metadata={"count": len(recordings)})


class _SingleRecordingHandler(BaseHandler):
    """Shared lookup for get/download."""

    verb = "get"

    async def handle(self, turn: Turn) -> HandlerResponse:
        ref = find_reference(turn.message, turn.session, "recording")
        if ref is None:
            ref = find_reference(turn.message, turn.session, "meeting")
        if ref is None:
            return HandlerResponse(
                content=f"Please list your recordings first, then say '{self.verb} recording 1'.\n\n"
                        "Or provide the meeting ID of the recording.",
                needs_input="recording",
            )
        if not ref.resolved:
            return HandlerResponse(
                content=f"I don't have a recording {ref.position} from your last list. "
                        "Say 'show my recordings' to refresh the numbering.",
                needs_input="recording",
            )

        try:
            recording: Recording = await self.dispatch(turn, {"meeting_id": ref.external_id})
        except ActionProviderError as e:
            return HandlerResponse(
                content=self.failure_message(e, "fetch that recording", not_found=RECORDING_NOT_FOUND),
                status=HandlerStatus.FAILED,
                metadata={"error": e.category},
            )
        return HandlerResponse(content=self.render(recording, turn), metadata={"meeting_id": recording.meeting_id})

    def render(self, recording: Recording, turn: Turn) -> str:
        raise NotImplementedError


class GetRecordingHandler(_SingleRecordingHandler):
    intent = Intent.GET_RECORDING
    description = "Show one recording's details"
    verb = "get"

    def render(self, recording: Recording, turn: Turn) -> str:
        lines = ["Recording Details:", "", f"Topic: {recording.topic}"]
        if recording.start_time:
            lines.append(f"When: {timezones.utc_to_local(recording.start_time, turn.timezone)}")
        if recording.duration:
            lines.append(f"Duration: {recording.duration} minutes")
        lines.append(f"Meeting ID: {recording.meeting_id}")
        if recording.files:
            lines += ["", "Files:"]
            lines += [f"   - {f.file_type or 'FILE'} ({_size(f.file_size)})" for f in recording.files]
        if recording.share_url:
            lines += ["", f"Share URL: {recording.share_url}"]
        return "\n".join(lines)


class DownloadRecordingHandler(_SingleRecordingHandler):
    intent = Intent.DOWNLOAD_RECORDING
    description = "Give download links for a recording"
    verb = "download"

    def render(self, recording: Recording, turn: Turn) -> str:
        links = [f for f in recording.files if f.download_url]
        if not links:
            return f"'{recording.topic}' has no downloadable files yet."
        lines = [f"Download links for '{recording.topic}':", ""]
        lines += [f"- {f.file_type or 'FILE'} ({_size(f.file_size)}): {f.download_url}" for f in links]
        lines += ["", "Links require your Zoom sign-in and expire after a while."]
        return "\n".join(lines)
