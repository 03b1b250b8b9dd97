import asyncio
import json

import httpx
import pytest

from meetbot.core.errors import ActionFailedError, NotFoundError, TransientError, UnauthorizedError
from meetbot.models.intent import Intent
from meetbot.services import zoom
from meetbot.services.actions import ZoomActionProvider

TOKEN = "test-token"


@pytest.fixture
def transport(monkeypatch):
    """Route the shared client through a scripted handler; no real sleeps."""
    requests: list[httpx.Request] = []
    responses: list = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        result = responses.pop(0) if len(responses) > 1 else responses[0]
        if isinstance(result, Exception):
            raise result
        return result

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    monkeypatch.setattr(zoom, "_client", client)
    monkeypatch.setattr(zoom, "BASE_DELAY", 0.0)
    monkeypatch.setattr(zoom, "JITTER", 0.0)

    class Script:
        def reply(self, *items):
            responses.extend(items)
            return self

    script = Script()
    script.requests = requests
    return script


def run(coro):
    return asyncio.run(coro)


def test_create_meeting_sends_payload(transport):
    transport.reply(httpx.Response(201, json={
        "id": 85000000001, "topic": "Sync", "start_time": "2024-01-16T14:00:00Z",
        "duration": 30, "join_url": "https://zoom.us/j/85000000001", "password": "abc",
        "settings": {"waiting_room": True, "host_video": True, "participant_video": False,
                     "meeting_invitees": [{"email": "bob@example.com"}]},
    }))

    provider = ZoomActionProvider()
    meeting = run(provider.perform(Intent.SCHEDULE_MEETING, {
        "topic": "Sync", "start_time": "2024-01-16T14:00:00", "duration": 30,
        "timezone": "UTC", "invitees": ["bob@example.com"],
    }, TOKEN))

    request = transport.requests[0]
    assert request.method == "POST"
    assert request.url.path.endswith("/users/me/meetings")
    assert request.headers["Authorization"] == f"Bearer {TOKEN}"
    body = json.loads(request.content)
    assert body["type"] == 2
    assert body["settings"]["meeting_invitees"] == [{"email": "bob@example.com"}]

    assert meeting.id == "85000000001"
    assert meeting.invitees == ["bob@example.com"]
    assert meeting.participant_video is False


def test_list_meetings(transport):
    transport.reply(httpx.Response(200, json={"meetings": [{"id": 1, "topic": "A"}, {"id": 2, "topic": "B"}]}))
    meetings = run(ZoomActionProvider().perform(Intent.LIST_MEETINGS, {"page_size": 5}, TOKEN))
    assert [m.topic for m in meetings] == ["A", "B"]
    assert transport.requests[0].url.params["page_size"] == "5"


def test_update_meeting_handles_no_content(transport):
    transport.reply(httpx.Response(204))
    run(ZoomActionProvider().perform(
        Intent.UPDATE_MEETING, {"meeting_id": "123456789", "duration": 45}, TOKEN,
    ))
    request = transport.requests[0]
    assert request.method == "PATCH"
    assert json.loads(request.content) == {"duration": 45}


@pytest.mark.parametrize("status,error", [
    (401, UnauthorizedError),
    (403, UnauthorizedError),
    (404, NotFoundError),
    (400, ActionFailedError),
])
def test_status_mapping(transport, status, error):
    transport.reply(httpx.Response(status, json={"message": "nope"}))
    with pytest.raises(error) as info:
        run(zoom.get_meeting(TOKEN, "123456789"))
    assert info.value.status_code == status
    assert len(transport.requests) == 1


def test_retries_then_succeeds(transport):
    transport.reply(
        httpx.Response(503),
        httpx.Response(429, headers={"retry-after": "0"}),
        httpx.Response(200, json={"id": 5, "topic": "Later"}),
    )
    data = run(zoom.get_meeting(TOKEN, "5"))
    assert data["topic"] == "Later"
    assert len(transport.requests) == 3


def test_gives_up_after_max_retries(transport):
    transport.reply(httpx.Response(500, json={"message": "down"}))
    with pytest.raises(TransientError):
        run(zoom.get_meeting(TOKEN, "5"))
    assert len(transport.requests) == zoom.MAX_RETRIES + 1


def test_connection_errors_become_transient(transport):
    transport.reply(httpx.ConnectError("refused"))
    with pytest.raises(TransientError):
        run(zoom.list_users(TOKEN))
    assert len(transport.requests) == zoom.MAX_RETRIES + 1


@pytest.mark.parametrize("exc", [
    httpx.TooManyRedirects("redirect loop"),
    httpx.DecodingError("bad gzip"),
])
def test_non_transport_request_errors_are_typed(transport, exc):
    transport.reply(exc)
    with pytest.raises(ActionFailedError):
        run(zoom.get_meeting(TOKEN, "5"))
    assert len(transport.requests) == 1


def test_missing_token_is_unauthorized(transport):
    with pytest.raises(UnauthorizedError):
        run(zoom.get_user("", "me"))
    assert transport.requests == []


def test_recording_from_api(transport):
    transport.reply(httpx.Response(200, json={
        "id": 777777777, "topic": "Retro", "share_url": "https://zoom.us/rec/share/x",
        "recording_files": [{"id": "f1", "file_type": "MP4", "file_size": 10, "download_url": "https://d"}],
    }))
    recording = run(ZoomActionProvider().perform(Intent.DOWNLOAD_RECORDING, {"meeting_id": "777777777"}, TOKEN))
    assert recording.meeting_id == "777777777"
    assert recording.files[0].download_url == "https://d"
    assert transport.requests[0].url.path.endswith("/meetings/777777777/recordings")
