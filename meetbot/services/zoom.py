"""
Zoom REST API v2 client.

Features:
  - Retry with exponential backoff + jitter (handles 429, 500, 502, 503, 504)
  - Honours Retry-After on rate limits
  - Reusable client (connection pooling)
  - Failures mapped to typed errors: 401/403 → Unauthorized, 404 → NotFound,
    retryable status / timeout / connection error → Transient, rest → ActionFailed

Docs: https://developers.zoom.us/docs/api/
"""

import asyncio
import logging
import random
from typing import Any, Optional

import httpx

from ..core.config import get_settings
from ..core.errors import (
    ActionFailedError,
    NotFoundError,
    TransientError,
    UnauthorizedError,
)
from ..core.redaction import mask_token

logger = logging.getLogger(__name__)

# ── Reusable client (connection pool) ────────────────────────────────

_client: Optional[httpx.AsyncClient] = None


def _get_client() -> httpx.AsyncClient:
    global _client
    if _client is None or _client.is_closed:
        _client = httpx.AsyncClient(
            timeout=httpx.Timeout(connect=10, read=30, write=10, pool=10),
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
        )
    return _client


async def close_client():
    """Close the shared HTTP client. Call on app shutdown."""
    global _client
    if _client and not _client.is_closed:
        await _client.aclose()
        _client = None


def _headers(access_token: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {access_token}",
        "Content-Type": "application/json",
    }


def _base_url() -> str:
    return get_settings().zoom_api_base_url.rstrip("/")


# ── Retry logic ──────────────────────────────────────────────────────

RETRYABLE_STATUS = {429, 500, 502, 503, 504}
MAX_RETRIES = 3
BASE_DELAY = 1.0
MAX_DELAY = 16.0
JITTER = 1.0


def _backoff(attempt: int) -> float:
    return min(MAX_DELAY, BASE_DELAY * (2 ** attempt) + random.uniform(0, JITTER))


def _retry_after(resp: httpx.Response, attempt: int) -> float:
    header = resp.headers.get("retry-after")
    if header:
        try:
            return min(MAX_DELAY, float(header))
        except ValueError:
            pass
    return _backoff(attempt)


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict):
        return str(body.get("message") or body.get("reason") or body)[:200]
    return str(body)[:200]


def _raise_for_status(resp: httpx.Response) -> None:
    status = resp.status_code
    if status < 400:
        return
    detail = _error_detail(resp)
    logger.error("Zoom API error %d: %s", status, detail)
    message = f"Zoom API {status}: {detail}"
    if status in (401, 403):
        raise UnauthorizedError(message, status_code=status)
    if status == 404:
        raise NotFoundError(message, status_code=status)
    if status in RETRYABLE_STATUS:
        raise TransientError(message, status_code=status)
    raise ActionFailedError(message, status_code=status)


async def _retry_request(method: str, path: str, access_token: str, **kwargs) -> httpx.Response:
    """Execute request with exponential backoff + jitter."""
    if not access_token:
        raise UnauthorizedError("No Zoom access token available")

    client = _get_client()
    url = f"{_base_url()}{path}"
    last_exc: Optional[Exception] = None

    for attempt in range(MAX_RETRIES + 1):
        try:
            resp = await client.request(method, url, headers=_headers(access_token), **kwargs)
        except httpx.TransportError as e:
            last_exc = e
            if attempt < MAX_RETRIES:
                delay = _backoff(attempt)
                logger.warning(
                    "Zoom %s %s failed: %s (attempt %d/%d) — retrying in %.1fs",
                    method, path, type(e).__name__, attempt + 1, MAX_RETRIES + 1, delay,
                )
                await asyncio.sleep(delay)
            continue
        except httpx.RequestError as e:
            # Redirect loops and undecodable bodies: not retried
            logger.error("Zoom %s %s failed: %s", method, path, type(e).__name__)
            raise ActionFailedError(f"Zoom request failed: {type(e).__name__}: {e}") from e

        if resp.status_code not in RETRYABLE_STATUS or attempt == MAX_RETRIES:
            _raise_for_status(resp)
            return resp

        delay = _retry_after(resp, attempt)
        logger.warning(
            "Zoom %d on %s %s (attempt %d/%d) — retrying in %.1fs",
            resp.status_code, method, path, attempt + 1, MAX_RETRIES + 1, delay,
        )
        await asyncio.sleep(delay)

    logger.error(
        "Zoom %s %s gave up after %d attempts (token=%s)",
        method, path, MAX_RETRIES + 1, mask_token(access_token),
    )
    raise TransientError(f"Zoom request failed after retries: {last_exc}")


def _json(resp: httpx.Response) -> Any:
    if resp.status_code == 204 or not resp.content:
        return {}
    return resp.json()


# ── Meetings ─────────────────────────────────────────────────────────

async def create_meeting(access_token: str, payload: dict, user_id: str = "me") -> dict:
    """POST /users/{userId}/meetings. Returns the created meeting object."""
    logger.info("Zoom: creating meeting for user=%s start=%s", user_id, payload.get("start_time"))
    resp = await _retry_request("POST", f"/users/{user_id}/meetings", access_token, json=payload)
    return _json(resp)


async def list_meetings(
    access_token: str,
    meeting_type: str = "scheduled",
    page_size: int = 10,
    user_id: str = "me",
) -> list[dict]:
    """GET /users/{userId}/meetings. First page only."""
    resp = await _retry_request(
        "GET", f"/users/{user_id}/meetings", access_token,
        params={"type": meeting_type, "page_size": page_size, "page_number": 1},
    )
    return _json(resp).get("meetings", [])


async def get_meeting(access_token: str, meeting_id: str) -> dict:
    resp = await _retry_request("GET", f"/meetings/{meeting_id}", access_token)
    return _json(resp)


async def update_meeting(access_token: str, meeting_id: str, changes: dict) -> None:
    """PATCH /meetings/{meetingId}. Zoom answers 204 with no body."""
    logger.info("Zoom: updating meeting %s fields=%s", meeting_id, sorted(changes))
    await _retry_request("PATCH", f"/meetings/{meeting_id}", access_token, json=changes)


async def delete_meeting(access_token: str, meeting_id: str, notify: bool = True) -> None:
    logger.info("Zoom: deleting meeting %s", meeting_id)
    await _retry_request(
        "DELETE", f"/meetings/{meeting_id}", access_token,
        params={"schedule_for_reminder": str(notify).lower()},
    )


# ── Recordings ───────────────────────────────────────────────────────

async def list_recordings(
    access_token: str,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    page_size: int = 10,
    user_id: str = "me",
) -> list[dict]:
    """GET /users/{userId}/recordings. Zoom defaults to the last day without from/to."""
    params: dict[str, Any] = {"page_size": page_size}
    if from_date:
        params["from"] = from_date
    if to_date:
        params["to"] = to_date
    resp = await _retry_request("GET", f"/users/{user_id}/recordings", access_token, params=params)
    return _json(resp).get("meetings", [])


async def get_meeting_recordings(access_token: str, meeting_id: str) -> dict:
    resp = await _retry_request("GET", f"/meetings/{meeting_id}/recordings", access_token)
    return _json(resp)


# ── Users ────────────────────────────────────────────────────────────

async def get_user(access_token: str, user_id: str = "me") -> dict:
    """GET /users/{userId}. userId may be an ID, an email, or "me"."""
    resp = await _retry_request("GET", f"/users/{user_id}", access_token)
    return _json(resp)


async def list_users(access_token: str, status: str = "active", page_size: int = 30) -> list[dict]:
    resp = await _retry_request(
        "GET", "/users", access_token,
        params={"status": status, "page_size": page_size},
    )
    return _json(resp).get("users", [])


async def create_user(
    access_token: str,
    email: str,
    first_name: str = "",
    last_name: str = "",
    user_type: int = 1,
) -> dict:
    """POST /users with action=create. Zoom emails the invitee to activate."""
    payload = {
        "action": "create",
        "user_info": {
            "email": email,
            "type": user_type,
            "first_name": first_name,
            "last_name": last_name,
        },
    }
    resp = await _retry_request("POST", "/users", access_token, json=payload)
    return _json(resp)
