"""
Time-zone conversion between a user's wall clock and UTC.

An unknown, blank or invalid zone ID is treated as "no zone known" and
falls back to UTC. Nothing here raises for a bad zone.
"""

import logging
from datetime import date, datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

UTC_ISO_FORMAT = "%Y-%m-%dT%H:%M:%S"


def resolve_zone(zone_id: Optional[str]):
    """ZoneInfo for zone_id, or UTC when it is missing or unknown."""
    if not zone_id or not zone_id.strip():
        return timezone.utc
    try:
        return ZoneInfo(zone_id.strip())
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        # "America" names a tzdata directory; an overlong key fails at open()
        logger.warning("Unknown timezone %r, using UTC: %s", zone_id, e)
        return timezone.utc


def is_valid_zone(zone_id: Optional[str]) -> bool:
    """True only for a zone ID that loads as a real IANA zone."""
    return bool(zone_id and zone_id.strip()) and resolve_zone(zone_id) is not timezone.utc


def today(zone_id: Optional[str] = None, now: Optional[datetime] = None) -> date:
    """Current calendar date in the given zone."""
    instant = now or datetime.now(timezone.utc)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(resolve_zone(zone_id)).date()


def _parse_local(date_str: str, time_str: str) -> datetime:
    d = date.fromisoformat(date_str.strip())
    t = time.fromisoformat(time_str.strip())
    return datetime.combine(d, t)


def local_to_utc(date_str: str, time_str: str, zone_id: Optional[str] = None) -> str:
    """
    "2024-01-15" + "14:00" in America/New_York → "2024-01-15T19:00:00".
    Rendered without a zone suffix. Raises ValueError on a malformed date or time.
    """
    local = _parse_local(date_str, time_str).replace(tzinfo=resolve_zone(zone_id))
    return local.astimezone(timezone.utc).strftime(UTC_ISO_FORMAT)


def _human(dt: datetime) -> str:
    hour = dt.hour % 12 or 12
    return (
        f"{dt.strftime('%B')} {dt.day}, {dt.year} at "
        f"{hour}:{dt.strftime('%M')} {dt.strftime('%p')} {dt.tzname() or 'UTC'}"
    )


def _parse_instant(value: str) -> datetime:
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    instant = datetime.fromisoformat(text)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant


def utc_to_local(instant: str, zone_id: Optional[str] = None) -> str:
    """
    "2024-01-15T19:00:00Z" in America/New_York → "January 15, 2024 at 2:00 PM EST".
    Returns the input unchanged if it cannot be parsed.
    """
    try:
        return _human(_parse_instant(instant).astimezone(resolve_zone(zone_id)))
    except (TypeError, ValueError, AttributeError) as e:
        logger.warning("Could not format instant %r: %s", instant, e)
        return instant


def format_local_datetime(date_str: str, time_str: str, zone_id: Optional[str] = None) -> str:
    """Human rendering of already-local components, for confirmations."""
    try:
        local = _parse_local(date_str, time_str).replace(tzinfo=resolve_zone(zone_id))
    except (TypeError, ValueError) as e:
        logger.warning("Could not format %r %r: %s", date_str, time_str, e)
        return f"{date_str} at {time_str}"
    return _human(local)

