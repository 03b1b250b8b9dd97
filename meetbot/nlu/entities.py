"""
Entity extractor — pulls email, date, time and duration out of free text.

Extraction order matters: relative-date keywords run last and overwrite
any explicit date found earlier in the same message. Within each entity
type the formats are tried in a fixed order and the first valid one wins.

Canonical forms:
  email     as written
  date      YYYY-MM-DD
  time      HH:MM (24-hour)
  duration  whole minutes, as a string
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from ..core.config import Settings
from . import timezones

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractorConfig:
    max_email_length: int = 254
    two_digit_year_threshold: int = 50
    min_duration_minutes: int = 1
    max_duration_minutes: int = 1440

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExtractorConfig":
        return cls(
            max_email_length=settings.max_email_length,
            two_digit_year_threshold=settings.two_digit_year_threshold,
            min_duration_minutes=settings.min_duration_minutes,
            max_duration_minutes=settings.max_duration_minutes,
        )


# ── Patterns ─────────────────────────────────────────────────────────

EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")

DATE_ISO_PATTERN = re.compile(r"\b(\d{4})-(0[1-9]|1[0-2])-(0[1-9]|[12][0-9]|3[01])\b")
DATE_MONTH_NAME_PATTERN = re.compile(
    r"\b(january|february|march|april|may|june|july|august|september|october|november|december|"
    r"jan|feb|mar|apr|jun|jul|aug|sept|sep|oct|nov|dec)\s+(\d{1,2})(?:st|nd|rd|th)?\b",
    re.IGNORECASE,
)
DATE_SLASH_PATTERN = re.compile(
    r"\b(0?[1-9]|1[0-2])/(0?[1-9]|[12][0-9]|3[01])/(\d{4}|\d{2})\b"
)

# 24-hour needs a two-digit hour and no meridiem; "9:30" is left alone on purpose.
TIME_24H_PATTERN = re.compile(r"\b([01][0-9]|2[0-3]):([0-5][0-9])\b(?!\s*[ap]\.?m\b)", re.IGNORECASE)
TIME_12H_PATTERN = re.compile(r"\b(1[0-2]|0?[1-9]):([0-5][0-9])\s*([ap])\.?m\b", re.IGNORECASE)
TIME_SIMPLE_PATTERN = re.compile(r"\b(1[0-2]|0?[1-9])\s*([ap])\.?m\b", re.IGNORECASE)

DURATION_PATTERN = re.compile(
    r"(?<![\d.])\b(\d+)\s*(minutes?|mins?|hours?|hrs?)\b", re.IGNORECASE,
)

CANONICAL_TIME = re.compile(r"^([01][0-9]|2[0-3]):([0-5][0-9])$")

_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_TODAY = re.compile(r"\btoday\b")
_TOMORROW = re.compile(r"\btomorrow\b")
_NEXT_WEEKDAY = re.compile(r"\bnext\s+(" + "|".join(_WEEKDAYS) + r")\b")
_NEXT_WEEK = re.compile(r"\bnext\s+week\b")


def next_weekday(from_date: date, weekday: int) -> date:
    """Nearest future occurrence of weekday (Mon=0). Never from_date itself."""
    days_ahead = (weekday - from_date.weekday()) % 7 or 7
    return from_date + timedelta(days=days_ahead)


class EntityExtractor:
    """Stateless; one instance can serve every session."""

    def __init__(self, config: Optional[ExtractorConfig] = None):
        self.config = config or ExtractorConfig()

    # ── Extraction ───────────────────────────────────────────────────

    def extract(self, text: Optional[str], today: Optional[date] = None) -> dict[str, str]:
        """Returns {email?, date?, time?, duration?}. Empty dict when nothing is found."""
        entities: dict[str, str] = {}
        if not text or not text.strip():
            return entities

        today = today or timezones.today()

        email = self._extract_email(text)
        if email:
            entities["email"] = email

        found_date = self._extract_date(text, today)
        if found_date:
            entities["date"] = found_date

        found_time = self._extract_time(text)
        if found_time:
            entities["time"] = found_time

        duration = self._extract_duration(text)
        if duration:
            entities["duration"] = duration

        relative = self._extract_relative_date(text.lower(), today)
        if relative:
            entities["date"] = relative

        if entities:
            logger.debug("Extracted entities: %s", sorted(entities))
        return entities

    def _extract_email(self, text: str) -> Optional[str]:
        m = EMAIL_PATTERN.search(text)
        if not m:
            return None
        candidate = m.group(0)
        if len(candidate) > self.config.max_email_length or candidate.count("@") != 1:
            logger.debug("Rejected email candidate (length=%d)", len(candidate))
            return None
        return candidate

    def _extract_date(self, text: str, today: date) -> Optional[str]:
        m = DATE_ISO_PATTERN.search(text)
        if m:
            try:
                return date(int(m.group(1)), int(m.group(2)), int(m.group(3))).isoformat()
            except ValueError:
                logger.debug("Invalid ISO date: %s", m.group(0))

        m = DATE_MONTH_NAME_PATTERN.search(text)
        if m:
            resolved = self._resolve_month_day(m.group(1), int(m.group(2)), today)
            if resolved:
                return resolved.isoformat()

        m = DATE_SLASH_PATTERN.search(text)
        if m:
            year_text = m.group(3)
            year = int(year_text)
            if len(year_text) == 2:
                year += 2000 if year < self.config.two_digit_year_threshold else 1900
            try:
                return date(year, int(m.group(1)), int(m.group(2))).isoformat()
            except ValueError:
                logger.debug("Invalid slash date: %s", m.group(0))

        return None

    @staticmethod
    def _resolve_month_day(month_name: str, day: int, today: date) -> Optional[date]:
        """Current year, or next year if that date has already passed."""
        month = _MONTHS[month_name.lower()[:3]]
        for year in (today.year, today.year + 1):
            try:
                candidate = date(year, month, day)
            except ValueError:
                continue
            if candidate >= today:
                return candidate
        return None

    @staticmethod
    def _extract_time(text: str) -> Optional[str]:
        m = TIME_24H_PATTERN.search(text)
        if m:
            return f"{int(m.group(1)):02d}:{m.group(2)}"

        m = TIME_12H_PATTERN.search(text)
        if m:
            return _to_24h(int(m.group(1)), int(m.group(2)), m.group(3))

        m = TIME_SIMPLE_PATTERN.search(text)
        if m:
            return _to_24h(int(m.group(1)), 0, m.group(2))

        return None

    @staticmethod
    def _extract_duration(text: str) -> Optional[str]:
        m = DURATION_PATTERN.search(text)
        if not m:
            return None
        amount = int(m.group(1))
        unit = m.group(2).lower()
        if unit.startswith(("hour", "hr")):
            amount *= 60
        return str(amount)

    @staticmethod
    def _extract_relative_date(lowered: str, today: date) -> Optional[str]:
        if _TODAY.search(lowered):
            return today.isoformat()
        if _TOMORROW.search(lowered):
            return (today + timedelta(days=1)).isoformat()
        m = _NEXT_WEEKDAY.search(lowered)
        if m:
            return next_weekday(today, _WEEKDAYS.index(m.group(1))).isoformat()
        if _NEXT_WEEK.search(lowered):
            return (today + timedelta(weeks=1)).isoformat()
        return None

    # ── Validation ───────────────────────────────────────────────────

    def validate(self, entities: Optional[dict[str, str]], today: Optional[date] = None) -> bool:
        """Advisory check. An empty or missing entity map is valid."""
        return not self.invalid_entities(entities, today)

    def invalid_entities(
        self, entities: Optional[dict[str, str]], today: Optional[date] = None
    ) -> list[str]:
        """Keys whose values fail validation, in date/time/duration order."""
        if not entities:
            return []
        today = today or timezones.today()
        invalid = []

        if "date" in entities and not self._valid_date(entities["date"], today):
            invalid.append("date")
        if "time" in entities and not CANONICAL_TIME.match(entities["time"] or ""):
            invalid.append("time")
        if "duration" in entities and not self._valid_duration(entities["duration"]):
            invalid.append("duration")

        if invalid:
            logger.info("Invalid entities: %s", invalid)
        return invalid

    @staticmethod
    def _valid_date(value: str, today: date) -> bool:
        try:
            return date.fromisoformat(value) >= today
        except (TypeError, ValueError):
            return False

    def _valid_duration(self, value: str) -> bool:
        try:
            minutes = int(value)
        except (TypeError, ValueError):
            return False
        return self.config.min_duration_minutes <= minutes <= self.config.max_duration_minutes


def _to_24h(hour: int, minute: int, meridiem: str) -> str:
    hour = hour % 12
    if meridiem.lower() == "p":
        hour += 12
    return f"{hour:02d}:{minute:02d}"
