"""
Resolve "meeting 2", "the second one", "#2" or a raw Zoom ID to an external ID.

Listing meetings stores meeting_1..meeting_N in the session context; listing
recordings stores recording_1..recording_N. A reference to position N reads
exactly that key. A 9-11 digit number is taken as a literal Zoom ID.
"""

import re
from dataclasses import dataclass
from typing import Optional

from ..models.session import Session

LITERAL_ID = re.compile(r"(?<![\d-])\b(\d{9,11})\b(?![\d-])")
BARE_POSITION = re.compile(r"^\s*#?\s*(\d{1,3})\s*\.?\s*$")

_ORDINALS = {"first": 1, "second": 2, "third": 3, "fourth": 4, "fifth": 5,
             "sixth": 6, "seventh": 7, "eighth": 8, "ninth": 9, "tenth": 10}


def _positional(noun: str) -> re.Pattern:
    return re.compile(
        rf"\b(?:{noun}|number|no\.?)\s*#?\s*(\d{{1,3}})\b(?![:/.\-]\d)|#(\d{{1,3}})\b",
        re.IGNORECASE,
    )


def _ordinal(noun: str) -> re.Pattern:
    return re.compile(
        rf"\b({'|'.join(_ORDINALS)})\s+(?:one|{noun})\b",
        re.IGNORECASE,
    )


_PATTERNS = {
    noun: (_positional(noun), _ordinal(noun))
    for noun in ("meeting", "recording")
}


@dataclass(frozen=True)
class Reference:
    """A reference found in a message. external_id is None if the position is unknown."""

    external_id: Optional[str]
    position: Optional[int] = None

    @property
    def resolved(self) -> bool:
        return self.external_id is not None


def find_reference(
    message: str,
    session: Session,
    noun: str = "meeting",
    allow_bare: bool = False,
) -> Optional[Reference]:
    """
    None when the message does not reference anything.
    allow_bare accepts a message that is only a number ("2"), for follow-ups.
    """
    m = LITERAL_ID.search(message)
    if m:
        return Reference(external_id=m.group(1))

    positional, ordinal = _PATTERNS[noun]
    position = None

    m = positional.search(message)
    if m:
        position = int(m.group(1) or m.group(2))
    else:
        m = ordinal.search(message)
        if m:
            position = _ORDINALS[m.group(1).lower()]
        elif allow_bare:
            m = BARE_POSITION.match(message)
            if m:
                position = int(m.group(1))

    if position is None:
        return None
    return Reference(external_id=session.get_value(f"{noun}_{position}"), position=position)


def remember_listing(session: Session, noun: str, external_ids: list[str]) -> None:
    """Replace all stored positions for noun with a fresh 1-based numbering."""
    session.remove_prefix(f"{noun}_")
    for i, external_id in enumerate(external_ids, start=1):
        session.set_value(f"{noun}_{i}", external_id)
