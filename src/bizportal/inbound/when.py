"""Best-effort parsing of booking times such as "tomorrow after 3pm".

Anything it does not recognise falls through to
`DEFAULT_HOUR`:`DEFAULT_MINUTE` on the resolved day.
"""

from __future__ import annotations

import re
from datetime import datetime, time, timedelta

DEFAULT_HOUR = 10
DEFAULT_MINUTE = 30
# "after 3pm" means some time after the hour; book the half hour.
AFTER_MINUTE = 30

_TOMORROW = re.compile(r"tomorrow", re.IGNORECASE)
_AFTER = re.compile(r"\bafter\s*(\d{1,2})\s*(am|pm)?\b", re.IGNORECASE)
_AT = re.compile(r"\b(?:at|around|by)\s*(\d{1,2})(?::(\d{2}))?\s*(am|pm)?\b", re.IGNORECASE)


def _to_24h(hour: int, meridiem: str, *, midnight: bool = False) -> int:
    if meridiem == "pm" and hour < 12:
        return hour + 12
    if midnight and meridiem == "am" and hour == 12:
        return 0
    if not meridiem and hour <= 7:
        # "after 3" / "at 5" without am/pm means the afternoon.
        return hour + 12
    return hour


def _resolve_clock(text: str) -> tuple[int, int]:
    match = _AFTER.search(text)
    if match:
        hour = _to_24h(int(match.group(1)), (match.group(2) or "").lower())
        minute = AFTER_MINUTE
    else:
        match = _AT.search(text)
        if not match:
            return DEFAULT_HOUR, DEFAULT_MINUTE
        # Only an explicit clock time reads "12am" as midnight.
        hour = _to_24h(int(match.group(1)), (match.group(3) or "").lower(), midnight=True)
        minute = int(match.group(2)) if match.group(2) else 0

    if hour > 23 or minute > 59:
        return DEFAULT_HOUR, DEFAULT_MINUTE
    return hour, minute


def parse_when(text: str, now: datetime | None = None) -> datetime:
    """Extract a booking start time from free text.

    The calendar day is `now` (or tomorrow when the text says so); the time
    of day comes from "after N", then "at/around/by N[:MM]", else 10:30. The
    tzinfo of `now` carries over to the result.
    """

    base = now or datetime.now()
    day = base.date()
    if _TOMORROW.search(text):
        day += timedelta(days=1)

    hour, minute = _resolve_clock(text)
    return datetime.combine(day, time(hour, minute), tzinfo=base.tzinfo)
