"""Service label extraction for bookings ("60m massage", "hair", ...)."""

from __future__ import annotations

import re

_MINUTES = re.compile(r"(?<![\d.])\b(\d{1,3})\s*(?:m|min|mins|minute|minutes)\b")
_HOURS = re.compile(r"(?<![\d.])\b(\d{1,2})\s*(?:h|hr|hrs|hour|hours)\b")

# Checked in order; the first match wins.
_CATEGORIES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("massage", re.compile(r"massage")),
    ("facial", re.compile(r"facial")),
    ("hair", re.compile(r"hair(?:cut| ?style| colou?r)?|blow[ -]?dry")),
    ("nails", re.compile(r"manicure|pedicure|nails?\b")),
    ("treatment", re.compile(r"\bspa\b|treatment")),
    ("appointment", re.compile(r"book|booking|appointm(?:e)?nt|reserve|schedule|slot")),
)


def extract_duration(text: str) -> str | None:
    """Normalise "90 mins" / "2h"-style durations to "<minutes>m"."""
    lowered = text.lower()
    match = _MINUTES.search(lowered)
    if match:
        return f"{int(match.group(1))}m"
    match = _HOURS.search(lowered)
    if match:
        return f"{int(match.group(1)) * 60}m"
    return None


def extract_service(text: str) -> str:
    lowered = text.lower()
    category = next(
        (name for name, pattern in _CATEGORIES if pattern.search(lowered)),
        None,
    )
    if category is None:
        return "general"

    duration = extract_duration(lowered)
    return f"{duration} {category}" if duration else category
