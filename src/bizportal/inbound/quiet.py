"""Quiet-hours gate evaluated before any inbound processing."""

from __future__ import annotations

import re
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

from bizportal.config import QuietHoursConfig

logger = structlog.get_logger(__name__)

_HHMM = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_hhmm(value: str) -> tuple[int, int]:
    """Parse "HH:MM", clamping out-of-range fields; malformed input is 00:00."""
    match = _HHMM.match(value.strip())
    if not match:
        logger.warning("quiet_hours.bad_time", value=value)
        return 0, 0
    hours = min(23, max(0, int(match.group(1))))
    minutes = min(59, max(0, int(match.group(2))))
    return hours, minutes


def resolve_timezone(name: str) -> tzinfo:
    """Return the named zone, falling back to UTC for unknown names."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("quiet_hours.bad_timezone", timezone=name)
        return timezone.utc


def _minutes(hours_minutes: tuple[int, int]) -> int:
    hours, minutes = hours_minutes
    return hours * 60 + minutes


def is_within_quiet_hours(now: datetime, config: QuietHoursConfig) -> bool:
    """Whether `now` falls in the configured window, in the window's zone.

    Naive datetimes are taken to be UTC. A window with equal start and end
    is never quiet.
    """

    if not config.enabled:
        return False

    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local = now.astimezone(resolve_timezone(config.timezone))
    current = local.hour * 60 + local.minute

    start = _minutes(parse_hhmm(config.start))
    end = _minutes(parse_hhmm(config.end))

    if start == end:
        return False
    if start < end:
        return start <= current < end
    # Overnight window, e.g. 20:00-08:00.
    return current >= start or current < end


def build_quiet_hours_message(config: QuietHoursConfig) -> str:
    return (
        f"We're currently observing quiet hours ({config.start}-{config.end} "
        f"{config.timezone}). Please check in later."
    )
