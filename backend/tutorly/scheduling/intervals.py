"""Half-open interval helpers shared by availability validation and conflict checks.

Intervals are ``[start, end)``: touching endpoints never overlap, so a lesson
ending at 10:00 and another starting at 10:00 are both legal. Values may be
aware datetimes or zero-padded ``"HH:MM"`` strings, which order correctly
under plain string comparison.
"""

from __future__ import annotations

from datetime import datetime, time, timezone
from typing import Any, TypeVar


T = TypeVar("T", datetime, str, time)


def overlaps(a_start: T, a_end: T, b_start: T, b_end: T) -> bool:
    return a_start < b_end and b_start < a_end


def contains(outer_start: T, outer_end: T, inner_start: T, inner_end: T) -> bool:
    return outer_start <= inner_start and inner_end <= outer_end


def ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def normalize_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return ensure_aware(value)
    return None


def parse_hhmm(value: str) -> time:
    hours, minutes = value.split(":")
    return time(hour=int(hours), minute=int(minutes))


def format_hhmm(value: time | datetime) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
