from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable, Iterable

from tutorly.scheduling.intervals import ensure_aware, normalize_datetime, overlaps
from tutorly.scheduling.state_machine import BookingStatus


SLOT_INCREMENT_MINUTES = 30
DEFAULT_FLEXIBILITY_MINUTES = 120
DEFAULT_MAX_ALTERNATIVES = 3


def find_conflicts(
    tutor_id: str,
    candidate_start: datetime,
    candidate_end: datetime,
    existing_bookings: Iterable[Any],
) -> list[Any]:
    start = ensure_aware(candidate_start)
    end = ensure_aware(candidate_end)

    conflicts = []
    for booking in existing_bookings:
        if str(getattr(booking, "tutor_id", "")) != str(tutor_id):
            continue
        booking_status = str(getattr(booking, "status", "") or "").lower()
        if booking_status == BookingStatus.CANCELLED.value:
            continue

        booking_start = normalize_datetime(getattr(booking, "start_time", None))
        booking_end = normalize_datetime(getattr(booking, "end_time", None))
        if booking_start is None or booking_end is None:
            continue

        if overlaps(start, end, booking_start, booking_end):
            conflicts.append(booking)
    return conflicts


def has_conflict(
    tutor_id: str,
    candidate_start: datetime,
    candidate_end: datetime,
    existing_bookings: Iterable[Any],
) -> bool:
    return bool(find_conflicts(tutor_id, candidate_start, candidate_end, existing_bookings))


def find_open_start_times(
    tutor_id: str,
    desired_start: datetime,
    duration: timedelta,
    existing_bookings: Iterable[Any],
    not_before: datetime | None = None,
    is_allowed: Callable[[datetime, datetime], bool] | None = None,
    flexibility_minutes: int = DEFAULT_FLEXIBILITY_MINUTES,
    max_results: int = DEFAULT_MAX_ALTERNATIVES,
) -> list[datetime]:
    """Nearest conflict-free start times around ``desired_start``.

    Candidates sit on a 30 minute grid within ``flexibility_minutes`` either
    side and are ranked by distance from the requested start. ``is_allowed``
    lets the caller add its own rule, e.g. the tutor's declared availability.
    """
    desired_start = ensure_aware(desired_start)
    bookings = list(existing_bookings)
    window_start = desired_start - timedelta(minutes=flexibility_minutes)
    window_end = desired_start + timedelta(minutes=flexibility_minutes)

    candidates = [
        candidate
        for candidate in _iter_grid(window_start, window_end)
        if candidate != desired_start
    ]
    candidates.sort(key=lambda dt: (abs((dt - desired_start).total_seconds()), dt))

    available: list[datetime] = []
    for candidate in candidates:
        if not_before is not None and candidate <= ensure_aware(not_before):
            continue
        candidate_end = candidate + duration
        if is_allowed is not None and not is_allowed(candidate, candidate_end):
            continue
        if has_conflict(tutor_id, candidate, candidate_end, bookings):
            continue
        available.append(candidate)
        if len(available) >= max_results:
            break
    return available


def _iter_grid(start: datetime, end: datetime):
    cursor = _floor_to_increment(start)
    while cursor <= end:
        yield cursor
        cursor += timedelta(minutes=SLOT_INCREMENT_MINUTES)


def _floor_to_increment(dt: datetime) -> datetime:
    minute = (dt.minute // SLOT_INCREMENT_MINUTES) * SLOT_INCREMENT_MINUTES
    return dt.replace(minute=minute, second=0, microsecond=0)
