"""Role-scoped booking views, derived fresh from the raw bookings on every read.

A confirmed session whose end time has passed is shown to its tutor as
completed without that status being written back; the explicit
``complete`` transition is still what persists it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

from tutorly.scheduling.intervals import ensure_aware, normalize_datetime
from tutorly.scheduling.state_machine import ACTIVE_STATUSES, BookingStatus, Role


@dataclass
class BookingBuckets:
    upcoming: list[Any] = field(default_factory=list)
    pending: list[Any] = field(default_factory=list)
    completed: list[Any] = field(default_factory=list)
    cancelled: list[Any] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "upcoming": len(self.upcoming),
            "pending": len(self.pending),
            "completed": len(self.completed),
            "cancelled": len(self.cancelled),
        }


def is_upcoming(booking: Any, now: datetime) -> bool:
    start = normalize_datetime(getattr(booking, "start_time", None))
    return _status(booking) in ACTIVE_STATUSES and start is not None and start > now


def is_elapsed_confirmed(booking: Any, now: datetime) -> bool:
    end = normalize_datetime(getattr(booking, "end_time", None))
    return _status(booking) == BookingStatus.CONFIRMED and end is not None and end < now


def project_bookings(bookings: Iterable[Any], role: Role | str, now: datetime) -> BookingBuckets:
    role = Role(role)
    now = ensure_aware(now)
    buckets = BookingBuckets()

    for booking in bookings:
        status = _status(booking)
        if is_upcoming(booking, now):
            buckets.upcoming.append(booking)
        if status == BookingStatus.CANCELLED:
            buckets.cancelled.append(booking)
        elif status == BookingStatus.COMPLETED:
            buckets.completed.append(booking)
        elif role == Role.TUTOR and is_elapsed_confirmed(booking, now):
            buckets.completed.append(booking)
        if role == Role.TUTOR and status == BookingStatus.PENDING:
            buckets.pending.append(booking)

    buckets.upcoming.sort(key=lambda booking: ensure_aware(booking.start_time))
    return buckets


def _status(booking: Any) -> BookingStatus | None:
    raw = str(getattr(booking, "status", "") or "").strip().lower()
    try:
        return BookingStatus(raw)
    except ValueError:
        return None
