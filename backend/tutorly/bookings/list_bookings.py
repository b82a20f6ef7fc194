from __future__ import annotations

from datetime import datetime
from typing import Any, Callable

from sqlalchemy.orm import Session

from tutorly.bookings.queries import fetch_user_bookings, find_booking, find_profile, serialize_booking
from tutorly.db.models import Profile
from tutorly.scheduling.errors import BookingNotFoundError, UnauthorizedError
from tutorly.scheduling.intervals import utc_now
from tutorly.scheduling.projections import BookingBuckets, project_bookings
from tutorly.scheduling.state_machine import Role, party_of


def list_bookings(
    db: Session,
    user_id: str,
    role: Role | str,
    clock: Callable[[], datetime] = utc_now,
) -> BookingBuckets:
    scoped_role = _parse_role(role)
    bookings = fetch_user_bookings(db, user_id, scoped_role)
    return project_bookings(bookings, scoped_role, clock())


def serialize_buckets(buckets: BookingBuckets) -> dict[str, Any]:
    return {
        "upcoming": [serialize_booking(item) for item in buckets.upcoming],
        "pending": [serialize_booking(item) for item in buckets.pending],
        "completed": [serialize_booking(item) for item in buckets.completed],
        "cancelled": [serialize_booking(item) for item in buckets.cancelled],
        "counts": buckets.counts(),
    }


def get_booking_details(db: Session, booking_id: str, actor_id: str) -> dict[str, Any]:
    booking = find_booking(db, booking_id)
    if booking is None:
        raise BookingNotFoundError()
    if party_of(booking, actor_id) is None:
        raise UnauthorizedError("Only the booking's student or tutor can view it.")

    details = serialize_booking(booking)
    details["student"] = _serialize_party(find_profile(db, booking.student_id))
    details["tutor"] = _serialize_party(find_profile(db, booking.tutor_id))
    return details


def _parse_role(role: Role | str) -> Role:
    try:
        parsed = Role(str(getattr(role, "value", role)).strip().lower())
    except ValueError as exc:
        raise UnauthorizedError("Bookings are listed for students and tutors only.") from exc
    if parsed not in (Role.STUDENT, Role.TUTOR):
        raise UnauthorizedError("Bookings are listed for students and tutors only.")
    return parsed


def _serialize_party(profile: Profile | None) -> dict[str, Any] | None:
    if profile is None:
        return None
    return {
        "id": profile.id,
        "full_name": profile.full_name,
        "role": profile.role,
    }
