from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from tutorly.db.models import Booking, Profile
from tutorly.scheduling.state_machine import BookingStatus, Role


def find_booking(db: Session, booking_id: str, for_update: bool = False) -> Booking | None:
    query = db.query(Booking).filter(Booking.id == booking_id)
    if for_update:
        query = query.with_for_update()
    for booking in query.all():
        if str(booking.id) == str(booking_id):
            return booking
    return None


def find_profile(db: Session, profile_id: str) -> Profile | None:
    for profile in db.query(Profile).filter(Profile.id == profile_id).all():
        if str(profile.id) == str(profile_id):
            return profile
    return None


def fetch_tutor_bookings(db: Session, tutor_id: str) -> list[Booking]:
    rows = (
        db.query(Booking)
        .filter(Booking.tutor_id == tutor_id)
        .filter(Booking.status != BookingStatus.CANCELLED.value)
        .all()
    )
    return [booking for booking in rows if str(booking.tutor_id) == str(tutor_id)]


def fetch_user_bookings(db: Session, user_id: str, role: Role) -> list[Booking]:
    if role == Role.TUTOR:
        rows = db.query(Booking).filter(Booking.tutor_id == user_id).all()
        return [booking for booking in rows if str(booking.tutor_id) == str(user_id)]
    rows = db.query(Booking).filter(Booking.student_id == user_id).all()
    return [booking for booking in rows if str(booking.student_id) == str(user_id)]


def serialize_booking(booking: Booking) -> dict[str, Any]:
    return {
        "booking_id": booking.id,
        "student_id": booking.student_id,
        "tutor_id": booking.tutor_id,
        "subject": booking.subject,
        "start_time": booking.start_time.isoformat(),
        "end_time": booking.end_time.isoformat(),
        "status": booking.status,
        "price": float(booking.price),
        "notes": booking.notes,
        "created_at": booking.created_at.isoformat() if booking.created_at else None,
        "updated_at": booking.updated_at.isoformat() if booking.updated_at else None,
    }
