from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from tutorly.bookings.queries import find_booking
from tutorly.db.models import Booking
from tutorly.scheduling.errors import BookingNotFoundError, SchedulingError
from tutorly.scheduling.intervals import utc_now
from tutorly.scheduling.state_machine import (
    CANCEL,
    COMPLETE,
    CONFIRM,
    Transition,
    apply_transition,
)

logger = logging.getLogger("tutorly.bookings.manage_booking")


def confirm_booking(
    db: Session,
    booking_id: str,
    actor_id: str,
    clock: Callable[[], datetime] = utc_now,
) -> Booking:
    return _run_transition(db, booking_id, actor_id, CONFIRM, clock)


def cancel_booking(
    db: Session,
    booking_id: str,
    actor_id: str,
    clock: Callable[[], datetime] = utc_now,
) -> Booking:
    return _run_transition(db, booking_id, actor_id, CANCEL, clock)


def complete_booking(
    db: Session,
    booking_id: str,
    actor_id: str,
    clock: Callable[[], datetime] = utc_now,
) -> Booking:
    return _run_transition(db, booking_id, actor_id, COMPLETE, clock)


def _run_transition(
    db: Session,
    booking_id: str,
    actor_id: str,
    transition: Transition,
    clock: Callable[[], datetime],
) -> Booking:
    booking = find_booking(db, booking_id, for_update=True)
    if booking is None:
        db.rollback()
        raise BookingNotFoundError()

    previous_status = booking.status
    try:
        apply_transition(booking, transition, actor_id, clock())
    except SchedulingError as exc:
        db.rollback()
        logger.info(
            "Rejected %s for booking_id=%s actor_id=%s: %s",
            transition.action,
            booking_id,
            actor_id,
            exc.error_code,
        )
        raise

    db.commit()
    logger.info(
        "Booking booking_id=%s moved %s -> %s by actor_id=%s",
        booking.id,
        previous_status,
        booking.status,
        actor_id,
    )
    return booking
