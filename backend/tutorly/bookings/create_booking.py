from __future__ import annotations

import logging
import uuid
from datetime import datetime
from functools import partial
from typing import Any, Callable

from pydantic import BaseModel, Field, model_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tutorly.bookings.queries import fetch_tutor_bookings, find_profile
from tutorly.config import DEFAULT_SESSION_PRICE
from tutorly.db.models import Booking, Profile
from tutorly.scheduling.availability import AvailabilitySchedule, covers
from tutorly.scheduling.conflicts import find_open_start_times, has_conflict
from tutorly.scheduling.errors import (
    OutsideAvailabilityError,
    SlotUnavailableError,
    TutorNotFoundError,
    UnauthorizedError,
)
from tutorly.scheduling.intervals import ensure_aware, utc_now
from tutorly.scheduling.state_machine import BookingStatus, Role


OVERLAP_CONSTRAINT_NAME = "bookings_no_overlap_per_tutor"
logger = logging.getLogger("tutorly.bookings.create_booking")


class CreateBookingArgs(BaseModel):
    tutor_id: str = Field(min_length=1)
    start_time: datetime
    end_time: datetime
    subject: str = Field(min_length=1)
    price: float | None = Field(default=None, ge=0)
    notes: str | None = None

    @model_validator(mode="after")
    def validate_time_order(self) -> "CreateBookingArgs":
        if ensure_aware(self.end_time) <= ensure_aware(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


def parse_create_booking_args(raw_args: dict[str, Any]) -> CreateBookingArgs:
    return CreateBookingArgs.model_validate(raw_args)


def create_booking(
    db: Session,
    student_id: str,
    args: CreateBookingArgs,
    enforce_availability: bool = False,
    clock: Callable[[], datetime] = utc_now,
) -> Booking:
    if str(student_id) == str(args.tutor_id):
        raise UnauthorizedError("You cannot book a session with yourself.")

    student = find_profile(db, student_id)
    if student is None or str(student.role).lower() != Role.STUDENT.value:
        raise UnauthorizedError("Only students with a profile can book sessions.")

    tutor = find_profile(db, args.tutor_id)
    if tutor is None or str(tutor.role).lower() != Role.TUTOR.value:
        raise TutorNotFoundError()

    start = ensure_aware(args.start_time)
    end = ensure_aware(args.end_time)
    now = clock()

    is_allowed: Callable[[datetime, datetime], bool] | None = None
    if enforce_availability:
        schedule = AvailabilitySchedule.from_json(tutor.availability)
        is_allowed = partial(covers, schedule, timezone_name=tutor.timezone)

    existing = fetch_tutor_bookings(db, tutor.id)

    def alternatives() -> list[datetime]:
        return find_open_start_times(
            tutor_id=tutor.id,
            desired_start=start,
            duration=end - start,
            existing_bookings=existing,
            not_before=now,
            is_allowed=is_allowed,
        )

    if is_allowed is not None and not is_allowed(start, end):
        raise OutsideAvailabilityError(available_start_times=alternatives())

    if has_conflict(tutor.id, start, end, existing):
        logger.info(
            "Rejected booking for tutor_id=%s start=%s end=%s: slot unavailable",
            tutor.id,
            start.isoformat(),
            end.isoformat(),
        )
        raise SlotUnavailableError(available_start_times=alternatives())

    booking = Booking(
        id=str(uuid.uuid4()),
        student_id=str(student_id),
        tutor_id=tutor.id,
        subject=args.subject.strip(),
        start_time=start,
        end_time=end,
        status=BookingStatus.PENDING.value,
        price=_resolve_price(args, tutor),
        notes=args.notes,
        created_at=now,
        updated_at=now,
    )
    db.add(booking)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if not _is_overlap_violation(exc):
            raise
        logger.warning(
            "Concurrent booking won the slot for tutor_id=%s start=%s",
            tutor.id,
            start.isoformat(),
        )
        raise SlotUnavailableError() from exc

    logger.info(
        "Created booking_id=%s student_id=%s tutor_id=%s status=%s",
        booking.id,
        booking.student_id,
        booking.tutor_id,
        booking.status,
    )
    return booking


def _resolve_price(args: CreateBookingArgs, tutor: Profile) -> float:
    if args.price is not None:
        return float(args.price)
    if tutor.hourly_rate is not None:
        return float(tutor.hourly_rate)
    return DEFAULT_SESSION_PRICE


def _is_overlap_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    diag = getattr(orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", "") or ""
    if constraint_name:
        return constraint_name == OVERLAP_CONSTRAINT_NAME
    message = str(orig if orig is not None else exc).lower()
    return OVERLAP_CONSTRAINT_NAME in message or "exclusion constraint" in message
