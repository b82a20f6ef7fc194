from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

from sqlalchemy.orm import Session

from tutorly.bookings.queries import find_profile
from tutorly.db.models import Profile
from tutorly.scheduling.availability import AvailabilitySchedule, validate
from tutorly.scheduling.errors import TutorNotFoundError, UnauthorizedError
from tutorly.scheduling.intervals import utc_now
from tutorly.scheduling.state_machine import Role

logger = logging.getLogger("tutorly.tutors.availability")


def parse_availability(raw_schedule: dict[str, Any] | None) -> AvailabilitySchedule:
    return AvailabilitySchedule.from_json(raw_schedule)


def get_availability(db: Session, tutor_id: str) -> AvailabilitySchedule:
    tutor = _find_tutor(db, tutor_id)
    return AvailabilitySchedule.from_json(tutor.availability)


def update_availability(
    db: Session,
    tutor_id: str,
    actor_id: str,
    schedule: AvailabilitySchedule,
    clock: Callable[[], datetime] = utc_now,
) -> AvailabilitySchedule:
    if str(actor_id) != str(tutor_id):
        raise UnauthorizedError("Only the tutor can change their availability.")

    tutor = _find_tutor(db, tutor_id)
    validate(schedule)

    tutor.availability = schedule.to_json()
    tutor.updated_at = clock()
    db.commit()
    logger.info(
        "Replaced availability for tutor_id=%s weekdays=%s",
        tutor.id,
        ",".join(tutor.availability) or "none",
    )
    return schedule


def _find_tutor(db: Session, tutor_id: str) -> Profile:
    tutor = find_profile(db, tutor_id)
    if tutor is None or str(tutor.role).lower() != Role.TUTOR.value:
        raise TutorNotFoundError()
    return tutor
