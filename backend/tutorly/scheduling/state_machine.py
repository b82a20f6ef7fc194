"""Booking lifecycle: pending -> confirmed -> completed, with cancellation.

``apply_transition`` checks the booking's current status first and the actor
second; only when both pass are ``status`` and ``updated_at`` written.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from tutorly.scheduling.errors import InvalidTransitionError, UnauthorizedError


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Role(str, Enum):
    STUDENT = "student"
    TUTOR = "tutor"
    ADMIN = "admin"


ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})

PARTY_STUDENT = "student"
PARTY_TUTOR = "tutor"


@dataclass(frozen=True)
class Transition:
    action: str
    sources: frozenset[BookingStatus]
    target: BookingStatus
    allowed_parties: frozenset[str]


CONFIRM = Transition(
    action="confirm",
    sources=frozenset({BookingStatus.PENDING}),
    target=BookingStatus.CONFIRMED,
    allowed_parties=frozenset({PARTY_TUTOR}),
)
CANCEL = Transition(
    action="cancel",
    sources=ACTIVE_STATUSES,
    target=BookingStatus.CANCELLED,
    allowed_parties=frozenset({PARTY_STUDENT, PARTY_TUTOR}),
)
COMPLETE = Transition(
    action="complete",
    sources=frozenset({BookingStatus.CONFIRMED}),
    target=BookingStatus.COMPLETED,
    allowed_parties=frozenset({PARTY_TUTOR}),
)

TRANSITIONS = {transition.action: transition for transition in (CONFIRM, CANCEL, COMPLETE)}


def current_status(booking: Any) -> BookingStatus:
    return BookingStatus(str(getattr(booking, "status", "") or "").strip().lower())


def party_of(booking: Any, actor_id: str) -> str | None:
    if actor_id and str(getattr(booking, "tutor_id", "")) == str(actor_id):
        return PARTY_TUTOR
    if actor_id and str(getattr(booking, "student_id", "")) == str(actor_id):
        return PARTY_STUDENT
    return None


def check_transition(booking: Any, transition: Transition, actor_id: str) -> None:
    status = current_status(booking)
    if status not in transition.sources:
        raise InvalidTransitionError(current_status=status.value, action=transition.action)

    party = party_of(booking, actor_id)
    if party is None or party not in transition.allowed_parties:
        raise UnauthorizedError(
            f"Only the booking's {' or '.join(sorted(transition.allowed_parties))} "
            f"can {transition.action} it."
        )


def apply_transition(booking: Any, transition: Transition, actor_id: str, now: datetime) -> Any:
    check_transition(booking, transition, actor_id)
    booking.status = transition.target.value
    booking.updated_at = now
    return booking
