from __future__ import annotations

from datetime import datetime
from typing import Any


class SchedulingError(Exception):
    """Base class for every rejection the booking core can report.

    Each subclass carries a stable ``error_code`` and a ``human_message`` the
    UI can show as-is; ``http_status`` is what the HTTP layer answers with.
    """

    error_code = "SCHEDULING_ERROR"
    human_message = "The request could not be completed."
    http_status = 400

    def __init__(self, human_message: str | None = None) -> None:
        if human_message is not None:
            self.human_message = human_message
        super().__init__(self.human_message)

    def to_payload(self) -> dict[str, Any]:
        return {
            "ok": False,
            "error_code": self.error_code,
            "human_message": self.human_message,
        }


class SlotUnavailableError(SchedulingError):
    error_code = "SLOT_UNAVAILABLE"
    human_message = "The tutor is not available during this time."
    http_status = 409

    def __init__(
        self,
        human_message: str | None = None,
        available_start_times: list[datetime] | None = None,
    ) -> None:
        super().__init__(human_message)
        self.available_start_times = list(available_start_times or [])

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["data"] = {
            "available_start_times": [value.isoformat() for value in self.available_start_times],
        }
        return payload


class OutsideAvailabilityError(SlotUnavailableError):
    error_code = "OUTSIDE_AVAILABILITY"
    human_message = "The requested time is outside the tutor's availability."


class InvalidTransitionError(SchedulingError):
    error_code = "INVALID_TRANSITION"
    http_status = 409

    def __init__(self, current_status: str, action: str) -> None:
        self.current_status = current_status
        self.action = action
        super().__init__(f"Cannot {action} a booking that is {current_status}.")


class UnauthorizedError(SchedulingError):
    error_code = "UNAUTHORIZED"
    human_message = "You are not allowed to perform this action."
    http_status = 403


class ValidationFailedError(SchedulingError):
    error_code = "VALIDATION_FAILED"
    human_message = "Availability schedule is invalid."
    http_status = 422

    def __init__(self, weekday: str, human_message: str | None = None) -> None:
        self.weekday = weekday
        super().__init__(human_message)

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["data"] = {"weekday": self.weekday}
        return payload


class InvalidSlotOrderError(ValidationFailedError):
    error_code = "INVALID_SLOT_ORDER"

    def __init__(self, weekday: str) -> None:
        super().__init__(weekday, f"End time must be after start time on {weekday}.")


class OverlappingSlotsError(ValidationFailedError):
    error_code = "OVERLAPPING_SLOTS"

    def __init__(self, weekday: str) -> None:
        super().__init__(weekday, f"You have overlapping time slots on {weekday}.")


class NotFoundError(SchedulingError, LookupError):
    error_code = "NOT_FOUND"
    human_message = "Not found."
    http_status = 404


class BookingNotFoundError(NotFoundError):
    error_code = "BOOKING_NOT_FOUND"
    human_message = "Booking not found."


class TutorNotFoundError(NotFoundError):
    error_code = "TUTOR_NOT_FOUND"
    human_message = "Tutor not found."
