from tutorly.scheduling.availability import (
    WEEKDAYS,
    AvailabilitySchedule,
    TimeSlot,
    add_slot,
    covers,
    remove_slot,
    update_slot,
    validate,
)
from tutorly.scheduling.conflicts import find_conflicts, find_open_start_times, has_conflict
from tutorly.scheduling.errors import (
    BookingNotFoundError,
    InvalidSlotOrderError,
    InvalidTransitionError,
    NotFoundError,
    OutsideAvailabilityError,
    OverlappingSlotsError,
    SchedulingError,
    SlotUnavailableError,
    TutorNotFoundError,
    UnauthorizedError,
    ValidationFailedError,
)
from tutorly.scheduling.intervals import overlaps
from tutorly.scheduling.projections import BookingBuckets, project_bookings
from tutorly.scheduling.state_machine import (
    CANCEL,
    COMPLETE,
    CONFIRM,
    BookingStatus,
    Role,
    apply_transition,
)

__all__ = [
    "WEEKDAYS",
    "AvailabilitySchedule",
    "TimeSlot",
    "add_slot",
    "covers",
    "remove_slot",
    "update_slot",
    "validate",
    "find_conflicts",
    "find_open_start_times",
    "has_conflict",
    "BookingNotFoundError",
    "InvalidSlotOrderError",
    "InvalidTransitionError",
    "NotFoundError",
    "OutsideAvailabilityError",
    "OverlappingSlotsError",
    "SchedulingError",
    "SlotUnavailableError",
    "TutorNotFoundError",
    "UnauthorizedError",
    "ValidationFailedError",
    "overlaps",
    "BookingBuckets",
    "project_bookings",
    "CANCEL",
    "COMPLETE",
    "CONFIRM",
    "BookingStatus",
    "Role",
    "apply_transition",
]
