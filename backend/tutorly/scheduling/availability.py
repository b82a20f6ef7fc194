"""A tutor's recurring weekly availability.

The schedule is a fixed record of the seven weekdays, each holding an ordered
tuple of ``TimeSlot`` values. Editing helpers return new schedules and never
validate; call ``validate`` explicitly before persisting.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field

from tutorly.scheduling.errors import InvalidSlotOrderError, OverlappingSlotsError
from tutorly.scheduling.intervals import contains, ensure_aware, overlaps, parse_hhmm


WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)
HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class TimeSlot(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    start: str = Field(pattern=HHMM_PATTERN)
    end: str = Field(pattern=HHMM_PATTERN)


class AvailabilitySchedule(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    monday: tuple[TimeSlot, ...] = ()
    tuesday: tuple[TimeSlot, ...] = ()
    wednesday: tuple[TimeSlot, ...] = ()
    thursday: tuple[TimeSlot, ...] = ()
    friday: tuple[TimeSlot, ...] = ()
    saturday: tuple[TimeSlot, ...] = ()
    sunday: tuple[TimeSlot, ...] = ()

    @classmethod
    def from_json(cls, raw: dict[str, Any] | None) -> "AvailabilitySchedule":
        return cls.model_validate(raw or {})

    def slots_for(self, weekday: str) -> tuple[TimeSlot, ...]:
        return getattr(self, _require_weekday(weekday))

    def to_json(self) -> dict[str, list[dict[str, str]]]:
        """Persisted shape: weekdays without slots are left out."""
        return {
            weekday: [slot.model_dump() for slot in self.slots_for(weekday)]
            for weekday in WEEKDAYS
            if self.slots_for(weekday)
        }


def validate(schedule: AvailabilitySchedule) -> None:
    """Raise on the first invalid weekday, checked monday through sunday.

    Within a weekday every slot must start before it ends
    (``InvalidSlotOrderError``); then, sorted by start, no two neighbours may
    overlap (``OverlappingSlotsError``). Back-to-back slots are fine.
    """
    for weekday in WEEKDAYS:
        slots = schedule.slots_for(weekday)
        for slot in slots:
            if slot.start >= slot.end:
                raise InvalidSlotOrderError(weekday)

        ordered = sorted(slots, key=lambda slot: slot.start)
        for current, following in zip(ordered, ordered[1:]):
            if overlaps(current.start, current.end, following.start, following.end):
                raise OverlappingSlotsError(weekday)


def add_slot(schedule: AvailabilitySchedule, weekday: str, slot: TimeSlot) -> AvailabilitySchedule:
    weekday = _require_weekday(weekday)
    return schedule.model_copy(update={weekday: (*schedule.slots_for(weekday), slot)})


def remove_slot(schedule: AvailabilitySchedule, weekday: str, index: int) -> AvailabilitySchedule:
    weekday = _require_weekday(weekday)
    slots = list(schedule.slots_for(weekday))
    if not 0 <= index < len(slots):
        raise IndexError(f"No slot {index} on {weekday}")
    del slots[index]
    return schedule.model_copy(update={weekday: tuple(slots)})


def update_slot(
    schedule: AvailabilitySchedule,
    weekday: str,
    index: int,
    start: str | None = None,
    end: str | None = None,
) -> AvailabilitySchedule:
    weekday = _require_weekday(weekday)
    slots = list(schedule.slots_for(weekday))
    if not 0 <= index < len(slots):
        raise IndexError(f"No slot {index} on {weekday}")
    current = slots[index]
    slots[index] = TimeSlot(
        start=start if start is not None else current.start,
        end=end if end is not None else current.end,
    )
    return schedule.model_copy(update={weekday: tuple(slots)})


def covers(
    schedule: AvailabilitySchedule,
    start: datetime,
    end: datetime,
    timezone_name: str | None,
) -> bool:
    """True if ``[start, end)`` sits inside one declared slot of its local weekday."""
    tzinfo = _safe_zoneinfo(timezone_name)
    local_start = ensure_aware(start).astimezone(tzinfo)
    local_end = ensure_aware(end).astimezone(tzinfo)
    if local_start.date() != local_end.date():
        return False

    weekday = WEEKDAYS[local_start.weekday()]
    for slot in schedule.slots_for(weekday):
        if contains(
            parse_hhmm(slot.start),
            parse_hhmm(slot.end),
            local_start.time(),
            local_end.time(),
        ):
            return True
    return False


def _require_weekday(weekday: str) -> str:
    normalized = (weekday or "").strip().lower()
    if normalized not in WEEKDAYS:
        raise ValueError(f"Unknown weekday: {weekday!r}")
    return normalized


def _safe_zoneinfo(name: str | None) -> ZoneInfo:
    try:
        return ZoneInfo(name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")
