from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tutorly.bookings.queries import find_profile
from tutorly.db.models import Profile
from tutorly.scheduling.availability import AvailabilitySchedule, validate
from tutorly.scheduling.intervals import utc_now


ProfileRole = Literal["student", "tutor", "admin"]


class DuplicateEmailError(ValueError):
    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__("email already exists")


class CreateProfileArgs(BaseModel):
    id: str | None = Field(default=None, min_length=1)
    full_name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    role: ProfileRole
    subjects: list[str] = Field(default_factory=list)
    hourly_rate: float | None = Field(default=None, ge=0)
    timezone: str = "UTC"
    availability: AvailabilitySchedule = Field(default_factory=AvailabilitySchedule)


class UpdateProfileArgs(BaseModel):
    """Partial profile edit; availability is owned by the tutor and not patchable here."""

    model_config = ConfigDict(extra="forbid")

    full_name: str | None = None
    email: str | None = None
    role: ProfileRole | None = None
    subjects: list[str] | None = None
    hourly_rate: float | None = Field(default=None, ge=0)
    timezone: str | None = None


def create_profile(db: Session, args: CreateProfileArgs, now: datetime | None = None) -> Profile:
    email = _normalize_email(args.email)
    if _email_owner(db, email) is not None:
        raise DuplicateEmailError(email)
    validate(args.availability)

    timestamp = now or utc_now()
    profile = Profile(
        id=args.id or str(uuid.uuid4()),
        full_name=args.full_name.strip(),
        email=email,
        role=args.role,
        subjects=list(args.subjects),
        hourly_rate=args.hourly_rate,
        timezone=args.timezone,
        availability=args.availability.to_json(),
        created_at=timestamp,
        updated_at=timestamp,
    )
    db.add(profile)
    _commit_profile(db, email)
    return profile


def list_profiles(db: Session, role: str | None = None) -> list[Profile]:
    query = db.query(Profile)
    if role:
        query = query.filter(Profile.role == role.lower())
    profiles = query.all()
    if role:
        profiles = [item for item in profiles if str(item.role).lower() == role.lower()]
    return sorted(profiles, key=lambda p: (p.full_name or "", str(p.id)))


def update_profile(
    db: Session,
    profile_id: str,
    args: UpdateProfileArgs,
    now: datetime | None = None,
) -> Profile | None:
    profile = find_profile(db, profile_id)
    if profile is None:
        return None

    changes = args.model_dump(exclude_unset=True)
    if changes.get("email"):
        changes["email"] = _normalize_email(changes["email"])
        owner = _email_owner(db, changes["email"])
        if owner is not None and str(owner.id) != str(profile.id):
            raise DuplicateEmailError(changes["email"])

    for field, value in changes.items():
        setattr(profile, field, value)
    profile.updated_at = now or utc_now()
    _commit_profile(db, profile.email)
    return profile


def serialize_profile(profile: Profile) -> dict[str, Any]:
    return {
        "id": profile.id,
        "full_name": profile.full_name,
        "email": profile.email,
        "role": profile.role,
        "subjects": list(profile.subjects or []),
        "hourly_rate": float(profile.hourly_rate) if profile.hourly_rate is not None else None,
        "timezone": profile.timezone,
        "availability": profile.availability or {},
        "created_at": profile.created_at.isoformat() if profile.created_at else None,
        "updated_at": profile.updated_at.isoformat() if profile.updated_at else None,
    }


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _email_owner(db: Session, email: str) -> Profile | None:
    if not email:
        return None
    for profile in db.query(Profile).filter(Profile.email == email).all():
        if _normalize_email(profile.email) == email:
            return profile
    return None


def _commit_profile(db: Session, email: str) -> None:
    # The unique index on profiles.email catches a concurrent duplicate.
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if "email" in str(exc.orig if exc.orig is not None else exc).lower():
            raise DuplicateEmailError(email) from exc
        raise
