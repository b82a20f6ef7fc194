import json
import logging
import time
import uuid
from typing import Any, Callable

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from tutorly.admin.profiles import (
    CreateProfileArgs,
    DuplicateEmailError,
    UpdateProfileArgs,
    create_profile,
    list_profiles,
    serialize_profile,
    update_profile,
)
from tutorly.bookings.create_booking import create_booking, parse_create_booking_args
from tutorly.bookings.list_bookings import get_booking_details, list_bookings, serialize_buckets
from tutorly.bookings.manage_booking import cancel_booking, complete_booking, confirm_booking
from tutorly.bookings.queries import serialize_booking
from tutorly.config import AVAILABILITY_POLICY_ENFORCE, get_availability_policy
from tutorly.db.session import SessionLocal
from tutorly.scheduling.availability import validate as validate_availability
from tutorly.scheduling.errors import SchedulingError, UnauthorizedError
from tutorly.scheduling.intervals import utc_now
from tutorly.scheduling.state_machine import Role
from tutorly.security.dependencies import Actor, require_actor, require_admin_api_key
from tutorly.tutors.availability import get_availability, parse_availability, update_availability


def configure_logging() -> logging.Logger:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    return logging.getLogger("tutorly.backend")


logger = configure_logging()
app = FastAPI(title="Tutorly Booking Backend")


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    start_time = time.perf_counter()

    response = await call_next(request)

    duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
    response.headers["x-request-id"] = request_id

    logger.info(
        json.dumps(
            {
                "event": "http_request",
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            }
        )
    )
    return response


def map_validation_error(error: ValidationError) -> dict[str, str]:
    return {
        "error_code": "INVALID_ARGS",
        "human_message": f"Invalid args: {error.errors()[0]['msg']}",
    }


def _invalid_args_response(error: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"ok": False, **map_validation_error(error)})


def _scheduling_error_response(error: SchedulingError) -> JSONResponse:
    return JSONResponse(status_code=error.http_status, content=error.to_payload())


def _system_down_response(human_message: str) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "ok": False,
            "error_code": "SYSTEM_DOWN",
            "human_message": human_message,
        },
    )


@app.get("/health")
async def health():
    return JSONResponse(content={"ok": True})


@app.post("/v1/bookings")
async def create_booking_endpoint(
    payload: dict[str, Any],
    actor: Actor = Depends(require_actor),
) -> JSONResponse:
    if actor.role != Role.STUDENT:
        return _scheduling_error_response(UnauthorizedError("Only students can book sessions."))

    try:
        args = parse_create_booking_args(payload)
    except ValidationError as exc:
        return _invalid_args_response(exc)

    enforce_availability = get_availability_policy() == AVAILABILITY_POLICY_ENFORCE

    db = SessionLocal()
    try:
        booking = create_booking(
            db=db,
            student_id=actor.id,
            args=args,
            enforce_availability=enforce_availability,
            clock=utc_now,
        )
        return JSONResponse(content={"ok": True, "data": {"booking": serialize_booking(booking)}})
    except SchedulingError as exc:
        return _scheduling_error_response(exc)
    except Exception:
        logger.exception("Create booking failed for student_id=%s", actor.id)
        return _system_down_response("Temporary issue creating booking.")
    finally:
        db.close()


@app.get("/v1/bookings")
async def list_bookings_endpoint(actor: Actor = Depends(require_actor)) -> JSONResponse:
    db = SessionLocal()
    try:
        buckets = list_bookings(db=db, user_id=actor.id, role=actor.role, clock=utc_now)
        return JSONResponse(content={"ok": True, "data": serialize_buckets(buckets)})
    except SchedulingError as exc:
        return _scheduling_error_response(exc)
    except Exception:
        logger.exception("List bookings failed for user_id=%s", actor.id)
        return _system_down_response("Temporary issue loading bookings.")
    finally:
        db.close()


@app.get("/v1/bookings/{booking_id}")
async def booking_details_endpoint(
    booking_id: str,
    actor: Actor = Depends(require_actor),
) -> JSONResponse:
    db = SessionLocal()
    try:
        details = get_booking_details(db=db, booking_id=booking_id, actor_id=actor.id)
        return JSONResponse(content={"ok": True, "data": {"booking": details}})
    except SchedulingError as exc:
        return _scheduling_error_response(exc)
    except Exception:
        logger.exception("Load booking failed for booking_id=%s", booking_id)
        return _system_down_response("Temporary issue loading booking details.")
    finally:
        db.close()


def _run_booking_command(command: Callable[..., Any], booking_id: str, actor: Actor, verb: str) -> JSONResponse:
    db = SessionLocal()
    try:
        booking = command(db=db, booking_id=booking_id, actor_id=actor.id, clock=utc_now)
        return JSONResponse(content={"ok": True, "data": {"booking": serialize_booking(booking)}})
    except SchedulingError as exc:
        return _scheduling_error_response(exc)
    except Exception:
        db.rollback()
        logger.exception("Booking %s failed for booking_id=%s", verb, booking_id)
        return _system_down_response(f"Temporary issue trying to {verb} booking.")
    finally:
        db.close()


@app.post("/v1/bookings/{booking_id}/confirm")
async def confirm_booking_endpoint(booking_id: str, actor: Actor = Depends(require_actor)) -> JSONResponse:
    return _run_booking_command(confirm_booking, booking_id, actor, "confirm")


@app.post("/v1/bookings/{booking_id}/cancel")
async def cancel_booking_endpoint(booking_id: str, actor: Actor = Depends(require_actor)) -> JSONResponse:
    return _run_booking_command(cancel_booking, booking_id, actor, "cancel")


@app.post("/v1/bookings/{booking_id}/complete")
async def complete_booking_endpoint(booking_id: str, actor: Actor = Depends(require_actor)) -> JSONResponse:
    return _run_booking_command(complete_booking, booking_id, actor, "complete")


@app.get("/v1/tutors/{tutor_id}/availability")
async def get_availability_endpoint(tutor_id: str) -> JSONResponse:
    db = SessionLocal()
    try:
        schedule = get_availability(db=db, tutor_id=tutor_id)
        return JSONResponse(content={"ok": True, "data": {"availability": schedule.to_json()}})
    except SchedulingError as exc:
        return _scheduling_error_response(exc)
    except Exception:
        logger.exception("Load availability failed for tutor_id=%s", tutor_id)
        return _system_down_response("Temporary issue loading availability.")
    finally:
        db.close()


@app.put("/v1/tutors/{tutor_id}/availability")
async def update_availability_endpoint(
    tutor_id: str,
    payload: dict[str, Any],
    actor: Actor = Depends(require_actor),
) -> JSONResponse:
    try:
        schedule = parse_availability(payload)
    except ValidationError as exc:
        return _invalid_args_response(exc)

    db = SessionLocal()
    try:
        saved = update_availability(
            db=db,
            tutor_id=tutor_id,
            actor_id=actor.id,
            schedule=schedule,
            clock=utc_now,
        )
        return JSONResponse(content={"ok": True, "data": {"availability": saved.to_json()}})
    except SchedulingError as exc:
        return _scheduling_error_response(exc)
    except Exception:
        db.rollback()
        logger.exception("Availability update failed for tutor_id=%s", tutor_id)
        return _system_down_response("Temporary issue updating availability.")
    finally:
        db.close()


@app.post("/v1/availability/validate")
async def validate_availability_endpoint(payload: dict[str, Any]) -> JSONResponse:
    try:
        schedule = parse_availability(payload)
    except ValidationError as exc:
        return _invalid_args_response(exc)

    try:
        validate_availability(schedule)
    except SchedulingError as exc:
        return _scheduling_error_response(exc)
    return JSONResponse(content={"ok": True, "data": {"availability": schedule.to_json()}})


@app.post("/v1/admin/profiles", dependencies=[Depends(require_admin_api_key)])
async def admin_create_profile(payload: dict[str, Any]) -> JSONResponse:
    try:
        args = CreateProfileArgs.model_validate(payload)
    except ValidationError as exc:
        return _invalid_args_response(exc)

    db = SessionLocal()
    try:
        profile = create_profile(db=db, args=args, now=utc_now())
        return JSONResponse(content={"ok": True, "data": {"profile": serialize_profile(profile)}})
    except SchedulingError as exc:
        return _scheduling_error_response(exc)
    except DuplicateEmailError as exc:
        return JSONResponse(
            status_code=409,
            content={
                "ok": False,
                "error_code": "DUPLICATE_EMAIL",
                "human_message": str(exc),
            },
        )
    except Exception:
        logger.exception("Create profile failed")
        return _system_down_response("Temporary issue creating profile.")
    finally:
        db.close()


@app.get("/v1/admin/profiles", dependencies=[Depends(require_admin_api_key)])
async def admin_list_profiles(role: str | None = None) -> JSONResponse:
    db = SessionLocal()
    try:
        profiles = list_profiles(db=db, role=role)
        return JSONResponse(
            content={
                "ok": True,
                "data": {"profiles": [serialize_profile(item) for item in profiles]},
            }
        )
    except Exception:
        logger.exception("List profiles failed for role=%s", role)
        return _system_down_response("Temporary issue loading profiles.")
    finally:
        db.close()


@app.patch("/v1/admin/profiles/{profile_id}", dependencies=[Depends(require_admin_api_key)])
async def admin_update_profile(profile_id: str, payload: dict[str, Any]) -> JSONResponse:
    try:
        args = UpdateProfileArgs.model_validate(payload)
    except ValidationError as exc:
        return _invalid_args_response(exc)

    db = SessionLocal()
    try:
        profile = update_profile(db=db, profile_id=profile_id, args=args, now=utc_now())
        if profile is None:
            return JSONResponse(
                status_code=404,
                content={
                    "ok": False,
                    "error_code": "PROFILE_NOT_FOUND",
                    "human_message": "Profile not found.",
                },
            )
        return JSONResponse(content={"ok": True, "data": {"profile": serialize_profile(profile)}})
    except DuplicateEmailError as exc:
        return JSONResponse(
            status_code=409,
            content={
                "ok": False,
                "error_code": "DUPLICATE_EMAIL",
                "human_message": str(exc),
            },
        )
    except Exception:
        logger.exception("Update profile failed for profile_id=%s", profile_id)
        return _system_down_response("Temporary issue updating profile.")
    finally:
        db.close()
