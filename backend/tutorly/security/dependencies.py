import logging
import os
from dataclasses import dataclass

from fastapi import Header, HTTPException, status

from tutorly.config import is_dev_env
from tutorly.scheduling.state_machine import Role

logger = logging.getLogger("tutorly.security")


@dataclass(frozen=True)
class Actor:
    """Identity fact handed over by the upstream auth gateway."""

    id: str
    role: Role


def require_actor(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    x_user_role: str | None = Header(default=None, alias="X-User-Role"),
) -> Actor:
    user_id = (x_user_id or "").strip()
    raw_role = (x_user_role or "").strip().lower()
    if not user_id or not raw_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error_code": "MISSING_IDENTITY",
                "human_message": "Missing user identity.",
            },
        )

    try:
        role = Role(raw_role)
    except ValueError:
        logger.warning("Rejected request with unknown role=%s user_id=%s", raw_role, user_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error_code": "INVALID_IDENTITY",
                "human_message": "Unknown user role.",
            },
        )
    return Actor(id=user_id, role=role)


def require_admin_api_key(
    x_admin_key: str | None = Header(default=None, alias="X-Admin-Key"),
) -> None:
    configured_key = os.getenv("ADMIN_API_KEY", "")

    if not configured_key:
        if is_dev_env():
            logger.warning(
                "ADMIN_API_KEY is not set in dev; allowing admin request without key."
            )
            return
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error_code": "ADMIN_AUTH_NOT_CONFIGURED",
                "human_message": "Admin API key is not configured.",
            },
        )

    if x_admin_key != configured_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error_code": "INVALID_ADMIN_API_KEY",
                "human_message": "Invalid admin API key.",
            },
        )
