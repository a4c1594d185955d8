# blooddrive/utils/auth.py
import enum
from typing import Optional

from fastapi import Depends, Header, HTTPException, status


class CallerRole(str, enum.Enum):
    DONOR = "donor"
    FIELD_STAFF = "field_staff"
    DRIVE_STAFF = "drive_staff"
    ADMIN = "admin"


async def get_caller_role(x_caller_role: Optional[str] = Header(None)) -> CallerRole:
    """Resolve the caller's role from the ``X-Caller-Role`` header set by the gateway."""
    if not x_caller_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Caller role missing"
        )
    try:
        return CallerRole(x_caller_role.strip().lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown caller role: {x_caller_role}"
        )


def require_roles(allowed_roles: list):
    """
    Dependency to require one of the given roles; admins always pass.

    Usage:
    @router.get("/events")
    async def list_events(role: CallerRole = Depends(require_roles([CallerRole.DRIVE_STAFF]))):
        ...
    """
    allowed = set(allowed_roles) | {CallerRole.ADMIN}

    def role_checker(role: CallerRole = Depends(get_caller_role)) -> CallerRole:
        if role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions. Required roles: " + ", ".join(sorted(r.value for r in allowed))
            )
        return role
    return role_checker


# Grants per area of the program
require_admin = require_roles([])
require_drive_staff = require_roles([CallerRole.DRIVE_STAFF])
require_field_staff = require_roles([CallerRole.FIELD_STAFF])
require_donor_view = require_roles([CallerRole.DONOR])
require_eligibility_view = require_roles([CallerRole.DONOR, CallerRole.DRIVE_STAFF])
