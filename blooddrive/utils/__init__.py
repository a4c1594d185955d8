# blooddrive/utils/__init__.py

from fastapi import HTTPException

from blooddrive.services.errors import Conflict, DonationError
from blooddrive.utils.auth import (
    CallerRole,
    get_caller_role,
    require_roles,
    require_admin,
    require_drive_staff,
    require_field_staff,
    require_donor_view,
    require_eligibility_view,
)


def http_error(error: DonationError) -> HTTPException:
    """Translate a domain error into the HTTP answer for it."""
    headers = None
    if isinstance(error, Conflict) and error.retry_after:
        headers = {"Retry-After": str(max(1, round(error.retry_after)))}
    return HTTPException(status_code=error.status_code, detail=error.detail, headers=headers)
