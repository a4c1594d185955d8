# blooddrive/services/errors.py
"""
Domain errors raised by the lifecycle services.

Each error carries the HTTP status the API layer answers with, so routers can
translate any ``DonationError`` into an ``HTTPException`` without a lookup table.
"""
from datetime import date
from typing import Optional

from fastapi import status


class DonationError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(DonationError):
    """Malformed input or out-of-range value; raised before any write."""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class NotFound(DonationError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class InvalidTransition(DonationError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, entity: str, current, requested):
        super().__init__(
            f"{entity} cannot move from {_label(current)} to {_label(requested)}"
        )
        self.current = current
        self.requested = requested


class DonorIneligible(DonationError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, unlock_date: date, donor_id=None):
        who = f"Donor {donor_id}" if donor_id else "Donor"
        super().__init__(f"{who} is not eligible to donate until {unlock_date.isoformat()}")
        self.unlock_date = unlock_date
        self.donor_id = donor_id


class CapacityExceeded(DonationError):
    status_code = status.HTTP_409_CONFLICT


class EventInPast(DonationError):
    status_code = status.HTTP_400_BAD_REQUEST


class AlreadyTested(DonationError):
    status_code = status.HTTP_409_CONFLICT


class AlreadyDispositioned(DonationError):
    status_code = status.HTTP_409_CONFLICT


class Conflict(DonationError):
    """Concurrent modification; the caller may retry."""
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, detail: str, retry_after: Optional[float] = None):
        super().__init__(detail)
        self.retry_after = retry_after


def _label(value):
    return getattr(value, "value", value)
