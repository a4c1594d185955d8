# blooddrive/routes/reports/router.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from blooddrive.database import get_db
from blooddrive.models.all_models import BloodType
from blooddrive.schemas.reports import DonorSummary, EligibilityResponse, EventBookingSummary, InventoryItem
from blooddrive.services import eligibility, reporting
from blooddrive.services.errors import DonationError
from blooddrive.utils import (
    CallerRole, http_error, require_admin, require_donor_view, require_drive_staff,
    require_eligibility_view, require_field_staff
)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/donors", response_model=List[DonorSummary])
def list_donor_summaries(
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_admin)
):
    return reporting.list_donor_summaries(db)


@router.get("/donors/{donor_id}", response_model=DonorSummary)
def get_donor_summary(
    donor_id: UUID,
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_donor_view)
):
    try:
        return reporting.get_donor_summary(db, donor_id)
    except DonationError as e:
        raise http_error(e)


@router.get("/donors/{donor_id}/eligibility", response_model=EligibilityResponse)
def check_eligibility(
    donor_id: UUID,
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_eligibility_view)
):
    try:
        result = eligibility.check_eligibility(db, donor_id)
    except DonationError as e:
        raise http_error(e)
    return EligibilityResponse(
        donor_id=donor_id,
        eligible=result.eligible,
        next_eligible_date=result.next_eligible_date,
    )


@router.get("/events", response_model=List[EventBookingSummary])
def list_event_booking_summaries(
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_drive_staff)
):
    return reporting.list_event_booking_summaries(db)


@router.get("/events/{event_id}", response_model=EventBookingSummary)
def get_event_booking_summary(
    event_id: UUID,
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_drive_staff)
):
    try:
        return reporting.get_event_booking_summary(db, event_id)
    except DonationError as e:
        raise http_error(e)


@router.get("/inventory", response_model=List[InventoryItem])
def list_available_inventory(
    blood_type: Optional[BloodType] = Query(None),
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_field_staff)
):
    return reporting.list_available_inventory(db, blood_type=blood_type)
