# blooddrive/routes/appointments/router.py

from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from blooddrive.database import get_db
from blooddrive.models.all_models import AppointmentStatus
from blooddrive.schemas.appointment import (
    AppointmentCreate, AppointmentTransition, AppointmentResponse, BookingResponse
)
from blooddrive.services import appointments
from blooddrive.services.errors import DonationError
from blooddrive.utils import CallerRole, http_error, require_drive_staff

router = APIRouter(prefix="/appointments", tags=["Appointments"])


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    appointment_data: AppointmentCreate,
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_drive_staff)
):
    """
    Book a donor into a drive event slot.
    Fails when the drive is full or already past; an ineligible donor is
    refused unless eligibility is requested as advisory only.
    """
    try:
        outcome = appointments.create_appointment(
            db,
            donor_id=appointment_data.donor_id,
            event_id=appointment_data.event_id,
            time_slot=appointment_data.time_slot,
            enforce_eligibility=appointment_data.enforce_eligibility,
        )
    except DonationError as e:
        raise http_error(e)

    return BookingResponse(
        appointment=AppointmentResponse.model_validate(outcome.appointment),
        donor_eligible=outcome.eligibility.eligible,
        next_eligible_date=outcome.eligibility.next_eligible_date,
    )


@router.get("", response_model=List[AppointmentResponse])
def list_appointments(
    event_id: Optional[UUID] = Query(None),
    donor_id: Optional[UUID] = Query(None),
    status: Optional[AppointmentStatus] = Query(None),
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_drive_staff)
):
    return appointments.list_appointments(db, event_id=event_id, donor_id=donor_id, status=status)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: UUID,
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_drive_staff)
):
    try:
        return appointments.get_appointment(db, appointment_id)
    except DonationError as e:
        raise http_error(e)


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
def transition_appointment(
    appointment_id: UUID,
    transition: AppointmentTransition,
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_drive_staff)
):
    """
    Move an appointment to a new status.
    Completing requires the collected volume and creates the blood unit.
    """
    try:
        return appointments.transition_appointment(
            db,
            appointment_id,
            transition.status,
            volume=transition.volume,
        )
    except DonationError as e:
        raise http_error(e)
