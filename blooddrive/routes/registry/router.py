# blooddrive/routes/registry/router.py
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from blooddrive.database import get_db
from blooddrive.models.all_models import BloodType, StaffAssignment
from blooddrive.schemas.registry import (
    DonorCreate, DonorResponse,
    StaffCreate, StaffResponse,
    DriveEventCreate, DriveEventResponse
)
from blooddrive.services import registry
from blooddrive.services.errors import DonationError
from blooddrive.utils import CallerRole, http_error, require_admin, require_donor_view, require_drive_staff

router = APIRouter(tags=["Registry"])


# ---- Donors ----
@router.post("/donors", response_model=DonorResponse, status_code=status.HTTP_201_CREATED)
def create_donor(
    donor_data: DonorCreate,
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_admin)
):
    try:
        return registry.create_donor(db, **donor_data.model_dump())
    except DonationError as e:
        raise http_error(e)


@router.get("/donors", response_model=List[DonorResponse])
def list_donors(
    blood_type: Optional[BloodType] = Query(None),
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_admin)
):
    return registry.list_donors(db, blood_type=blood_type)


@router.get("/donors/{donor_id}", response_model=DonorResponse)
def get_donor(
    donor_id: UUID,
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_donor_view)
):
    try:
        return registry.get_donor(db, donor_id)
    except DonationError as e:
        raise http_error(e)


# ---- Staff ----
@router.post("/staff", response_model=StaffResponse, status_code=status.HTTP_201_CREATED)
def create_staff(
    staff_data: StaffCreate,
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_admin)
):
    try:
        return registry.create_staff(db, **staff_data.model_dump())
    except DonationError as e:
        raise http_error(e)


@router.get("/staff", response_model=List[StaffResponse])
def list_staff(
    assignment: Optional[StaffAssignment] = Query(None),
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_admin)
):
    return registry.list_staff(db, assignment=assignment)


@router.get("/staff/{staff_id}", response_model=StaffResponse)
def get_staff(
    staff_id: UUID,
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_admin)
):
    try:
        return registry.get_staff(db, staff_id)
    except DonationError as e:
        raise http_error(e)


# ---- Persons ----
@router.delete("/persons/{person_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_person(
    person_id: UUID,
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_admin)
):
    try:
        registry.delete_person(db, person_id)
    except DonationError as e:
        raise http_error(e)


# ---- Drive Events ----
@router.post("/events", response_model=DriveEventResponse, status_code=status.HTTP_201_CREATED)
def create_drive_event(
    event_data: DriveEventCreate,
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_drive_staff)
):
    try:
        return registry.create_drive_event(db, **event_data.model_dump())
    except DonationError as e:
        raise http_error(e)


@router.get("/events", response_model=List[DriveEventResponse])
def list_drive_events(
    upcoming_only: bool = Query(False),
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_drive_staff)
):
    return registry.list_drive_events(db, upcoming_only=upcoming_only)


@router.get("/events/{event_id}", response_model=DriveEventResponse)
def get_drive_event(
    event_id: UUID,
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_drive_staff)
):
    try:
        return registry.get_drive_event(db, event_id)
    except DonationError as e:
        raise http_error(e)


@router.delete("/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_drive_event(
    event_id: UUID,
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_drive_staff)
):
    try:
        registry.delete_drive_event(db, event_id)
    except DonationError as e:
        raise http_error(e)
