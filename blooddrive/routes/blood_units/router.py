# blooddrive/routes/blood_units/router.py

from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from blooddrive.database import get_db
from blooddrive.models.all_models import UnitStatus
from blooddrive.schemas.blood_unit import (
    BloodUnitResponse, ScreeningResultCreate, ScreeningTestResponse
)
from blooddrive.services import blood_units
from blooddrive.services.errors import DonationError
from blooddrive.utils import CallerRole, http_error, require_field_staff

router = APIRouter(prefix="/blood-units", tags=["Blood Units"])


@router.get("", response_model=List[BloodUnitResponse])
def list_blood_units(
    status: Optional[UnitStatus] = Query(None),
    donor_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_field_staff)
):
    return blood_units.list_units(db, status=status, donor_id=donor_id)


@router.get("/{unit_id}", response_model=BloodUnitResponse)
def get_blood_unit(
    unit_id: UUID,
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_field_staff)
):
    try:
        return blood_units.get_unit(db, unit_id)
    except DonationError as e:
        raise http_error(e)


@router.post("/{unit_id}/screening", response_model=ScreeningTestResponse, status_code=status.HTTP_201_CREATED)
def record_screening_result(
    unit_id: UUID,
    screening: ScreeningResultCreate,
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_field_staff)
):
    """
    Record the unit's screening result.
    Pass approves the unit into inventory, fail rejects it, pending holds it as tested.
    """
    try:
        return blood_units.record_screening_result(
            db, unit_id, screening.result, test_date=screening.test_date
        )
    except DonationError as e:
        raise http_error(e)


@router.put("/{unit_id}/screening", response_model=ScreeningTestResponse)
def resolve_screening_result(
    unit_id: UUID,
    screening: ScreeningResultCreate,
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_field_staff)
):
    """Resolve a pending screening test to pass or fail."""
    try:
        return blood_units.resolve_screening_result(
            db, unit_id, screening.result, test_date=screening.test_date
        )
    except DonationError as e:
        raise http_error(e)


@router.post("/{unit_id}/distribute", response_model=BloodUnitResponse)
def distribute_blood_unit(
    unit_id: UUID,
    db: Session = Depends(get_db),
    role: CallerRole = Depends(require_field_staff)
):
    try:
        return blood_units.distribute_unit(db, unit_id)
    except DonationError as e:
        raise http_error(e)
