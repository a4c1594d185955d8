# blooddrive/schemas/blood_unit.py
from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime
from uuid import UUID

from blooddrive.models.all_models import ScreeningResult, UnitStatus

class ScreeningResultCreate(BaseModel):
    result: ScreeningResult
    test_date: Optional[date] = None

class ScreeningTestResponse(BaseModel):
    id: UUID
    unit_id: UUID
    test_date: date
    result: ScreeningResult
    created_at: datetime

    class Config:
        from_attributes = True

class InventoryResponse(BaseModel):
    id: UUID
    unit_id: UUID
    collection_date: date
    amount: float
    distributed_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class BloodUnitResponse(BaseModel):
    id: UUID
    donor_id: Optional[UUID] = None
    appointment_id: Optional[UUID] = None
    collection_date: date
    volume: float
    status: UnitStatus
    screening_test: Optional[ScreeningTestResponse] = None
    inventory: Optional[InventoryResponse] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
