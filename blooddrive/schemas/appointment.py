# blooddrive/schemas/appointment.py

from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, time, datetime
from uuid import UUID
from blooddrive.models.all_models import AppointmentStatus

class AppointmentCreate(BaseModel):
    donor_id: UUID
    event_id: UUID
    time_slot: time
    # None defers to ENFORCE_ELIGIBILITY_ON_BOOKING
    enforce_eligibility: Optional[bool] = None

class AppointmentTransition(BaseModel):
    status: AppointmentStatus
    volume: Optional[float] = Field(None, description="Collected volume in mL, required when completing")

class AppointmentResponse(BaseModel):
    id: UUID
    donor_id: Optional[UUID] = None
    event_id: UUID
    time_slot: time
    status: AppointmentStatus
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class BookingResponse(BaseModel):
    appointment: AppointmentResponse
    donor_eligible: bool
    next_eligible_date: Optional[date] = None
