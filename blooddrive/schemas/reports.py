# blooddrive/schemas/reports.py
from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime
from uuid import UUID

from blooddrive.models.all_models import AppointmentStatus, BloodType

class DonorSummary(BaseModel):
    donor_id: UUID
    name: str
    blood_type: BloodType
    last_donation_date: Optional[date] = None
    appointment_status: Optional[AppointmentStatus] = None
    event_location: Optional[str] = None
    event_date: Optional[date] = None

class EventBookingSummary(BaseModel):
    event_id: UUID
    location: str
    event_date: date
    capacity: int
    booked_slots: int        # every appointment, whatever its status
    active_bookings: int     # non-cancelled, counted against capacity
    remaining_capacity: int

class InventoryItem(BaseModel):
    inventory_id: UUID
    unit_id: UUID
    collection_date: date
    amount: float
    blood_type: Optional[BloodType] = None
    donor_name: Optional[str] = None
    created_at: Optional[datetime] = None

class EligibilityResponse(BaseModel):
    donor_id: UUID
    eligible: bool
    next_eligible_date: Optional[date] = None
