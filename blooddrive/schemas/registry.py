# blooddrive/schemas/registry.py
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import date, datetime
from uuid import UUID

from blooddrive.models.all_models import BloodType, StaffAssignment

# Person Schemas
class PersonBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    contact: str = Field(..., min_length=1, max_length=15)

class PersonResponse(PersonBase):
    id: UUID
    created_at: datetime

    class Config:
        from_attributes = True

# Donor Schemas
class DonorCreate(PersonBase):
    blood_type: BloodType
    last_donation_date: Optional[date] = None

class DonorResponse(BaseModel):
    id: UUID
    person: PersonResponse
    blood_type: BloodType
    last_donation_date: Optional[date] = None
    created_at: datetime

    class Config:
        from_attributes = True

# Staff Schemas
class StaffCreate(PersonBase):
    job_role: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    assignment: Optional[StaffAssignment] = None

class StaffResponse(BaseModel):
    id: UUID
    person: PersonResponse
    job_role: str
    email: str
    assignment: Optional[StaffAssignment] = None
    specialization_email: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

# Drive Event Schemas
class DriveEventCreate(BaseModel):
    location: str = Field(..., min_length=1, max_length=200)
    event_date: date
    capacity: int = Field(..., gt=0)

class DriveEventResponse(BaseModel):
    id: UUID
    location: str
    event_date: date
    capacity: int
    created_at: datetime

    class Config:
        from_attributes = True
