# blooddrive/models/all_models.py
from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Float, Enum, Date, Time, Uuid, CheckConstraint, text
from sqlalchemy.orm import declarative_base, relationship
import enum
import uuid
from datetime import datetime
import pytz

from blooddrive.config import settings

Base = declarative_base()

# Timezone setup
LOCAL_TZ = pytz.timezone(settings.TIMEZONE)

def local_now():
    return datetime.now(LOCAL_TZ)

def local_today():
    return local_now().date()

# Enums
class BloodType(str, enum.Enum):
    A_POSITIVE = "A+"
    A_NEGATIVE = "A-"
    B_POSITIVE = "B+"
    B_NEGATIVE = "B-"
    AB_POSITIVE = "AB+"
    AB_NEGATIVE = "AB-"
    O_POSITIVE = "O+"
    O_NEGATIVE = "O-"

class StaffAssignment(str, enum.Enum):
    FIELD = "field"
    DRIVE = "drive"

class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

class UnitStatus(str, enum.Enum):
    COLLECTED = "collected"
    TESTED = "tested"
    APPROVED = "approved"
    REJECTED = "rejected"
    DISTRIBUTED = "distributed"

class ScreeningResult(str, enum.Enum):
    PASS = "pass"
    FAIL = "fail"
    PENDING = "pending"

# Collected volume bounds (mL)
MIN_UNIT_VOLUME = 350.0
MAX_UNIT_VOLUME = 500.0

# ================================
# PEOPLE
# ================================

class Person(Base):
    __tablename__ = "persons"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    contact = Column(String(15), nullable=False)
    created_at = Column(DateTime, default=local_now, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, default=local_now, onupdate=local_now, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    donor = relationship("Donor", back_populates="person", uselist=False, cascade="all, delete-orphan")
    staff = relationship("Staff", back_populates="person", uselist=False, cascade="all, delete-orphan")

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

class Donor(Base):
    __tablename__ = "donors"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    person_id = Column(Uuid(as_uuid=True), ForeignKey("persons.id", ondelete="CASCADE"), unique=True, nullable=False)
    last_donation_date = Column(Date)
    blood_type = Column(Enum(BloodType, name="blood_type"), nullable=False)
    created_at = Column(DateTime, default=local_now, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, default=local_now, onupdate=local_now, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    person = relationship("Person", back_populates="donor")
    appointments = relationship("Appointment", back_populates="donor")
    blood_units = relationship("BloodUnit", back_populates="donor")

class Staff(Base):
    __tablename__ = "staff"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    person_id = Column(Uuid(as_uuid=True), ForeignKey("persons.id", ondelete="CASCADE"), unique=True, nullable=False)
    job_role = Column(String(50), nullable=False)
    email = Column(String(100), unique=True, nullable=False)
    # Field/drive specialization; null for general staff
    assignment = Column(Enum(StaffAssignment, name="staff_assignment"))
    created_at = Column(DateTime, default=local_now, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, default=local_now, onupdate=local_now, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    person = relationship("Person", back_populates="staff")

    @property
    def specialization_email(self):
        """Contact email of the field/drive specialization, always the staff email."""
        return self.email if self.assignment is not None else None

# ================================
# DRIVES & APPOINTMENTS
# ================================

class DriveEvent(Base):
    __tablename__ = "drive_events"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    location = Column(String(200), nullable=False)
    event_date = Column(Date, nullable=False)
    capacity = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=local_now, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, default=local_now, onupdate=local_now, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    appointments = relationship("Appointment", back_populates="event", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_drive_event_capacity_positive"),
    )

class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    donor_id = Column(Uuid(as_uuid=True), ForeignKey("donors.id", ondelete="SET NULL"))
    event_id = Column(Uuid(as_uuid=True), ForeignKey("drive_events.id", ondelete="CASCADE"), nullable=False)
    time_slot = Column(Time, nullable=False)
    status = Column(Enum(AppointmentStatus, name="appointment_status"), nullable=False, default=AppointmentStatus.SCHEDULED)
    confirmed_at = Column(DateTime)
    completed_at = Column(DateTime)
    cancelled_at = Column(DateTime)
    created_at = Column(DateTime, default=local_now, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, default=local_now, onupdate=local_now, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    donor = relationship("Donor", back_populates="appointments")
    event = relationship("DriveEvent", back_populates="appointments")
    blood_unit = relationship("BloodUnit", back_populates="appointment", uselist=False)

# ================================
# BLOOD UNITS, SCREENING & INVENTORY
# ================================

class BloodUnit(Base):
    __tablename__ = "blood_units"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    donor_id = Column(Uuid(as_uuid=True), ForeignKey("donors.id", ondelete="SET NULL"))
    appointment_id = Column(Uuid(as_uuid=True), ForeignKey("appointments.id", ondelete="SET NULL"), unique=True)
    collection_date = Column(Date, nullable=False)
    volume = Column(Float, nullable=False)
    status = Column(Enum(UnitStatus, name="unit_status"), nullable=False, default=UnitStatus.COLLECTED)
    created_at = Column(DateTime, default=local_now, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, default=local_now, onupdate=local_now, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    donor = relationship("Donor", back_populates="blood_units")
    appointment = relationship("Appointment", back_populates="blood_unit")
    screening_test = relationship("ScreeningTest", back_populates="unit", uselist=False, cascade="all, delete-orphan")
    inventory = relationship("Inventory", back_populates="unit", uselist=False, cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("volume BETWEEN 350.00 AND 500.00", name="ck_blood_unit_volume_range"),
    )

class ScreeningTest(Base):
    __tablename__ = "screening_tests"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    unit_id = Column(Uuid(as_uuid=True), ForeignKey("blood_units.id", ondelete="CASCADE"), unique=True, nullable=False)
    test_date = Column(Date, nullable=False)
    result = Column(Enum(ScreeningResult, name="screening_result"), nullable=False)
    created_at = Column(DateTime, default=local_now, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, default=local_now, onupdate=local_now, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    unit = relationship("BloodUnit", back_populates="screening_test")

class Inventory(Base):
    __tablename__ = "inventory"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    unit_id = Column(Uuid(as_uuid=True), ForeignKey("blood_units.id", ondelete="CASCADE"), unique=True, nullable=False)
    collection_date = Column(Date, nullable=False)
    amount = Column(Float, nullable=False)
    distributed_at = Column(DateTime)
    created_at = Column(DateTime, default=local_now, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    unit = relationship("BloodUnit", back_populates="inventory")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_inventory_amount_positive"),
    )
