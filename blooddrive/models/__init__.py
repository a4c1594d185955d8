from .all_models import (
    Base, BloodType, StaffAssignment, AppointmentStatus, UnitStatus, ScreeningResult,
    Person, Donor, Staff, DriveEvent, Appointment, BloodUnit, ScreeningTest, Inventory,
    MIN_UNIT_VOLUME, MAX_UNIT_VOLUME, local_now, local_today
)
