from datetime import time, timedelta
from uuid import uuid4

import pytest

from blooddrive.models.all_models import (
    Appointment, BloodType, BloodUnit, Donor, Person, Staff, StaffAssignment
)
from blooddrive.services import appointments, registry
from blooddrive.services.errors import Conflict, EventInPast, NotFound, ValidationError


def test_create_donor_composes_person(db, today):
    donor = registry.create_donor(
        db, " Priya ", "Patel", "+918765432109", "A-", last_donation_date=today - timedelta(days=64)
    )

    assert donor.blood_type == BloodType.A_NEGATIVE
    assert donor.person.first_name == "Priya"
    assert donor.person.full_name == "Priya Patel"
    assert donor.last_donation_date == today - timedelta(days=64)
    assert registry.get_person(db, donor.person_id).donor.id == donor.id


@pytest.mark.parametrize("blood_type", ["C+", "o+", "", None])
def test_create_donor_rejects_unknown_blood_type(db, blood_type):
    with pytest.raises(ValidationError):
        registry.create_donor(db, "Aarav", "Sharma", "+919876543210", blood_type)
    assert db.query(Person).count() == 0


def test_create_donor_rejects_future_donation(db, today):
    with pytest.raises(ValidationError):
        registry.create_donor(db, "Aarav", "Sharma", "+919876543210", "O+", today + timedelta(days=1))


def test_create_donor_requires_name_and_contact(db):
    with pytest.raises(ValidationError):
        registry.create_donor(db, "Aarav", "", "+919876543210", "O+")


def test_create_staff(db):
    staff = registry.create_staff(
        db, "Rajesh", "Yadav", "+919977665544", "Field Coordinator",
        "Rajesh.Yadav@BloodBank.org", StaffAssignment.FIELD
    )

    assert staff.email == "rajesh.yadav@bloodbank.org"
    assert staff.assignment == StaffAssignment.FIELD
    assert staff.specialization_email == "rajesh.yadav@bloodbank.org"


def test_general_staff_has_no_specialization_email(db):
    staff = registry.create_staff(
        db, "Sameer", "Khan", "+919900112233", "Medical Officer", "sameer.khan@bloodbank.org"
    )
    assert staff.assignment is None
    assert staff.specialization_email is None


def test_duplicate_staff_email_conflicts(db):
    registry.create_staff(db, "Lakshmi", "Nair", "+919988776655", "Nurse", "lakshmi.nair@bloodbank.org")

    with pytest.raises(Conflict):
        registry.create_staff(db, "Lakshmi", "Menon", "+919988776600", "Nurse", "LAKSHMI.NAIR@bloodbank.org")
    assert db.query(Staff).count() == 1


def test_create_staff_rejects_unknown_assignment(db):
    with pytest.raises(ValidationError):
        registry.create_staff(db, "Pooja", "Deshmukh", "+919955443322", "Phlebotomist", "pooja.d@bloodbank.org", "lab")


def test_create_drive_event_validation(db, today):
    with pytest.raises(ValidationError):
        registry.create_drive_event(db, "Juhu Beach Community Hall, Mumbai", today, 0)
    with pytest.raises(EventInPast):
        registry.create_drive_event(db, "Juhu Beach Community Hall, Mumbai", today - timedelta(days=1), 10)
    with pytest.raises(ValidationError):
        registry.create_drive_event(db, "", today, 10)


def test_lookups_raise_not_found(db):
    for lookup in (registry.get_person, registry.get_donor, registry.get_staff, registry.get_drive_event):
        with pytest.raises(NotFound):
            lookup(db, uuid4())


def test_list_filters(db, today):
    registry.create_donor(db, "Aarav", "Sharma", "+919876543210", "O+")
    registry.create_donor(db, "Vikram", "Singh", "+919834567890", "O-")
    registry.create_staff(db, "Lakshmi", "Nair", "+919988776655", "Nurse", "lakshmi.nair@bloodbank.org", "drive")
    registry.create_staff(db, "Rajesh", "Yadav", "+919977665544", "Coordinator", "rajesh.yadav@bloodbank.org", "field")
    registry.create_drive_event(db, "Juhu Beach Community Hall, Mumbai", today + timedelta(days=5), 80)
    registry.create_drive_event(db, "Infotech Park, Hinjewadi, Pune", today, 120)

    assert len(registry.list_donors(db)) == 2
    assert [d.person.first_name for d in registry.list_donors(db, BloodType.O_NEGATIVE)] == ["Vikram"]
    assert [s.person.first_name for s in registry.list_staff(db, StaffAssignment.DRIVE)] == ["Lakshmi"]
    events = registry.list_drive_events(db, upcoming_only=True)
    assert [e.location for e in events] == ["Infotech Park, Hinjewadi, Pune", "Juhu Beach Community Hall, Mumbai"]


def test_delete_person_removes_donor_and_detaches_history(db, donor, collected_unit, confirmed_appointment):
    registry.delete_person(db, donor.person_id)
    db.expire_all()

    assert db.query(Donor).count() == 0
    assert db.query(Person).count() == 0
    appointment = db.query(Appointment).filter(Appointment.id == confirmed_appointment.id).one()
    assert appointment.donor_id is None
    unit = db.query(BloodUnit).filter(BloodUnit.id == collected_unit.id).one()
    assert unit.donor_id is None


def test_delete_person_removes_staff(db):
    staff = registry.create_staff(db, "Sameer", "Khan", "+919900112233", "Medical Officer", "sameer.khan@bloodbank.org")
    registry.delete_person(db, staff.person_id)
    assert db.query(Staff).count() == 0


def test_delete_drive_event_removes_appointments(db, donor, event):
    appointments.create_appointment(db, donor.id, event.id, time(9, 0))

    registry.delete_drive_event(db, event.id)

    assert db.query(Appointment).count() == 0
    assert registry.get_donor(db, donor.id) is not None


def test_delete_drive_event_keeps_collected_units(db, event, collected_unit):
    registry.delete_drive_event(db, event.id)
    db.expire_all()

    unit = db.query(BloodUnit).filter(BloodUnit.id == collected_unit.id).one()
    assert unit.appointment_id is None
