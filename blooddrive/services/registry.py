# blooddrive/services/registry.py
"""Create, read and delete the records the donation lifecycle runs on."""
import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from blooddrive.models.all_models import (
    BloodType, Donor, DriveEvent, Person, Staff, StaffAssignment, local_today
)
from blooddrive.services.errors import Conflict, EventInPast, NotFound, ValidationError

logger = logging.getLogger(__name__)


def _commit(db: Session, what: str):
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise Conflict(f"Could not save {what}: {str(e.orig)}")
    except Exception:
        db.rollback()
        raise


def _new_person(first_name: str, last_name: str, contact: str) -> Person:
    if not first_name or not last_name or not contact:
        raise ValidationError("First name, last name and contact are required")
    return Person(first_name=first_name.strip(), last_name=last_name.strip(), contact=contact.strip())


def create_person(db: Session, first_name: str, last_name: str, contact: str) -> Person:
    person = _new_person(first_name, last_name, contact)
    db.add(person)
    _commit(db, "person")
    return person


def create_donor(
    db: Session,
    first_name: str,
    last_name: str,
    contact: str,
    blood_type,
    last_donation_date: Optional[date] = None,
) -> Donor:
    try:
        blood_type = BloodType(blood_type)
    except ValueError:
        raise ValidationError(f"Invalid blood type: {blood_type!r}")
    if last_donation_date and last_donation_date > local_today():
        raise ValidationError("Last donation date cannot be in the future")

    donor = Donor(
        person=_new_person(first_name, last_name, contact),
        blood_type=blood_type,
        last_donation_date=last_donation_date,
    )
    db.add(donor)
    _commit(db, "donor")
    logger.info(f"Registered donor {donor.id} ({blood_type.value})")
    return donor


def create_staff(
    db: Session,
    first_name: str,
    last_name: str,
    contact: str,
    job_role: str,
    email: str,
    assignment: Optional[StaffAssignment] = None,
) -> Staff:
    if not job_role:
        raise ValidationError("Job role is required")
    if assignment is not None:
        try:
            assignment = StaffAssignment(assignment)
        except ValueError:
            raise ValidationError(f"Invalid staff assignment: {assignment!r}")

    email = email.strip().lower()
    if db.query(Staff).filter(Staff.email == email).first():
        raise Conflict(f"Staff email {email} already registered")

    staff = Staff(
        person=_new_person(first_name, last_name, contact),
        job_role=job_role,
        email=email,
        assignment=assignment,
    )
    db.add(staff)
    _commit(db, "staff member")
    return staff


def create_drive_event(db: Session, location: str, event_date: date, capacity: int) -> DriveEvent:
    if not location:
        raise ValidationError("Location is required")
    if capacity is None or capacity <= 0:
        raise ValidationError("Capacity must be a positive integer")
    if event_date < local_today():
        raise EventInPast(f"Drive event date {event_date.isoformat()} is in the past")

    event = DriveEvent(location=location.strip(), event_date=event_date, capacity=capacity)
    db.add(event)
    _commit(db, "drive event")
    logger.info(f"Scheduled drive event {event.id} at {event.location} on {event_date.isoformat()}")
    return event


def get_person(db: Session, person_id: UUID) -> Person:
    person = db.query(Person).filter(Person.id == person_id).first()
    if not person:
        raise NotFound("Person", person_id)
    return person


def get_donor(db: Session, donor_id: UUID) -> Donor:
    donor = db.query(Donor).filter(Donor.id == donor_id).first()
    if not donor:
        raise NotFound("Donor", donor_id)
    return donor


def get_staff(db: Session, staff_id: UUID) -> Staff:
    staff = db.query(Staff).filter(Staff.id == staff_id).first()
    if not staff:
        raise NotFound("Staff member", staff_id)
    return staff


def get_drive_event(db: Session, event_id: UUID) -> DriveEvent:
    event = db.query(DriveEvent).filter(DriveEvent.id == event_id).first()
    if not event:
        raise NotFound("Drive event", event_id)
    return event


def list_donors(db: Session, blood_type: Optional[BloodType] = None) -> List[Donor]:
    query = db.query(Donor)
    if blood_type:
        query = query.filter(Donor.blood_type == blood_type)
    return query.all()


def list_staff(db: Session, assignment: Optional[StaffAssignment] = None) -> List[Staff]:
    query = db.query(Staff)
    if assignment:
        query = query.filter(Staff.assignment == assignment)
    return query.all()


def list_drive_events(db: Session, upcoming_only: bool = False) -> List[DriveEvent]:
    query = db.query(DriveEvent)
    if upcoming_only:
        query = query.filter(DriveEvent.event_date >= local_today())
    return query.order_by(DriveEvent.event_date).all()


def delete_person(db: Session, person_id: UUID) -> None:
    """Remove a person with their donor/staff record; appointments and units are detached."""
    person = get_person(db, person_id)
    db.delete(person)
    _commit(db, "person deletion")
    logger.info(f"Deleted person {person_id}")


def delete_drive_event(db: Session, event_id: UUID) -> None:
    event = get_drive_event(db, event_id)
    db.delete(event)
    _commit(db, "drive event deletion")
    logger.info(f"Deleted drive event {event_id} and its appointments")
