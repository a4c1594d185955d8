# blooddrive/services/reporting.py
"""Read-only projections over current state; nothing here writes or caches."""
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, case, func
from sqlalchemy.orm import Session

from blooddrive.models.all_models import (
    Appointment, AppointmentStatus, BloodType, BloodUnit, Donor, DriveEvent, Inventory, Person, UnitStatus
)
from blooddrive.schemas.reports import DonorSummary, EventBookingSummary, InventoryItem
from blooddrive.services.errors import NotFound


def _donor_summary_query(db: Session):
    """One row per donor with the most recent appointment, or nulls when there is none."""
    ranked = (
        db.query(
            Appointment.donor_id.label("donor_id"),
            Appointment.status.label("status"),
            DriveEvent.location.label("location"),
            DriveEvent.event_date.label("event_date"),
            func.row_number().over(
                partition_by=Appointment.donor_id,
                order_by=(
                    DriveEvent.event_date.desc(),
                    Appointment.time_slot.desc(),
                    Appointment.created_at.desc(),
                ),
            ).label("recency"),
        )
        .join(DriveEvent, Appointment.event_id == DriveEvent.id)
        .filter(Appointment.donor_id.isnot(None))
        .subquery()
    )
    return (
        db.query(Donor, Person, ranked.c.status, ranked.c.location, ranked.c.event_date)
        .join(Person, Donor.person_id == Person.id)
        .outerjoin(ranked, and_(ranked.c.donor_id == Donor.id, ranked.c.recency == 1))
    )


def _donor_summary(row) -> DonorSummary:
    donor, person, status, location, event_date = row
    return DonorSummary(
        donor_id=donor.id,
        name=person.full_name,
        blood_type=donor.blood_type,
        last_donation_date=donor.last_donation_date,
        appointment_status=status,
        event_location=location,
        event_date=event_date,
    )


def get_donor_summary(db: Session, donor_id: UUID) -> DonorSummary:
    row = _donor_summary_query(db).filter(Donor.id == donor_id).first()
    if not row:
        raise NotFound("Donor", donor_id)
    return _donor_summary(row)


def list_donor_summaries(db: Session) -> List[DonorSummary]:
    rows = _donor_summary_query(db).order_by(Person.last_name, Person.first_name).all()
    return [_donor_summary(row) for row in rows]


def _booking_query(db: Session):
    active = func.sum(case((Appointment.status != AppointmentStatus.CANCELLED, 1), else_=0))
    return (
        db.query(
            DriveEvent,
            func.count(Appointment.id).label("booked"),
            func.coalesce(active, 0).label("active"),
        )
        .outerjoin(Appointment, Appointment.event_id == DriveEvent.id)
        .group_by(DriveEvent.id)
    )


def _booking_summary(event: DriveEvent, booked: int, active: int) -> EventBookingSummary:
    return EventBookingSummary(
        event_id=event.id,
        location=event.location,
        event_date=event.event_date,
        capacity=event.capacity,
        booked_slots=booked,
        active_bookings=active,
        remaining_capacity=max(event.capacity - active, 0),
    )


def get_event_booking_summary(db: Session, event_id: UUID) -> EventBookingSummary:
    row = _booking_query(db).filter(DriveEvent.id == event_id).first()
    if not row:
        raise NotFound("Drive event", event_id)
    event, booked, active = row
    return _booking_summary(event, booked, active)


def list_event_booking_summaries(db: Session) -> List[EventBookingSummary]:
    rows = _booking_query(db).order_by(DriveEvent.event_date).all()
    return [_booking_summary(event, booked, active) for event, booked, active in rows]


def list_available_inventory(db: Session, blood_type: Optional[BloodType] = None) -> List[InventoryItem]:
    """Approved units still on the shelf; rejected and distributed units never show."""
    query = (
        db.query(Inventory, BloodUnit, Donor, Person)
        .join(BloodUnit, Inventory.unit_id == BloodUnit.id)
        .outerjoin(Donor, BloodUnit.donor_id == Donor.id)
        .outerjoin(Person, Donor.person_id == Person.id)
        .filter(
            Inventory.distributed_at.is_(None),
            BloodUnit.status == UnitStatus.APPROVED
        )
    )
    if blood_type:
        query = query.filter(Donor.blood_type == blood_type)

    items = []
    for inventory, unit, donor, person in query.order_by(Inventory.collection_date).all():
        items.append(InventoryItem(
            inventory_id=inventory.id,
            unit_id=unit.id,
            collection_date=inventory.collection_date,
            amount=inventory.amount,
            blood_type=donor.blood_type if donor else None,
            donor_name=person.full_name if person else None,
            created_at=inventory.created_at,
        ))
    return items
