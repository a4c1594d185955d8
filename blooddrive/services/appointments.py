# blooddrive/services/appointments.py
"""
Appointment lifecycle.

Booking checks the drive date, the drive's remaining capacity and (advisory or
blocking, per caller) the donor's eligibility. Status changes follow
``ALLOWED_TRANSITIONS``; completing an appointment records the donation on the
donor and originates the collected blood unit in the same transaction as the
status write.
"""
import logging
from dataclasses import dataclass
from datetime import date, time
from typing import List, Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from blooddrive.config import settings
from blooddrive.models.all_models import (
    Appointment, AppointmentStatus, Donor, DriveEvent, local_now, local_today
)
from blooddrive.services.blood_units import originate_unit, validate_volume
from blooddrive.services.eligibility import EligibilityResult, evaluate_eligibility
from blooddrive.services.errors import (
    CapacityExceeded, Conflict, DonorIneligible, EventInPast, InvalidTransition, NotFound, ValidationError
)
from blooddrive.services.locks import entity_locks

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    AppointmentStatus.SCHEDULED: {
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    },
    AppointmentStatus.CONFIRMED: {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    },
    AppointmentStatus.COMPLETED: set(),
    AppointmentStatus.CANCELLED: set(),
    AppointmentStatus.NO_SHOW: set(),
}


@dataclass
class BookingOutcome:
    appointment: Appointment
    eligibility: EligibilityResult


def can_transition(current: AppointmentStatus, requested: AppointmentStatus) -> bool:
    return requested in ALLOWED_TRANSITIONS.get(current, set())


def count_active_bookings(db: Session, event_id: UUID) -> int:
    """Appointments holding a slot at the drive: everything except cancellations."""
    return db.query(Appointment).filter(
        Appointment.event_id == event_id,
        Appointment.status != AppointmentStatus.CANCELLED
    ).count()


def _parse_status(value) -> AppointmentStatus:
    try:
        return AppointmentStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid appointment status: {value!r}")


def create_appointment(
    db: Session,
    donor_id: UUID,
    event_id: UUID,
    time_slot: time,
    enforce_eligibility: Optional[bool] = None,
) -> BookingOutcome:
    if enforce_eligibility is None:
        enforce_eligibility = settings.ENFORCE_ELIGIBILITY_ON_BOOKING
    if time_slot is None:
        raise ValidationError("A time slot is required")
    today = local_today()

    # Bookings for one drive are serialized so the capacity count stays exact
    with entity_locks.hold("DriveEvent", event_id):
        try:
            donor = db.query(Donor).filter(Donor.id == donor_id).first()
            if not donor:
                raise NotFound("Donor", donor_id)

            # Write to the drive row before counting; bookings from other
            # processes queue on its lock (a RESERVED lock on SQLite)
            touched = db.execute(
                update(DriveEvent)
                .where(DriveEvent.id == event_id)
                .values(capacity=DriveEvent.capacity)
                .execution_options(synchronize_session=False)
            )
            if touched.rowcount == 0:
                raise NotFound("Drive event", event_id)
            event = (
                db.query(DriveEvent)
                .filter(DriveEvent.id == event_id)
                .populate_existing()
                .one()
            )

            if event.event_date < today:
                raise EventInPast(
                    f"Drive event {event_id} took place on {event.event_date.isoformat()}"
                )

            booked = count_active_bookings(db, event.id)
            if booked >= event.capacity:
                raise CapacityExceeded(
                    f"Drive event {event_id} is full ({booked}/{event.capacity} slots booked)"
                )

            eligibility = evaluate_eligibility(donor.last_donation_date, today)
            if not eligibility.eligible:
                if enforce_eligibility:
                    raise DonorIneligible(eligibility.next_eligible_date, donor_id=donor_id)
                logger.warning(
                    f"Booking donor {donor_id} before eligibility date "
                    f"{eligibility.next_eligible_date.isoformat()}"
                )

            appointment = Appointment(
                donor_id=donor.id,
                event_id=event.id,
                time_slot=time_slot,
                status=AppointmentStatus.SCHEDULED,
            )
            db.add(appointment)
            db.commit()
        except OperationalError as e:
            db.rollback()
            raise Conflict(f"Drive event {event_id} is locked by another transaction: {str(e.orig)}")
        except IntegrityError as e:
            db.rollback()
            raise Conflict(f"Concurrent booking at drive event {event_id}: {str(e.orig)}")
        except Exception:
            db.rollback()
            raise

    logger.info(f"Appointment {appointment.id} booked for donor {donor_id} at event {event_id}")
    return BookingOutcome(appointment=appointment, eligibility=eligibility)


def _record_donation(db: Session, appointment: Appointment, volume: float, today: date) -> None:
    """Completion cascade: stamp the donor's last donation and originate the unit."""
    donor = appointment.donor
    if donor is not None:
        if donor.last_donation_date is None or donor.last_donation_date < today:
            donor.last_donation_date = today
    unit = originate_unit(
        db,
        donor_id=appointment.donor_id,
        volume=volume,
        appointment_id=appointment.id,
        collection_date=today,
    )
    appointment.blood_unit = unit
    logger.info(f"Blood unit {unit.id} collected from appointment {appointment.id}")


def transition_appointment(
    db: Session,
    appointment_id: UUID,
    new_status,
    volume: Optional[float] = None,
) -> Appointment:
    new_status = _parse_status(new_status)
    if new_status == AppointmentStatus.COMPLETED:
        volume = validate_volume(volume)
    today = local_today()

    with entity_locks.hold("Appointment", appointment_id):
        try:
            appointment = (
                db.query(Appointment)
                .filter(Appointment.id == appointment_id)
                .with_for_update()
                .populate_existing()
                .first()
            )
            if not appointment:
                raise NotFound("Appointment", appointment_id)

            current = appointment.status
            if not can_transition(current, new_status):
                raise InvalidTransition("Appointment", current, new_status)

            now = local_now()
            appointment.status = new_status
            if new_status == AppointmentStatus.CONFIRMED:
                appointment.confirmed_at = now
            elif new_status == AppointmentStatus.CANCELLED:
                appointment.cancelled_at = now
            elif new_status == AppointmentStatus.COMPLETED:
                appointment.completed_at = now
                _record_donation(db, appointment, volume, today)

            db.commit()
        except OperationalError as e:
            db.rollback()
            raise Conflict(f"Appointment {appointment_id} is locked by another transaction: {str(e.orig)}")
        except IntegrityError as e:
            db.rollback()
            raise Conflict(f"Concurrent update of appointment {appointment_id}: {str(e.orig)}")
        except Exception:
            db.rollback()
            raise

    logger.info(f"Appointment {appointment_id} moved from {current.value} to {new_status.value}")
    return appointment


def get_appointment(db: Session, appointment_id: UUID) -> Appointment:
    appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if not appointment:
        raise NotFound("Appointment", appointment_id)
    return appointment


def list_appointments(
    db: Session,
    event_id: Optional[UUID] = None,
    donor_id: Optional[UUID] = None,
    status: Optional[AppointmentStatus] = None,
) -> List[Appointment]:
    query = db.query(Appointment)
    if event_id:
        query = query.filter(Appointment.event_id == event_id)
    if donor_id:
        query = query.filter(Appointment.donor_id == donor_id)
    if status:
        query = query.filter(Appointment.status == status)
    return query.order_by(Appointment.time_slot).all()
