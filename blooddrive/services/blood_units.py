# blooddrive/services/blood_units.py
"""
Blood unit lifecycle: collection, screening, disposition and distribution.

    collected -> tested -> approved -> distributed
        |          |
        +----------+-> rejected

A unit gets at most one screening test. A pass approves it and registers one
inventory record carrying the collected volume; a fail rejects it; a pending
result parks it in ``tested`` until the test is resolved.
"""
import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from blooddrive.models.all_models import (
    BloodUnit, Inventory, ScreeningTest, ScreeningResult, UnitStatus,
    MIN_UNIT_VOLUME, MAX_UNIT_VOLUME, local_now, local_today
)
from blooddrive.services.errors import (
    AlreadyDispositioned, AlreadyTested, Conflict, InvalidTransition, NotFound, ValidationError
)
from blooddrive.services.locks import entity_locks

logger = logging.getLogger(__name__)

# Every status outside this set (collected, tested) can still take a screening result
DISPOSITIONED_STATUSES = {UnitStatus.APPROVED, UnitStatus.REJECTED, UnitStatus.DISTRIBUTED}

RESULT_TO_STATUS = {
    ScreeningResult.PASS: UnitStatus.APPROVED,
    ScreeningResult.FAIL: UnitStatus.REJECTED,
    ScreeningResult.PENDING: UnitStatus.TESTED,
}


def validate_volume(volume) -> float:
    if volume is None:
        raise ValidationError("A collected volume is required to complete a donation")
    try:
        volume = float(volume)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid volume: {volume!r}")
    if not MIN_UNIT_VOLUME <= volume <= MAX_UNIT_VOLUME:
        raise ValidationError(
            f"Volume must be between {MIN_UNIT_VOLUME:.2f} and {MAX_UNIT_VOLUME:.2f}, got {volume:.2f}"
        )
    return round(volume, 2)


def _parse_result(result) -> ScreeningResult:
    try:
        return ScreeningResult(result)
    except ValueError:
        raise ValidationError(f"Invalid screening result: {result!r}")


def _resolve_test_date(test_date: Optional[date], unit: BloodUnit) -> date:
    today = local_today()
    test_date = test_date or today
    if test_date > today:
        raise ValidationError("Test date cannot be in the future")
    if test_date < unit.collection_date:
        raise ValidationError("Test date cannot precede the collection date")
    return test_date


def originate_unit(
    db: Session,
    donor_id: Optional[UUID],
    volume: float,
    appointment_id: Optional[UUID] = None,
    collection_date: Optional[date] = None,
) -> BloodUnit:
    """
    Stage a newly collected unit in the caller's transaction.

    Does not commit; the appointment completion cascade commits the unit
    together with the appointment status and donor update.
    """
    collection_date = collection_date or local_today()
    if collection_date > local_today():
        raise ValidationError("Collection date cannot be in the future")
    unit = BloodUnit(
        donor_id=donor_id,
        appointment_id=appointment_id,
        collection_date=collection_date,
        volume=validate_volume(volume),
        status=UnitStatus.COLLECTED,
    )
    db.add(unit)
    db.flush()
    return unit


def _load_unit_for_update(db: Session, unit_id: UUID) -> BloodUnit:
    unit = (
        db.query(BloodUnit)
        .filter(BloodUnit.id == unit_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not unit:
        raise NotFound("Blood unit", unit_id)
    return unit


def _apply_disposition(db: Session, unit: BloodUnit, result: ScreeningResult) -> None:
    unit.status = RESULT_TO_STATUS[result]
    if unit.status == UnitStatus.APPROVED:
        if unit.inventory is not None:
            raise AlreadyDispositioned(f"Blood unit {unit.id} is already in inventory")
        db.add(Inventory(
            unit=unit,
            collection_date=unit.collection_date,
            amount=unit.volume,
        ))


def record_screening_result(
    db: Session,
    unit_id: UUID,
    result,
    test_date: Optional[date] = None,
) -> ScreeningTest:
    result = _parse_result(result)

    with entity_locks.hold("BloodUnit", unit_id):
        try:
            unit = _load_unit_for_update(db, unit_id)
            if unit.status in DISPOSITIONED_STATUSES:
                raise AlreadyDispositioned(
                    f"Blood unit {unit_id} is already {unit.status.value}"
                )
            if unit.screening_test is not None:
                raise AlreadyTested(f"Blood unit {unit_id} already has a screening test")

            test = ScreeningTest(
                unit=unit,
                test_date=_resolve_test_date(test_date, unit),
                result=result,
            )
            db.add(test)
            _apply_disposition(db, unit, result)
            db.commit()
        except OperationalError as e:
            db.rollback()
            raise Conflict(f"Blood unit {unit_id} is locked by another transaction: {str(e.orig)}")
        except IntegrityError as e:
            db.rollback()
            raise Conflict(f"Concurrent screening of blood unit {unit_id}: {str(e.orig)}")
        except Exception:
            db.rollback()
            raise

    logger.info(f"Blood unit {unit_id} screened {result.value}, now {unit.status.value}")
    return test


def resolve_screening_result(
    db: Session,
    unit_id: UUID,
    result,
    test_date: Optional[date] = None,
) -> ScreeningTest:
    """Settle a pending screening test as pass or fail."""
    result = _parse_result(result)
    if result == ScreeningResult.PENDING:
        raise ValidationError("A pending test can only be resolved to pass or fail")

    with entity_locks.hold("BloodUnit", unit_id):
        try:
            unit = _load_unit_for_update(db, unit_id)
            if unit.status in DISPOSITIONED_STATUSES:
                raise AlreadyDispositioned(
                    f"Blood unit {unit_id} is already {unit.status.value}"
                )
            test = unit.screening_test
            if test is None or test.result != ScreeningResult.PENDING:
                raise InvalidTransition("Blood unit", unit.status, RESULT_TO_STATUS[result])

            test.result = result
            test.test_date = _resolve_test_date(test_date, unit)
            _apply_disposition(db, unit, result)
            db.commit()
        except OperationalError as e:
            db.rollback()
            raise Conflict(f"Blood unit {unit_id} is locked by another transaction: {str(e.orig)}")
        except IntegrityError as e:
            db.rollback()
            raise Conflict(f"Concurrent screening of blood unit {unit_id}: {str(e.orig)}")
        except Exception:
            db.rollback()
            raise

    logger.info(f"Pending test on blood unit {unit_id} resolved {result.value}")
    return test


def distribute_unit(db: Session, unit_id: UUID) -> BloodUnit:
    with entity_locks.hold("BloodUnit", unit_id):
        try:
            unit = _load_unit_for_update(db, unit_id)
            if unit.status != UnitStatus.APPROVED:
                raise InvalidTransition("Blood unit", unit.status, UnitStatus.DISTRIBUTED)
            inventory = unit.inventory
            if inventory is None or inventory.distributed_at is not None:
                raise NotFound("Inventory record for blood unit", unit_id)

            inventory.distributed_at = local_now()
            unit.status = UnitStatus.DISTRIBUTED
            db.commit()
        except OperationalError as e:
            db.rollback()
            raise Conflict(f"Blood unit {unit_id} is locked by another transaction: {str(e.orig)}")
        except IntegrityError as e:
            db.rollback()
            raise Conflict(f"Concurrent distribution of blood unit {unit_id}: {str(e.orig)}")
        except Exception:
            db.rollback()
            raise

    logger.info(f"Blood unit {unit_id} distributed")
    return unit


def get_unit(db: Session, unit_id: UUID) -> BloodUnit:
    unit = db.query(BloodUnit).filter(BloodUnit.id == unit_id).first()
    if not unit:
        raise NotFound("Blood unit", unit_id)
    return unit


def list_units(
    db: Session,
    status: Optional[UnitStatus] = None,
    donor_id: Optional[UUID] = None,
) -> List[BloodUnit]:
    query = db.query(BloodUnit)
    if status:
        query = query.filter(BloodUnit.status == status)
    if donor_id:
        query = query.filter(BloodUnit.donor_id == donor_id)
    return query.order_by(BloodUnit.collection_date.desc(), BloodUnit.created_at.desc()).all()
