import threading
from datetime import timedelta
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from blooddrive.models.all_models import BloodUnit, Inventory, ScreeningResult, ScreeningTest, UnitStatus
from blooddrive.services import blood_units
from blooddrive.services.errors import (
    AlreadyDispositioned, AlreadyTested, Conflict, DonationError, InvalidTransition, NotFound, ValidationError
)


def test_pass_approves_and_stocks_inventory(db, collected_unit, today):
    test = blood_units.record_screening_result(db, collected_unit.id, ScreeningResult.PASS)

    assert test.result == ScreeningResult.PASS
    assert test.test_date == today
    db.expire_all()
    unit = blood_units.get_unit(db, collected_unit.id)
    assert unit.status == UnitStatus.APPROVED
    assert unit.inventory is not None
    assert unit.inventory.amount == unit.volume
    assert unit.inventory.collection_date == unit.collection_date


def test_fail_rejects_without_inventory(db, collected_unit):
    blood_units.record_screening_result(db, collected_unit.id, "fail")

    db.expire_all()
    unit = blood_units.get_unit(db, collected_unit.id)
    assert unit.status == UnitStatus.REJECTED
    assert unit.inventory is None
    assert db.query(Inventory).count() == 0


def test_pending_parks_unit_as_tested(db, collected_unit):
    blood_units.record_screening_result(db, collected_unit.id, ScreeningResult.PENDING)

    db.expire_all()
    unit = blood_units.get_unit(db, collected_unit.id)
    assert unit.status == UnitStatus.TESTED
    assert unit.inventory is None


def test_second_test_on_pending_unit_is_refused(db, collected_unit):
    blood_units.record_screening_result(db, collected_unit.id, ScreeningResult.PENDING)

    with pytest.raises(AlreadyTested):
        blood_units.record_screening_result(db, collected_unit.id, ScreeningResult.PASS)
    assert db.query(ScreeningTest).count() == 1


def test_dispositioned_unit_cannot_be_retested(db, collected_unit):
    blood_units.record_screening_result(db, collected_unit.id, ScreeningResult.PASS)

    with pytest.raises(AlreadyDispositioned):
        blood_units.record_screening_result(db, collected_unit.id, ScreeningResult.FAIL)

    db.expire_all()
    unit = blood_units.get_unit(db, collected_unit.id)
    assert unit.status == UnitStatus.APPROVED
    assert db.query(ScreeningTest).count() == 1
    assert db.query(Inventory).count() == 1


def test_screening_unknown_unit(db):
    with pytest.raises(NotFound):
        blood_units.record_screening_result(db, uuid4(), ScreeningResult.PASS)


def test_screening_result_must_be_known(db, collected_unit):
    with pytest.raises(ValidationError):
        blood_units.record_screening_result(db, collected_unit.id, "inconclusive")


def test_test_date_cannot_be_in_the_future(db, collected_unit, today):
    with pytest.raises(ValidationError):
        blood_units.record_screening_result(
            db, collected_unit.id, ScreeningResult.PASS, test_date=today + timedelta(days=1)
        )
    db.expire_all()
    assert blood_units.get_unit(db, collected_unit.id).status == UnitStatus.COLLECTED
    assert db.query(ScreeningTest).count() == 0


def test_test_date_cannot_precede_collection(db, collected_unit, today):
    with pytest.raises(ValidationError):
        blood_units.record_screening_result(
            db, collected_unit.id, ScreeningResult.PASS, test_date=today - timedelta(days=1)
        )


@pytest.mark.parametrize("result, status, stocked", [
    (ScreeningResult.PASS, UnitStatus.APPROVED, True),
    (ScreeningResult.FAIL, UnitStatus.REJECTED, False),
])
def test_resolve_pending_test(db, collected_unit, result, status, stocked):
    blood_units.record_screening_result(db, collected_unit.id, ScreeningResult.PENDING)

    test = blood_units.resolve_screening_result(db, collected_unit.id, result)

    assert test.result == result
    db.expire_all()
    unit = blood_units.get_unit(db, collected_unit.id)
    assert unit.status == status
    assert (unit.inventory is not None) == stocked
    assert db.query(ScreeningTest).count() == 1


def test_resolve_to_pending_is_refused(db, collected_unit):
    blood_units.record_screening_result(db, collected_unit.id, ScreeningResult.PENDING)
    with pytest.raises(ValidationError):
        blood_units.resolve_screening_result(db, collected_unit.id, ScreeningResult.PENDING)


def test_resolve_without_pending_test_is_refused(db, collected_unit):
    with pytest.raises(InvalidTransition):
        blood_units.resolve_screening_result(db, collected_unit.id, ScreeningResult.PASS)


def test_resolve_dispositioned_unit_is_refused(db, collected_unit):
    blood_units.record_screening_result(db, collected_unit.id, ScreeningResult.FAIL)
    with pytest.raises(AlreadyDispositioned):
        blood_units.resolve_screening_result(db, collected_unit.id, ScreeningResult.PASS)


def test_distribute_approved_unit(db, collected_unit):
    blood_units.record_screening_result(db, collected_unit.id, ScreeningResult.PASS)

    unit = blood_units.distribute_unit(db, collected_unit.id)

    assert unit.status == UnitStatus.DISTRIBUTED
    db.expire_all()
    inventory = db.query(Inventory).filter(Inventory.unit_id == collected_unit.id).one()
    assert inventory.distributed_at is not None


def test_distribute_twice_is_refused(db, collected_unit):
    blood_units.record_screening_result(db, collected_unit.id, ScreeningResult.PASS)
    blood_units.distribute_unit(db, collected_unit.id)

    with pytest.raises(InvalidTransition):
        blood_units.distribute_unit(db, collected_unit.id)


@pytest.mark.parametrize("result", [None, ScreeningResult.PENDING, ScreeningResult.FAIL])
def test_only_approved_units_are_distributed(db, collected_unit, result):
    if result is not None:
        blood_units.record_screening_result(db, collected_unit.id, result)

    with pytest.raises(InvalidTransition):
        blood_units.distribute_unit(db, collected_unit.id)


def test_distribute_approved_unit_without_inventory(db, collected_unit):
    blood_units.record_screening_result(db, collected_unit.id, ScreeningResult.PASS)
    db.query(Inventory).delete()
    db.commit()
    db.expire_all()

    with pytest.raises(NotFound):
        blood_units.distribute_unit(db, collected_unit.id)


def test_distribute_unknown_unit(db):
    with pytest.raises(NotFound):
        blood_units.distribute_unit(db, uuid4())


def test_list_units_filters(db, collected_unit, donor):
    assert [u.id for u in blood_units.list_units(db)] == [collected_unit.id]
    assert [u.id for u in blood_units.list_units(db, donor_id=donor.id)] == [collected_unit.id]
    assert blood_units.list_units(db, status=UnitStatus.APPROVED) == []
    assert blood_units.list_units(db, donor_id=uuid4()) == []


@pytest.mark.parametrize("volume, expected", [(350, 350.0), ("420.5", 420.5), (499.999, 500.0)])
def test_validate_volume_accepts(volume, expected):
    assert blood_units.validate_volume(volume) == expected


@pytest.mark.parametrize("volume", [None, 100, 349.9, 500.5, "abc", [450]])
def test_validate_volume_rejects(volume):
    with pytest.raises(ValidationError):
        blood_units.validate_volume(volume)


def test_concurrent_screening_records_one_test(session_factory, collected_unit):
    barrier = threading.Barrier(2)
    outcomes = []

    def screen(result):
        session = session_factory()
        try:
            barrier.wait()
            blood_units.record_screening_result(session, collected_unit.id, result)
            outcomes.append("recorded")
        except DonationError as e:
            outcomes.append(type(e).__name__)
        finally:
            session.close()

    threads = [
        threading.Thread(target=screen, args=(ScreeningResult.PASS,)),
        threading.Thread(target=screen, args=(ScreeningResult.FAIL,)),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(outcomes) == ["AlreadyDispositioned", "recorded"]
    session = session_factory()
    try:
        assert session.query(ScreeningTest).count() == 1
    finally:
        session.close()


def _locked_commit():
    raise OperationalError("COMMIT", None, Exception("database is locked"))


def test_locked_database_at_screening_commit_is_a_conflict(db, collected_unit, monkeypatch):
    monkeypatch.setattr(db, "commit", _locked_commit)

    with pytest.raises(Conflict):
        blood_units.record_screening_result(db, collected_unit.id, ScreeningResult.PASS)

    monkeypatch.undo()
    db.expire_all()
    assert blood_units.get_unit(db, collected_unit.id).status == UnitStatus.COLLECTED
    assert db.query(ScreeningTest).count() == 0
    assert db.query(Inventory).count() == 0


def test_locked_database_at_resolve_commit_is_a_conflict(db, collected_unit, monkeypatch):
    blood_units.record_screening_result(db, collected_unit.id, ScreeningResult.PENDING)
    monkeypatch.setattr(db, "commit", _locked_commit)

    with pytest.raises(Conflict):
        blood_units.resolve_screening_result(db, collected_unit.id, ScreeningResult.PASS)

    monkeypatch.undo()
    db.expire_all()
    assert blood_units.get_unit(db, collected_unit.id).status == UnitStatus.TESTED
    assert db.query(Inventory).count() == 0


def test_locked_database_at_distribution_commit_is_a_conflict(db, collected_unit, monkeypatch):
    blood_units.record_screening_result(db, collected_unit.id, ScreeningResult.PASS)
    monkeypatch.setattr(db, "commit", _locked_commit)

    with pytest.raises(Conflict):
        blood_units.distribute_unit(db, collected_unit.id)

    monkeypatch.undo()
    db.expire_all()
    assert blood_units.get_unit(db, collected_unit.id).status == UnitStatus.APPROVED
    assert db.query(Inventory).one().distributed_at is None


@pytest.mark.parametrize("status", list(UnitStatus))
def test_screening_accepted_only_before_disposition(db, collected_unit, status):
    db.query(BloodUnit).filter(BloodUnit.id == collected_unit.id).update(
        {"status": status}, synchronize_session=False
    )
    db.commit()

    if status in (UnitStatus.COLLECTED, UnitStatus.TESTED):
        test = blood_units.record_screening_result(db, collected_unit.id, ScreeningResult.FAIL)
        assert test.result == ScreeningResult.FAIL
    else:
        with pytest.raises(AlreadyDispositioned):
            blood_units.record_screening_result(db, collected_unit.id, ScreeningResult.FAIL)
