from datetime import time, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from blooddrive.database import build_engine, get_db, init_db
from blooddrive.models.all_models import AppointmentStatus, local_today
from blooddrive.services import appointments, registry


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'blooddrive.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def today():
    return local_today()


@pytest.fixture
def donor(db):
    return registry.create_donor(db, "Rahul", "Verma", "+919912345678", "B+")


@pytest.fixture
def event(db, today):
    return registry.create_drive_event(db, "Juhu Beach Community Hall, Mumbai", today + timedelta(days=7), 3)


@pytest.fixture
def appointment(db, donor, event):
    return appointments.create_appointment(db, donor.id, event.id, time(9, 30)).appointment


@pytest.fixture
def confirmed_appointment(db, appointment):
    return appointments.transition_appointment(db, appointment.id, AppointmentStatus.CONFIRMED)


@pytest.fixture
def collected_unit(db, confirmed_appointment):
    completed = appointments.transition_appointment(
        db, confirmed_appointment.id, AppointmentStatus.COMPLETED, volume=450.0
    )
    return completed.blood_unit


@pytest.fixture
def client(session_factory):
    from main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
