import argparse
from datetime import time, timedelta
from sqlalchemy.orm import sessionmaker
from blooddrive.config import settings
from blooddrive.database import build_engine, init_db
from blooddrive.models.all_models import AppointmentStatus, Donor, StaffAssignment, local_today
from blooddrive.services import appointments, blood_units, registry

# (first name, last name, contact, blood type, days since last donation)
DONORS = [
    ("Aarav", "Sharma", "+919876543210", "O+", 90),
    ("Priya", "Patel", "+918765432109", "A-", 64),
    ("Rahul", "Verma", "+919912345678", "B+", None),
    ("Sneha", "Mehta", "+917890123456", "AB+", 130),
    ("Vikram", "Singh", "+919834567890", "O-", 112),
    ("Ananya", "Reddy", "+918901234567", "A+", None),
    ("Rohan", "Gupta", "+919567890123", "B-", 14),
]

# (first name, last name, contact, job role, email, assignment)
STAFF = [
    ("Sameer", "Khan", "+919900112233", "Medical Officer", "sameer.khan@bloodbank.org", None),
    ("Lakshmi", "Nair", "+919988776655", "Nurse", "lakshmi.nair@bloodbank.org", StaffAssignment.DRIVE),
    ("Rajesh", "Yadav", "+919977665544", "Field Coordinator", "rajesh.yadav@bloodbank.org", StaffAssignment.FIELD),
    ("Pooja", "Deshmukh", "+919955443322", "Phlebotomist", "pooja.d@bloodbank.org", StaffAssignment.DRIVE),
]

# (location, days from today, capacity)
EVENTS = [
    ("Juhu Beach Community Hall, Mumbai", 0, 80),
    ("Infotech Park, Hinjewadi, Pune", 2, 120),
    ("Koramangala Indoor Stadium, Bangalore", 8, 150),
    ("Anna Nagar Tower Park, Chennai", 16, 100),
    ("Sector 17 Plaza, Chandigarh", 23, 60),
]

# (donor index, event index, time slot)
BOOKINGS = [
    (2, 0, time(11, 0)),
    (3, 1, time(14, 0)),
    (4, 1, time(14, 30)),
    (5, 2, time(10, 30)),
]

# (donor index, event index, time slot, collected volume, screening result)
DONATIONS = [
    (2, 0, time(9, 30), 450.0, "pass"),
    (5, 0, time(10, 0), 420.0, "pass"),
    (4, 1, time(15, 0), 480.0, "fail"),
]


def seed_program(database_url):
    engine = build_engine(database_url)
    init_db(engine)
    Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = Session()
    today = local_today()

    try:
        if session.query(Donor).first():
            print("Error: database already holds donors, refusing to seed twice")
            return

        donors = []
        for first_name, last_name, contact, blood_type, days_ago in DONORS:
            last_donation = today - timedelta(days=days_ago) if days_ago is not None else None
            donors.append(registry.create_donor(
                session, first_name, last_name, contact, blood_type, last_donation_date=last_donation
            ))

        for first_name, last_name, contact, job_role, email, assignment in STAFF:
            registry.create_staff(session, first_name, last_name, contact, job_role, email, assignment)

        events = [
            registry.create_drive_event(session, location, today + timedelta(days=offset), capacity)
            for location, offset, capacity in EVENTS
        ]

        for donor_index, event_index, slot in BOOKINGS:
            appointments.create_appointment(
                session, donors[donor_index].id, events[event_index].id, slot, enforce_eligibility=False
            )

        units = 0
        for donor_index, event_index, slot, volume, result in DONATIONS:
            outcome = appointments.create_appointment(
                session, donors[donor_index].id, events[event_index].id, slot, enforce_eligibility=False
            )
            appointment_id = outcome.appointment.id
            appointments.transition_appointment(session, appointment_id, AppointmentStatus.CONFIRMED)
            appointment = appointments.transition_appointment(
                session, appointment_id, AppointmentStatus.COMPLETED, volume=volume
            )
            blood_units.record_screening_result(session, appointment.blood_unit.id, result)
            units += 1

        print(f"Seeded {len(donors)} donors, {len(STAFF)} staff, {len(events)} drive events")
        print(f"Collected and screened {units} blood units")

    except Exception as e:
        session.rollback()
        print(f"Error seeding database: {str(e)}")
    finally:
        session.close()

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the blood drive database with a sample program")
    parser.add_argument("--database-url", default=settings.DATABASE_URL, help="Database URL (defaults to settings)")

    args = parser.parse_args()

    seed_program(args.database_url)
