import os
from datetime import date, datetime, time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')
os.environ.setdefault('PROVIDER_TIMEZONE', 'America/Sao_Paulo')

from clinic_scheduler.database import Base  # noqa: E402
from clinic_scheduler.models.appointment import Appointment  # noqa: E402
from clinic_scheduler.models.availability import AvailabilityWindow  # noqa: E402
from clinic_scheduler.models.enums import AppointmentStatus, BlockKind, UserRole  # noqa: E402
from clinic_scheduler.models.exclusion_block import ExclusionBlock  # noqa: E402
from clinic_scheduler.models.patient import Patient  # noqa: E402
from clinic_scheduler.models.user import User  # noqa: E402

# 2026-01-05 is a Monday (Sunday-based day_of_week 1).
MONDAY = date(2026, 1, 5)
MONDAY_INDEX = 1
BEFORE_MONDAY = datetime(2026, 1, 4, 12, 0)


@pytest.fixture
def db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def provider(db) -> User:
    user = User(email='nutri@example.com', full_name='Ana Souza', hashed_password='', role=UserRole.PROVIDER)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def patient(db, provider) -> Patient:
    record = Patient(provider_id=provider.id, full_name='Bruno Lima', email='bruno@example.com')
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def add_window(db, provider_id: int, day_of_week: int, start: time, end: time, is_active: bool = True):
    window = AvailabilityWindow(
        provider_id=provider_id,
        day_of_week=day_of_week,
        start_time=start,
        end_time=end,
        is_active=is_active,
    )
    db.add(window)
    db.commit()
    db.refresh(window)
    return window


def add_block(db, provider_id: int, start: datetime, end: datetime, title: str = 'Dentist',
              kind: BlockKind = BlockKind.PERSONAL):
    block = ExclusionBlock(provider_id=provider_id, start_datetime=start, end_datetime=end, title=title, kind=kind)
    db.add(block)
    db.commit()
    db.refresh(block)
    return block


def add_appointment(db, provider_id: int, patient_id: int, scheduled_at: datetime, duration_minutes: int = 60,
                    status: AppointmentStatus = AppointmentStatus.SCHEDULED):
    appointment = Appointment(
        provider_id=provider_id,
        patient_id=patient_id,
        scheduled_at=scheduled_at,
        duration_minutes=duration_minutes,
        status=status,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment
