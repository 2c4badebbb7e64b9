from datetime import time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from conftest import BEFORE_MONDAY, MONDAY_INDEX, add_window
from clinic_scheduler.auth.dependencies import get_db
from clinic_scheduler.auth.jwt_handler import create_access_token
from clinic_scheduler.database import Base
from clinic_scheduler.main import app
from clinic_scheduler.models.enums import UserRole
from clinic_scheduler.models.user import User
from clinic_scheduler.routes.http_errors import get_now


@pytest.fixture
def shared_db(monkeypatch: pytest.MonkeyPatch):
    # The app runs sync routes in a worker thread, so every session must share one connection.
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    for module in ('availability_routes', 'time_block_routes', 'appointment_routes', 'booking_routes'):
        monkeypatch.setattr(f'clinic_scheduler.routes.{module}.ensure_database_ready', lambda: None)

    def override_get_db():
        session = testing_session_local()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: BEFORE_MONDAY

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        app.dependency_overrides.clear()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(shared_db) -> TestClient:
    return TestClient(app)


@pytest.fixture
def shared_provider(shared_db) -> User:
    user = User(email='nutri@example.com', full_name='Ana Souza', hashed_password='', role=UserRole.PROVIDER)
    shared_db.add(user)
    shared_db.commit()
    shared_db.refresh(user)
    return user


def _auth_header(email: str) -> dict:
    return {'Authorization': f'Bearer {create_access_token(email)}'}


def test_root_reports_running(client) -> None:
    response = client.get('/')

    assert response.status_code == 200
    assert response.json() == {'status': 'Clinic Scheduler API Running'}


def test_provider_routes_require_bearer_token(client) -> None:
    response = client.get('/availability/windows')

    assert response.status_code in {401, 403}


def test_provider_routes_reject_invalid_token(client) -> None:
    response = client.get('/availability/windows', headers={'Authorization': 'Bearer not-a-jwt'})

    assert response.status_code == 401
    assert response.json() == {'detail': 'Invalid token'}


def test_provider_routes_refuse_non_provider(client, shared_db) -> None:
    shared_db.add(User(email='someone@example.com', full_name='Someone', hashed_password='', role=UserRole.PATIENT))
    shared_db.commit()

    response = client.get('/availability/windows', headers=_auth_header('someone@example.com'))

    assert response.status_code == 403


def test_slots_endpoint_serializes_slots(client, shared_db, shared_provider) -> None:
    add_window(shared_db, shared_provider.id, MONDAY_INDEX, time(8, 0), time(10, 0))

    response = client.get(
        '/availability/slots',
        params={'date': '2026-01-05', 'duration_minutes': 60},
        headers=_auth_header(shared_provider.email),
    )

    assert response.status_code == 200
    body = response.json()
    assert [slot['start'] for slot in body] == ['2026-01-05T08:00:00', '2026-01-05T08:30:00', '2026-01-05T09:00:00']
    assert body[0] == {
        'start': '2026-01-05T08:00:00',
        'end': '2026-01-05T09:00:00',
        'duration_minutes': 60,
        'available': True,
        'reason': None,
        'block_title': None,
    }


def test_schedule_overlap_is_conflict_over_http(client, shared_provider) -> None:
    response = client.put(
        '/availability/windows',
        json={'windows': [
            {'day_of_week': 1, 'start_time': '09:00', 'end_time': '12:00'},
            {'day_of_week': 1, 'start_time': '11:00', 'end_time': '13:00'},
        ]},
        headers=_auth_header(shared_provider.email),
    )

    assert response.status_code == 409
    assert response.json()['detail']['conflict']['day_of_week'] == 1


def test_public_booking_flow_over_http(client, shared_db, shared_provider) -> None:
    add_window(shared_db, shared_provider.id, MONDAY_INDEX, time(8, 0), time(12, 0))
    payload = {
        'provider_id': shared_provider.id,
        'patient': {'full_name': 'Carla Dias', 'email': 'carla@example.com'},
        'scheduled_at': '2026-01-05T09:00:00',
        'duration_minutes': 60,
    }

    first = client.post('/booking/appointments', json=payload)
    second = client.post('/booking/appointments', json=payload)

    assert first.status_code == 201
    assert first.json()['provider_name'] == 'Ana Souza'
    assert second.status_code == 409
    assert second.json()['detail']['failure'] == 'occupied'
