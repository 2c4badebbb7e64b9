from datetime import datetime, time

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from conftest import BEFORE_MONDAY, MONDAY, MONDAY_INDEX, add_appointment, add_block, add_window
from clinic_scheduler.routes.availability_routes import (
    SaveScheduleRequest,
    ToggleWindowRequest,
    check_slot,
    list_durations,
    list_slots,
    list_slots_for_range,
    list_windows,
    replace_windows,
    toggle_window,
)
from clinic_scheduler.scheduling.results import SlotFailure, UnavailableReason


@pytest.fixture(autouse=True)
def skip_schema_check(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('clinic_scheduler.routes.availability_routes.ensure_database_ready', lambda: None)


def test_replace_windows_saves_schedule(db, provider) -> None:
    request = SaveScheduleRequest(windows=[
        {'day_of_week': 1, 'start_time': '08:00', 'end_time': '12:00'},
        {'day_of_week': 1, 'start_time': '12:00', 'end_time': '13:00'},
    ])

    saved = replace_windows(data=request, provider=provider, db=db)

    assert [(window.start_time, window.end_time) for window in saved] == [
        (time(8, 0), time(12, 0)),
        (time(12, 0), time(13, 0)),
    ]
    assert len(list_windows(provider=provider, db=db)) == 2


def test_replace_windows_returns_conflict_on_overlap(db, provider) -> None:
    request = SaveScheduleRequest(windows=[
        {'day_of_week': 1, 'start_time': '09:00', 'end_time': '12:00'},
        {'day_of_week': 1, 'start_time': '11:00', 'end_time': '13:00'},
    ])

    with pytest.raises(HTTPException) as exception_info:
        replace_windows(data=request, provider=provider, db=db)

    assert exception_info.value.status_code == 409
    conflict = exception_info.value.detail['conflict']
    assert conflict['day_of_week'] == 1
    assert conflict['first']['start_time'] == '09:00:00'
    assert conflict['second']['start_time'] == '11:00:00'


def test_save_schedule_request_rejects_inverted_window() -> None:
    with pytest.raises(ValidationError):
        SaveScheduleRequest(windows=[{'day_of_week': 1, 'start_time': '12:00', 'end_time': '08:00'}])


def test_toggle_window_returns_not_found_for_other_provider(db, provider) -> None:
    window = add_window(db, provider.id + 1, MONDAY_INDEX, time(8, 0), time(12, 0))

    with pytest.raises(HTTPException) as exception_info:
        toggle_window(window_id=window.id, data=ToggleWindowRequest(is_active=False), provider=provider, db=db)

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Availability window not found.'


def test_list_durations_marks_default() -> None:
    options = list_durations()

    assert [option.duration_minutes for option in options] == [30, 45, 60, 90, 120]
    assert [option.duration_minutes for option in options if option.is_default] == [60]


def test_list_slots_returns_structured_reasons(db, provider) -> None:
    add_window(db, provider.id, MONDAY_INDEX, time(8, 0), time(12, 0))
    add_block(db, provider.id, datetime(2026, 1, 5, 10, 0), datetime(2026, 1, 5, 10, 30), title='Dentist')

    slots = list_slots(slot_date=MONDAY, duration_minutes=60, provider=provider, db=db, now=BEFORE_MONDAY)

    assert len(slots) == 7
    blocked = [slot for slot in slots if slot.reason == UnavailableReason.BLOCKED]
    assert [slot.start.time() for slot in blocked] == [time(9, 30), time(10, 0)]
    assert {slot.block_title for slot in blocked} == {'Dentist'}


def test_list_slots_rejects_zero_duration(db, provider) -> None:
    with pytest.raises(HTTPException) as exception_info:
        list_slots(slot_date=MONDAY, duration_minutes=0, provider=provider, db=db, now=BEFORE_MONDAY)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Duration must be positive.'


def test_list_slots_for_range_rejects_long_ranges(db, provider) -> None:
    with pytest.raises(HTTPException) as exception_info:
        list_slots_for_range(
            start_date=datetime(2026, 1, 1).date(),
            end_date=datetime(2026, 3, 1).date(),
            duration_minutes=60,
            provider=provider,
            db=db,
            now=BEFORE_MONDAY,
        )

    assert exception_info.value.status_code == 400


def test_list_slots_for_range_groups_by_day(db, provider) -> None:
    add_window(db, provider.id, MONDAY_INDEX, time(8, 0), time(9, 0))

    days = list_slots_for_range(
        start_date=MONDAY,
        end_date=datetime(2026, 1, 6).date(),
        duration_minutes=60,
        provider=provider,
        db=db,
        now=BEFORE_MONDAY,
    )

    assert [day.date for day in days] == [MONDAY, datetime(2026, 1, 6).date()]
    assert len(days[0].slots) == 1
    assert days[1].slots == []


def test_check_slot_reports_occupied_and_self_edit(db, provider, patient) -> None:
    add_window(db, provider.id, MONDAY_INDEX, time(8, 0), time(12, 0))
    appointment = add_appointment(db, provider.id, patient.id, datetime(2026, 1, 5, 9, 0))

    occupied = check_slot(
        start_time=datetime(2026, 1, 5, 9, 0),
        duration_minutes=60,
        exclude_appointment_id=None,
        provider=provider,
        db=db,
        now=BEFORE_MONDAY,
    )
    self_edit = check_slot(
        start_time=datetime(2026, 1, 5, 9, 0),
        duration_minutes=60,
        exclude_appointment_id=appointment.id,
        provider=provider,
        db=db,
        now=BEFORE_MONDAY,
    )

    assert occupied.failure == SlotFailure.OCCUPIED
    assert self_edit.is_valid is True


def test_slot_routes_answer_oversized_durations_without_error(db, provider) -> None:
    add_window(db, provider.id, MONDAY_INDEX, time(8, 0), time(12, 0))

    slots = list_slots(slot_date=MONDAY, duration_minutes=10**10, provider=provider, db=db, now=BEFORE_MONDAY)
    result = check_slot(
        start_time=datetime(2026, 1, 5, 9, 0),
        duration_minutes=10**10,
        exclude_appointment_id=None,
        provider=provider,
        db=db,
        now=BEFORE_MONDAY,
    )

    assert slots == []
    assert result.failure == SlotFailure.OUTSIDE_AVAILABILITY
