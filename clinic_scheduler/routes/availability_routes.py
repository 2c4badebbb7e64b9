from datetime import date, datetime, time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from clinic_scheduler.auth.dependencies import get_current_provider, get_db
from clinic_scheduler.core import config
from clinic_scheduler.errors import SchedulingError
from clinic_scheduler.models.user import User
from clinic_scheduler.routes.http_errors import ensure_database_ready, get_now, to_http_exception
from clinic_scheduler.scheduling import stores
from clinic_scheduler.scheduling.results import Slot, ValidationResult
from clinic_scheduler.scheduling.schedule import WindowInput, save_weekly_schedule, set_window_active
from clinic_scheduler.scheduling.slots import generate_slots, generate_slots_for_range
from clinic_scheduler.scheduling.time_windows import to_provider_local
from clinic_scheduler.scheduling.validation import validate_slot

router = APIRouter(tags=['availability'])


class AvailabilityWindowResponse(BaseModel):
    id: int
    day_of_week: int
    start_time: time
    end_time: time
    is_active: bool

    class Config:
        from_attributes = True


class SaveScheduleRequest(BaseModel):
    windows: list[WindowInput]


class ToggleWindowRequest(BaseModel):
    is_active: bool


class DurationOptionResponse(BaseModel):
    duration_minutes: int
    is_default: bool


class DaySlotsResponse(BaseModel):
    date: date
    slots: list[Slot]


@router.get('/windows', response_model=list[AvailabilityWindowResponse])
def list_windows(
    provider: User = Depends(get_current_provider),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return stores.windows_for_provider(db, provider.id)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc


@router.put('/windows', response_model=list[AvailabilityWindowResponse])
def replace_windows(
    data: SaveScheduleRequest,
    provider: User = Depends(get_current_provider),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return save_weekly_schedule(db, provider.id, data.windows)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc


@router.patch('/windows/{window_id}', response_model=AvailabilityWindowResponse)
def toggle_window(
    window_id: int,
    data: ToggleWindowRequest,
    provider: User = Depends(get_current_provider),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return set_window_active(db, provider.id, window_id, data.is_active)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc


@router.get('/durations', response_model=list[DurationOptionResponse])
def list_durations():
    return [
        DurationOptionResponse(
            duration_minutes=duration_minutes,
            is_default=duration_minutes == config.DEFAULT_APPOINTMENT_DURATION_MINUTES,
        )
        for duration_minutes in config.OFFERED_DURATIONS
    ]


@router.get('/slots', response_model=list[Slot])
def list_slots(
    slot_date: date = Query(..., alias='date'),
    duration_minutes: int = Query(default=config.DEFAULT_APPOINTMENT_DURATION_MINUTES),
    provider: User = Depends(get_current_provider),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    ensure_database_ready()

    try:
        return generate_slots(db, provider.id, slot_date, duration_minutes, now)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc


@router.get('/slots/range', response_model=list[DaySlotsResponse])
def list_slots_for_range(
    start_date: date = Query(...),
    end_date: date = Query(...),
    duration_minutes: int = Query(default=config.DEFAULT_APPOINTMENT_DURATION_MINUTES),
    provider: User = Depends(get_current_provider),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    if (end_date - start_date).days >= config.SLOT_RANGE_MAX_DAYS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'Date ranges are limited to {config.SLOT_RANGE_MAX_DAYS} days.',
        )

    ensure_database_ready()

    try:
        slots_by_day = generate_slots_for_range(db, provider.id, start_date, end_date, duration_minutes, now)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc

    return [DaySlotsResponse(date=day, slots=slots) for day, slots in slots_by_day.items()]


@router.get('/validate', response_model=ValidationResult)
def check_slot(
    start_time: datetime = Query(...),
    duration_minutes: int = Query(default=config.DEFAULT_APPOINTMENT_DURATION_MINUTES),
    exclude_appointment_id: int | None = Query(default=None),
    provider: User = Depends(get_current_provider),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    ensure_database_ready()

    try:
        return validate_slot(
            db,
            provider.id,
            to_provider_local(start_time),
            duration_minutes,
            now,
            exclude_appointment_id=exclude_appointment_id,
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
