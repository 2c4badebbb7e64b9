"""Unauthenticated booking flow used by the public booking page."""

from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_scheduler.auth.dependencies import get_db
from clinic_scheduler.core import config
from clinic_scheduler.errors import SchedulingError
from clinic_scheduler.models.enums import UserRole
from clinic_scheduler.models.user import User
from clinic_scheduler.routes.http_errors import (
    database_unavailable,
    ensure_database_ready,
    get_now,
    to_http_exception,
)
from clinic_scheduler.scheduling import booking
from clinic_scheduler.scheduling.booking import PatientDetails
from clinic_scheduler.scheduling.results import Slot
from clinic_scheduler.scheduling.slots import find_next_available_slot, generate_slots
from clinic_scheduler.scheduling.time_windows import to_provider_local

router = APIRouter(tags=['booking'])

MAX_BOOKING_NOTES_LENGTH = 600
PUBLIC_DURATION_MESSAGE = (
    f'Duration must be between {config.PUBLIC_MIN_DURATION_MINUTES} '
    f'and {config.PUBLIC_MAX_DURATION_MINUTES} minutes.'
)


def is_public_duration(duration_minutes: int) -> bool:
    return config.PUBLIC_MIN_DURATION_MINUTES <= duration_minutes <= config.PUBLIC_MAX_DURATION_MINUTES


def require_public_duration(duration_minutes: int) -> None:
    if not is_public_duration(duration_minutes):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=PUBLIC_DURATION_MESSAGE,
        )


class PublicBookingRequest(BaseModel):
    provider_id: int
    patient: PatientDetails
    scheduled_at: datetime
    duration_minutes: int = config.DEFAULT_APPOINTMENT_DURATION_MINUTES
    notes: str | None = None

    @field_validator('scheduled_at')
    @classmethod
    def normalize_scheduled_at(cls, value: datetime) -> datetime:
        return to_provider_local(value)

    @field_validator('duration_minutes')
    @classmethod
    def validate_duration(cls, value: int) -> int:
        if not is_public_duration(value):
            raise ValueError(PUBLIC_DURATION_MESSAGE)
        return value

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_BOOKING_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_BOOKING_NOTES_LENGTH} characters or fewer.')

        return normalized


class PublicBookingResponse(BaseModel):
    appointment_id: int
    patient_id: int
    provider_name: str | None = None
    scheduled_at: datetime
    duration_minutes: int


class NextSlotResponse(BaseModel):
    slot: Slot | None = None


def get_public_provider(db: Session, provider_id: int) -> User:
    try:
        provider = db.query(User).filter(
            User.id == provider_id,
            User.role == UserRole.PROVIDER,
            User.is_active.is_(True),
        ).first()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    if provider is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Provider not found.',
        )
    return provider


@router.get('/providers/{provider_id}/slots', response_model=list[Slot])
def list_public_slots(
    provider_id: int,
    slot_date: date = Query(..., alias='date'),
    duration_minutes: int = Query(default=config.DEFAULT_APPOINTMENT_DURATION_MINUTES),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    require_public_duration(duration_minutes)
    ensure_database_ready()
    provider = get_public_provider(db, provider_id)

    try:
        return generate_slots(db, provider.id, slot_date, duration_minutes, now)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc


@router.get('/providers/{provider_id}/next-slot', response_model=NextSlotResponse)
def get_next_slot(
    provider_id: int,
    duration_minutes: int = Query(default=config.DEFAULT_APPOINTMENT_DURATION_MINUTES),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    require_public_duration(duration_minutes)
    ensure_database_ready()
    provider = get_public_provider(db, provider_id)

    try:
        slot = find_next_available_slot(
            db,
            provider.id,
            now.date(),
            duration_minutes,
            now,
            max_days_ahead=config.NEXT_SLOT_MAX_DAYS_AHEAD,
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc

    return NextSlotResponse(slot=slot)


@router.post('/appointments', response_model=PublicBookingResponse, status_code=status.HTTP_201_CREATED)
def create_public_booking(
    data: PublicBookingRequest,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    ensure_database_ready()
    provider = get_public_provider(db, data.provider_id)

    try:
        appointment = booking.book(
            db,
            provider.id,
            data.patient,
            data.scheduled_at,
            data.duration_minutes,
            now,
            notes=data.notes,
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc

    return PublicBookingResponse(
        appointment_id=appointment.id,
        patient_id=appointment.patient_id,
        provider_name=provider.full_name,
        scheduled_at=appointment.scheduled_at,
        duration_minutes=appointment.duration_minutes,
    )
