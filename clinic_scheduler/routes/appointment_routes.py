from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_scheduler.auth.dependencies import get_current_provider, get_db
from clinic_scheduler.core import config
from clinic_scheduler.errors import SchedulingError
from clinic_scheduler.models.appointment import Appointment
from clinic_scheduler.models.enums import AppointmentStatus
from clinic_scheduler.models.user import User
from clinic_scheduler.routes.http_errors import (
    database_unavailable,
    ensure_database_ready,
    get_now,
    to_http_exception,
)
from clinic_scheduler.scheduling import booking
from clinic_scheduler.scheduling.time_windows import to_provider_local

router = APIRouter(tags=['appointments'])

MAX_APPOINTMENT_NOTES_LENGTH = 600


def _normalize_notes(value: str | None) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
        raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

    return normalized


class CreateAppointmentRequest(BaseModel):
    patient_id: int
    scheduled_at: datetime
    duration_minutes: int = Field(default=config.DEFAULT_APPOINTMENT_DURATION_MINUTES, gt=0)
    notes: str | None = None

    @field_validator('scheduled_at')
    @classmethod
    def normalize_scheduled_at(cls, value: datetime) -> datetime:
        return to_provider_local(value)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _normalize_notes(value)


class RescheduleAppointmentRequest(BaseModel):
    scheduled_at: datetime
    duration_minutes: int | None = Field(default=None, gt=0)

    @field_validator('scheduled_at')
    @classmethod
    def normalize_scheduled_at(cls, value: datetime) -> datetime:
        return to_provider_local(value)


class UpdateStatusRequest(BaseModel):
    status: AppointmentStatus


class AppointmentResponse(BaseModel):
    id: int
    provider_id: int
    patient_id: int
    scheduled_at: datetime
    ends_at: datetime
    duration_minutes: int
    status: AppointmentStatus
    notes: str | None = None

    class Config:
        from_attributes = True


@router.get('', response_model=list[AppointmentResponse])
def list_upcoming_appointments(
    include_cancelled: bool = False,
    provider: User = Depends(get_current_provider),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    ensure_database_ready()

    try:
        query = db.query(Appointment).filter(
            Appointment.provider_id == provider.id,
            Appointment.scheduled_at >= now,
        )
        if not include_cancelled:
            query = query.filter(Appointment.status != AppointmentStatus.CANCELLED)

        return query.order_by(Appointment.scheduled_at.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    provider: User = Depends(get_current_provider),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    ensure_database_ready()

    try:
        return booking.book(
            db,
            provider.id,
            data.patient_id,
            data.scheduled_at,
            data.duration_minutes,
            now,
            notes=data.notes,
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc


@router.patch('/{appointment_id}/reschedule', response_model=AppointmentResponse)
def reschedule_appointment(
    appointment_id: int,
    data: RescheduleAppointmentRequest,
    provider: User = Depends(get_current_provider),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    ensure_database_ready()

    try:
        return booking.reschedule(
            db,
            appointment_id,
            provider.id,
            data.scheduled_at,
            now,
            duration_minutes=data.duration_minutes,
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc


@router.patch('/{appointment_id}/status', response_model=AppointmentResponse)
def change_appointment_status(
    appointment_id: int,
    data: UpdateStatusRequest,
    provider: User = Depends(get_current_provider),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return booking.update_status(db, appointment_id, provider.id, data.status)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
