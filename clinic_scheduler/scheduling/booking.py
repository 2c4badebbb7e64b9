"""
Booking Orchestrator

The only write path for new appointments. Provider-side scheduling and
the public booking page both come through :func:`book`; they differ only
in how the provider and patient were identified before the call.
"""

import logging
from datetime import datetime

from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_scheduler.core import config
from clinic_scheduler.errors import (
    BookingError,
    InvalidSlotRequest,
    InvalidTransitionError,
    NotFoundError,
    StoreUnavailableError,
)
from clinic_scheduler.models.appointment import Appointment
from clinic_scheduler.models.enums import TERMINAL_STATUSES, AppointmentStatus
from clinic_scheduler.models.patient import Patient
from clinic_scheduler.scheduling.results import SlotFailure, ValidationResult
from clinic_scheduler.scheduling.time_windows import require_positive_duration
from clinic_scheduler.scheduling.validation import validate_slot

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    AppointmentStatus.SCHEDULED: {
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    },
    AppointmentStatus.CONFIRMED: {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    },
    AppointmentStatus.COMPLETED: set(),
    AppointmentStatus.CANCELLED: set(),
    AppointmentStatus.NO_SHOW: set(),
}


class PatientDetails(BaseModel):
    """Identity supplied by a public booker who has no patient record yet."""
    full_name: str
    email: str
    phone: str | None = None
    notes: str | None = None

    @field_validator('full_name')
    @classmethod
    def validate_full_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Patient name is required.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        local_part, _, domain = normalized.partition('@')
        if not local_part or '.' not in domain or ' ' in normalized:
            raise ValueError('Invalid email.')
        return normalized


def _check_duration(duration_minutes: int) -> None:
    require_positive_duration(duration_minutes)
    if duration_minutes > config.MAX_APPOINTMENT_DURATION_MINUTES:
        raise InvalidSlotRequest(
            'Duration exceeds the longest appointment allowed.',
            details={'duration_minutes': duration_minutes},
        )


def _resolve_patient_id(db: Session, provider_id: int, patient: int | PatientDetails) -> int:
    if isinstance(patient, PatientDetails):
        existing = db.query(Patient).filter(
            Patient.provider_id == provider_id,
            Patient.email == patient.email,
        ).first()
        if existing is not None:
            return existing.id

        created = Patient(
            provider_id=provider_id,
            full_name=patient.full_name,
            email=patient.email,
            phone=patient.phone,
            notes=patient.notes,
        )
        db.add(created)
        db.flush()
        return created.id

    found = db.query(Patient.id).filter(
        Patient.id == patient,
        Patient.provider_id == provider_id,
    ).first()
    if found is None:
        raise NotFoundError('Patient not found.', details={'patient_id': patient})
    return patient


def book(
    db: Session,
    provider_id: int,
    patient: int | PatientDetails,
    start: datetime,
    duration_minutes: int,
    now: datetime,
    notes: str | None = None,
) -> Appointment:
    """Validate the slot and persist a ``scheduled`` appointment.

    ``patient`` is an existing patient id, or the details of a public
    booker, who is looked up by email and created in the same transaction
    as the appointment. Raises :class:`BookingError` with the validator's
    failure when the slot is not bookable. A uniqueness conflict at commit
    means another booking landed in between; the whole transaction is
    rolled back and the slot re-validated.
    """
    _check_duration(duration_minutes)

    for attempt in range(1, config.BOOKING_COMMIT_ATTEMPTS + 1):
        result = validate_slot(db, provider_id, start, duration_minutes, now)
        if not result.is_valid:
            raise BookingError(result)

        try:
            patient_id = _resolve_patient_id(db, provider_id, patient)
            appointment = Appointment(
                provider_id=provider_id,
                patient_id=patient_id,
                scheduled_at=start,
                duration_minutes=duration_minutes,
                status=AppointmentStatus.SCHEDULED,
                notes=notes,
            )
            db.add(appointment)
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(
                'Booking conflict on commit for provider %s at %s (attempt %d)',
                provider_id, start, attempt,
            )
            continue
        except SQLAlchemyError as exc:
            db.rollback()
            raise StoreUnavailableError(details={'operation': 'book'}) from exc
        except NotFoundError:
            db.rollback()
            raise

        db.refresh(appointment)
        logger.info(
            'Booked appointment %s for provider %s at %s (%d min)',
            appointment.id, provider_id, start, duration_minutes,
        )
        return appointment

    raise BookingError(ValidationResult.rejected(SlotFailure.OCCUPIED))


def _get_appointment(db: Session, appointment_id: int, provider_id: int) -> Appointment:
    try:
        appointment = db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.provider_id == provider_id,
        ).first()
    except SQLAlchemyError as exc:
        raise StoreUnavailableError(details={'operation': 'get_appointment'}) from exc

    if appointment is None:
        raise NotFoundError('Appointment not found.', details={'appointment_id': appointment_id})
    return appointment


def reschedule(
    db: Session,
    appointment_id: int,
    provider_id: int,
    new_start: datetime,
    now: datetime,
    duration_minutes: int | None = None,
) -> Appointment:
    appointment = _get_appointment(db, appointment_id, provider_id)

    if appointment.status in TERMINAL_STATUSES:
        raise InvalidTransitionError(
            'Only scheduled or confirmed appointments can be rescheduled.',
            details={'status': appointment.status.value},
        )

    new_duration = duration_minutes if duration_minutes is not None else appointment.duration_minutes
    _check_duration(new_duration)

    result = validate_slot(
        db, provider_id, new_start, new_duration, now, exclude_appointment_id=appointment.id,
    )
    if not result.is_valid:
        raise BookingError(result)

    appointment.scheduled_at = new_start
    appointment.duration_minutes = new_duration
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning('Reschedule conflict on commit for appointment %s at %s', appointment_id, new_start)
        raise BookingError(ValidationResult.rejected(SlotFailure.OCCUPIED))
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreUnavailableError(details={'operation': 'reschedule'}) from exc

    db.refresh(appointment)
    return appointment


def update_status(
    db: Session,
    appointment_id: int,
    provider_id: int,
    status: AppointmentStatus,
) -> Appointment:
    appointment = _get_appointment(db, appointment_id, provider_id)

    if status not in ALLOWED_TRANSITIONS[appointment.status]:
        raise InvalidTransitionError(
            f'Cannot change appointment from {appointment.status.value} to {status.value}.',
            details={'from': appointment.status.value, 'to': status.value},
        )

    appointment.status = status
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreUnavailableError(details={'operation': 'update_status'}) from exc

    db.refresh(appointment)
    logger.info('Appointment %s moved to %s', appointment_id, status.value)
    return appointment


def cancel(db: Session, appointment_id: int, provider_id: int) -> Appointment:
    return update_status(db, appointment_id, provider_id, AppointmentStatus.CANCELLED)
