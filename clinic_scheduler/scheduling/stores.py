"""Read access to the availability, exclusion and appointment stores."""

from datetime import datetime, timedelta
from functools import wraps

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_scheduler.core import config
from clinic_scheduler.errors import StoreUnavailableError
from clinic_scheduler.models.appointment import Appointment
from clinic_scheduler.models.availability import AvailabilityWindow
from clinic_scheduler.models.enums import AppointmentStatus
from clinic_scheduler.models.exclusion_block import ExclusionBlock
from clinic_scheduler.scheduling.time_windows import appointment_interval, overlaps


def _store_read(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(details={'operation': func.__name__}) from exc

    return wrapper


@_store_read
def active_windows_for_day(db: Session, provider_id: int, day_of_week: int) -> list[AvailabilityWindow]:
    return db.query(AvailabilityWindow).filter(
        AvailabilityWindow.provider_id == provider_id,
        AvailabilityWindow.day_of_week == day_of_week,
        AvailabilityWindow.is_active.is_(True),
    ).order_by(AvailabilityWindow.start_time.asc(), AvailabilityWindow.id.asc()).all()


@_store_read
def windows_for_provider(db: Session, provider_id: int) -> list[AvailabilityWindow]:
    return db.query(AvailabilityWindow).filter(
        AvailabilityWindow.provider_id == provider_id,
    ).order_by(
        AvailabilityWindow.day_of_week.asc(),
        AvailabilityWindow.start_time.asc(),
        AvailabilityWindow.id.asc(),
    ).all()


@_store_read
def blocks_intersecting(db: Session, provider_id: int, start: datetime, end: datetime) -> list[ExclusionBlock]:
    return db.query(ExclusionBlock).filter(
        ExclusionBlock.provider_id == provider_id,
        ExclusionBlock.start_datetime < end,
        ExclusionBlock.end_datetime > start,
    ).order_by(ExclusionBlock.start_datetime.asc(), ExclusionBlock.id.asc()).all()


@_store_read
def appointments_intersecting(
    db: Session,
    provider_id: int,
    start: datetime,
    end: datetime,
    exclude_appointment_id: int | None = None,
) -> list[Appointment]:
    """Non-cancelled appointments whose interval overlaps ``[start, end)``.

    The end of an appointment is not stored, so candidates are fetched by
    start only, reaching back by the longest duration an appointment may
    have, and filtered on their computed end.
    """
    lookback = timedelta(minutes=config.MAX_APPOINTMENT_DURATION_MINUTES)
    query = db.query(Appointment).filter(
        Appointment.provider_id == provider_id,
        Appointment.status != AppointmentStatus.CANCELLED,
        Appointment.scheduled_at < end,
        Appointment.scheduled_at > start - lookback,
    )
    if exclude_appointment_id is not None:
        query = query.filter(Appointment.id != exclude_appointment_id)

    candidates = query.order_by(Appointment.scheduled_at.asc(), Appointment.id.asc()).all()
    return [
        appointment
        for appointment in candidates
        if overlaps(start, end, *appointment_interval(appointment.scheduled_at, appointment.duration_minutes))
    ]
