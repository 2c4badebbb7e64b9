import logging
from datetime import datetime

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from clinic_scheduler.database import ensure_scheduling_schema
from clinic_scheduler.errors import (
    BookingError,
    InvalidSlotRequest,
    InvalidTransitionError,
    NotFoundError,
    OverlapConflictError,
    SchedulingError,
    StoreUnavailableError,
)
from clinic_scheduler.scheduling.results import SlotFailure
from clinic_scheduler.scheduling.time_windows import local_now

logger = logging.getLogger(__name__)

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'

FAILURE_MESSAGES = {
    SlotFailure.PAST_TIME: 'Appointments must be scheduled in the future.',
    SlotFailure.NO_AVAILABILITY: 'The provider does not see patients on this day.',
    SlotFailure.OUTSIDE_AVAILABILITY: "This time is outside the provider's availability.",
    SlotFailure.BLOCKED: 'This time is blocked.',
    SlotFailure.OCCUPIED: 'This time is already booked.',
}

# Configuration and temporal failures are the caller's input; the rest are conflicts.
BAD_REQUEST_FAILURES = {
    SlotFailure.PAST_TIME,
    SlotFailure.NO_AVAILABILITY,
    SlotFailure.OUTSIDE_AVAILABILITY,
}


def get_now() -> datetime:
    return local_now()


def ensure_database_ready() -> None:
    try:
        ensure_scheduling_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


def database_unavailable(exc: Exception) -> HTTPException:
    logger.exception('Store failure while handling request', exc_info=exc)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


def booking_failure_detail(exc: BookingError) -> dict:
    return {
        'failure': exc.failure.value,
        'message': FAILURE_MESSAGES[exc.failure],
        **{key: value for key, value in exc.details.items() if key not in {'is_valid', 'failure'}},
    }


def to_http_exception(exc: SchedulingError) -> HTTPException:
    if isinstance(exc, StoreUnavailableError):
        return database_unavailable(exc)

    if isinstance(exc, InvalidSlotRequest):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)

    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)

    if isinstance(exc, OverlapConflictError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={'message': exc.message, 'conflict': exc.details},
        )

    if isinstance(exc, BookingError):
        status_code = (
            status.HTTP_400_BAD_REQUEST
            if exc.failure in BAD_REQUEST_FAILURES
            else status.HTTP_409_CONFLICT
        )
        return HTTPException(status_code=status_code, detail=booking_failure_detail(exc))

    if isinstance(exc, InvalidTransitionError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message)

    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail='Could not evaluate the scheduling request.',
    )
