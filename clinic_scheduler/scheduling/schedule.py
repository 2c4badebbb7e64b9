"""Saving a provider's weekly availability."""

import logging
from datetime import time

from pydantic import BaseModel, Field, model_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_scheduler.errors import NotFoundError, OverlapConflictError, StoreUnavailableError
from clinic_scheduler.models.availability import AvailabilityWindow
from clinic_scheduler.scheduling import stores
from clinic_scheduler.scheduling.overlap import check_overlap

logger = logging.getLogger(__name__)


class WindowInput(BaseModel):
    id: int | None = None
    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time
    is_active: bool = True

    @model_validator(mode='after')
    def validate_time_order(self) -> 'WindowInput':
        if self.start_time >= self.end_time:
            raise ValueError('Start time must be before end time.')
        return self


def save_weekly_schedule(db: Session, provider_id: int, windows: list[WindowInput]) -> list[AvailabilityWindow]:
    """Replace the provider's weekly schedule with ``windows``.

    Raises :class:`OverlapConflictError` before touching the store when
    two active windows of the same weekday intersect. Inactive windows
    are stored as given.
    """
    conflict = check_overlap(windows)
    if conflict is not None:
        raise OverlapConflictError(conflict)

    try:
        db.query(AvailabilityWindow).filter(
            AvailabilityWindow.provider_id == provider_id,
        ).delete(synchronize_session=False)
        db.add_all(
            AvailabilityWindow(
                provider_id=provider_id,
                day_of_week=window.day_of_week,
                start_time=window.start_time,
                end_time=window.end_time,
                is_active=window.is_active,
            )
            for window in windows
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreUnavailableError(details={'operation': 'save_weekly_schedule'}) from exc

    logger.info('Saved %d availability windows for provider %s', len(windows), provider_id)
    return stores.windows_for_provider(db, provider_id)


def set_window_active(db: Session, provider_id: int, window_id: int, is_active: bool) -> AvailabilityWindow:
    windows = stores.windows_for_provider(db, provider_id)
    target = next((window for window in windows if window.id == window_id), None)
    if target is None:
        raise NotFoundError('Availability window not found.', details={'window_id': window_id})

    if is_active and not target.is_active:
        proposed = [
            WindowInput(
                id=window.id,
                day_of_week=window.day_of_week,
                start_time=window.start_time,
                end_time=window.end_time,
                is_active=window.is_active or window.id == window_id,
            )
            for window in windows
        ]
        conflict = check_overlap(proposed)
        if conflict is not None:
            raise OverlapConflictError(conflict)

    target.is_active = is_active
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreUnavailableError(details={'operation': 'set_window_active'}) from exc

    db.refresh(target)
    return target
