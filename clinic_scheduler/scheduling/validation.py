"""Commit-time validation of a single chosen slot."""

from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from clinic_scheduler.scheduling import stores
from clinic_scheduler.scheduling.results import SlotFailure, ValidationResult
from clinic_scheduler.scheduling.time_windows import (
    contains,
    day_of_week,
    longer_than_a_day,
    require_positive_duration,
    window_bounds,
)


def validate_slot(
    db: Session,
    provider_id: int,
    start: datetime,
    duration_minutes: int,
    now: datetime,
    exclude_appointment_id: int | None = None,
) -> ValidationResult:
    """Re-check a slot against the stores as they are right now.

    Nothing computed by an earlier slot listing is trusted. Checks run in
    order and stop at the first failure: past time, weekday availability,
    containment in one active window, exclusion blocks, then other
    non-cancelled appointments. Pass ``exclude_appointment_id`` when moving
    an existing appointment so it does not collide with itself.
    """
    require_positive_duration(duration_minutes)

    if start < now:
        return ValidationResult.rejected(SlotFailure.PAST_TIME)

    windows = stores.active_windows_for_day(db, provider_id, day_of_week(start.date()))
    if not windows:
        return ValidationResult.rejected(SlotFailure.NO_AVAILABILITY)

    if longer_than_a_day(duration_minutes):
        return ValidationResult.rejected(SlotFailure.OUTSIDE_AVAILABILITY)
    end = start + timedelta(minutes=duration_minutes)

    # A slot spilling past midnight is never inside a same-day window.
    inside_window = any(
        contains(*window_bounds(start.date(), window.start_time, window.end_time), start, end)
        for window in windows
    )
    if not inside_window:
        return ValidationResult.rejected(SlotFailure.OUTSIDE_AVAILABILITY)

    blocks = stores.blocks_intersecting(db, provider_id, start, end)
    if blocks:
        return ValidationResult.rejected(
            SlotFailure.BLOCKED,
            block_title=blocks[0].title,
            conflicting_block_id=blocks[0].id,
        )

    appointments = stores.appointments_intersecting(
        db, provider_id, start, end, exclude_appointment_id=exclude_appointment_id,
    )
    if appointments:
        return ValidationResult.rejected(
            SlotFailure.OCCUPIED,
            conflicting_appointment_id=appointments[0].id,
        )

    return ValidationResult.success()
