"""
Slot Generation Service

Turns a provider's weekly availability windows, exclusion blocks and
booked appointments into the candidate slots shown to a booker for one
calendar day.
"""

import logging
from datetime import date, datetime, timedelta

from sqlalchemy.orm import Session

from clinic_scheduler.errors import InvalidSlotRequest
from clinic_scheduler.models.appointment import Appointment
from clinic_scheduler.models.exclusion_block import ExclusionBlock
from clinic_scheduler.scheduling import stores
from clinic_scheduler.scheduling.results import Slot, UnavailableReason
from clinic_scheduler.scheduling.time_windows import (
    appointment_interval,
    day_bounds,
    day_of_week,
    iterate_slot_starts,
    longer_than_a_day,
    overlaps,
    require_positive_duration,
    window_bounds,
)

logger = logging.getLogger(__name__)


def classify_slot(
    start: datetime,
    end: datetime,
    now: datetime,
    blocks: list[ExclusionBlock],
    appointments: list[Appointment],
) -> tuple[UnavailableReason | None, str | None]:
    """Reason a slot cannot be booked, in precedence order, or ``(None, None)``."""
    if start < now:
        return UnavailableReason.PAST_TIME, None

    for block in blocks:
        if overlaps(start, end, block.start_datetime, block.end_datetime):
            return UnavailableReason.BLOCKED, block.title

    for appointment in appointments:
        if overlaps(start, end, *appointment_interval(appointment.scheduled_at, appointment.duration_minutes)):
            return UnavailableReason.OCCUPIED, None

    return None, None


def generate_slots(
    db: Session,
    provider_id: int,
    target_date: date,
    duration_minutes: int,
    now: datetime,
) -> list[Slot]:
    """
    Generate the slots of ``target_date`` for an appointment of ``duration_minutes``.

    Returns an empty list when the provider has no active window on that
    weekday. Otherwise every grid start of every window is returned, flagged
    available or not; a list with no available slot means the day is
    exhausted. Overlapping windows are tolerated and may yield duplicate
    starts. A duration longer than a day fits no window and yields nothing.
    """
    require_positive_duration(duration_minutes)
    if longer_than_a_day(duration_minutes):
        return []
    duration = timedelta(minutes=duration_minutes)

    windows = stores.active_windows_for_day(db, provider_id, day_of_week(target_date))
    if not windows:
        return []

    day_start, day_end = day_bounds(target_date)
    blocks = stores.blocks_intersecting(db, provider_id, day_start, day_end)
    appointments = stores.appointments_intersecting(db, provider_id, day_start, day_end)

    slots: list[Slot] = []
    for window in windows:
        window_start, window_end = window_bounds(target_date, window.start_time, window.end_time)

        for slot_start in iterate_slot_starts(window_start, window_end, duration):
            slot_end = slot_start + duration
            reason, block_title = classify_slot(slot_start, slot_end, now, blocks, appointments)
            slots.append(
                Slot(
                    start=slot_start,
                    end=slot_end,
                    duration_minutes=duration_minutes,
                    available=reason is None,
                    reason=reason,
                    block_title=block_title,
                )
            )

    slots.sort(key=lambda slot: slot.start)

    logger.debug(
        'Generated %d slots for provider %s on %s (%d windows, %d blocks, %d appointments)',
        len(slots), provider_id, target_date, len(windows), len(blocks), len(appointments),
    )
    return slots


def generate_slots_for_range(
    db: Session,
    provider_id: int,
    start_date: date,
    end_date: date,
    duration_minutes: int,
    now: datetime,
) -> dict[date, list[Slot]]:
    if end_date < start_date:
        raise InvalidSlotRequest(
            'End date must not be before start date.',
            details={'start_date': start_date.isoformat(), 'end_date': end_date.isoformat()},
        )

    slots_by_day: dict[date, list[Slot]] = {}
    current_day = start_date

    while current_day <= end_date:
        slots_by_day[current_day] = generate_slots(db, provider_id, current_day, duration_minutes, now)
        current_day += timedelta(days=1)

    return slots_by_day


def find_next_available_slot(
    db: Session,
    provider_id: int,
    from_date: date,
    duration_minutes: int,
    now: datetime,
    max_days_ahead: int = 30,
) -> Slot | None:
    current_day = from_date

    for _ in range(max_days_ahead):
        for slot in generate_slots(db, provider_id, current_day, duration_minutes, now):
            if slot.available:
                return slot
        current_day += timedelta(days=1)

    return None
