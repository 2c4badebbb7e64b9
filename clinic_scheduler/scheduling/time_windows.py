"""Interval arithmetic shared by slot generation and slot validation.

Every instant handled by the engine is a naive ``datetime`` in the
provider's local wall-clock time. Aware values coming in from the outside
are converted once, here, by :func:`to_provider_local`.
"""

from datetime import date, datetime, time, timedelta
from functools import lru_cache
from zoneinfo import ZoneInfo

from clinic_scheduler.core import config
from clinic_scheduler.errors import InvalidSlotRequest

SLOT_INTERVAL_MINUTES = 30
DAYS_IN_WEEK = 7
MINUTES_PER_DAY = 24 * 60


@lru_cache(maxsize=None)
def provider_timezone(name: str | None = None) -> ZoneInfo:
    return ZoneInfo(name or config.PROVIDER_TIMEZONE)


def to_provider_local(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(provider_timezone()).replace(tzinfo=None)


def local_now() -> datetime:
    return datetime.now(provider_timezone()).replace(tzinfo=None)


def day_of_week(day: date) -> int:
    """Sunday-based weekday index (Sunday=0 ... Saturday=6)."""
    return (day.weekday() + 1) % DAYS_IN_WEEK


def day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def window_bounds(day: date, start_time: time, end_time: time) -> tuple[datetime, datetime]:
    return datetime.combine(day, start_time), datetime.combine(day, end_time)


def require_positive_duration(duration_minutes: int) -> None:
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise InvalidSlotRequest('Duration must be a whole number of minutes.')
    if duration_minutes <= 0:
        raise InvalidSlotRequest(
            'Duration must be positive.',
            details={'duration_minutes': duration_minutes},
        )


def longer_than_a_day(duration_minutes: int) -> bool:
    # Windows never cross midnight, so such a duration fits none of them.
    return duration_minutes > MINUTES_PER_DAY


def overlaps(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    # Touching endpoints do not overlap.
    return start_a < end_b and start_b < end_a


def contains(outer_start: datetime, outer_end: datetime, inner_start: datetime, inner_end: datetime) -> bool:
    return outer_start <= inner_start and inner_end <= outer_end


def _ceil_to_minute(value: datetime) -> datetime:
    if value.second == 0 and value.microsecond == 0:
        return value
    return value.replace(second=0, microsecond=0) + timedelta(minutes=1)


def iterate_slot_starts(window_start: datetime, window_end: datetime, duration: timedelta) -> list[datetime]:
    """Grid starts inside one window whose slot still ends by ``window_end``."""
    starts: list[datetime] = []
    current = _ceil_to_minute(window_start)
    step = timedelta(minutes=SLOT_INTERVAL_MINUTES)

    while current + duration <= window_end:
        starts.append(current)
        current += step

    return starts


def appointment_interval(scheduled_at: datetime, duration_minutes: int) -> tuple[datetime, datetime]:
    return scheduled_at, scheduled_at + timedelta(minutes=duration_minutes)
