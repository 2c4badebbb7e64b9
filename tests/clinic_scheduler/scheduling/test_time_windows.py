from datetime import date, datetime, time, timedelta, timezone

import pytest

from clinic_scheduler.errors import InvalidSlotRequest
from clinic_scheduler.scheduling.time_windows import (
    contains,
    day_bounds,
    day_of_week,
    iterate_slot_starts,
    overlaps,
    require_positive_duration,
    to_provider_local,
    window_bounds,
)


@pytest.mark.parametrize(
    ('day', 'expected'),
    [
        (date(2026, 1, 4), 0),
        (date(2026, 1, 5), 1),
        (date(2026, 1, 10), 6),
    ],
)
def test_day_of_week_counts_from_sunday(day: date, expected: int) -> None:
    assert day_of_week(day) == expected


def test_overlaps_ignores_touching_endpoints() -> None:
    nine = datetime(2026, 1, 5, 9, 0)
    ten = datetime(2026, 1, 5, 10, 0)
    eleven = datetime(2026, 1, 5, 11, 0)

    assert overlaps(nine, ten, ten, eleven) is False
    assert overlaps(nine, eleven, ten, eleven) is True
    assert overlaps(nine, ten + timedelta(minutes=1), ten, eleven) is True


def test_contains_accepts_equal_bounds() -> None:
    start, end = window_bounds(date(2026, 1, 5), time(8, 0), time(12, 0))

    assert contains(start, end, datetime(2026, 1, 5, 11, 0), datetime(2026, 1, 5, 12, 0))
    assert not contains(start, end, datetime(2026, 1, 5, 11, 30), datetime(2026, 1, 5, 12, 30))


def test_day_bounds_span_twenty_four_hours() -> None:
    start, end = day_bounds(date(2026, 1, 5))

    assert start == datetime(2026, 1, 5, 0, 0)
    assert end == datetime(2026, 1, 6, 0, 0)


def test_iterate_slot_starts_keeps_last_slot_inside_window() -> None:
    starts = iterate_slot_starts(
        datetime(2026, 1, 5, 8, 0),
        datetime(2026, 1, 5, 12, 0),
        timedelta(minutes=60),
    )

    assert starts[0] == datetime(2026, 1, 5, 8, 0)
    assert starts[-1] == datetime(2026, 1, 5, 11, 0)
    assert len(starts) == 7


def test_iterate_slot_starts_returns_nothing_for_short_window() -> None:
    starts = iterate_slot_starts(
        datetime(2026, 1, 5, 8, 0),
        datetime(2026, 1, 5, 8, 45),
        timedelta(minutes=60),
    )

    assert starts == []


def test_iterate_slot_starts_rounds_seconds_up_to_whole_minute() -> None:
    starts = iterate_slot_starts(
        datetime(2026, 1, 5, 8, 0, 30),
        datetime(2026, 1, 5, 9, 30),
        timedelta(minutes=30),
    )

    assert starts == [datetime(2026, 1, 5, 8, 1), datetime(2026, 1, 5, 8, 31)]


@pytest.mark.parametrize('duration', [0, -30])
def test_require_positive_duration_rejects_non_positive(duration: int) -> None:
    with pytest.raises(InvalidSlotRequest):
        require_positive_duration(duration)


def test_to_provider_local_converts_aware_values_once() -> None:
    aware = datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc)

    # America/Sao_Paulo is UTC-3 with no daylight saving in 2026.
    assert to_provider_local(aware) == datetime(2026, 1, 5, 9, 0)
    assert to_provider_local(datetime(2026, 1, 5, 9, 0)) == datetime(2026, 1, 5, 9, 0)
