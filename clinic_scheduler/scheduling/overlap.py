"""Overlap detection for a provider's weekly availability windows."""

from collections import defaultdict
from typing import Iterable

from clinic_scheduler.scheduling.results import OverlapConflict, WindowSpan


def _span(window) -> WindowSpan:
    return WindowSpan(
        id=getattr(window, 'id', None),
        start_time=window.start_time,
        end_time=window.end_time,
    )


def check_overlap(windows: Iterable) -> OverlapConflict | None:
    """Return the first pair of intersecting active windows, if any.

    ``windows`` is the full proposed schedule of one provider; any object
    with ``day_of_week``, ``start_time``, ``end_time`` and ``is_active``
    works (ORM rows or request payloads). Days are scanned in ascending
    order and, within a day, windows by start time, so the reported
    conflict is always the same for the same input. Windows that merely
    touch (``end == next start``) do not conflict.
    """
    by_day: dict[int, list] = defaultdict(list)
    for window in windows:
        if window.is_active:
            by_day[window.day_of_week].append(window)

    for day in sorted(by_day):
        day_windows = sorted(by_day[day], key=lambda window: (window.start_time, window.end_time))

        for previous, following in zip(day_windows, day_windows[1:]):
            if previous.end_time > following.start_time:
                return OverlapConflict(
                    day_of_week=day,
                    first=_span(previous),
                    second=_span(following),
                )

    return None
