"""Structured results returned by the scheduling engine."""

import enum
from datetime import datetime, time

from pydantic import BaseModel


class UnavailableReason(str, enum.Enum):
    PAST_TIME = 'past_time'
    BLOCKED = 'blocked'
    OCCUPIED = 'occupied'


class SlotFailure(str, enum.Enum):
    PAST_TIME = 'past_time'
    NO_AVAILABILITY = 'no_availability'
    OUTSIDE_AVAILABILITY = 'outside_availability'
    BLOCKED = 'blocked'
    OCCUPIED = 'occupied'


class Slot(BaseModel):
    start: datetime
    end: datetime
    duration_minutes: int
    available: bool
    reason: UnavailableReason | None = None
    block_title: str | None = None


class ValidationResult(BaseModel):
    is_valid: bool
    failure: SlotFailure | None = None
    block_title: str | None = None
    conflicting_block_id: int | None = None
    conflicting_appointment_id: int | None = None

    @classmethod
    def success(cls) -> 'ValidationResult':
        return cls(is_valid=True)

    @classmethod
    def rejected(cls, failure: SlotFailure, **context) -> 'ValidationResult':
        return cls(is_valid=False, failure=failure, **context)


class WindowSpan(BaseModel):
    id: int | None = None
    start_time: time
    end_time: time


class OverlapConflict(BaseModel):
    day_of_week: int
    first: WindowSpan
    second: WindowSpan
