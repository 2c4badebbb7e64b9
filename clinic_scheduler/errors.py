"""Exception classes raised by the scheduling engine."""

from typing import Any


class SchedulingError(Exception):
    """Base exception for all scheduling errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class CouldNotEvaluateError(SchedulingError):
    """The request could not be evaluated at all; surfaced generically."""


class InvalidSlotRequest(CouldNotEvaluateError):
    """Malformed input, such as a non-positive duration."""


class StoreUnavailableError(CouldNotEvaluateError):
    """A store read or write failed underneath the engine."""

    def __init__(self, message: str = 'Database unavailable.', details: dict[str, Any] | None = None):
        super().__init__(message, details)


class NotFoundError(SchedulingError):
    """A referenced row does not exist for this provider."""


class OverlapConflictError(SchedulingError):
    """A proposed weekly schedule contains overlapping active windows."""

    def __init__(self, conflict):
        self.conflict = conflict
        super().__init__(
            'Availability windows overlap.',
            details=conflict.model_dump(mode='json'),
        )


class BookingError(SchedulingError):
    """A slot failed validation at commit time.

    ``result`` is the ``ValidationResult`` that rejected the slot; its
    ``failure`` is passed to callers untranslated.
    """

    def __init__(self, result):
        self.result = result
        self.failure = result.failure
        super().__init__(
            f'Slot rejected: {result.failure.value}',
            details=result.model_dump(mode='json'),
        )


class InvalidTransitionError(SchedulingError):
    """An appointment status does not allow the requested change."""
