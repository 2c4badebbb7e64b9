"""Closed vocabularies shared by the scheduling tables and the engine."""

import enum


class BlockKind(str, enum.Enum):
    PERSONAL = 'personal'
    HOLIDAY = 'holiday'
    VACATION = 'vacation'
    OTHER = 'other'


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = 'scheduled'
    CONFIRMED = 'confirmed'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    NO_SHOW = 'no_show'


class UserRole(str, enum.Enum):
    PROVIDER = 'provider'
    PATIENT = 'patient'


# Statuses after which an appointment can no longer be moved.
TERMINAL_STATUSES = frozenset({
    AppointmentStatus.COMPLETED,
    AppointmentStatus.CANCELLED,
    AppointmentStatus.NO_SHOW,
})


def enum_values(enum_class: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_class]
