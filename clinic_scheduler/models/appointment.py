"""Appointment model definitions."""

from datetime import datetime, timedelta

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, ForeignKey, Index, Integer, String, text

from clinic_scheduler.database import Base
from clinic_scheduler.models.enums import AppointmentStatus, enum_values


class Appointment(Base):
    """Represents a booked (or previously booked) appointment."""
    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_appointments_duration"),
        # Two live appointments may never share a start; cancelled rows stay for history.
        Index(
            "uq_appointments_provider_start_active",
            "provider_id",
            "scheduled_at",
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
    )

    id = Column(Integer, primary_key=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    scheduled_at = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    status = Column(
        Enum(AppointmentStatus, native_enum=False, length=16, values_callable=enum_values),
        default=AppointmentStatus.SCHEDULED,
        nullable=False,
    )
    notes = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def ends_at(self) -> datetime:
        return self.scheduled_at + timedelta(minutes=self.duration_minutes)
