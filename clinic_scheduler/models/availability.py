"""Availability model definitions."""

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, Time

from clinic_scheduler.database import Base


class AvailabilityWindow(Base):
    """A recurring weekly block of bookable time.

    ``day_of_week`` counts from Sunday (0) to Saturday (6) in the
    provider's local calendar.
    """
    __tablename__ = "availability_windows"
    __table_args__ = (
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_availability_day_of_week"),
        CheckConstraint("start_time < end_time", name="ck_availability_time_order"),
    )

    id = Column(Integer, primary_key=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
