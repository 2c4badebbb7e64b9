"""Exclusion block model definitions."""

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, ForeignKey, Integer, String

from clinic_scheduler.database import Base
from clinic_scheduler.models.enums import BlockKind, enum_values


class ExclusionBlock(Base):
    """A one-off period carved out of a provider's availability."""
    __tablename__ = "time_blocks"
    __table_args__ = (
        CheckConstraint("start_datetime < end_datetime", name="ck_time_blocks_range"),
    )

    id = Column(Integer, primary_key=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    start_datetime = Column(DateTime, nullable=False)
    end_datetime = Column(DateTime, nullable=False)
    title = Column(String, nullable=False)
    kind = Column(
        Enum(BlockKind, native_enum=False, length=16, values_callable=enum_values),
        default=BlockKind.OTHER,
        nullable=False,
    )
