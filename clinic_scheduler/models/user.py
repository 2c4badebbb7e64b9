"""User model definitions."""

from sqlalchemy import Boolean, Column, Enum, Integer, String

from clinic_scheduler.database import Base
from clinic_scheduler.models.enums import UserRole, enum_values


class User(Base):
    """Represents an application user; providers own calendars."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    full_name = Column(String)
    hashed_password = Column(String)
    role = Column(
        Enum(UserRole, native_enum=False, length=16, values_callable=enum_values),
        default=UserRole.PROVIDER,
        nullable=False,
    )
    is_active = Column(Boolean, default=True, nullable=False)
