"""Patient model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from clinic_scheduler.database import Base


class Patient(Base):
    """A patient record attached to one provider."""
    __tablename__ = "patients"
    __table_args__ = (
        UniqueConstraint("provider_id", "email", name="uq_patients_provider_email"),
    )

    id = Column(Integer, primary_key=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    full_name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String)
    notes = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
