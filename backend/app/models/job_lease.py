"""SQLAlchemy ORM model for scheduler leases."""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db.base import Base


class JobLease(Base):
    """A time-bounded claim on a named job, so runs never overlap."""

    __tablename__ = "job_leases"

    job_name: Mapped[str] = mapped_column(String(100), primary_key=True)
    holder: Mapped[str] = mapped_column(String(100), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
