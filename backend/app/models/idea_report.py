"""SQLAlchemy ORM model for the single-row idea totals report."""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db.base import Base

REPORT_ROW_ID = 1


class IdeaReport(Base):
    """Running totals of submitted ideas, split by the submitter's role."""

    __tablename__ = "idea_reports"

    id: Mapped[int] = mapped_column(primary_key=True, default=REPORT_ROW_ID)
    total_student_ideas: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0",
    )
    total_lecturer_ideas: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0",
    )
    total_admin_ideas: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC),
    )
