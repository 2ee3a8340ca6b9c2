"""
School Account Model
Stores student and staff accounts keyed by their school ID.
"""
from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey, Uuid, func, true
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from typing import TYPE_CHECKING
import uuid

from roster_import.database import Base

if TYPE_CHECKING:
    from roster_import.models.semester import Semester


class SchoolAccount(Base):
    """A school account, imported in bulk from CSV rosters."""

    __tablename__ = "school_accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    school_id: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True
    )
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    middle_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    # 0 = male, 1 = female, 2 = other
    gender: Mapped[int | None] = mapped_column(Integer, nullable=True)
    course: Mapped[str | None] = mapped_column(String(100), nullable=True)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)
    major: Mapped[str | None] = mapped_column(String(100), nullable=True)
    year_level: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true())
    last_updated_semester_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("semesters.id", ondelete="SET NULL"),
        nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        onupdate=func.now()
    )

    # Relationships
    last_updated_semester: Mapped["Semester | None"] = relationship(
        "Semester",
        back_populates="accounts"
    )

    def __repr__(self) -> str:
        return f"<SchoolAccount(school_id={self.school_id}, active={self.is_active})>"
