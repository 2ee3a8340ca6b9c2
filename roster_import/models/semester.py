"""
Semester Model
Semesters an account import can be bound to.
"""
from sqlalchemy import String, Boolean, DateTime, Uuid, func, true
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from typing import List, TYPE_CHECKING
import uuid

from roster_import.database import Base

if TYPE_CHECKING:
    from roster_import.models.school_account import SchoolAccount


class Semester(Base):
    """An academic semester."""

    __tablename__ = "semesters"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true())
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )

    # Relationships
    accounts: Mapped[List["SchoolAccount"]] = relationship(
        "SchoolAccount",
        back_populates="last_updated_semester"
    )

    def __repr__(self) -> str:
        return f"<Semester(label={self.label}, active={self.is_active})>"
