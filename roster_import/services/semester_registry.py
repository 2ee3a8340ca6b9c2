"""
Semester Registry Service
Lists the semesters an import can be bound to.
"""
import uuid
from dataclasses import dataclass
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from roster_import.models import Semester


@dataclass(frozen=True)
class SemesterOption:
    """A selectable semester."""
    id: uuid.UUID
    label: str


class SemesterRegistry:
    """Read-only access to active semesters."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def list_active(self) -> List[SemesterOption]:
        """Active semesters, newest first."""
        async with self.session_maker() as db:
            result = await db.execute(
                select(Semester)
                .where(Semester.is_active.is_(True))
                .order_by(Semester.created_at.desc(), Semester.label)
            )
            return [
                SemesterOption(id=semester.id, label=semester.label)
                for semester in result.scalars().all()
            ]
