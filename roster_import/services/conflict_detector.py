"""
Conflict Detector Service
Finds incoming school IDs that already exist in the account store.
"""
import asyncio
import logging
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from roster_import.config import settings
from roster_import.models import SchoolAccount
from roster_import.services.csv_reader import read_csv_file
from roster_import.services.errors import ConflictDetectionError
from roster_import.services.import_session import (
    MAX_CONFLICT_SAMPLE,
    ConflictSummary,
    ExistingAccountRef,
)

logger = logging.getLogger(__name__)


class ConflictDetector:
    """Service comparing a roster file with stored school accounts."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        batch_size: Optional[int] = None,
        sample_size: Optional[int] = None,
    ):
        self.session_maker = session_maker
        self.batch_size = settings.batch_size if batch_size is None else batch_size
        if sample_size is None:
            sample_size = settings.conflict_sample_size
        self.sample_size = min(sample_size, MAX_CONFLICT_SAMPLE)

    async def detect(self, file_path: str) -> ConflictSummary:
        """
        Classify each distinct school ID in the file as existing or new.

        Raises:
            ConflictDetectionError: if the file or the account store cannot be read
        """
        try:
            first_rows = await asyncio.to_thread(self._collect_school_ids, file_path)
        except (OSError, UnicodeDecodeError) as e:
            raise ConflictDetectionError(f"Failed to read CSV: {e}") from e

        if not first_rows:
            return ConflictSummary()

        try:
            existing = await self._find_existing(list(first_rows))
        except SQLAlchemyError as e:
            raise ConflictDetectionError(f"Failed to check existing accounts: {e}") from e

        sample = []
        for school_id, row_number in first_rows.items():
            if len(sample) >= self.sample_size:
                break
            account = existing.get(school_id)
            if account is not None:
                sample.append(ExistingAccountRef(
                    account_id=account.id,
                    school_id=school_id,
                    row_number=row_number,
                    first_name=account.first_name,
                    last_name=account.last_name,
                ))

        summary = ConflictSummary(
            existing_count=len(existing),
            new_count=len(first_rows) - len(existing),
            sample=tuple(sample),
        )
        logger.info(
            "Conflict check for %s: %d existing, %d new",
            file_path, summary.existing_count, summary.new_count
        )
        return summary

    def _collect_school_ids(self, file_path: str) -> Dict[str, int]:
        """Map each distinct school ID to the data row of its first occurrence."""
        document = read_csv_file(file_path)
        first_rows: Dict[str, int] = {}
        for record in document.records:
            school_id = document.value(record, "student_id")
            if school_id and school_id not in first_rows:
                first_rows[school_id] = record.row_number
        return first_rows

    async def _find_existing(self, school_ids: List[str]) -> Dict[str, SchoolAccount]:
        existing: Dict[str, SchoolAccount] = {}
        async with self.session_maker() as db:
            for start in range(0, len(school_ids), self.batch_size):
                batch = school_ids[start:start + self.batch_size]
                result = await db.execute(
                    select(SchoolAccount).where(SchoolAccount.school_id.in_(batch))
                )
                for account in result.scalars().all():
                    existing[account.school_id] = account
        return existing
