"""
Commit Engine Service
Writes roster rows into the school account store, one row at a time.
"""
import asyncio
import logging
import uuid
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from roster_import.config import settings
from roster_import.models import SchoolAccount, Semester
from roster_import.services.csv_reader import CsvDocument, read_csv_file, transform_record
from roster_import.services.errors import CommitFatalError, RowTransformError, SchemaError
from roster_import.services.import_session import AccountStatusCounts, CommitOutcome

logger = logging.getLogger(__name__)


class CommitEngine:
    """
    Service for committing a roster file.

    Every row is written in its own transaction, so a failing row never
    undoes rows written before it. Existence is re-checked per row at write
    time; an existing account is only overwritten when force_update is set.
    All accounts are deactivated first and the accounts listed in the file
    are re-activated at the end.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        batch_size: Optional[int] = None,
    ):
        self.session_maker = session_maker
        self.batch_size = settings.batch_size if batch_size is None else batch_size

    async def commit(
        self,
        file_path: str,
        semester_id: uuid.UUID,
        force_update: bool,
    ) -> CommitOutcome:
        """
        Import every row of the file.

        Raises:
            CommitFatalError: if no row can be processed (unreadable file,
                unknown semester, account store unavailable)
            SchemaError: if required headers are missing
        """
        document = await self._read_document(file_path)

        async with self.session_maker() as db:
            await self._prepare(db, semester_id)

            total_processed = 0
            success_count = 0
            failure_details: List[str] = []
            roster_ids: List[str] = []

            for record in document.records:
                total_processed += 1
                try:
                    data = transform_record(document, record)
                except RowTransformError as e:
                    failure_details.append(f"Transform error: {e}")
                    logger.warning("Row %d rejected: %s", record.row_number, e)
                    continue

                data["last_updated_semester_id"] = semester_id
                roster_ids.append(data["school_id"])

                error = await self._write_row(db, data, force_update)
                if error:
                    failure_details.append(error)
                    logger.warning("Row %d failed: %s", record.row_number, error)
                else:
                    success_count += 1

            status_counts = await self._activate(db, roster_ids)

        outcome = CommitOutcome(
            total_processed=total_processed,
            success_count=success_count,
            failure_count=len(failure_details),
            failure_details=tuple(failure_details),
            status_counts=status_counts,
        )
        logger.info(
            "CSV import completed: %d total, %d successful, %d failed, semester=%s",
            outcome.total_processed, outcome.success_count, outcome.failure_count, semester_id
        )
        logger.info(
            "Account status counts: total=%d activated=%d deactivated=%d",
            status_counts.total, status_counts.activated, status_counts.deactivated
        )
        return outcome

    async def _read_document(self, file_path: str) -> CsvDocument:
        try:
            document = await asyncio.to_thread(read_csv_file, file_path)
        except (OSError, UnicodeDecodeError) as e:
            raise CommitFatalError(f"Failed to read CSV: {e}") from e

        missing = document.missing_headers()
        if missing:
            raise SchemaError(f"Missing required headers: {', '.join(missing)}")
        return document

    async def _prepare(self, db: AsyncSession, semester_id: uuid.UUID) -> None:
        """Check the semester and deactivate all accounts before any row is written."""
        try:
            semester = await db.get(Semester, semester_id)
            if semester is None:
                raise CommitFatalError(f"Semester {semester_id} not found")

            await db.execute(
                update(SchoolAccount)
                .values(is_active=False)
                .execution_options(synchronize_session=False)
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            raise CommitFatalError(f"Account store unavailable: {e}") from e

    async def _write_row(self, db: AsyncSession, data: dict, force_update: bool) -> Optional[str]:
        """Create or update one account. Returns an error message on failure."""
        school_id = data["school_id"]
        try:
            result = await db.execute(
                select(SchoolAccount).where(SchoolAccount.school_id == school_id)
            )
            existing = result.scalar_one_or_none()

            if existing is not None:
                if not force_update:
                    return f"Account with school_id {school_id} already exists"
                for field_name, value in data.items():
                    setattr(existing, field_name, value)
            else:
                db.add(SchoolAccount(**data))

            await db.commit()
            return None
        except SQLAlchemyError as e:
            await db.rollback()
            action = "Update" if force_update else "Import"
            return f"{action} failed for {school_id}: {e}"

    async def _activate(self, db: AsyncSession, school_ids: List[str]) -> AccountStatusCounts:
        """Re-activate the accounts listed in the roster and count statuses."""
        unique_ids = list(dict.fromkeys(school_ids))
        try:
            for start in range(0, len(unique_ids), self.batch_size):
                batch = unique_ids[start:start + self.batch_size]
                await db.execute(
                    update(SchoolAccount)
                    .where(SchoolAccount.school_id.in_(batch))
                    .values(is_active=True)
                    .execution_options(synchronize_session=False)
                )
            await db.commit()

            total = await db.scalar(select(func.count()).select_from(SchoolAccount))
            activated = await db.scalar(
                select(func.count()).select_from(SchoolAccount).where(SchoolAccount.is_active.is_(True))
            )
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Failed to activate imported accounts: %s", e)
            return AccountStatusCounts()

        return AccountStatusCounts(
            activated=activated or 0,
            deactivated=(total or 0) - (activated or 0),
            total=total or 0,
        )
