"""
Import Workflow Controller
Drives a roster CSV file through validation, conflict review, the
destructive-update confirmation gate and commit.
"""
import asyncio
import dataclasses
import logging
import os
import uuid
from typing import Any, Dict, List, Optional, Set

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from roster_import.database import async_session_maker
from roster_import.services.commit_engine import CommitEngine
from roster_import.services.conflict_detector import ConflictDetector
from roster_import.services.csv_validator import CsvValidator
from roster_import.services.errors import (
    CommitFatalError,
    ConflictDetectionError,
    InvalidTransition,
    SelectionError,
    SessionBusy,
    UnknownSemester,
    ValidationUnavailable,
)
from roster_import.services.file_source import UploadFileSource
from roster_import.services.import_session import (
    CommitOutcome,
    CommitResult,
    ImportSession,
    ImportStage,
)
from roster_import.services.semester_registry import SemesterOption, SemesterRegistry

logger = logging.getLogger(__name__)


class ImportWorkflowController:
    """
    Owns the single active import session.

    Suspending operations run one at a time under a lock, so collaborators
    are never called concurrently. cancel() does not wait for the lock: it
    replaces the session, and any in-flight validation result is dropped
    when it returns. Once COMMITTING begins the session cannot be cancelled.
    """

    def __init__(
        self,
        registry: SemesterRegistry,
        validator: CsvValidator,
        detector: ConflictDetector,
        engine: CommitEngine,
        file_source: Optional[UploadFileSource] = None,
    ):
        self.registry = registry
        self.validator = validator
        self.detector = detector
        self.engine = engine
        self.file_source = file_source
        self.session = ImportSession()
        self._semesters: Optional[List[SemesterOption]] = None
        self._lock = asyncio.Lock()
        self._subscribers: Set[asyncio.Queue] = set()

    # =========================================================================
    # Semester list
    # =========================================================================

    async def initialize(self) -> List[SemesterOption]:
        """Load active semesters. Must complete before bind_semester is accepted."""
        self._semesters = await self.registry.list_active()
        logger.info("Loaded %d active semesters", len(self._semesters))
        return list(self._semesters)

    @property
    def is_initialized(self) -> bool:
        return self._semesters is not None

    @property
    def semesters(self) -> List[SemesterOption]:
        return list(self._semesters or [])

    # =========================================================================
    # Session operations
    # =========================================================================

    def snapshot(self) -> ImportSession:
        """Copy of the current session for callers to read."""
        return dataclasses.replace(self.session)

    async def select_file(self, handle: Optional[str]) -> ImportSession:
        """Start a new session for the given file path."""
        if not self.session.stage.accepts_new_file:
            raise SessionBusy(
                f"An import is already in progress ({self.session.stage.value}); cancel it first"
            )
        if handle is None:
            raise SelectionError("No file selected")
        if not os.path.isfile(handle) or not os.access(handle, os.R_OK):
            raise SelectionError(f"File cannot be read: {handle}")

        previous = self.session
        if previous.source_ref and previous.source_ref != handle:
            self._discard(previous.source_ref)

        self.session = ImportSession(source_ref=handle)
        self._transition(self.session, ImportStage.FILE_SELECTED)
        return self.snapshot()

    async def validate(self) -> ImportSession:
        """Validate the selected file, then check it for existing accounts."""
        async with self._lock:
            session = self.session
            self._require(session, "validate", ImportStage.FILE_SELECTED)
            self._transition(session, ImportStage.VALIDATING)

            try:
                outcome = await self.validator.validate(session.source_ref)
            except Exception as e:
                if not self._is_current(session):
                    return self.snapshot()
                self._transition(session, ImportStage.FILE_SELECTED)
                raise ValidationUnavailable(f"Validation failed: {e}") from e

            if not self._is_current(session):
                logger.info("Session %s was cancelled during validation", session.id)
                return self.snapshot()

            session.validation = outcome
            if not outcome.is_valid:
                self._transition(session, ImportStage.VALIDATED_INVALID)
                return self.snapshot()

            self._transition(session, ImportStage.VALIDATED_VALID)
            try:
                conflicts = await self.detector.detect(session.source_ref)
            except Exception as e:
                if not self._is_current(session):
                    return self.snapshot()
                session.validation = None
                self._transition(session, ImportStage.FILE_SELECTED)
                if isinstance(e, ConflictDetectionError):
                    raise
                raise ConflictDetectionError(f"Conflict check failed: {e}") from e

            if not self._is_current(session):
                logger.info("Session %s was cancelled during conflict check", session.id)
                return self.snapshot()

            session.conflicts = conflicts
            self._transition(session, ImportStage.CONFLICT_REVIEWED)
            return self.snapshot()

    async def bind_semester(self, semester_id: uuid.UUID) -> ImportSession:
        """Choose the semester the imported accounts are recorded under."""
        session = self.session
        self._require(session, "bind a semester", ImportStage.CONFLICT_REVIEWED)
        if self._semesters is None:
            raise InvalidTransition(
                "bind a semester", session.stage, "Semester list has not been loaded"
            )
        if semester_id not in {s.id for s in self._semesters}:
            raise UnknownSemester(f"Semester {semester_id} is not active")

        session.semester_binding = semester_id
        logger.info("Session %s bound to semester %s", session.id, semester_id)
        self._notify({"type": "semester", "semester_id": str(semester_id)})
        return self.snapshot()

    async def request_import(self) -> ImportSession:
        """
        Commit the file, or stop for confirmation when accounts would be overwritten.

        Without conflicts the commit runs create-only (force_update=False).
        With conflicts the session waits in AWAITING_CONFIRMATION until
        confirm_destructive() is called.
        """
        async with self._lock:
            session = self.session
            self._require(session, "start the import", ImportStage.CONFLICT_REVIEWED)
            if session.semester_binding is None:
                raise InvalidTransition(
                    "start the import", session.stage, "Select a semester before importing"
                )
            if session.validation is None or not session.validation.is_valid or session.conflicts is None:
                raise InvalidTransition(
                    "start the import", session.stage, "File has not passed validation"
                )

            if session.conflicts.has_conflicts:
                self._transition(session, ImportStage.AWAITING_CONFIRMATION)
                return self.snapshot()

            await self._commit(session, force_update=False)
            return self.snapshot()

    async def confirm_destructive(self) -> ImportSession:
        """Approve overwriting existing accounts and commit."""
        async with self._lock:
            session = self.session
            self._require(session, "confirm the update", ImportStage.AWAITING_CONFIRMATION)
            await self._commit(session, force_update=True)
            return self.snapshot()

    async def cancel_confirmation(self) -> ImportSession:
        """Decline overwriting existing accounts."""
        session = self.session
        self._require(session, "cancel the confirmation", ImportStage.AWAITING_CONFIRMATION)
        self._transition(session, ImportStage.CONFLICT_REVIEWED)
        return self.snapshot()

    async def cancel(self) -> ImportSession:
        """Drop the current session and everything it produced."""
        session = self.session
        if session.stage is ImportStage.COMMITTING:
            raise InvalidTransition("cancel", session.stage, "Import is being committed and cannot be cancelled")

        self._discard(session.source_ref)
        self.session = ImportSession()
        logger.info("Session %s cancelled at %s", session.id, session.stage.value)
        self._notify({"type": "cancelled", "session_id": str(session.id)})
        self._notify(self._stage_event(self.session))
        return self.snapshot()

    async def finish(self) -> CommitOutcome:
        """Close a fully successful import and return its outcome."""
        session = self.session
        if session.stage is ImportStage.COMPLETED_PARTIAL_FAILURE:
            failures = session.commit_result.outcome.failure_count
            raise InvalidTransition(
                "finish", session.stage,
                f"Import finished with {failures} failed rows; correct them and import again"
            )
        self._require(session, "finish", ImportStage.COMPLETED_SUCCESS)

        outcome = session.commit_result.outcome
        self._discard(session.source_ref)
        self.session = ImportSession()
        logger.info("Session %s finished", session.id)
        self._notify({"type": "finished", "session_id": str(session.id)})
        self._notify(self._stage_event(self.session))
        return outcome

    # =========================================================================
    # Stage change subscriptions
    # =========================================================================

    def subscribe(self) -> asyncio.Queue:
        """Subscribe to stage changes. The current stage is queued first."""
        queue: asyncio.Queue = asyncio.Queue()
        queue.put_nowait(self._stage_event(self.session))
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue):
        self._subscribers.discard(queue)

    # =========================================================================
    # Internals
    # =========================================================================

    async def _commit(self, session: ImportSession, force_update: bool):
        self._transition(session, ImportStage.COMMITTING)
        try:
            outcome = await self.engine.commit(
                session.source_ref, session.semester_binding, force_update
            )
        except CommitFatalError as e:
            logger.error("Commit of session %s failed: %s", session.id, e)
            result = CommitResult.fatal(str(e))
        except Exception as e:
            logger.exception("Unexpected error committing session %s", session.id)
            result = CommitResult.fatal(f"Unexpected error: {e}")
        else:
            result = CommitResult.from_outcome(outcome)

        session.commit_result = result
        self._transition(session, result.stage)

    def _require(self, session: ImportSession, operation: str, stage: ImportStage):
        if session.stage is not stage:
            raise InvalidTransition(operation, session.stage)

    def _is_current(self, session: ImportSession) -> bool:
        return self.session is session

    def _transition(self, session: ImportSession, stage: ImportStage):
        logger.info("Session %s: %s -> %s", session.id, session.stage.value, stage.value)
        session.stage = stage
        self._notify(self._stage_event(session))

    def _stage_event(self, session: ImportSession) -> Dict[str, Any]:
        return {"type": "stage", "session_id": str(session.id), "stage": session.stage.value}

    def _notify(self, data: Dict[str, Any]):
        for queue in list(self._subscribers):
            queue.put_nowait(data)

    def _discard(self, path: Optional[str]):
        if self.file_source is not None:
            self.file_source.discard(path)


def build_import_controller(
    session_maker: async_sessionmaker[AsyncSession],
    file_source: Optional[UploadFileSource] = None,
) -> ImportWorkflowController:
    """Wire the controller to database-backed collaborators."""
    return ImportWorkflowController(
        registry=SemesterRegistry(session_maker),
        validator=CsvValidator(),
        detector=ConflictDetector(session_maker),
        engine=CommitEngine(session_maker),
        file_source=file_source or UploadFileSource(),
    )


# Global controller instance
import_workflow = build_import_controller(async_session_maker)
