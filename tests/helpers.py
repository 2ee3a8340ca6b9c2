"""Helper utilities for tests."""

import asyncio
import csv
import uuid
from pathlib import Path
from typing import Iterable, List, Optional

from roster_import.models import SchoolAccount
from roster_import.services.import_session import (
    CommitOutcome,
    ConflictSummary,
    ValidationOutcome,
)
from roster_import.services.semester_registry import SemesterOption

DEFAULT_HEADERS = ["student_id", "first_name", "middle_name", "last_name", "gender", "course"]


def make_rows(count: int, start: int = 1) -> List[dict]:
    """Build valid roster rows with sequential school IDs (S0001, S0002, ...)."""
    return [
        {
            "student_id": f"S{n:04d}",
            "first_name": f"First{n}",
            "middle_name": f"Middle{n}",
            "last_name": f"Last{n}",
            "gender": "female" if n % 2 else "male",
            "course": "BSIT",
        }
        for n in range(start, start + count)
    ]


def write_roster(path: Path, rows: Iterable[dict], headers: Optional[List[str]] = None) -> str:
    """Write rows to a CSV file.

    Args:
        path: Destination file path.
        rows: Row dicts keyed by header name; missing keys are written empty.
        headers: Column headers, DEFAULT_HEADERS when omitted.

    Returns:
        The file path as a string.
    """
    headers = headers or DEFAULT_HEADERS
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=headers, extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
    return str(path)


async def create_accounts(session_maker, school_ids: Iterable[str], is_active: bool = True) -> None:
    """Store accounts with the given school IDs."""
    async with session_maker() as db:
        for school_id in school_ids:
            db.add(SchoolAccount(
                school_id=school_id,
                first_name="Existing",
                last_name=school_id,
                is_active=is_active,
            ))
        await db.commit()


# =============================================================================
# Fake collaborators for controller tests
# =============================================================================

class FakeRegistry:
    """Registry returning a fixed semester list."""

    def __init__(self, semesters: Optional[List[SemesterOption]] = None):
        self.semesters = semesters if semesters is not None else [
            SemesterOption(id=uuid.uuid4(), label="First Semester")
        ]

    async def list_active(self):
        return list(self.semesters)


class FakeValidator:
    """Validator returning a fixed outcome, optionally blocking until released."""

    def __init__(self, outcome: Optional[ValidationOutcome] = None, error: Optional[Exception] = None):
        self.outcome = outcome or ValidationOutcome(file_name="roster.csv", total_rows=10, validated_rows=10)
        self.error = error
        self.calls = []
        self.started = asyncio.Event()
        self.release: Optional[asyncio.Event] = None

    async def validate(self, file_path):
        self.calls.append(file_path)
        self.started.set()
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.outcome


class FakeDetector:
    """Detector returning a fixed conflict summary."""

    def __init__(self, summary: Optional[ConflictSummary] = None, error: Optional[Exception] = None):
        self.summary = summary or ConflictSummary(existing_count=0, new_count=10)
        self.error = error
        self.calls = []

    async def detect(self, file_path):
        self.calls.append(file_path)
        if self.error is not None:
            raise self.error
        return self.summary


class FakeEngine:
    """Commit engine recording calls and returning a fixed outcome."""

    def __init__(self, outcome: Optional[CommitOutcome] = None, error: Optional[Exception] = None):
        self.outcome = outcome or CommitOutcome(total_processed=10, success_count=10, failure_count=0)
        self.error = error
        self.calls = []
        self.started = asyncio.Event()
        self.release: Optional[asyncio.Event] = None

    async def commit(self, file_path, semester_id, force_update):
        self.calls.append({"path": file_path, "semester_id": semester_id, "force_update": force_update})
        self.started.set()
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.outcome
