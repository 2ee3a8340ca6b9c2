"""Shared pytest fixtures for all tests."""

import os
import tempfile

# Point the application at an in-memory database before it is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="roster-uploads-"))

import pytest

from roster_import.database import Base, build_engine, build_session_maker
from roster_import.models import Semester
from roster_import.services.file_source import UploadFileSource
from roster_import.services.import_workflow import build_import_controller
from tests.helpers import write_roster


@pytest.fixture
def anyio_backend():
    """Run async tests on asyncio only."""
    return "asyncio"


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite engine with all tables.

    Yields:
        AsyncEngine: Engine bound to a fresh database.
    """
    engine = build_engine("sqlite://")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    """Session factory bound to the test database."""
    return build_session_maker(db_engine)


@pytest.fixture
async def semester(session_maker):
    """Create an active semester.

    Returns:
        Semester: The stored semester.
    """
    async with session_maker() as db:
        semester = Semester(label="First Semester 2024-2025", is_active=True)
        db.add(semester)
        await db.commit()
        return semester


@pytest.fixture
def roster_file(tmp_path):
    """Factory writing roster CSV files into a temporary directory.

    Returns:
        Callable: write(rows, headers=None, name="roster.csv") -> str path
    """
    def write(rows, headers=None, name="roster.csv"):
        return write_roster(tmp_path / name, rows, headers=headers)

    return write


@pytest.fixture
def file_source(tmp_path):
    """Upload store rooted in a temporary directory."""
    return UploadFileSource(upload_dir=str(tmp_path / "uploads"))


@pytest.fixture
async def controller(session_maker, semester, file_source):
    """Import controller wired to the test database, with semesters loaded."""
    controller = build_import_controller(session_maker, file_source=file_source)
    await controller.initialize()
    return controller
