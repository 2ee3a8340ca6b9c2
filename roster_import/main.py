"""
Roster Import - Bulk School Account Import Service
FastAPI Application Entry Point
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from roster_import.config import settings
from roster_import.database import engine, Base
from roster_import.routers import auth as auth_router
from roster_import.routers import imports as imports_router
from roster_import.services.import_workflow import import_workflow


def configure_logging():
    """Configure application logging."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events."""
    logger.info("Starting Roster Import application...")
    # Startup: Create database tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created/verified")

    # Load semesters before the import controller accepts bindings
    try:
        await import_workflow.initialize()
    except SQLAlchemyError as e:
        logger.error("Failed to load semesters: %s", e)
    yield
    # Shutdown: Clean up resources
    logger.info("Shutting down Roster Import application...")
    await engine.dispose()


app = FastAPI(
    title="Roster Import",
    description="Bulk CSV import of school accounts",
    version="1.0.0",
    lifespan=lifespan
)

# Include routers
app.include_router(auth_router.router, prefix="/auth", tags=["auth"])
app.include_router(imports_router.router, prefix="/import", tags=["import"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}
