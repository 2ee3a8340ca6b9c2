"""
Import Router
Exposes the CSV import workflow over HTTP.
"""
import asyncio
import json
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from sse_starlette.sse import EventSourceResponse

from roster_import.dependencies.auth import get_current_active_user
from roster_import.models.user import User
from roster_import.schemas.import_session import (
    BindSemesterRequest,
    FinishResponse,
    ImportSessionResponse,
    SelectFileRequest,
    SemesterResponse,
)
from roster_import.services.errors import (
    ConflictDetectionError,
    ImportWorkflowError,
    InvalidTransition,
    SelectionError,
    SessionBusy,
    UnknownSemester,
    ValidationUnavailable,
)
from roster_import.services.import_workflow import ImportWorkflowController, import_workflow


router = APIRouter()
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    SelectionError: 400,
    UnknownSemester: 422,
    SessionBusy: 409,
    InvalidTransition: 409,
    ValidationUnavailable: 503,
    ConflictDetectionError: 503,
}


def get_import_controller() -> ImportWorkflowController:
    """Dependency for the application's import controller."""
    return import_workflow


def to_http_error(error: ImportWorkflowError) -> HTTPException:
    """Translate a workflow error into an HTTP error response."""
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


def session_response(controller: ImportWorkflowController) -> ImportSessionResponse:
    return ImportSessionResponse.model_validate(controller.snapshot())


# =============================================================================
# Session
# =============================================================================

@router.get("/session", response_model=ImportSessionResponse)
async def get_session(
    controller: ImportWorkflowController = Depends(get_import_controller),
    current_user: User = Depends(get_current_active_user)
):
    """Get the current import session."""
    return session_response(controller)


@router.get("/session/events")
async def session_events(
    request: Request,
    controller: ImportWorkflowController = Depends(get_import_controller),
    current_user: User = Depends(get_current_active_user)
):
    """SSE endpoint for real-time import stage updates."""

    async def event_generator():
        queue = controller.subscribe()
        try:
            while True:
                # Check if client disconnected
                if await request.is_disconnected():
                    break

                try:
                    # Wait for events with timeout
                    data = await asyncio.wait_for(queue.get(), timeout=30)
                    yield {
                        "event": data.get("type", "message"),
                        "data": json.dumps(data)
                    }
                except asyncio.TimeoutError:
                    # Send keepalive
                    yield {"event": "ping", "data": ""}

        finally:
            controller.unsubscribe(queue)

    return EventSourceResponse(event_generator())


# =============================================================================
# File selection and validation
# =============================================================================

@router.post("/select", response_model=ImportSessionResponse)
async def select_file(
    data: SelectFileRequest,
    controller: ImportWorkflowController = Depends(get_import_controller),
    current_user: User = Depends(get_current_active_user)
):
    """Start a session for a previously uploaded CSV file."""
    path = data.path or None
    if path is not None and (controller.file_source is None or not controller.file_source.owns(path)):
        raise to_http_error(SelectionError("Only files in the upload directory can be imported"))

    try:
        await controller.select_file(path)
    except ImportWorkflowError as e:
        raise to_http_error(e)
    return session_response(controller)


@router.post("/upload", response_model=ImportSessionResponse)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    controller: ImportWorkflowController = Depends(get_import_controller),
    current_user: User = Depends(get_current_active_user)
):
    """Upload a CSV file and start a session for it."""
    if not controller.session.stage.accepts_new_file:
        raise to_http_error(SessionBusy(
            f"An import is already in progress ({controller.session.stage.value}); cancel it first"
        ))

    path = None
    if controller.file_source is not None:
        try:
            path = controller.file_source.pick(file)
        except OSError as e:
            raise HTTPException(status_code=500, detail=f"Failed to save file: {str(e)}")

    try:
        await controller.select_file(path)
    except ImportWorkflowError as e:
        if path and controller.file_source is not None:
            controller.file_source.discard(path)
        raise to_http_error(e)
    return session_response(controller)


@router.post("/validate", response_model=ImportSessionResponse)
async def validate_file(
    controller: ImportWorkflowController = Depends(get_import_controller),
    current_user: User = Depends(get_current_active_user)
):
    """Validate the selected file and check it for existing accounts."""
    try:
        await controller.validate()
    except ImportWorkflowError as e:
        raise to_http_error(e)
    return session_response(controller)


# =============================================================================
# Semester binding and commit
# =============================================================================

@router.get("/semesters", response_model=List[SemesterResponse])
async def list_semesters(
    refresh: bool = False,
    controller: ImportWorkflowController = Depends(get_import_controller),
    current_user: User = Depends(get_current_active_user)
):
    """List active semesters the import can be bound to."""
    if refresh or not controller.is_initialized:
        await controller.initialize()
    return [SemesterResponse.model_validate(s) for s in controller.semesters]


@router.post("/bind-semester", response_model=ImportSessionResponse)
async def bind_semester(
    data: BindSemesterRequest,
    controller: ImportWorkflowController = Depends(get_import_controller),
    current_user: User = Depends(get_current_active_user)
):
    """Bind the session to a semester."""
    try:
        await controller.bind_semester(data.semester_id)
    except ImportWorkflowError as e:
        raise to_http_error(e)
    return session_response(controller)


@router.post("/request-commit", response_model=ImportSessionResponse)
async def request_commit(
    controller: ImportWorkflowController = Depends(get_import_controller),
    current_user: User = Depends(get_current_active_user)
):
    """Commit the file, or stop for confirmation if accounts would be overwritten."""
    logger.info("Import requested by %s", current_user.username)
    try:
        await controller.request_import()
    except ImportWorkflowError as e:
        raise to_http_error(e)
    return session_response(controller)


@router.post("/confirm-destructive", response_model=ImportSessionResponse)
async def confirm_destructive(
    controller: ImportWorkflowController = Depends(get_import_controller),
    current_user: User = Depends(get_current_active_user)
):
    """Confirm overwriting existing accounts and commit."""
    logger.info("Destructive import confirmed by %s", current_user.username)
    try:
        await controller.confirm_destructive()
    except ImportWorkflowError as e:
        raise to_http_error(e)
    return session_response(controller)


@router.post("/cancel-confirmation", response_model=ImportSessionResponse)
async def cancel_confirmation(
    controller: ImportWorkflowController = Depends(get_import_controller),
    current_user: User = Depends(get_current_active_user)
):
    """Decline overwriting existing accounts."""
    try:
        await controller.cancel_confirmation()
    except ImportWorkflowError as e:
        raise to_http_error(e)
    return session_response(controller)


@router.post("/cancel", response_model=ImportSessionResponse)
async def cancel_import(
    controller: ImportWorkflowController = Depends(get_import_controller),
    current_user: User = Depends(get_current_active_user)
):
    """Cancel the current session."""
    try:
        await controller.cancel()
    except ImportWorkflowError as e:
        raise to_http_error(e)
    return session_response(controller)


@router.post("/finish", response_model=FinishResponse)
async def finish_import(
    controller: ImportWorkflowController = Depends(get_import_controller),
    current_user: User = Depends(get_current_active_user)
):
    """Close a fully successful import."""
    try:
        outcome = await controller.finish()
    except ImportWorkflowError as e:
        raise to_http_error(e)
    return FinishResponse.model_validate({"status": "success", "outcome": outcome}, from_attributes=True)
