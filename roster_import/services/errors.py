"""
Import Workflow Errors
Exceptions raised by the import controller and its collaborators.
"""


class ImportWorkflowError(Exception):
    """Base class for all import workflow errors."""
    pass


class SelectionError(ImportWorkflowError):
    """Raised when no file was picked or the picked file cannot be read."""
    pass


class SessionBusy(ImportWorkflowError):
    """Raised when a new file is selected while a session is in flight."""
    pass


class InvalidTransition(ImportWorkflowError):
    """Raised when an operation is not allowed from the current stage."""

    def __init__(self, operation: str, stage, message: str | None = None):
        self.operation = operation
        self.stage = stage
        super().__init__(message or f"Cannot {operation} while import is {stage.value}")


class UnknownSemester(ImportWorkflowError):
    """Raised when binding a semester that is not in the active list."""
    pass


class ValidationUnavailable(ImportWorkflowError):
    """Raised when the validation service cannot be reached. Retryable."""
    pass


class ConflictDetectionError(ImportWorkflowError):
    """Raised when existing accounts cannot be checked. Retryable."""
    pass


class CommitFatalError(ImportWorkflowError):
    """Raised when a commit cannot process any row."""
    pass


class SchemaError(CommitFatalError):
    """Raised when the file given to the commit engine is malformed."""
    pass


class RowTransformError(ValueError):
    """Raised when a single CSV record cannot be turned into an account."""
    pass
