# Schemas package
from roster_import.schemas.auth import LoginRequest, UserResponse, TokenResponse
from roster_import.schemas.import_session import (
    SelectFileRequest,
    BindSemesterRequest,
    SemesterResponse,
    ValidationIssueResponse,
    ValidationOutcomeResponse,
    ExistingAccountResponse,
    ConflictSummaryResponse,
    AccountStatusCountsResponse,
    CommitOutcomeResponse,
    CommitResultResponse,
    ImportSessionResponse,
    FinishResponse,
)

__all__ = [
    "LoginRequest",
    "UserResponse",
    "TokenResponse",
    "SelectFileRequest",
    "BindSemesterRequest",
    "SemesterResponse",
    "ValidationIssueResponse",
    "ValidationOutcomeResponse",
    "ExistingAccountResponse",
    "ConflictSummaryResponse",
    "AccountStatusCountsResponse",
    "CommitOutcomeResponse",
    "CommitResultResponse",
    "ImportSessionResponse",
    "FinishResponse",
]
