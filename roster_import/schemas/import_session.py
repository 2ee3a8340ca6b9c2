"""
Import Session Schemas
Pydantic models for the CSV import workflow API.
"""
from pydantic import BaseModel, Field, computed_field, field_validator
from typing import List, Optional
from uuid import UUID

from roster_import.services.import_session import (
    CommitStatus,
    ImportStage,
    ValidationErrorType,
)


class SelectFileRequest(BaseModel):
    """Schema for selecting a file already on the server."""
    path: Optional[str] = Field(None, description="Path of an uploaded CSV file; empty when the picker was aborted")


class BindSemesterRequest(BaseModel):
    """Schema for binding the import to a semester."""
    semester_id: UUID


class SemesterResponse(BaseModel):
    """Schema for a selectable semester."""
    id: UUID
    label: str

    class Config:
        from_attributes = True


class ValidationIssueResponse(BaseModel):
    """Schema for a single validation problem."""
    row_number: int
    fields: List[str] = []
    message: str
    error_type: ValidationErrorType

    class Config:
        from_attributes = True

    @field_validator("fields", mode="before")
    @classmethod
    def sort_fields(cls, value):
        return sorted(value or [])


class ValidationOutcomeResponse(BaseModel):
    """Schema for a validation result."""
    is_valid: bool
    errors: List[ValidationIssueResponse]
    header_errors: List[ValidationIssueResponse]
    content_errors: List[ValidationIssueResponse]
    file_name: str
    file_size: int
    total_rows: int
    validated_rows: int
    invalid_rows: int
    encoding: str
    preview_rows: List[List[str]]

    class Config:
        from_attributes = True


class ExistingAccountResponse(BaseModel):
    """Schema for an incoming row that matches a stored account."""
    account_id: UUID
    school_id: str
    row_number: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    class Config:
        from_attributes = True


class ConflictSummaryResponse(BaseModel):
    """Schema for the conflict check result."""
    existing_count: int
    new_count: int
    sample: List[ExistingAccountResponse]

    class Config:
        from_attributes = True


class AccountStatusCountsResponse(BaseModel):
    """Schema for account activation totals."""
    activated: int
    deactivated: int
    total: int

    class Config:
        from_attributes = True


class CommitOutcomeResponse(BaseModel):
    """Schema for per-row commit accounting."""
    total_processed: int
    success_count: int
    failure_count: int
    failure_details: List[str]
    status_counts: AccountStatusCountsResponse

    class Config:
        from_attributes = True


class CommitResultResponse(BaseModel):
    """Schema for a commit attempt."""
    status: CommitStatus
    outcome: Optional[CommitOutcomeResponse] = None
    error: Optional[str] = None

    class Config:
        from_attributes = True


class ImportSessionResponse(BaseModel):
    """Schema for the current import session."""
    id: UUID
    source_ref: Optional[str] = None
    stage: ImportStage
    validation: Optional[ValidationOutcomeResponse] = None
    conflicts: Optional[ConflictSummaryResponse] = None
    semester_binding: Optional[UUID] = None
    commit_result: Optional[CommitResultResponse] = None

    class Config:
        from_attributes = True

    @computed_field
    @property
    def can_finish(self) -> bool:
        return self.stage == ImportStage.COMPLETED_SUCCESS

    @computed_field
    @property
    def can_cancel(self) -> bool:
        return self.stage != ImportStage.COMMITTING


class FinishResponse(BaseModel):
    """Schema for a finished import."""
    status: str
    outcome: CommitOutcomeResponse
