"""
Import Session Types
Value objects describing one CSV import attempt and its results.
"""
import enum
import uuid
from dataclasses import dataclass, field
from typing import List, Optional, FrozenSet


class ImportStage(str, enum.Enum):
    """Position of an import session in the workflow."""
    IDLE = "idle"
    FILE_SELECTED = "file_selected"
    VALIDATING = "validating"
    VALIDATED_INVALID = "validated_invalid"
    VALIDATED_VALID = "validated_valid"
    CONFLICT_REVIEWED = "conflict_reviewed"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    COMMITTING = "committing"
    COMPLETED_SUCCESS = "completed_success"
    COMPLETED_PARTIAL_FAILURE = "completed_partial_failure"
    COMPLETED_FATAL_ERROR = "completed_fatal_error"

    @property
    def is_completed(self) -> bool:
        return self in COMPLETED_STAGES

    @property
    def accepts_new_file(self) -> bool:
        """Whether a new file may be selected from this stage."""
        return self is ImportStage.IDLE or self.is_completed


COMPLETED_STAGES = frozenset({
    ImportStage.COMPLETED_SUCCESS,
    ImportStage.COMPLETED_PARTIAL_FAILURE,
    ImportStage.COMPLETED_FATAL_ERROR,
})


class ValidationErrorType(str, enum.Enum):
    """Kind of problem found while validating a file."""
    FILE_SIZE = "file_size"
    FILE_TYPE = "file_type"
    ENCODING = "encoding"
    HEADER_MISSING = "header_missing"
    DATA_INTEGRITY = "data_integrity"
    TYPE_MISMATCH = "type_mismatch"


@dataclass(frozen=True)
class ValidationIssue:
    """
    A single validation problem.

    row_number 0 means the problem concerns the file or its header and blocks
    the whole import; positive numbers are 1-based data rows.
    """
    row_number: int
    message: str
    fields: FrozenSet[str] = frozenset()
    error_type: ValidationErrorType = ValidationErrorType.DATA_INTEGRITY

    @property
    def is_header_error(self) -> bool:
        return self.row_number == 0


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of validating a file."""
    errors: tuple = ()
    file_name: str = ""
    file_size: int = 0
    total_rows: int = 0
    validated_rows: int = 0
    invalid_rows: int = 0
    encoding: str = "UTF-8"
    preview_rows: tuple = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def header_errors(self) -> List[ValidationIssue]:
        return [e for e in self.errors if e.is_header_error]

    @property
    def content_errors(self) -> List[ValidationIssue]:
        return [e for e in self.errors if not e.is_header_error]


MAX_CONFLICT_SAMPLE = 5


@dataclass(frozen=True)
class ExistingAccountRef:
    """An incoming row whose school ID matches a stored account."""
    account_id: uuid.UUID
    school_id: str
    row_number: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None


@dataclass(frozen=True)
class ConflictSummary:
    """How many distinct incoming school IDs already exist."""
    existing_count: int = 0
    new_count: int = 0
    sample: tuple = ()

    def __post_init__(self):
        if self.existing_count < 0 or self.new_count < 0:
            raise ValueError("Conflict counts cannot be negative")
        if len(self.sample) > MAX_CONFLICT_SAMPLE:
            raise ValueError(f"Conflict sample is capped at {MAX_CONFLICT_SAMPLE} entries")

    @property
    def has_conflicts(self) -> bool:
        return self.existing_count > 0


@dataclass(frozen=True)
class AccountStatusCounts:
    """Account activation totals after a commit."""
    activated: int = 0
    deactivated: int = 0
    total: int = 0


@dataclass(frozen=True)
class CommitOutcome:
    """Per-row accounting of a commit."""
    total_processed: int
    success_count: int
    failure_count: int
    failure_details: tuple = ()
    status_counts: AccountStatusCounts = field(default_factory=AccountStatusCounts)

    def __post_init__(self):
        if self.success_count + self.failure_count != self.total_processed:
            raise ValueError(
                f"success_count ({self.success_count}) + failure_count "
                f"({self.failure_count}) must equal total_processed ({self.total_processed})"
            )


class CommitStatus(str, enum.Enum):
    OK = "ok"
    PARTIAL_FAILURE = "partial_failure"
    FATAL_ERROR = "fatal_error"


@dataclass(frozen=True)
class CommitResult:
    """Tagged result of a commit attempt."""
    status: CommitStatus
    outcome: Optional[CommitOutcome] = None
    error: Optional[str] = None

    @classmethod
    def from_outcome(cls, outcome: CommitOutcome) -> "CommitResult":
        if outcome.total_processed == 0:
            return cls.fatal("No rows were processed")
        if outcome.failure_count > 0:
            return cls(status=CommitStatus.PARTIAL_FAILURE, outcome=outcome)
        return cls(status=CommitStatus.OK, outcome=outcome)

    @classmethod
    def fatal(cls, error: str) -> "CommitResult":
        return cls(status=CommitStatus.FATAL_ERROR, error=error)

    @property
    def stage(self) -> ImportStage:
        return _RESULT_STAGES[self.status]


_RESULT_STAGES = {
    CommitStatus.OK: ImportStage.COMPLETED_SUCCESS,
    CommitStatus.PARTIAL_FAILURE: ImportStage.COMPLETED_PARTIAL_FAILURE,
    CommitStatus.FATAL_ERROR: ImportStage.COMPLETED_FATAL_ERROR,
}


@dataclass
class ImportSession:
    """The single unit of work owned by the import controller."""
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    source_ref: Optional[str] = None
    stage: ImportStage = ImportStage.IDLE
    validation: Optional[ValidationOutcome] = None
    conflicts: Optional[ConflictSummary] = None
    semester_binding: Optional[uuid.UUID] = None
    commit_result: Optional[CommitResult] = None
