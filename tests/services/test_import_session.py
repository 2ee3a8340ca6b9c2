import uuid

import pytest

from roster_import.services.import_session import (
    CommitOutcome,
    CommitResult,
    CommitStatus,
    ConflictSummary,
    ExistingAccountRef,
    ImportStage,
    ValidationIssue,
    ValidationOutcome,
)


def make_ref(n: int) -> ExistingAccountRef:
    return ExistingAccountRef(account_id=uuid.uuid4(), school_id=f"S{n}", row_number=n)


class TestCommitOutcome:
    """Tests for CommitOutcome accounting."""

    def test_counts_must_add_up(self):
        """Test that success + failure must equal total processed."""
        with pytest.raises(ValueError):
            CommitOutcome(total_processed=10, success_count=9, failure_count=0)

    def test_valid_counts(self):
        outcome = CommitOutcome(total_processed=10, success_count=9, failure_count=1,
                                failure_details=("row failed",))

        assert outcome.failure_count == 1


class TestCommitResult:
    """Tests for classifying commit outcomes."""

    def test_success(self):
        result = CommitResult.from_outcome(CommitOutcome(total_processed=3, success_count=3, failure_count=0))

        assert result.status == CommitStatus.OK
        assert result.stage == ImportStage.COMPLETED_SUCCESS

    def test_partial_failure(self):
        result = CommitResult.from_outcome(CommitOutcome(total_processed=3, success_count=2, failure_count=1))

        assert result.status == CommitStatus.PARTIAL_FAILURE
        assert result.stage == ImportStage.COMPLETED_PARTIAL_FAILURE

    def test_nothing_processed_is_fatal(self):
        """Test that an outcome with no processed rows is a fatal error."""
        result = CommitResult.from_outcome(CommitOutcome(total_processed=0, success_count=0, failure_count=0))

        assert result.status == CommitStatus.FATAL_ERROR
        assert result.outcome is None
        assert result.stage == ImportStage.COMPLETED_FATAL_ERROR


class TestConflictSummary:
    """Tests for ConflictSummary invariants."""

    def test_sample_capped_at_five(self):
        with pytest.raises(ValueError):
            ConflictSummary(existing_count=6, new_count=0, sample=tuple(make_ref(n) for n in range(6)))

    def test_negative_counts_rejected(self):
        with pytest.raises(ValueError):
            ConflictSummary(existing_count=-1, new_count=0)


class TestValidationOutcome:
    """Tests for ValidationOutcome."""

    def test_header_and_content_errors_are_split(self):
        header = ValidationIssue(row_number=0, message="Missing required header: last_name")
        content = ValidationIssue(row_number=4, message="First name cannot be empty")
        outcome = ValidationOutcome(errors=(header, content))

        assert not outcome.is_valid
        assert outcome.header_errors == [header]
        assert outcome.content_errors == [content]

    def test_no_errors_is_valid(self):
        assert ValidationOutcome().is_valid


class TestImportStage:
    """Tests for stage helpers."""

    @pytest.mark.parametrize("stage", [
        ImportStage.IDLE,
        ImportStage.COMPLETED_SUCCESS,
        ImportStage.COMPLETED_PARTIAL_FAILURE,
        ImportStage.COMPLETED_FATAL_ERROR,
    ])
    def test_accepts_new_file(self, stage):
        assert stage.accepts_new_file

    @pytest.mark.parametrize("stage", [
        ImportStage.FILE_SELECTED,
        ImportStage.VALIDATING,
        ImportStage.VALIDATED_INVALID,
        ImportStage.CONFLICT_REVIEWED,
        ImportStage.AWAITING_CONFIRMATION,
        ImportStage.COMMITTING,
    ])
    def test_busy_stages(self, stage):
        assert not stage.accepts_new_file
