"""
CSV Validator Service
Checks a roster CSV file's header and row content before import.
"""
import asyncio
import logging
import os
import uuid
from typing import List, Optional, Sequence

from roster_import.config import settings
from roster_import.services.csv_reader import (
    BOOLEAN_VALUES,
    GENDER_VALUES,
    REQUIRED_HEADERS,
    CsvDocument,
    CsvRecord,
    decode_csv_bytes,
    parse_csv_text,
)
from roster_import.services.import_session import (
    ValidationErrorType,
    ValidationIssue,
    ValidationOutcome,
)

logger = logging.getLogger(__name__)

PREVIEW_ROW_COUNT = 5

REQUIRED_FIELD_MESSAGES = {
    "student_id": "Student ID cannot be empty",
    "first_name": "First name cannot be empty",
    "middle_name": "Middle name cannot be empty",
    "last_name": "Last name cannot be empty",
}


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


OPTIONAL_FIELD_CHECKS = {
    "gender": lambda value: value.lower() in GENDER_VALUES,
    "is_active": lambda value: value.lower() in BOOLEAN_VALUES,
    "last_updated_semester_id": _is_uuid,
}


def _file_issue(error_type: ValidationErrorType, message: str) -> ValidationIssue:
    return ValidationIssue(row_number=0, message=message, error_type=error_type)


class CsvValidator:
    """Service for validating roster CSV files."""

    def __init__(
        self,
        max_file_size: Optional[int] = None,
        allowed_extensions: Optional[Sequence[str]] = None,
    ):
        self.max_file_size = settings.max_file_size if max_file_size is None else max_file_size
        self.allowed_extensions = [
            ext.lower() for ext in (allowed_extensions or settings.allowed_extensions_list)
        ]

    async def validate(self, file_path: str) -> ValidationOutcome:
        """Validate a file without blocking the event loop."""
        return await asyncio.to_thread(self.validate_file, file_path)

    def validate_file(self, file_path: str) -> ValidationOutcome:
        """
        Validate a CSV file.

        File level and header problems are reported with row_number 0 and
        stop content checks. Content problems carry the 1-based data row.
        """
        file_name = os.path.basename(file_path)
        errors: List[ValidationIssue] = []

        try:
            file_size = os.path.getsize(file_path)
        except OSError:
            return ValidationOutcome(
                errors=(_file_issue(ValidationErrorType.FILE_SIZE, "Unable to read file metadata"),),
                file_name=file_name,
            )

        if file_size > self.max_file_size:
            errors.append(_file_issue(
                ValidationErrorType.FILE_SIZE,
                f"File exceeds maximum size of {self.max_file_size} bytes",
            ))

        extension = os.path.splitext(file_name)[1].lower()
        if extension not in self.allowed_extensions:
            errors.append(_file_issue(
                ValidationErrorType.FILE_TYPE,
                f"Invalid file type. Only {', '.join(self.allowed_extensions)} files are allowed",
            ))

        try:
            with open(file_path, "rb") as f:
                data = f.read()
        except OSError:
            errors.append(_file_issue(ValidationErrorType.ENCODING, "Unable to open file"))
            return ValidationOutcome(errors=tuple(errors), file_name=file_name, file_size=file_size)

        try:
            text = decode_csv_bytes(data)
        except UnicodeDecodeError:
            errors.append(_file_issue(ValidationErrorType.ENCODING, "File is not valid UTF-8"))
            return ValidationOutcome(errors=tuple(errors), file_name=file_name, file_size=file_size)

        document = parse_csv_text(text)
        errors.extend(self._validate_headers(document))
        if not errors and not document.records:
            errors.append(_file_issue(ValidationErrorType.DATA_INTEGRITY, "File contains no data rows"))

        # Header errors take precedence over row content; no rows are echoed back
        if errors:
            logger.info("Validation of %s failed with %d file/header errors", file_name, len(errors))
            return ValidationOutcome(
                errors=tuple(errors),
                file_name=file_name,
                file_size=file_size,
                total_rows=len(document.records),
            )

        preview_rows = tuple(
            tuple(record.values) for record in document.records[:PREVIEW_ROW_COUNT]
        )

        valid_rows = 0
        invalid_rows = 0
        for record in document.records:
            record_errors = self._validate_record(document, record)
            if record_errors:
                invalid_rows += 1
                errors.extend(record_errors)
            else:
                valid_rows += 1

        logger.info(
            "Validated %s: %d rows, %d valid, %d invalid",
            file_name, len(document.records), valid_rows, invalid_rows
        )

        return ValidationOutcome(
            errors=tuple(errors),
            file_name=file_name,
            file_size=file_size,
            total_rows=len(document.records),
            validated_rows=valid_rows,
            invalid_rows=invalid_rows,
            preview_rows=preview_rows,
        )

    def _validate_headers(self, document: CsvDocument) -> List[ValidationIssue]:
        if not document.headers:
            return [_file_issue(ValidationErrorType.HEADER_MISSING, "Unable to read CSV headers")]

        return [
            ValidationIssue(
                row_number=0,
                message=f"Missing required header: {header}",
                fields=frozenset({header}),
                error_type=ValidationErrorType.HEADER_MISSING,
            )
            for header in document.missing_headers()
        ]

    def _validate_record(self, document: CsvDocument, record: CsvRecord) -> List[ValidationIssue]:
        if record.malformed:
            return [ValidationIssue(
                row_number=record.row_number,
                message="Invalid CSV record",
                error_type=ValidationErrorType.DATA_INTEGRITY,
            )]

        record_errors = []
        for header in REQUIRED_HEADERS:
            if not document.value(record, header):
                record_errors.append(ValidationIssue(
                    row_number=record.row_number,
                    message=REQUIRED_FIELD_MESSAGES[header],
                    fields=frozenset({header}),
                    error_type=ValidationErrorType.DATA_INTEGRITY,
                ))

        for header, check in OPTIONAL_FIELD_CHECKS.items():
            value = document.value(record, header)
            if value and not check(value):
                record_errors.append(ValidationIssue(
                    row_number=record.row_number,
                    message=f"Invalid value for {header}",
                    fields=frozenset({header}),
                    error_type=ValidationErrorType.TYPE_MISMATCH,
                ))

        return record_errors
