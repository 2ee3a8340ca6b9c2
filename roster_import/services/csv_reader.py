"""
CSV Reader Service
Reads account roster CSV files and turns records into account data.
"""
import csv
import io
import uuid
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Dict, List, Optional

from roster_import.services.errors import RowTransformError


REQUIRED_HEADERS = ("student_id", "first_name", "middle_name", "last_name")
OPTIONAL_HEADERS = (
    "gender",
    "course",
    "department",
    "position",
    "major",
    "year_level",
    "is_active",
    "last_updated_semester_id",
    "last_updated_semester",
)

GENDER_VALUES = {
    "male": 0,
    "0": 0,
    "female": 1,
    "1": 1,
    "other": 2,
    "2": 2,
}
BOOLEAN_VALUES = {
    "1": True,
    "true": True,
    "0": False,
    "false": False,
}


@dataclass
class CsvRecord:
    """A data record with its 1-based position among data rows."""
    row_number: int
    values: List[str]
    malformed: bool = False


@dataclass
class CsvDocument:
    """Parsed contents of a CSV file."""
    headers: List[str]
    records: List[CsvRecord] = field(default_factory=list)

    @cached_property
    def header_index(self) -> Dict[str, int]:
        """Lowercased header name to column index, first occurrence wins."""
        index: Dict[str, int] = {}
        for idx, name in enumerate(self.headers):
            index.setdefault(name.strip().lower(), idx)
        return index

    def missing_headers(self) -> List[str]:
        index = self.header_index
        return [name for name in REQUIRED_HEADERS if name not in index]

    def value(self, record: CsvRecord, header: str) -> str:
        """Get a trimmed cell value by header name, empty if absent."""
        idx = self.header_index.get(header)
        if idx is None or idx >= len(record.values):
            return ""
        return record.values[idx].strip()


def decode_csv_bytes(data: bytes) -> str:
    """Decode file bytes as UTF-8, tolerating a byte order mark."""
    return data.decode("utf-8-sig")


def parse_csv_text(text: str) -> CsvDocument:
    """
    Parse CSV text into a header and data records.

    Records whose field count differs from the header, or that the csv
    module rejects, are kept and flagged as malformed. Parsing stops at the
    first record the csv module cannot read.
    """
    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    try:
        headers = next(reader)
    except StopIteration:
        return CsvDocument(headers=[])

    document = CsvDocument(headers=[h.strip() for h in headers])
    row_number = 0
    while True:
        try:
            values = next(reader)
        except StopIteration:
            break
        except csv.Error:
            row_number += 1
            document.records.append(CsvRecord(row_number=row_number, values=[], malformed=True))
            break

        # Skip blank lines
        if not values or all(not v.strip() for v in values):
            continue

        row_number += 1
        document.records.append(CsvRecord(
            row_number=row_number,
            values=values,
            malformed=len(values) != len(headers),
        ))

    return document


def read_csv_file(file_path: str) -> CsvDocument:
    """
    Read and parse a CSV file.

    Raises:
        OSError: if the file cannot be read
        UnicodeDecodeError: if the file is not valid UTF-8
    """
    with open(file_path, "rb") as f:
        data = f.read()
    return parse_csv_text(decode_csv_bytes(data))


def _optional(value: str) -> Optional[str]:
    return value or None


def transform_record(document: CsvDocument, record: CsvRecord) -> Dict[str, Any]:
    """
    Convert a CSV record into school account fields.

    Raises:
        RowTransformError: if the record is malformed or a value cannot be converted
    """
    if record.malformed:
        raise RowTransformError(f"Row {record.row_number}: invalid CSV record")

    school_id = document.value(record, "student_id")
    if not school_id:
        raise RowTransformError(f"Row {record.row_number}: student_id is empty")

    gender_raw = document.value(record, "gender").lower()
    if gender_raw and gender_raw not in GENDER_VALUES:
        raise RowTransformError(f"Row {record.row_number}: invalid gender '{gender_raw}'")

    active_raw = document.value(record, "is_active").lower()
    if active_raw and active_raw not in BOOLEAN_VALUES:
        raise RowTransformError(f"Row {record.row_number}: invalid is_active '{active_raw}'")

    semester_raw = document.value(record, "last_updated_semester_id")
    semester_id = None
    if semester_raw:
        try:
            semester_id = uuid.UUID(semester_raw)
        except ValueError:
            raise RowTransformError(
                f"Row {record.row_number}: invalid last_updated_semester_id '{semester_raw}'"
            )

    return {
        "school_id": school_id,
        "first_name": _optional(document.value(record, "first_name")),
        "middle_name": _optional(document.value(record, "middle_name")),
        "last_name": _optional(document.value(record, "last_name")),
        "gender": GENDER_VALUES.get(gender_raw),
        "course": _optional(document.value(record, "course")),
        "department": _optional(document.value(record, "department")),
        "position": _optional(document.value(record, "position")),
        "major": _optional(document.value(record, "major")),
        "year_level": _optional(document.value(record, "year_level")),
        "is_active": BOOLEAN_VALUES.get(active_raw, True),
        "last_updated_semester_id": semester_id,
    }
