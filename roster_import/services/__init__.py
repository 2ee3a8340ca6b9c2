# Services package
from roster_import.services.csv_validator import CsvValidator
from roster_import.services.conflict_detector import ConflictDetector
from roster_import.services.commit_engine import CommitEngine
from roster_import.services.semester_registry import SemesterRegistry
from roster_import.services.file_source import UploadFileSource
from roster_import.services.import_workflow import ImportWorkflowController

__all__ = [
    "CsvValidator",
    "ConflictDetector",
    "CommitEngine",
    "SemesterRegistry",
    "UploadFileSource",
    "ImportWorkflowController",
]
