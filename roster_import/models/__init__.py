# Models package
from roster_import.models.semester import Semester
from roster_import.models.school_account import SchoolAccount
from roster_import.models.user import User

__all__ = ["Semester", "SchoolAccount", "User"]
