"""
Pipeline Exceptions

Errors raised by the pipeline itself. Storage failures are not wrapped:
SQLAlchemy exceptions (IntegrityError, DataError, ...) propagate unchanged.
"""

from typing import Any, List, Optional


class RetailETLError(Exception):
    """Base class for pipeline errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class IngestionError(RetailETLError):
    """A source file could not be read into staging.

    The whole file is rejected; there is no partial-row recovery.
    """

    def __init__(self, message: str, file_path: Optional[str] = None, reason: Optional[str] = None):
        super().__init__(message)
        self.file_path = file_path
        self.reason = reason


class DataQualityError(RetailETLError):
    """Raised when a caller chooses to enforce a failed quality report"""

    def __init__(self, message: str, violations: Optional[List[Any]] = None):
        super().__init__(message)
        self.violations = violations or []
