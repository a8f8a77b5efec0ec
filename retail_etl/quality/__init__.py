"""
Data Quality Module
"""
from .validators import DataValidator, ValidationResult, ValidationSeverity, ValidationStatus
from .checker import (
    QualityChecker,
    QualityReport,
    RecordType,
    Passed,
    Failed,
    Violation,
    ValidationOutcome,
)
from .integrity import find_orphaned_sales, find_orphaned_sales_in_warehouse

__all__ = [
    "DataValidator",
    "ValidationResult",
    "ValidationSeverity",
    "ValidationStatus",
    "QualityChecker",
    "QualityReport",
    "RecordType",
    "Passed",
    "Failed",
    "Violation",
    "ValidationOutcome",
    "find_orphaned_sales",
    "find_orphaned_sales_in_warehouse",
]
