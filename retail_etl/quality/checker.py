"""
Staging Quality Checker

Read-only diagnostics over staging frames: row count, rows with a null
required field, and natural keys that occur more than once.

A report is informational. Its ``outcome`` is either ``Passed`` or
``Failed(violations)``; the caller decides whether to ``enforce()`` it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Union

import polars as pl
import structlog

from retail_etl.exceptions import DataQualityError
from .validators import (
    DataValidator,
    ValidationResult,
    ValidationStatus,
    create_customers_validator,
    create_products_validator,
    create_sales_validator,
    find_duplicate_keys,
    find_null_rows,
)

logger = structlog.get_logger(__name__)


class RecordType(str, Enum):
    """Staging record types"""
    PRODUCTS = "products"
    CUSTOMERS = "customers"
    SALES = "sales"


REQUIRED_FIELDS: Dict[RecordType, List[str]] = {
    RecordType.CUSTOMERS: ["customer_id", "first_name", "last_name"],
    RecordType.PRODUCTS: ["product_id", "product_name"],
    RecordType.SALES: ["sale_id", "product_id", "customer_id"],
}

NATURAL_KEYS: Dict[RecordType, str] = {
    RecordType.PRODUCTS: "product_id",
    RecordType.CUSTOMERS: "customer_id",
    RecordType.SALES: "sale_id",
}

_VALIDATORS = {
    RecordType.PRODUCTS: create_products_validator,
    RecordType.CUSTOMERS: create_customers_validator,
    RecordType.SALES: create_sales_validator,
}


@dataclass(frozen=True)
class Violation:
    """One failed check"""
    check: str
    message: str
    failed_rows: int = 0


@dataclass(frozen=True)
class Passed:
    """No blocking check failed"""

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failed:
    """At least one blocking check failed"""
    violations: List[Violation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return False


ValidationOutcome = Union[Passed, Failed]


@dataclass
class QualityReport:
    """Diagnostics for one staging record set"""
    record_type: RecordType
    row_count: int
    null_rows: pl.DataFrame
    duplicate_keys: pl.DataFrame
    validation: ValidationResult

    @property
    def outcome(self) -> ValidationOutcome:
        failures = self.validation.failures
        if not failures:
            return Passed()
        return Failed([
            Violation(check=c.name, message=c.message, failed_rows=c.failed_rows)
            for c in failures
        ])

    @property
    def duplicates(self) -> List[tuple]:
        """Duplicate keys as (key, count) pairs"""
        return list(self.duplicate_keys.iter_rows())

    def enforce(self) -> None:
        """Raise DataQualityError if the outcome is Failed"""
        outcome = self.outcome
        if isinstance(outcome, Failed):
            raise DataQualityError(
                f"{self.record_type.value}: {len(outcome.violations)} quality checks failed",
                violations=outcome.violations,
            )

    def summary(self) -> Dict[str, object]:
        return {
            "record_type": self.record_type.value,
            "row_count": self.row_count,
            "null_rows": self.null_rows.height,
            "duplicate_keys": self.duplicate_keys.height,
            "status": self.validation.status.value,
        }


class QualityChecker:
    """
    Runs the staging diagnostics for each record type.

    Example:
        checker = QualityChecker()
        report = checker.check(RecordType.CUSTOMERS, customers_df)
        if isinstance(report.outcome, Failed):
            ...
    """

    def check(self, record_type: Union[RecordType, str], df: pl.DataFrame) -> QualityReport:
        record_type = RecordType(record_type)
        validator: DataValidator = _VALIDATORS[record_type]()

        report = QualityReport(
            record_type=record_type,
            row_count=df.height,
            null_rows=find_null_rows(df, REQUIRED_FIELDS[record_type]),
            duplicate_keys=find_duplicate_keys(df, NATURAL_KEYS[record_type]),
            validation=validator.validate(df),
        )

        log = logger.warning if report.validation.status != ValidationStatus.PASSED else logger.info
        log("Quality check complete", **report.summary())
        return report

    def check_all(
        self,
        products: pl.DataFrame,
        customers: pl.DataFrame,
        sales: pl.DataFrame,
    ) -> Dict[str, QualityReport]:
        return {
            RecordType.PRODUCTS.value: self.check(RecordType.PRODUCTS, products),
            RecordType.CUSTOMERS.value: self.check(RecordType.CUSTOMERS, customers),
            RecordType.SALES.value: self.check(RecordType.SALES, sales),
        }
