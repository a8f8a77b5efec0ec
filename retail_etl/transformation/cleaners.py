"""
Data Cleaning Module

Deterministic repair and filter rules for staging data:
- Products: missing category / sub-category defaulted, no rows dropped
- Sales: rows without a customer or product key dropped
- Customers: passed through untouched
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import polars as pl
import structlog

from retail_etl.config import get_settings

logger = structlog.get_logger(__name__)


@dataclass
class CleaningStats:
    """Statistics from cleaning operations"""
    total_rows: int
    rows_after_cleaning: int
    nulls_filled: int
    rows_dropped: int


class DataCleaner:
    """
    Staging data cleaner.

    Example:
        cleaner = DataCleaner()
        products_clean = cleaner.clean_products(products_df)
        sales_clean, stats = cleaner.clean_sales_with_stats(sales_df)
    """

    SALES_REQUIRED_KEYS = ["customer_id", "product_id"]

    def __init__(
        self,
        default_category: Optional[str] = None,
        default_sub_category: Optional[str] = None,
    ):
        cleaning = get_settings().cleaning
        self.default_category = default_category or cleaning.default_category
        self.default_sub_category = default_sub_category or cleaning.default_sub_category
        self._cleaning_rules: Dict[str, Callable] = {}
        self._register_default_rules()

    def _register_default_rules(self) -> None:
        """Register default cleaning rules"""
        self._cleaning_rules = {
            "fill_nulls": self._fill_nulls,
            "drop_null_keys": self._drop_null_keys,
        }

    def register_rule(self, name: str, func: Callable) -> None:
        """Register a custom cleaning rule"""
        self._cleaning_rules[name] = func

    def apply_rule(self, name: str, df: pl.DataFrame, *args: Any, **kwargs: Any) -> pl.DataFrame:
        """Apply a registered rule by name"""
        if name not in self._cleaning_rules:
            raise KeyError(f"Unknown cleaning rule: {name}")
        return self._cleaning_rules[name](df, *args, **kwargs)

    def _fill_nulls(
        self,
        df: pl.DataFrame,
        fill_values: Dict[str, Any]
    ) -> pl.DataFrame:
        """Fill null values with specified defaults"""
        for col, value in fill_values.items():
            if col in df.columns:
                df = df.with_columns(pl.col(col).fill_null(value).alias(col))

        return df

    def _drop_null_keys(
        self,
        df: pl.DataFrame,
        columns: List[str],
    ) -> pl.DataFrame:
        """Keep only rows where every column in ``columns`` is non-null"""
        return df.filter(pl.all_horizontal([pl.col(c).is_not_null() for c in columns]))

    def clean_products_with_stats(self, df: pl.DataFrame) -> Tuple[pl.DataFrame, CleaningStats]:
        """Default missing category and sub-category; every row is kept"""
        fill_values = {
            "category": self.default_category,
            "sub_category": self.default_sub_category,
        }
        nulls_filled = sum(df[c].null_count() for c in fill_values if c in df.columns)

        cleaned = self.apply_rule("fill_nulls", df, fill_values)

        stats = CleaningStats(
            total_rows=df.height,
            rows_after_cleaning=cleaned.height,
            nulls_filled=nulls_filled,
            rows_dropped=0,
        )
        logger.info("Products cleaned", nulls_filled=nulls_filled, rows=cleaned.height)
        return cleaned, stats

    def clean_sales_with_stats(self, df: pl.DataFrame) -> Tuple[pl.DataFrame, CleaningStats]:
        """Drop sales missing a customer or product key; other fields untouched"""
        cleaned = self.apply_rule("drop_null_keys", df, self.SALES_REQUIRED_KEYS)

        stats = CleaningStats(
            total_rows=df.height,
            rows_after_cleaning=cleaned.height,
            nulls_filled=0,
            rows_dropped=df.height - cleaned.height,
        )
        logger.info("Sales cleaned", rows_dropped=stats.rows_dropped, rows=cleaned.height)
        return cleaned, stats

    def clean_products(self, df: pl.DataFrame) -> pl.DataFrame:
        return self.clean_products_with_stats(df)[0]

    def clean_sales(self, df: pl.DataFrame) -> pl.DataFrame:
        return self.clean_sales_with_stats(df)[0]


def clean_dataframe(
    df: pl.DataFrame,
    data_type: str,
) -> pl.DataFrame:
    """
    Convenience function to clean a staging DataFrame.

    Args:
        df: Input DataFrame
        data_type: "products", "sales" or "customers"

    Returns:
        Cleaned DataFrame (customers are returned unchanged)
    """
    cleaner = DataCleaner()

    if data_type == "products":
        return cleaner.clean_products(df)
    elif data_type == "sales":
        return cleaner.clean_sales(df)
    elif data_type == "customers":
        return df
    raise ValueError(f"Unknown data type: {data_type}")
