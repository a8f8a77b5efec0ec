"""
Raw CSV Ingestor

Reads the three raw extracts (products, customers, sales) into typed
staging frames.

- Exactly one header row, skipped; columns are mapped by position
- Comma-delimited, optionally double-quote enclosed
- Every value read as text, then cast strictly per column
- A malformed row rejects the whole file (no partial-row recovery)
"""

import csv
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

import polars as pl
import structlog

from retail_etl.config import get_settings
from retail_etl.exceptions import IngestionError

logger = structlog.get_logger(__name__)


# Column order matches the extract layout
PRODUCT_SCHEMA: Dict[str, pl.DataType] = {
    "product_id": pl.Int64,
    "product_name": pl.Utf8,
    "category": pl.Utf8,
    "sub_category": pl.Utf8,
    "price": pl.Float64,
}

CUSTOMER_SCHEMA: Dict[str, pl.DataType] = {
    "customer_id": pl.Int64,
    "first_name": pl.Utf8,
    "last_name": pl.Utf8,
    "email": pl.Utf8,
    "phone": pl.Utf8,
    "city": pl.Utf8,
    "state": pl.Utf8,
    "country": pl.Utf8,
}

SALE_SCHEMA: Dict[str, pl.DataType] = {
    "sale_id": pl.Int64,
    "customer_id": pl.Int64,
    "product_id": pl.Int64,
    "sale_date": pl.Date,
    "quantity_sold": pl.Int64,
    "unit_price": pl.Float64,
    "total_sale": pl.Float64,
}


@dataclass
class CsvSource:
    """Configuration for one raw extract"""
    file_path: Union[str, Path]
    target_table: str
    schema: Dict[str, pl.DataType]
    delimiter: str = ","
    quote_char: str = '"'
    encoding: str = "utf8"
    date_format: str = "%Y-%m-%d"
    null_values: List[str] = field(default_factory=lambda: ["", "NULL", "null"])


@dataclass
class StagingBatch:
    """Raw staging frames for one run"""
    products: pl.DataFrame
    customers: pl.DataFrame
    sales: pl.DataFrame

    @property
    def row_counts(self) -> Dict[str, int]:
        return {
            "products": self.products.height,
            "customers": self.customers.height,
            "sales": self.sales.height,
        }


class RawIngestor:
    """
    Reads raw CSV extracts into staging frames.

    Example:
        ingestor = RawIngestor()
        batch = ingestor.ingest_all("data/raw")
    """

    def __init__(
        self,
        delimiter: Optional[str] = None,
        quote_char: Optional[str] = None,
        encoding: Optional[str] = None,
        null_values: Optional[List[str]] = None,
    ):
        sources = get_settings().sources
        self.delimiter = delimiter or sources.delimiter
        self.quote_char = quote_char or sources.quote_char
        self.encoding = encoding or sources.encoding
        self.null_values = null_values if null_values is not None else list(sources.null_values)

    def source_for(self, file_path: Union[str, Path], target_table: str, schema: Dict[str, pl.DataType]) -> CsvSource:
        """Build a CsvSource carrying this ingestor's dialect"""
        return CsvSource(
            file_path=file_path,
            target_table=target_table,
            schema=schema,
            delimiter=self.delimiter,
            quote_char=self.quote_char,
            encoding=self.encoding,
            null_values=self.null_values,
        )

    def _check_row_widths(self, source: CsvSource) -> None:
        """Reject files where any row has a different field count than the schema"""
        expected = len(source.schema)
        encoding = "utf-8" if source.encoding.startswith("utf8") else source.encoding
        with open(source.file_path, newline="", encoding=encoding) as fh:
            reader = csv.reader(fh, delimiter=source.delimiter, quotechar=source.quote_char)
            for line_no, row in enumerate(reader, start=1):
                if not row:
                    continue
                if len(row) != expected:
                    raise IngestionError(
                        f"Row {line_no} has {len(row)} fields, expected {expected}",
                        file_path=str(source.file_path),
                        reason="column_count",
                    )

    def _read_csv(self, source: CsvSource) -> pl.DataFrame:
        """Read every field as text; typing happens in _apply_schema"""
        return pl.read_csv(
            source.file_path,
            has_header=True,
            separator=source.delimiter,
            quote_char=source.quote_char,
            encoding=source.encoding,
            null_values=source.null_values,
            infer_schema_length=0,
        )

    def _apply_schema(self, df: pl.DataFrame, source: CsvSource) -> pl.DataFrame:
        """Rename columns positionally and cast them strictly"""
        names = list(source.schema)
        if df.width != len(names):
            raise IngestionError(
                f"Header has {df.width} columns, expected {len(names)}",
                file_path=str(source.file_path),
                reason="column_count",
            )

        df = df.rename(dict(zip(df.columns, names)))

        casts = []
        for name, dtype in source.schema.items():
            if dtype == pl.Utf8:
                casts.append(pl.col(name))
            elif dtype == pl.Date:
                casts.append(pl.col(name).str.strip_chars().str.to_date(source.date_format, strict=True))
            else:
                casts.append(pl.col(name).str.strip_chars().cast(dtype, strict=True))

        return df.select(casts)

    def read(self, source: CsvSource) -> pl.DataFrame:
        """
        Read one extract into a typed staging frame.

        Raises:
            IngestionError: missing file, wrong column count or unparseable value
        """
        file_path = Path(source.file_path)
        logger.info("Reading raw extract", file=str(file_path), target_table=source.target_table)

        if not file_path.exists():
            raise IngestionError(f"File not found: {file_path}", file_path=str(file_path), reason="missing")

        try:
            self._check_row_widths(source)
            df = self._apply_schema(self._read_csv(source), source)
        except IngestionError as e:
            logger.error("Raw extract rejected", file=str(file_path), error=e.message)
            raise
        except (pl.exceptions.PolarsError, OSError, ValueError) as e:
            logger.error("Raw extract rejected", file=str(file_path), error=str(e))
            raise IngestionError(
                f"Could not parse {file_path.name}: {e}",
                file_path=str(file_path),
                reason="parse",
            ) from e

        logger.info(f"Read {df.height} rows from file", file=str(file_path))
        return df

    def ingest_all(self, source_dir: Optional[Union[str, Path]] = None) -> StagingBatch:
        """Read products, customers and sales from the source directory"""
        sources = get_settings().sources
        directory = Path(source_dir or sources.source_dir)

        products = self.read(self.source_for(directory / sources.products_file, "stg_products", PRODUCT_SCHEMA))
        customers = self.read(self.source_for(directory / sources.customers_file, "stg_customers", CUSTOMER_SCHEMA))
        sales = self.read(self.source_for(directory / sources.sales_file, "stg_sales", SALE_SCHEMA))

        batch = StagingBatch(products=products, customers=customers, sales=sales)
        logger.info("Raw extracts ingested", **batch.row_counts)
        return batch
