"""
Data Ingestion Module
"""
from .batch_loader import (
    RawIngestor,
    CsvSource,
    StagingBatch,
    PRODUCT_SCHEMA,
    CUSTOMER_SCHEMA,
    SALE_SCHEMA,
)
from .staging import StagingWriter

__all__ = [
    "RawIngestor",
    "CsvSource",
    "StagingBatch",
    "StagingWriter",
    "PRODUCT_SCHEMA",
    "CUSTOMER_SCHEMA",
    "SALE_SCHEMA",
]
