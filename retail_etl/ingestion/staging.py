"""
Staging Table Writer

Staging tables are ephemeral: every write drops and recreates the table
before inserting the frame (CREATE OR REPLACE semantics).
"""

from typing import Optional

import polars as pl
import structlog
from sqlalchemy.engine import Engine

from retail_etl.config import get_settings
from retail_etl.database.connection import get_engine
from retail_etl.database.models import STAGING_TABLES

logger = structlog.get_logger(__name__)


class StagingWriter:
    """
    Writes staging frames to their tables.

    Example:
        writer = StagingWriter(engine)
        writer.write("stg_products", products_df)
    """

    def __init__(self, engine: Optional[Engine] = None, chunk_size: Optional[int] = None):
        self.engine = engine or get_engine()
        self.chunk_size = chunk_size or get_settings().warehouse.chunk_size

    def write(self, table_name: str, df: pl.DataFrame) -> int:
        """
        Replace a staging table with the rows of ``df``.

        Returns:
            Number of rows written
        """
        if table_name not in STAGING_TABLES:
            raise ValueError(f"Unknown staging table: {table_name}")

        table = STAGING_TABLES[table_name]
        records = df.select([column.name for column in table.columns]).to_dicts()

        with self.engine.begin() as conn:
            table.drop(conn, checkfirst=True)
            table.create(conn)
            for i in range(0, len(records), self.chunk_size):
                conn.execute(table.insert(), records[i:i + self.chunk_size])

        logger.info("Staging table replaced", table=table_name, rows=len(records))
        return len(records)

    def read(self, table_name: str) -> pl.DataFrame:
        """Read a staging table back into a frame"""
        table = STAGING_TABLES[table_name]
        with self.engine.connect() as conn:
            rows = conn.execute(table.select()).mappings().all()
        return pl.from_dicts([dict(row) for row in rows], schema=[column.name for column in table.columns])
