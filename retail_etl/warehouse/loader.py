"""
Dimensional Loader

Writes conformed frames into the star schema under a load strategy:

- replace_all: delete every row of the target, then insert (default)
- append: insert only; re-runs duplicate fact rows and collide on dimension keys
- upsert: delete rows whose natural key is in the batch, then insert

Storage errors (IntegrityError and friends) are not caught here; the
failing table's transaction is rolled back and the error propagates.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Type, Union

import polars as pl
import structlog
from pydantic import BaseModel
from sqlalchemy import delete, insert
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from retail_etl.config import get_settings
from retail_etl.database.connection import get_db, get_engine
from retail_etl.database.models import (
    Base,
    DimCustomer,
    DimProduct,
    FactSale,
    NATURAL_KEYS,
)

logger = structlog.get_logger(__name__)

# Keeps IN (...) lists under driver parameter limits
_KEY_CHUNK = 500


class LoadStrategy(str, Enum):
    """How existing rows are treated on load"""
    REPLACE_ALL = "replace_all"
    APPEND = "append"
    UPSERT = "upsert"


class LoadResult(BaseModel):
    """Result of loading one table"""
    target_table: str
    strategy: LoadStrategy
    rows_loaded: int = 0
    rows_deleted: int = 0
    load_duration_seconds: float = 0
    started_at: datetime
    completed_at: datetime


class WarehouseLoader:
    """
    Loads dimension and fact frames into the warehouse.

    Example:
        loader = WarehouseLoader(engine, strategy=LoadStrategy.REPLACE_ALL)
        loader.load(DimProduct, dim_products_df)
    """

    def __init__(
        self,
        engine: Optional[Engine] = None,
        strategy: Optional[Union[LoadStrategy, str]] = None,
        chunk_size: Optional[int] = None,
    ):
        warehouse = get_settings().warehouse
        self.engine = engine or get_engine()
        self.strategy = LoadStrategy(strategy or warehouse.load_strategy)
        self.chunk_size = chunk_size or warehouse.chunk_size

    def _clear(self, db: Session, model: Type[Base], df: pl.DataFrame) -> int:
        """Remove the rows the strategy replaces"""
        if self.strategy == LoadStrategy.APPEND:
            return 0

        if self.strategy == LoadStrategy.REPLACE_ALL:
            return db.execute(delete(model)).rowcount or 0

        key = NATURAL_KEYS[model]
        column = getattr(model, key)
        keys = df[key].drop_nulls().unique().to_list()
        deleted = 0
        for i in range(0, len(keys), _KEY_CHUNK):
            result = db.execute(delete(model).where(column.in_(keys[i:i + _KEY_CHUNK])))
            deleted += result.rowcount or 0
        return deleted

    def _insert(self, db: Session, model: Type[Base], records: List[dict]) -> int:
        """Chunked executemany insert"""
        total_inserted = 0
        for i in range(0, len(records), self.chunk_size):
            chunk = records[i:i + self.chunk_size]
            db.execute(insert(model), chunk)
            total_inserted += len(chunk)
        return total_inserted

    def load(self, model: Type[Base], df: pl.DataFrame) -> LoadResult:
        """
        Load one conformed frame into its table.

        Returns:
            LoadResult for the table

        Raises:
            sqlalchemy.exc.SQLAlchemyError: propagated from the database
        """
        table_name = model.__tablename__
        started_at = datetime.now(timezone.utc)

        logger.info("Starting table load", table=table_name, strategy=self.strategy.value, rows=df.height)

        try:
            with get_db(self.engine) as db:
                rows_deleted = self._clear(db, model, df)
                rows_loaded = self._insert(db, model, df.to_dicts())
        except Exception as e:
            logger.error("Table load failed", table=table_name, error=str(e), error_type=type(e).__name__)
            raise

        completed_at = datetime.now(timezone.utc)
        result = LoadResult(
            target_table=table_name,
            strategy=self.strategy,
            rows_loaded=rows_loaded,
            rows_deleted=rows_deleted,
            load_duration_seconds=(completed_at - started_at).total_seconds(),
            started_at=started_at,
            completed_at=completed_at,
        )

        logger.info(
            "Table load completed",
            table=table_name,
            rows_loaded=result.rows_loaded,
            rows_deleted=result.rows_deleted,
            duration_seconds=result.load_duration_seconds,
        )
        return result

    def load_products(self, df: pl.DataFrame) -> LoadResult:
        return self.load(DimProduct, df)

    def load_customers(self, df: pl.DataFrame) -> LoadResult:
        return self.load(DimCustomer, df)

    def load_sales(self, df: pl.DataFrame) -> LoadResult:
        return self.load(FactSale, df)

    def load_all(
        self,
        dim_products: pl.DataFrame,
        dim_customers: pl.DataFrame,
        fact_sales: pl.DataFrame,
    ) -> Dict[str, LoadResult]:
        """Load dimensions first, then facts; stops at the first failure"""
        return {
            DimProduct.__tablename__: self.load_products(dim_products),
            DimCustomer.__tablename__: self.load_customers(dim_customers),
            FactSale.__tablename__: self.load_sales(fact_sales),
        }
