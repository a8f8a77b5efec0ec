"""
Retail Sales ETL Pipeline

Runs the batch end to end, one step at a time:

1. Ingest raw extracts and replace the staging tables
2. Quality checks on staging (reported; enforced only when configured)
3. Clean products and sales, replace the cleaned staging tables
4. Conform and load dimensions, then facts
5. Referential integrity check over the warehouse tables after the load
6. Install reporting views

The first failure is logged and re-raised; nothing already done is undone.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Union

import polars as pl
import structlog
from sqlalchemy.engine import Engine

from retail_etl.analytics.views import install_views
from retail_etl.config import get_settings
from retail_etl.database.connection import get_engine, init_schema
from retail_etl.ingestion import RawIngestor, StagingWriter
from retail_etl.quality import QualityChecker, QualityReport, find_orphaned_sales_in_warehouse
from retail_etl.transformation import (
    CleaningStats,
    DataCleaner,
    conform_customers,
    conform_products,
    conform_sales,
)
from retail_etl.warehouse import LoadResult, LoadStrategy, WarehouseLoader

logger = structlog.get_logger(__name__)


@dataclass
class PipelineResult:
    """Outcome of one pipeline run"""
    started_at: datetime
    completed_at: Optional[datetime] = None
    staging_rows: Dict[str, int] = field(default_factory=dict)
    quality_reports: Dict[str, QualityReport] = field(default_factory=dict)
    cleaning_stats: Dict[str, CleaningStats] = field(default_factory=dict)
    load_results: Dict[str, LoadResult] = field(default_factory=dict)
    orphaned_sales: Optional[pl.DataFrame] = None
    views: list = field(default_factory=list)
    step_durations: Dict[str, float] = field(default_factory=dict)

    @property
    def orphan_count(self) -> int:
        return 0 if self.orphaned_sales is None else self.orphaned_sales.height

    @property
    def duration_seconds(self) -> float:
        if self.completed_at is None:
            return 0.0
        return (self.completed_at - self.started_at).total_seconds()


class RetailETLPipeline:
    """
    Sequential, fail-fast ETL run over the three raw extracts.

    Example:
        pipeline = RetailETLPipeline(engine)
        result = pipeline.run("data/raw")
    """

    def __init__(
        self,
        engine: Optional[Engine] = None,
        load_strategy: Optional[Union[LoadStrategy, str]] = None,
        enforce_quality: Optional[bool] = None,
        run_quality_checks: Optional[bool] = None,
        create_views: Optional[bool] = None,
    ):
        settings = get_settings()
        self.engine = engine or get_engine()
        self.ingestor = RawIngestor()
        self.staging = StagingWriter(self.engine)
        self.checker = QualityChecker()
        self.cleaner = DataCleaner()
        self.loader = WarehouseLoader(self.engine, strategy=load_strategy)
        self.enforce_quality = (
            settings.data_quality.enforce_data_quality if enforce_quality is None else enforce_quality
        )
        self.run_quality_checks = (
            settings.data_quality.enable_data_quality_checks if run_quality_checks is None else run_quality_checks
        )
        self.create_views = settings.warehouse.install_views if create_views is None else create_views

    def _timed(self, result: PipelineResult, step: str, func, *args, **kwargs):
        """Run one step, recording its duration; failures are logged and re-raised"""
        start = time.perf_counter()
        logger.info("Pipeline step started", step=step)
        try:
            value = func(*args, **kwargs)
        except Exception as e:
            logger.error("Pipeline step failed", step=step, error=str(e), error_type=type(e).__name__)
            raise
        result.step_durations[step] = round(time.perf_counter() - start, 4)
        logger.info("Pipeline step finished", step=step, duration_seconds=result.step_durations[step])
        return value

    def _stage_raw(self, result: PipelineResult, source_dir: Optional[Union[str, Path]]):
        batch = self.ingestor.ingest_all(source_dir)
        self.staging.write("stg_products", batch.products)
        self.staging.write("stg_customers", batch.customers)
        self.staging.write("stg_sales", batch.sales)
        result.staging_rows = batch.row_counts
        return batch

    def _check_quality(self, result: PipelineResult, batch) -> None:
        result.quality_reports = self.checker.check_all(batch.products, batch.customers, batch.sales)
        if self.enforce_quality:
            for report in result.quality_reports.values():
                report.enforce()

    def _clean(self, result: PipelineResult, batch):
        products, result.cleaning_stats["products"] = self.cleaner.clean_products_with_stats(batch.products)
        sales, result.cleaning_stats["sales"] = self.cleaner.clean_sales_with_stats(batch.sales)
        self.staging.write("stg_products_cleaned", products)
        self.staging.write("stg_sales_cleaned", sales)
        return products, sales

    def run(self, source_dir: Optional[Union[str, Path]] = None) -> PipelineResult:
        """
        Execute every step in order.

        Raises:
            IngestionError: a raw extract could not be read
            DataQualityError: a quality check failed and enforcement is on
            sqlalchemy.exc.SQLAlchemyError: a load was rejected by the database
        """
        result = PipelineResult(started_at=datetime.now(timezone.utc))
        logger.info("Starting retail ETL run", strategy=self.loader.strategy.value)

        init_schema(self.engine)

        batch = self._timed(result, "ingest", self._stage_raw, result, source_dir)

        if self.run_quality_checks:
            self._timed(result, "quality", self._check_quality, result, batch)

        products_cleaned, sales_cleaned = self._timed(result, "clean", self._clean, result, batch)

        dim_products = conform_products(products_cleaned)
        dim_customers = conform_customers(batch.customers)
        fact_sales = conform_sales(sales_cleaned)

        result.load_results = self._timed(
            result, "load", self.loader.load_all, dim_products, dim_customers, fact_sales
        )

        result.orphaned_sales = self._timed(result, "integrity", find_orphaned_sales_in_warehouse, self.engine)
        if result.orphan_count:
            logger.warning("Fact rows reference unknown dimension keys", orphaned_sales=result.orphan_count)

        if self.create_views:
            result.views = self._timed(result, "views", install_views, self.engine)

        result.completed_at = datetime.now(timezone.utc)
        logger.info(
            "Retail ETL run complete",
            duration_seconds=result.duration_seconds,
            loaded={name: r.rows_loaded for name, r in result.load_results.items()},
            orphaned_sales=result.orphan_count,
        )
        return result
