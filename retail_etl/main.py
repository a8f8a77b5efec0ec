"""
Pipeline Entry Point

Runs one batch using the configured database and source directory.
All options come from the environment (see retail_etl.config.settings).
"""

import sys

import structlog
from sqlalchemy.exc import SQLAlchemyError

from retail_etl.config import get_settings
from retail_etl.config.logging import configure_logging
from retail_etl.database.connection import check_database_health, close_database, init_database
from retail_etl.exceptions import RetailETLError
from retail_etl.pipeline import RetailETLPipeline

logger = structlog.get_logger(__name__)


def main() -> int:
    """Run the pipeline once; returns a process exit code."""
    configure_logging()
    settings = get_settings()

    logger.info("Starting retail ETL", environment=settings.app_env, source_dir=settings.sources.source_dir)

    try:
        engine = init_database()
        logger.info("Warehouse health", **check_database_health(engine))
        result = RetailETLPipeline(engine).run()
    except (RetailETLError, SQLAlchemyError) as e:
        logger.error("Retail ETL aborted", error=str(e), error_type=type(e).__name__)
        return 1
    finally:
        close_database()

    for report in result.quality_reports.values():
        logger.info("Quality summary", **report.summary())
    logger.info("Retail ETL finished", duration_seconds=result.duration_seconds)
    return 0


if __name__ == "__main__":
    sys.exit(main())
