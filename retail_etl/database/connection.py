"""
Database Connection Management

Synchronous SQLAlchemy 2.0 engine and session handling for the warehouse.
The pipeline is a single writer running one step at a time, so a small
pool (or a static one for in-memory SQLite) is enough.
"""

from contextlib import contextmanager
from typing import Generator, Optional

import structlog
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from retail_etl.config import get_settings
from retail_etl.database.models import Base

logger = structlog.get_logger(__name__)

# Global engine and session factory
_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker[Session]] = None


def create_warehouse_engine(url: str) -> Engine:
    """
    Build an engine for the given URL.

    In-memory SQLite gets a StaticPool so every session sees the same database.
    SQL echo is left to logging configuration (see ``configure_logging``).
    """
    if url.startswith("sqlite"):
        engine_config = {}
        if ":memory:" in url or url.rstrip("/") == "sqlite:":
            engine_config.update({
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            })
        return create_engine(url, **engine_config)

    settings = get_settings()
    return create_engine(
        url,
        pool_pre_ping=True,  # Verify connections before use
        pool_size=settings.database.pool_size,
        max_overflow=settings.database.max_overflow,
        pool_timeout=settings.database.pool_timeout,
    )


def init_database(url: Optional[str] = None) -> Engine:
    """
    Initialize the warehouse engine.

    Args:
        url: Database URL; defaults to the configured one

    Returns:
        Engine: The initialized database engine
    """
    global _engine, _session_factory

    if _engine is not None:
        logger.warning("Database already initialized")
        return _engine

    settings = get_settings()
    _engine = create_warehouse_engine(url or settings.database.sync_url)
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False, autoflush=False)

    try:
        with _engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection established", dialect=_engine.dialect.name)
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise

    return _engine


def close_database() -> None:
    """Dispose of the engine and its pooled connections."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("Database connection pool closed")


def get_engine() -> Engine:
    """
    Get the database engine.

    Raises:
        RuntimeError: If database is not initialized
    """
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _engine


def init_schema(engine: Optional[Engine] = None) -> None:
    """Create any missing dimensional tables; existing ones are kept."""
    engine = engine or get_engine()
    Base.metadata.create_all(engine)
    logger.info("Dimensional schema ready", tables=sorted(Base.metadata.tables))


@contextmanager
def get_db(engine: Optional[Engine] = None) -> Generator[Session, None, None]:
    """
    Get a database session.

    Commits on success; rolls back and re-raises on any error.

    Example:
        with get_db() as db:
            db.execute(query)
    """
    if engine is not None:
        session = Session(bind=engine, expire_on_commit=False, autoflush=False)
    elif _session_factory is not None:
        session = _session_factory()
    else:
        logger.error("Database not initialized when get_db() called")
        raise RuntimeError("Database not initialized. Call init_database() first.")

    logger.debug("Creating new database session")
    try:
        yield session
        session.commit()
        logger.debug("Database session committed successfully")
    except Exception as e:
        logger.error("Database session error, rolling back", error=str(e), error_type=type(e).__name__)
        session.rollback()
        raise
    finally:
        session.close()


def check_database_health(engine: Optional[Engine] = None) -> dict:
    """
    Check database health status.

    Returns:
        dict: Health status with latency information
    """
    import time

    try:
        start = time.perf_counter()
        with get_db(engine) as db:
            db.execute(text("SELECT 1"))
        latency_ms = (time.perf_counter() - start) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(latency_ms, 2),
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
        }
