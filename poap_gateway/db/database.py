"""
Database connection module.
Provides the SQLAlchemy engine, session factory and FastAPI session dependency.
"""

import logging
import time
from typing import Generator

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from poap_gateway.config import settings

logger = logging.getLogger(__name__)

if not settings.DATABASE_URL:
    raise ValueError("Database URL not configured")


def _engine_kwargs(url: str) -> dict:
    """Engine options per backend (SQLite needs thread sharing for FastAPI's threadpool)."""
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # Single shared connection so every session sees the same in-memory DB
            kwargs["poolclass"] = StaticPool
        return kwargs

    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_kwargs(settings.DATABASE_URL)
)

SessionLocal = sessionmaker(
    bind=engine,
    class_=Session,
    expire_on_commit=False
)


# Base class for models
class Base(DeclarativeBase):
    pass


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency that yields a request-scoped session."""
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        db.rollback()
        logger.error(f"Database session error: {e}")
        raise
    finally:
        db.close()


def init_db() -> None:
    """Create all tables that do not exist yet."""
    # Import models so they register on Base.metadata
    from poap_gateway import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables initialized")


def test_db_connection() -> dict:
    """Run a SELECT 1 round trip and report latency."""
    start = time.perf_counter()
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        latency_ms = (time.perf_counter() - start) * 1000
        return {"ok": True, "latency_ms": round(latency_ms, 2)}
    except Exception as e:
        logger.error(f"Database connection test failed: {e}")
        return {"ok": False, "error": str(e)}


def get_table_status() -> dict:
    """Compare expected ORM tables with the tables present in the database."""
    from poap_gateway import models  # noqa: F401

    expected = sorted(Base.metadata.tables.keys())
    present = set(inspect(engine).get_table_names())
    missing = [name for name in expected if name not in present]
    return {
        "expected": expected,
        "present": sorted(name for name in present if name in expected),
        "missing": missing,
        "up_to_date": not missing,
    }


def close_db() -> None:
    """Close database connections."""
    engine.dispose()
    logger.info("Database connections closed")
