"""
SQLAlchemy engine and session wiring.

The engine is built lazily from settings; tests build their own engine and
session factory with the same helpers.
"""

import logging
import time
from functools import lru_cache
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from studio_booking.config.settings import settings

logger = logging.getLogger(__name__)

SLOW_QUERY_SECONDS = 0.5


def build_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """SQLite gets thread sharing; server databases get pool sizing from settings."""
    url = database_url or settings.database.DATABASE_URL
    options = {
        "pool_pre_ping": True,
        "echo": settings.database.DB_ECHO if echo is None else echo,
    }
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(
            pool_size=settings.database.DB_POOL_SIZE,
            max_overflow=settings.database.DB_MAX_OVERFLOW,
            pool_recycle=settings.database.DB_POOL_RECYCLE,
        )
    return create_engine(url, **options)


@lru_cache()
def get_engine() -> Engine:
    return build_engine()


def build_session_factory(engine: Engine) -> sessionmaker:
    # Services commit explicitly; nothing is flushed behind their back
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@lru_cache()
def get_session_factory() -> sessionmaker:
    return build_session_factory(get_engine())


@event.listens_for(Engine, "before_cursor_execute")
def _start_query_timer(conn, cursor, statement, parameters, context, executemany):
    conn.info.setdefault("query_started", []).append(time.perf_counter())


@event.listens_for(Engine, "after_cursor_execute")
def _report_slow_query(conn, cursor, statement, parameters, context, executemany):
    elapsed = time.perf_counter() - conn.info["query_started"].pop()
    if elapsed > SLOW_QUERY_SECONDS:
        logger.warning(f"Slow query ({elapsed:.4f}s): {statement[:100]}...")


def get_db_session() -> Generator[Session, None, None]:
    """Request-scoped session; rolled back on error and always closed."""
    session = get_session_factory()()
    try:
        yield session
    except Exception as e:
        logger.error(f"Database session error: {str(e)}")
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Optional[Engine] = None) -> None:
    """Create missing tables (development and tests)."""
    from studio_booking.models import Base

    Base.metadata.create_all(bind=engine or get_engine())
    logger.info("Database tables ensured")


__all__ = ["build_engine", "get_engine", "build_session_factory", "get_session_factory", "get_db_session", "init_db"]
