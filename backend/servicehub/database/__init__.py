"""
Database engine, session factory, and metadata shared across the engine.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker

from servicehub.core.config import settings

logger = logging.getLogger(__name__)

SQLITE_BUSY_TIMEOUT_SECONDS = 15.0


def build_engine(db_url: str, **overrides: Any) -> Engine:
    """Create an engine for ``db_url`` with pool settings suited to its dialect."""
    kwargs: dict[str, Any] = {"echo": settings.sql_echo, "future": True}
    if db_url.lower().startswith("sqlite"):
        kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": SQLITE_BUSY_TIMEOUT_SECONDS,
        }
    else:
        kwargs.update(pool_size=5, max_overflow=5, pool_timeout=2, pool_pre_ping=True)
    kwargs.update(overrides)
    built = create_engine(db_url, **kwargs)

    if built.dialect.name == "sqlite":
        event.listen(built, "connect", _configure_sqlite_connection)
        event.listen(built, "begin", _emit_sqlite_begin)
    return built


def _configure_sqlite_connection(dbapi_connection: Any, connection_record: Any) -> None:
    # Let SQLAlchemy own BEGIN so SAVEPOINTs nest inside the outer transaction
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
    logger.debug("SQLite connection configured")


def _emit_sqlite_begin(conn: Any) -> None:
    # Writers queue here; a unit that reads before it writes never upgrades a shared lock
    conn.exec_driver_sql("BEGIN IMMEDIATE")


engine: Engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Request-layer dependency yielding a session with commit/rollback/close handling."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Context manager for short-lived DB operations."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(bind: Engine | None = None) -> None:
    """Create all tables on ``bind`` (defaults to the configured engine)."""
    # Register models on Base.metadata before create_all
    from servicehub import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


__all__ = [
    "Base",
    "SessionLocal",
    "build_engine",
    "engine",
    "get_db",
    "get_db_session",
    "init_db",
]
