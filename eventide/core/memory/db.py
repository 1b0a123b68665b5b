"""
Database connection and session management.

Handles SQLite database initialization, engine configuration, and session factory.

All sessions must be created via `db_session()` and are single-owner:
they may only be used in the thread that created them and within their scope.
Several workers may process events against the same database file; WAL mode
and a busy timeout let their conditional claims serialize at the row write.
"""
import logging
import os
import threading
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import NullPool

from eventide.core.config import get_database_url, settings
from eventide.core.memory.models import Base


logger = logging.getLogger(__name__)


def _set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable WAL mode and a busy timeout in SQLite."""
    cursor = dbapi_conn.cursor()
    # WAL allows readers alongside the single writer
    cursor.execute("PRAGMA journal_mode=WAL")
    # Concurrent claims wait for the write lock instead of failing (30 seconds)
    cursor.execute("PRAGMA busy_timeout=30000")
    cursor.close()


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine with SQLite-specific configuration.

    NullPool gives each session its own connection; sessions must not be shared
    across threads.
    """
    new_engine = create_engine(
        url,
        connect_args={
            "timeout": 30,  # 30 second timeout for database operations
        },
        poolclass=NullPool,
        echo=echo,
    )
    event.listen(new_engine, "connect", _set_sqlite_pragma)
    return new_engine


engine = create_db_engine(get_database_url(), echo=settings.database_echo)

# Simple debug flag for DB session lifecycle logging
DB_DEBUG_LOG = (
    settings.database_echo
    or os.getenv("DB_DEBUG_LOG", "0").lower() in ("1", "true", "yes")
)

# Session factory - one Session instance per unit of work (request, tick, claim).
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Global lock to ensure only one thread initializes the database at a time.
_init_lock = threading.Lock()


def init_db(bind: Optional[Engine] = None) -> None:
    """Initialize database schema (create tables and indexes)."""
    bind = bind or engine
    with _init_lock:
        try:
            Base.metadata.create_all(bind=bind)
            logger.info("Database schema initialized")
        except Exception as e:
            logger.error("Failed to initialize database: %s", e, exc_info=True)
            raise


@contextmanager
def db_session(factory: Optional[sessionmaker] = None) -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Commits on success, rolls back and re-raises on error. Use only in the
    thread that calls this; do not pass the yielded session to another thread.
    """
    db = (factory or SessionLocal)()
    if DB_DEBUG_LOG:
        logger.debug(
            "DB session (context) created id=%s thread_id=%s",
            id(db),
            threading.get_ident(),
        )
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        if DB_DEBUG_LOG:
            logger.debug(
                "DB session (context) closing id=%s current_thread_id=%s",
                id(db),
                threading.get_ident(),
            )
        db.close()


@event.listens_for(Session, "before_flush")
def validate_session_owner_thread(session, flush_context, instances):
    """
    Safety check to catch cross-thread session usage early.

    If an owner_thread_id is recorded on the session and the current thread
    is different, we raise a RuntimeError instead of letting SQLite fail later.
    """
    owner_thread_id = session.info.get("owner_thread_id")
    current_thread_id = threading.get_ident()
    if owner_thread_id is None:
        session.info["owner_thread_id"] = current_thread_id
        return

    if owner_thread_id != current_thread_id:
        msg = (
            f"Session {id(session)} used from wrong thread: "
            f"owner_thread_id={owner_thread_id}, current_thread_id={current_thread_id}. "
            "Do not pass sessions or ORM objects across threads or use them after their scope."
        )
        logger.error(msg)
        raise RuntimeError(msg)
