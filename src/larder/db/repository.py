"""SQLite engine and unit-of-work sessions for the Larder store."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from larder.config import get_settings
from larder.db.models import Base

logger = logging.getLogger(__name__)

# Applied to every new DBAPI connection. Period deletes rely on foreign keys
# to cascade into meal and entry association rows.
SQLITE_PRAGMAS = (
    "PRAGMA foreign_keys=ON",
    "PRAGMA busy_timeout=5000",
)

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker[Session]] = None


def _apply_pragmas(dbapi_connection, connection_record) -> None:  # noqa: ANN001
    cursor = dbapi_connection.cursor()
    try:
        for pragma in SQLITE_PRAGMAS:
            cursor.execute(pragma)
    finally:
        cursor.close()


def build_engine(database_path: Path) -> Engine:
    """Open (creating if needed) the SQLite store at ``database_path``."""

    database_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{database_path}", future=True)
    event.listen(engine, "connect", _apply_pragmas)
    Base.metadata.create_all(engine)
    logger.debug("Opened grocery store at %s", database_path)
    return engine


def get_engine() -> Engine:
    """Return the process-wide engine for the configured database path."""

    global _engine, _session_factory
    if _engine is None:
        _engine = build_engine(get_settings().database_path)
        _session_factory = sessionmaker(bind=_engine, autoflush=False, future=True)
    return _engine


@contextmanager
def session_scope() -> Iterator[Session]:
    """One unit of work: commit on success, roll back and re-raise on failure."""

    get_engine()
    assert _session_factory is not None
    session = _session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def reset_repository_state() -> None:
    """Dispose the cached engine so the next call picks up fresh settings."""

    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


__all__ = ["SQLITE_PRAGMAS", "build_engine", "get_engine", "reset_repository_state", "session_scope"]
