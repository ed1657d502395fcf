"""
SQLAlchemy engine and session management for the tips backend.
"""

import threading
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from tips.errors import StoreUnavailable
from util.constants import DB_URL

# Module-level engine instance (lazy-initialized, shared by every invocation)
_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None
_engine_lock = threading.Lock()


def get_engine() -> Engine:
    """Get the SQLAlchemy engine, creating it if necessary."""
    global _engine, _session_factory
    if _engine is None:
        with _engine_lock:
            if _engine is None:
                engine = create_engine(DB_URL)
                _session_factory = sessionmaker(bind=engine)
                _engine = engine
    return _engine


def set_engine(engine: Engine) -> None:
    """Set a custom engine (for testing)."""
    global _engine, _session_factory
    with _engine_lock:
        _engine = engine
        _session_factory = sessionmaker(bind=engine)


def reset_engine() -> None:
    """Reset the engine to None (for testing)."""
    global _engine, _session_factory
    with _engine_lock:
        if _engine is not None:
            _engine.dispose()
        _engine = None
        _session_factory = None


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Get a session context manager for database operations.

    Usage:
        with get_session() as session:
            session.add(obj)
            # commit happens automatically on successful exit

    Raises:
        StoreUnavailable: if the database itself fails the operation
    """
    if _session_factory is None:
        get_engine()  # Initialize engine and session factory

    session = _session_factory()
    try:
        yield session
        session.commit()
    except OperationalError as e:
        session.rollback()
        raise StoreUnavailable(str(e)) from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
