"""
Database configuration and base model.

Uses SQLAlchemy 2.0 declarative style with SQLite.
"""

from pathlib import Path
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config import PATHS


def get_database_path() -> Path:
    """Get the path to the SQLite database file."""
    PATHS.data_dir.mkdir(parents=True, exist_ok=True)
    return PATHS.database


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def create_db_engine(url: Optional[str] = None) -> Engine:
    """
    Create a SQLite engine.

    Args:
        url: Database URL. Defaults to the per-user database file.
             "sqlite://" gives a private in-memory database.
    """
    if url is None:
        url = f"sqlite:///{get_database_path()}"

    if url == "sqlite://":
        # One shared connection, otherwise every checkout sees an empty database
        return create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(
        url,
        echo=False,
        connect_args={"check_same_thread": False},  # Allow multi-threaded access
    )


def create_session_factory(bind: Engine) -> sessionmaker:
    """Build a session factory and make sure all tables exist."""
    Base.metadata.create_all(bind=bind)
    return sessionmaker(bind=bind, autocommit=False, autoflush=False)


# Default engine and session factory, created on first use
_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def get_session_factory() -> sessionmaker:
    """Return the application-wide session factory."""
    global _engine, _session_factory
    if _session_factory is None:
        _engine = create_db_engine()
        _session_factory = create_session_factory(_engine)
    return _session_factory


@contextmanager
def get_session(factory: Optional[sessionmaker] = None) -> Generator[Session, None, None]:
    """Context manager for database sessions."""
    session = (factory or get_session_factory())()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Initialize the database, creating all tables."""
    get_session_factory()

