"""Database connection and session management for todoview.

The database only caches the last good snapshot so a restarted service can
serve data before its first refresh. SQLite by default; any SQLAlchemy URL
works.
"""

import os
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

# Base class for declarative models
Base = declarative_base()


def _is_sqlite_url(database_url: str) -> bool:
    return "sqlite" in (database_url or "")


def get_engine_kwargs(database_url: str) -> dict:
    """Return deterministic create_engine kwargs for a DB URL.

    This is separated to allow deterministic unit testing without connecting.
    """
    engine_kwargs: dict = {
        "echo": os.getenv("DEBUG", "False").lower() == "true",
        "pool_pre_ping": True,
    }

    if _is_sqlite_url(database_url):
        # The refresh loop writes from a worker thread.
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        return engine_kwargs

    engine_kwargs["pool_size"] = int(os.getenv("DB_POOL_SIZE", "2"))
    engine_kwargs["max_overflow"] = int(os.getenv("DB_MAX_OVERFLOW", "2"))
    engine_kwargs["pool_timeout"] = int(os.getenv("DB_POOL_TIMEOUT_SEC", "30"))
    return engine_kwargs


def build_engine(database_url: str) -> Engine:
    engine = create_engine(database_url, **get_engine_kwargs(database_url))
    if _is_sqlite_url(database_url):
        event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


def _set_sqlite_pragmas(dbapi_conn, connection_record):
    """Enable WAL so readers are not blocked while a refresh writes."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create the schema if it does not exist yet."""
    # Imported for its side effect of registering the tables on Base.
    from todoview.database import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
