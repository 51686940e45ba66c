"""
Database connection management.

The server sets one process-wide default path at startup with
``init_database``; stores built without an explicit ``db_path`` resolve it
on every connection, so they follow a later ``set_db_path``. Stores and tests
that need their own file pass the path in and never touch the default.
"""

import logging
import sqlite3
from pathlib import Path
from contextlib import contextmanager
from typing import Generator

from ..config import DEFAULT_DB_PATH
from .schema import create_tables

logger = logging.getLogger(__name__)

_db_path: Path = DEFAULT_DB_PATH


def set_db_path(path: Path | str) -> None:
    """Set the default database path."""
    global _db_path
    _db_path = Path(path)


def get_db_path() -> Path:
    """Get the current default database path."""
    return _db_path


def init_database(path: Path | str | None = None) -> Path:
    """Initialize the database, creating tables if needed."""
    if path:
        set_db_path(path)

    db_path = get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        create_tables(cursor)
        conn.commit()

    logger.info(f"Database initialized at {db_path}")
    return db_path


@contextmanager
def get_connection(path: Path | str | None = None) -> Generator[sqlite3.Connection, None, None]:
    """Get a database connection as a context manager."""
    db_path = Path(path) if path else get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path), timeout=30)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")

    try:
        yield conn
    finally:
        conn.close()
