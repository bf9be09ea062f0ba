"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from propledger.database.sqlalchemy_db import SQLAlchemyDatabase

DB_PATH_ENV = "PROPLEDGER_DB_PATH"


def default_database_path() -> str:
    """Return ~/.propledger/propledger.db, creating the directory if needed."""
    db_dir = Path.home() / ".propledger"
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / "propledger.db")


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks PROPLEDGER_DB_PATH
            environment variable, then defaults to ~/.propledger/propledger.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get(DB_PATH_ENV)

    if database_path is None:
        database_path = default_database_path()

    return SQLAlchemyDatabase(f"sqlite:///{database_path}")
