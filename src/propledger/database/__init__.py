"""Database layer for propledger."""

from propledger.database.base import Database
from propledger.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
