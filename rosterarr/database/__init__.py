"""Database layer."""

from rosterarr.database.connection import get_connection, get_db, init_db
from rosterarr.database.credentials import InMemoryCredentialStore, SqliteCredentialStore

__all__ = [
    # Connection
    "get_connection",
    "get_db",
    "init_db",
    # Credentials
    "InMemoryCredentialStore",
    "SqliteCredentialStore",
]
