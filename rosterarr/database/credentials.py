"""Credential record storage.

Two CredentialStore implementations:
- SqliteCredentialStore: durable, one row per user
- InMemoryCredentialStore: process-local, for tests and single-run tools

Both are last-writer-wins; concurrent refreshes for the same user simply
replace each other's record.
"""

import logging
import threading
from pathlib import Path

from rosterarr.core.types import CredentialRecord
from rosterarr.database.connection import get_db, init_db
from rosterarr.utilities.parsing import short_id

logger = logging.getLogger(__name__)


class SqliteCredentialStore:
    """CredentialStore backed by the credentials table.

    A new connection is opened per operation, so one instance can be shared
    across request threads.
    """

    def __init__(self, db_path: Path | str | None = None, initialize: bool = True):
        self._db_path = db_path
        if initialize:
            init_db(db_path)

    def get(self, user_id: str) -> CredentialRecord | None:
        with get_db(self._db_path) as conn:
            row = conn.execute(
                """
                SELECT access_token, refresh_token, expires_at, token_type
                FROM credentials WHERE user_id = ?
                """,
                (user_id,),
            ).fetchone()
        if not row:
            return None
        return CredentialRecord(
            access_token=row["access_token"],
            refresh_token=row["refresh_token"],
            expires_at=row["expires_at"],
            token_type=row["token_type"],
        )

    def set(self, user_id: str, record: CredentialRecord) -> None:
        with get_db(self._db_path) as conn:
            conn.execute(
                """
                INSERT INTO credentials
                    (user_id, access_token, refresh_token, expires_at, token_type, updated_at)
                VALUES (?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(user_id) DO UPDATE SET
                    access_token = excluded.access_token,
                    refresh_token = excluded.refresh_token,
                    expires_at = excluded.expires_at,
                    token_type = excluded.token_type,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (
                    user_id,
                    record.access_token,
                    record.refresh_token,
                    record.expires_at,
                    record.token_type,
                ),
            )
        logger.debug("[TOKEN] Stored credentials for %s", short_id(user_id))


class InMemoryCredentialStore:
    """CredentialStore kept in a dict."""

    def __init__(self, records: dict[str, CredentialRecord] | None = None):
        self._records: dict[str, CredentialRecord] = dict(records or {})
        self._lock = threading.Lock()

    def get(self, user_id: str) -> CredentialRecord | None:
        with self._lock:
            return self._records.get(user_id)

    def set(self, user_id: str, record: CredentialRecord) -> None:
        with self._lock:
            self._records[user_id] = record
