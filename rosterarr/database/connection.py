"""SQLite connection handling for the credential store.

One short-lived connection per operation. Request threads refreshing tokens
for different users write concurrently, so connections wait on a busy
database instead of failing and the file runs in WAL mode.
"""

import logging
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path("./rosterarr.db")

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

# Seconds a writer waits for a competing transaction
BUSY_TIMEOUT_SECONDS = 5.0


def _resolve(db_path: Path | str | None) -> Path:
    return Path(db_path) if db_path else DEFAULT_DB_PATH


def get_connection(db_path: Path | str | None = None) -> sqlite3.Connection:
    """Open a connection with rows addressable by column name.

    Args:
        db_path: Database file (default: DEFAULT_DB_PATH)
    """
    conn = sqlite3.connect(_resolve(db_path), timeout=BUSY_TIMEOUT_SECONDS)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_db(db_path: Path | str | None = None) -> Generator[sqlite3.Connection, None, None]:
    """Connection scoped to one unit of work.

    Commits on normal exit, rolls back and re-raises on error, and always
    closes.

    Usage:
        with get_db(path) as conn:
            row = conn.execute(
                "SELECT access_token FROM credentials WHERE user_id = ?", (user_id,)
            ).fetchone()
    """
    conn = get_connection(db_path)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: Path | str | None = None) -> None:
    """Create the credentials table if missing. Idempotent.

    Args:
        db_path: Database file (default: DEFAULT_DB_PATH); parent directories
            are created as needed
    """
    path = _resolve(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with get_db(path) as conn:
        conn.execute("PRAGMA journal_mode=WAL")
        conn.executescript(SCHEMA_PATH.read_text())

    logger.debug("[DB] Credential store ready at %s", path)
