"""Tests for credential stores."""

import pytest

from rosterarr.core.types import CredentialRecord
from rosterarr.database import InMemoryCredentialStore, SqliteCredentialStore, get_db


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "rosterarr.db"


class TestSqliteCredentialStore:
    """Round trip through the credentials table."""

    def test_init_creates_table(self, db_path):
        """Opening a store creates the credentials table."""
        SqliteCredentialStore(db_path)
        with get_db(db_path) as conn:
            tables = {
                row["name"]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
            }
        assert "credentials" in tables

    def test_init_creates_parent_directory(self, tmp_path):
        """Missing parent directories are created."""
        path = tmp_path / "nested" / "data" / "rosterarr.db"
        SqliteCredentialStore(path)
        assert path.exists()

    def test_init_is_idempotent(self, db_path):
        """Reopening a store keeps existing rows."""
        store = SqliteCredentialStore(db_path)
        store.set("user-1", CredentialRecord("access"))
        SqliteCredentialStore(db_path)
        assert store.get("user-1").access_token == "access"

    def test_unknown_user_returns_none(self, db_path):
        """Unknown users read as None."""
        assert SqliteCredentialStore(db_path).get("nobody") is None

    def test_set_then_get(self, db_path):
        """A stored record reads back for the same user."""
        store = SqliteCredentialStore(db_path)
        record = CredentialRecord("access", "refresh", expires_at=1234.5)
        store.set("user-1", record)
        assert store.get("user-1") == record

    def test_set_replaces_existing_row(self, db_path):
        """Setting a user twice keeps one row."""
        store = SqliteCredentialStore(db_path)
        store.set("user-1", CredentialRecord("old", "refresh", expires_at=1.0))
        store.set("user-1", CredentialRecord("new", None, expires_at=2.0))

        record = store.get("user-1")
        assert record.access_token == "new"
        assert record.refresh_token is None
        with get_db(db_path) as conn:
            assert conn.execute("SELECT COUNT(*) FROM credentials").fetchone()[0] == 1

    def test_survives_new_instance(self, db_path):
        """Records persist across store instances."""
        SqliteCredentialStore(db_path).set("user-1", CredentialRecord("access", expires_at=5.0))
        assert SqliteCredentialStore(db_path).get("user-1").access_token == "access"


class TestInMemoryCredentialStore:
    def test_set_then_get(self):
        """A stored record reads back for the same user."""
        store = InMemoryCredentialStore()
        record = CredentialRecord("access")
        store.set("u", record)
        assert store.get("u") is record

    def test_seeded_records(self):
        """Seeded records are readable."""
        store = InMemoryCredentialStore({"u": CredentialRecord("seed")})
        assert store.get("u").access_token == "seed"
        assert store.get("v") is None


class TestCredentialRecord:
    def test_expiry_boundary(self):
        """A record is expired at its expires_at."""
        record = CredentialRecord("a", expires_at=100.0)
        assert record.is_expired(99.9) is False
        assert record.is_expired(100.0) is True

    def test_dict_round_trip_defaults(self):
        """from_dict fills defaults and round-trips."""
        record = CredentialRecord.from_dict({"access_token": "a"})
        assert record.refresh_token is None
        assert record.token_type == "bearer"
        assert CredentialRecord.from_dict(record.to_dict()) == record
