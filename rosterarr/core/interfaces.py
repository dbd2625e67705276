"""Interfaces for external collaborators.

The gateway only needs get/set-by-key semantics for credential storage;
the backing medium is up to the application.
"""

from typing import Protocol

from rosterarr.core.types import CredentialRecord


class CredentialStore(Protocol):
    """Per-user credential storage."""

    def get(self, user_id: str) -> CredentialRecord | None:
        """Return the stored record for a user, or None."""
        ...

    def set(self, user_id: str, record: CredentialRecord) -> None:
        """Persist a record, replacing any previous one."""
        ...
