"""Core types and interfaces."""

from rosterarr.core.interfaces import CredentialStore
from rosterarr.core.types import (
    DEFAULT_POSITION,
    UNKNOWN_PLAYER_NAME,
    CacheEntry,
    CachedPayload,
    CredentialRecord,
    FailureKind,
    FetchAttempt,
    HealthResult,
    Player,
    RosterResult,
    RosterStatus,
)

__all__ = [
    "DEFAULT_POSITION",
    "UNKNOWN_PLAYER_NAME",
    "CacheEntry",
    "CachedPayload",
    "CredentialRecord",
    "CredentialStore",
    "FailureKind",
    "FetchAttempt",
    "HealthResult",
    "Player",
    "RosterResult",
    "RosterStatus",
]
