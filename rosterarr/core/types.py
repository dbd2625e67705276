"""Core data types for the roster gateway.

All upstream roster data is normalized into these dataclasses before it is
cached or handed to callers. Players and cached payloads are immutable; a new
parse always produces a new tuple of players.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

UNKNOWN_PLAYER_NAME = "Unknown Player"
DEFAULT_POSITION = "BN"


class FailureKind(str, Enum):
    """Classification of a roster lookup that did not produce players."""

    UNAUTHORIZED = "unauthorized"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    SHAPE_UNRECOGNIZED = "shape_unrecognized"
    EMPTY = "empty"
    CONFIGURATION_MISSING = "configuration_missing"


class RosterStatus(str, Enum):
    """Top-level status reported to gateway callers."""

    OK = "ok"
    UNAUTHORIZED = "unauthorized"
    ERROR = "error"


@dataclass(frozen=True)
class Player:
    """A single rostered player."""

    name: str = UNKNOWN_PLAYER_NAME
    team: str = ""
    position: str = DEFAULT_POSITION
    status: str | None = None
    points: float = 0.0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "team": self.team,
            "position": self.position,
            "status": self.status,
            "points": self.points,
        }


@dataclass(frozen=True)
class CachedPayload:
    """Roster payload as stored in the cache."""

    players: tuple[Player, ...] = ()
    resolved_week: str | None = None


@dataclass(frozen=True)
class CacheEntry:
    """A cached value plus the time it was stored.

    The store has no notion of TTL; callers decide freshness with is_fresh().
    """

    value: CachedPayload
    stored_at: float
    reason: str | None = None

    def is_fresh(self, now: float, ttl: float) -> bool:
        return now - self.stored_at < ttl


@dataclass(frozen=True)
class CredentialRecord:
    """One user's upstream OAuth credentials.

    expires_at is an absolute epoch timestamp that already has the safety
    buffer subtracted, so an unexpired record is usable for at least that
    buffer on any upstream call.
    """

    access_token: str
    refresh_token: str | None = None
    expires_at: float = 0.0
    token_type: str = "bearer"

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def to_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at,
            "token_type": self.token_type,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CredentialRecord":
        return cls(
            access_token=data.get("access_token") or "",
            refresh_token=data.get("refresh_token") or None,
            expires_at=float(data.get("expires_at") or 0.0),
            token_type=data.get("token_type") or "bearer",
        )


@dataclass
class FetchAttempt:
    """One upstream HTTP attempt, kept for operator visibility only."""

    path_variant: str
    path: str
    status: int | None = None
    outcome: str = "ok"
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "attempt": self.path_variant,
            "path": self.path,
            "status": self.status,
            "outcome": self.outcome,
            "error": self.error,
        }


@dataclass
class RosterResult:
    """Outcome of RosterGateway.fetch_roster().

    reason is safe to show to users; diagnostic is internal detail intended
    for logs and debug responses.
    """

    status: RosterStatus
    team_key: str
    players: tuple[Player, ...] = ()
    resolved_week: str | None = None
    reason: str | None = None
    diagnostic: str | None = None
    kind: FailureKind | None = None
    cached: bool = False
    suppressed: bool = False
    draft_status: str | None = None
    attempts: list[FetchAttempt] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == RosterStatus.OK

    @property
    def empty(self) -> bool:
        return not self.players

    def to_dict(self, debug: bool = False) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        players = [p.to_dict() for p in self.players]
        data: dict[str, Any] = {
            "ok": self.ok,
            "status": self.status.value,
            "team_key": self.team_key,
            "week": self.resolved_week,
            "players": players,
            "roster": players,
            "empty": self.empty,
            "reason": self.reason,
            "cached": self.cached,
        }
        if debug:
            data["diagnostic"] = self.diagnostic
            data["kind"] = self.kind.value if self.kind else None
            data["suppressed"] = self.suppressed
            data["draft_status"] = self.draft_status
            data["attempts"] = [a.to_dict() for a in self.attempts]
        return data


@dataclass
class HealthResult:
    """Outcome of a lightweight upstream connectivity check."""

    ok: bool
    upstream_reachable: bool
    status: str
    upstream_status: int | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "upstream_reachable": self.upstream_reachable,
            "status": self.status,
            "upstream_status": self.upstream_status,
            "error": self.error,
        }
