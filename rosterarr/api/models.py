"""Pydantic models for API responses."""

from pydantic import BaseModel, ConfigDict

# =============================================================================
# Roster
# =============================================================================


class PlayerModel(BaseModel):
    """A rostered player."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    team: str
    position: str
    status: str | None = None
    points: float = 0.0


class FetchAttemptModel(BaseModel):
    """One upstream attempt (debug responses only)."""

    attempt: str
    path: str
    status: int | None = None
    outcome: str
    error: str | None = None


class RosterResponse(BaseModel):
    """Response body for a roster lookup.

    roster and players carry the same list; roster is kept for older clients.
    """

    ok: bool
    status: str
    team_key: str
    week: str | None = None
    players: list[PlayerModel] = []
    roster: list[PlayerModel] = []
    empty: bool
    reason: str | None = None
    cached: bool = False
    # Debug-only fields
    diagnostic: str | None = None
    kind: str | None = None
    suppressed: bool | None = None
    draft_status: str | None = None
    attempts: list[FetchAttemptModel] | None = None


# =============================================================================
# Health
# =============================================================================


class HealthResponse(BaseModel):
    """Response body for the upstream health check."""

    ok: bool
    upstream_reachable: bool
    status: str
    upstream_status: int | None = None
    error: str | None = None
    user_id: str | None = None
    timestamp: float
