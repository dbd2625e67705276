"""Roster API endpoints.

Provides endpoints for:
- GET /roster/health - Check credentials and upstream reachability
- GET /roster/{team_key} - Get a team roster (cached)

The caller is identified by the X-User-Id header; session handling lives
outside this service.
"""

import logging
import time

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from rosterarr.api.models import HealthResponse, RosterResponse
from rosterarr.core.types import RosterStatus
from rosterarr.services.roster import RosterGateway
from rosterarr.utilities.parsing import short_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/roster")

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

STATUS_CODES = {
    RosterStatus.OK: 200,
    RosterStatus.UNAUTHORIZED: 401,
    RosterStatus.ERROR: 503,
}


def get_gateway(request: Request) -> RosterGateway:
    """The gateway built once at startup."""
    return request.app.state.gateway


def require_user_id(x_user_id: str | None = Header(None)) -> str:
    if not x_user_id:
        raise HTTPException(status_code=400, detail="no_user_id")
    return x_user_id


@router.get("/health", response_model=HealthResponse)
def roster_health(
    user_id: str = Depends(require_user_id),
    gateway: RosterGateway = Depends(get_gateway),
):
    """Check Yahoo connectivity for the calling user.

    Bypasses the roster cache entirely.
    """
    result = gateway.health_check(user_id)
    body = HealthResponse(
        **result.to_dict(),
        user_id=short_id(user_id),
        timestamp=time.time(),
    )

    if result.status == "connectivity_error":
        status_code = 503
    elif result.status == "auth_failed":
        status_code = 401
    else:
        status_code = 200

    return JSONResponse(body.model_dump(), status_code=status_code, headers=NO_STORE_HEADERS)


@router.get("/{team_key}", response_model=RosterResponse)
def get_roster(
    team_key: str,
    week: str | None = Query(None, description="Scoring week (e.g., '3')"),
    bust: str | None = Query(None, description="Cache-bust token"),
    debug: bool = Query(False, description="Include diagnostics and attempt trail"),
    user_id: str = Depends(require_user_id),
    gateway: RosterGateway = Depends(get_gateway),
):
    """Get a team roster.

    Args:
        team_key: Yahoo team key
        week: Optional scoring week; falls back to the current week if empty
        bust: Changing this forces a cache miss
        debug: Include diagnostic, kind, and attempts in the response

    Returns:
        Roster response with players and a reason code when empty
    """
    result = gateway.fetch_roster(user_id, team_key, week=week, bust=bust)

    if debug:
        logger.info(
            "[ROSTER] debug user=%s team=%s requested_week=%s resolved_week=%s players=%d reason=%s",
            short_id(user_id),
            team_key,
            week,
            result.resolved_week,
            len(result.players),
            result.diagnostic or result.reason,
        )

    body = RosterResponse(**result.to_dict(debug=debug))
    return JSONResponse(
        body.model_dump(exclude_unset=True),
        status_code=STATUS_CODES[result.status],
        headers=NO_STORE_HEADERS,
    )
