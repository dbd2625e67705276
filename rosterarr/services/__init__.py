"""Service layer."""

from rosterarr.services.roster import (
    ERROR_KEY_PREFIX,
    RosterGateway,
    create_roster_gateway,
    error_cache_key,
    roster_cache_key,
)

__all__ = [
    "ERROR_KEY_PREFIX",
    "RosterGateway",
    "create_roster_gateway",
    "error_cache_key",
    "roster_cache_key",
]
