"""Yahoo Fantasy Sports API package.

Provides authenticated roster access with:
- Automatic token refresh (proactive on expiry, forced on 401)
- Exponential backoff retry for transient errors
- Tolerant parsing of Yahoo's fragment-list JSON

Usage:
    from rosterarr.yahoo import TokenManager, YahooClient

    tokens = TokenManager(settings, store)
    with YahooClient(settings, tokens) as client:
        token = tokens.get_valid_access_token(user_id)
        fetch = client.fetch_roster("423.l.12345.t.1", None, token, user_id)
"""

from rosterarr.yahoo.auth import TokenManager
from rosterarr.yahoo.client import (
    PathVariant,
    RosterFetch,
    UpstreamResponse,
    YahooClient,
    build_roster_variants,
)
from rosterarr.yahoo.parser import (
    FIELD_RULES,
    REASON_EMPTY,
    REASON_PARSE_ERROR,
    REASON_SHAPE_UNRECOGNIZED,
    ParseResult,
    merge_fragments,
    parse_roster,
)
from rosterarr.yahoo.retry import RetryPolicy

__all__ = [
    # Auth
    "TokenManager",
    # Client
    "PathVariant",
    "RetryPolicy",
    "RosterFetch",
    "UpstreamResponse",
    "YahooClient",
    "build_roster_variants",
    # Parser
    "FIELD_RULES",
    "REASON_EMPTY",
    "REASON_PARSE_ERROR",
    "REASON_SHAPE_UNRECOGNIZED",
    "ParseResult",
    "merge_fragments",
    "parse_roster",
]
