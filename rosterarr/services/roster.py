"""Roster gateway.

Single entry point the rest of the application uses for roster data. Each
request walks:

    CHECK_CACHE -> CHECK_ERROR_CACHE -> FETCH/PARSE -> POPULATE_CACHE

Success entries live 30s by default; error entries live 5 minutes so a
failing upstream is not hit again for the same key until the window passes.
Unauthorized outcomes are never cached since the user can re-authenticate at
any time.

fetch_roster() never raises. Every path ends in one of: ok with players,
ok but empty (with a reason), unauthorized, or error.
"""

import logging
import time
from collections.abc import Callable

from rosterarr.config import YahooSettings
from rosterarr.core.interfaces import CredentialStore
from rosterarr.core.types import (
    CacheEntry,
    CachedPayload,
    FailureKind,
    HealthResult,
    RosterResult,
    RosterStatus,
)
from rosterarr.utilities.cache import LRUCache, make_cache_key
from rosterarr.utilities.parsing import short_id
from rosterarr.yahoo.auth import TokenManager
from rosterarr.yahoo.client import RosterFetch, YahooClient

logger = logging.getLogger(__name__)

ERROR_KEY_PREFIX = "error:"

# User-facing reason codes
REASON_TEMPORARILY_UNAVAILABLE = "temporarily_unavailable"
REASON_UNAUTHORIZED = "unauthorized"
REASON_CONFIGURATION_MISSING = "configuration_missing"
REASON_PREDRAFT = "predraft"
REASON_EMPTY = "empty"


def roster_cache_key(team_key: str, week: str | int | None = None, bust: str | None = None) -> str:
    """Cache key for a roster request.

    A different bust token yields a different key, which forces a miss.
    """
    week_part = "none" if week in (None, "") else week
    return make_cache_key(team_key, week_part, bust or "default")


def error_cache_key(key: str) -> str:
    return f"{ERROR_KEY_PREFIX}{key}"


class RosterGateway:
    """Cached, failure-tolerant roster lookups.

    The cache instance is owned by whoever builds the gateway (normally the
    application at startup) and shared by all requests.
    """

    def __init__(
        self,
        settings: YahooSettings,
        cache: LRUCache,
        token_manager: TokenManager,
        client: YahooClient,
        clock: Callable[[], float] = time.time,
    ):
        self._settings = settings
        self._cache = cache
        self._tokens = token_manager
        self._client = client
        self._clock = clock

    @property
    def cache(self) -> LRUCache:
        return self._cache

    def fetch_roster(
        self,
        user_id: str,
        team_key: str,
        week: str | int | None = None,
        bust: str | None = None,
        *,
        deadline: float | None = None,
    ) -> RosterResult:
        """Get a team roster, from cache when fresh.

        Args:
            user_id: Caller identity used for credential lookup
            team_key: Yahoo team key
            week: Optional scoring week
            bust: Optional cache-bust token
            deadline: Optional monotonic deadline for the upstream sequence

        Returns:
            RosterResult; never raises
        """
        try:
            return self._fetch_roster(user_id, team_key, week, bust, deadline)
        except Exception:
            logger.exception("[ROSTER] Unexpected error fetching %s", team_key)
            return RosterResult(
                status=RosterStatus.ERROR,
                team_key=team_key,
                reason=REASON_TEMPORARILY_UNAVAILABLE,
                diagnostic="internal_error",
                kind=FailureKind.UPSTREAM_UNAVAILABLE,
            )

    def _fetch_roster(
        self,
        user_id: str,
        team_key: str,
        week: str | int | None,
        bust: str | None,
        deadline: float | None,
    ) -> RosterResult:
        key = roster_cache_key(team_key, week, bust)
        now = self._clock()

        # CHECK_CACHE
        entry = self._cache.get(key)
        if entry is not None and entry.is_fresh(now, self._settings.cache_ttl):
            logger.debug("[ROSTER] Cache hit: %s", key)
            return RosterResult(
                status=RosterStatus.OK,
                team_key=team_key,
                players=entry.value.players,
                resolved_week=entry.value.resolved_week,
                reason=entry.reason,
                kind=FailureKind.EMPTY if not entry.value.players else None,
                cached=True,
            )

        # CHECK_ERROR_CACHE
        error_entry = self._cache.get(error_cache_key(key))
        if error_entry is not None and error_entry.is_fresh(now, self._settings.error_cache_ttl):
            logger.debug("[ROSTER] Suppressing upstream call for %s: %s", key, error_entry.reason)
            return RosterResult(
                status=RosterStatus.ERROR,
                team_key=team_key,
                reason=REASON_TEMPORARILY_UNAVAILABLE,
                diagnostic=error_entry.reason,
                kind=FailureKind.UPSTREAM_UNAVAILABLE,
                cached=True,
                suppressed=True,
            )

        missing = self._settings.missing_configuration()
        if missing:
            logger.error("[ROSTER] Yahoo not configured: %s", ", ".join(missing))
            return RosterResult(
                status=RosterStatus.ERROR,
                team_key=team_key,
                reason=REASON_CONFIGURATION_MISSING,
                diagnostic=", ".join(missing),
                kind=FailureKind.CONFIGURATION_MISSING,
            )

        token = self._tokens.get_valid_access_token(user_id)
        if not token:
            logger.info("[ROSTER] No valid credentials for %s", short_id(user_id))
            return self._unauthorized(team_key, diagnostic="no_token")

        # FETCH / PARSE
        fetch = self._client.fetch_roster(team_key, week, token, user_id, deadline=deadline)

        if fetch.kind == FailureKind.UNAUTHORIZED:
            return self._unauthorized(team_key, diagnostic=fetch.reason, fetch=fetch)

        # POPULATE_CACHE
        if fetch.kind in (FailureKind.UPSTREAM_UNAVAILABLE, FailureKind.SHAPE_UNRECOGNIZED):
            self._cache.set(
                error_cache_key(key),
                CacheEntry(value=CachedPayload(), stored_at=self._clock(), reason=fetch.reason),
            )
            logger.warning(
                "[ROSTER] Upstream failure for %s (%s), suppressing for %.0fs",
                team_key,
                fetch.reason,
                self._settings.error_cache_ttl,
            )
            return RosterResult(
                status=RosterStatus.ERROR,
                team_key=team_key,
                reason=REASON_TEMPORARILY_UNAVAILABLE,
                diagnostic=fetch.reason,
                kind=fetch.kind,
                attempts=fetch.attempts,
            )

        reason = None if fetch.players else self._empty_reason(fetch)
        payload = CachedPayload(players=fetch.players, resolved_week=fetch.resolved_week)
        self._cache.set(key, CacheEntry(value=payload, stored_at=self._clock(), reason=reason))

        logger.info(
            "[ROSTER] %s: %d players (requested week=%s, resolved week=%s)",
            team_key,
            len(fetch.players),
            week,
            fetch.resolved_week,
        )
        return RosterResult(
            status=RosterStatus.OK,
            team_key=team_key,
            players=fetch.players,
            resolved_week=fetch.resolved_week,
            reason=reason,
            diagnostic=fetch.reason,
            kind=FailureKind.EMPTY if not fetch.players else None,
            draft_status=fetch.draft_status,
            attempts=fetch.attempts,
        )

    @staticmethod
    def _empty_reason(fetch: RosterFetch) -> str:
        if fetch.draft_status and fetch.draft_status != "postdraft":
            return REASON_PREDRAFT
        return REASON_EMPTY

    @staticmethod
    def _unauthorized(
        team_key: str, diagnostic: str | None, fetch: RosterFetch | None = None
    ) -> RosterResult:
        return RosterResult(
            status=RosterStatus.UNAUTHORIZED,
            team_key=team_key,
            reason=REASON_UNAUTHORIZED,
            diagnostic=diagnostic,
            kind=FailureKind.UNAUTHORIZED,
            attempts=fetch.attempts if fetch else [],
        )

    def health_check(self, user_id: str) -> HealthResult:
        """Check credentials and upstream reachability, bypassing the cache."""
        try:
            token = self._tokens.get_valid_access_token(user_id)
            if not token:
                return HealthResult(False, False, "auth_failed", error="no_token")
            return self._client.check_health(token)
        except Exception as e:
            logger.exception("[ROSTER] Health check failed for %s", short_id(user_id))
            return HealthResult(False, False, "connectivity_error", error=str(e))

    def cache_stats(self) -> dict:
        """Get cache statistics."""
        return self._cache.stats()

    def close(self) -> None:
        self._client.close()
        self._tokens.close()


def create_roster_gateway(
    settings: YahooSettings,
    store: CredentialStore,
    cache: LRUCache | None = None,
) -> RosterGateway:
    """Build a gateway with its collaborators from settings.

    Args:
        settings: Loaded YahooSettings
        store: CredentialStore implementation
        cache: Optional shared cache (default: new LRUCache sized from settings)
    """
    token_manager = TokenManager(settings, store)
    client = YahooClient(settings, token_manager)
    return RosterGateway(
        settings=settings,
        cache=cache if cache is not None else LRUCache(settings.cache_max_entries),
        token_manager=token_manager,
        client=client,
    )
