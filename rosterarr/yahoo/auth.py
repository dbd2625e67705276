"""Yahoo OAuth token lifecycle.

Keeps each user's access token usable:
- Returns the stored token untouched while it is unexpired (no network call)
- Refreshes via the token endpoint once the buffered expiry has passed
- force_refresh() for callers that got a 401 despite an unexpired record

Refresh failures are reported as None, never raised. Callers treat None as
"re-authentication required" and own any retry policy.

Refreshes for the same user are serialized with a per-user lock. A thread
that waited on the lock and finds a fresh token written by another thread
returns that token instead of making a second refresh call.
"""

import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager

import httpx

from rosterarr.config import YahooSettings
from rosterarr.core.interfaces import CredentialStore
from rosterarr.core.types import CredentialRecord
from rosterarr.utilities.parsing import safe_float, short_id

logger = logging.getLogger(__name__)

# Yahoo access tokens live for one hour
DEFAULT_EXPIRES_IN = 3600


class TokenManager:
    """Per-user credential lifecycle against the Yahoo token endpoint."""

    def __init__(
        self,
        settings: YahooSettings,
        store: CredentialStore,
        http_client: httpx.Client | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize token manager.

        Args:
            settings: Client credentials and token endpoint
            store: Where credential records are persisted
            http_client: Optional pre-built client (tests pass a mock transport)
            clock: Wall-clock source in epoch seconds
        """
        self._settings = settings
        self._store = store
        self._client = http_client
        self._owns_client = http_client is None
        self._client_lock = threading.Lock()
        self._clock = clock
        self._user_locks: dict[str, list] = {}
        self._user_locks_lock = threading.Lock()
        self.refresh_count = 0

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = httpx.Client(timeout=self._settings.timeout)
        return self._client

    @contextmanager
    def _user_lock(self, user_id: str) -> Iterator[None]:
        """Hold the refresh lock for one user.

        Entries are reference counted and dropped once no thread holds or
        waits on them, so the map only contains users mid-refresh.
        """
        with self._user_locks_lock:
            entry = self._user_locks.get(user_id)
            if entry is None:
                entry = self._user_locks[user_id] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._user_locks_lock:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._user_locks[user_id]

    def get_valid_access_token(self, user_id: str) -> str | None:
        """Return a currently usable access token for a user.

        Returns:
            Access token, or None if the user has no credentials or the
            refresh failed (re-authentication required)
        """
        record = self._store.get(user_id)
        if record is None or not record.access_token:
            logger.debug("[TOKEN] No credentials for %s", short_id(user_id))
            return None

        if not record.is_expired(self._clock()):
            return record.access_token

        if not record.refresh_token:
            logger.warning(
                "[TOKEN] Token expired and no refresh token for %s", short_id(user_id)
            )
            return None

        logger.info("[TOKEN] Token expired for %s, refreshing", short_id(user_id))
        return self._refresh_serialized(user_id, stale_token=record.access_token, force=False)

    def force_refresh(self, user_id: str, stale_token: str | None = None) -> str | None:
        """Refresh regardless of the stored expiry.

        Used after the upstream rejects a token that looked valid (clock skew,
        server-side revocation).

        Args:
            user_id: User whose credentials to refresh
            stale_token: The token the caller saw rejected. If another thread
                already replaced it with an unexpired token, that token is
                returned without a new refresh call.

        Returns:
            New access token, or None if refresh was not possible
        """
        return self._refresh_serialized(user_id, stale_token=stale_token, force=True)

    def save_token_response(
        self,
        user_id: str,
        data: dict,
        previous: CredentialRecord | None = None,
    ) -> CredentialRecord:
        """Merge an upstream token response into the user's stored record.

        The refresh token is kept from the previous record when the response
        omits it. expires_at has the safety buffer subtracted.
        """
        if previous is None:
            previous = self._store.get(user_id)

        expires_in = safe_float(data.get("expires_in"), default=DEFAULT_EXPIRES_IN)
        buffer = self._settings.token_expiry_buffer
        record = CredentialRecord(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token") or (previous.refresh_token if previous else None),
            expires_at=self._clock() + max(0.0, expires_in - buffer),
            token_type=data.get("token_type") or "bearer",
        )
        self._store.set(user_id, record)
        return record

    def _refresh_serialized(self, user_id: str, stale_token: str | None, force: bool) -> str | None:
        with self._user_lock(user_id):
            current = self._store.get(user_id)
            if current is None or not current.access_token:
                return None

            now = self._clock()
            if (
                stale_token is not None
                and current.access_token != stale_token
                and not current.is_expired(now)
            ):
                logger.debug("[TOKEN] Refresh already completed for %s", short_id(user_id))
                return current.access_token

            if not force and not current.is_expired(now):
                return current.access_token

            return self._refresh(user_id, current)

    def _refresh(self, user_id: str, record: CredentialRecord) -> str | None:
        """Exchange the refresh token for a new access token."""
        if not record.refresh_token:
            logger.warning("[TOKEN] No refresh token available for %s", short_id(user_id))
            return None

        if not self._settings.client_id or not self._settings.client_secret:
            logger.error("[TOKEN] Cannot refresh: client credentials not configured")
            return None

        form = {
            "grant_type": "refresh_token",
            "refresh_token": record.refresh_token,
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret,
            "redirect_uri": self._settings.redirect_uri,
        }

        try:
            response = self._get_client().post(
                self._settings.token_url,
                data=form,
                headers={"Accept": "application/json"},
                timeout=self._settings.timeout,
            )
        except httpx.RequestError as e:
            logger.error("[TOKEN] Refresh request failed for %s: %s", short_id(user_id), e)
            return None

        if not response.is_success:
            if response.status_code == 400 and "invalid_grant" in response.text:
                logger.warning(
                    "[TOKEN] Refresh token rejected for %s - re-authentication required",
                    short_id(user_id),
                )
            else:
                logger.error(
                    "[TOKEN] Refresh failed for %s: HTTP %d",
                    short_id(user_id),
                    response.status_code,
                )
            return None

        try:
            payload = response.json()
        except ValueError:
            logger.error("[TOKEN] Refresh response was not JSON for %s", short_id(user_id))
            return None

        if not isinstance(payload, dict) or not payload.get("access_token"):
            logger.error("[TOKEN] Refresh response missing access_token for %s", short_id(user_id))
            return None

        new_record = self.save_token_response(user_id, payload, previous=record)
        self.refresh_count += 1
        logger.info("[TOKEN] Refreshed token for %s", short_id(user_id))
        return new_record.access_token

    def close(self) -> None:
        """Close the HTTP client if this manager created it."""
        if self._client and self._owns_client:
            self._client.close()
            self._client = None
