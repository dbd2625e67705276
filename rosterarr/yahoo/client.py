"""Yahoo Fantasy Sports API client.

Drives authenticated upstream calls for the roster gateway:
- Bearer auth with a bounded per-attempt timeout (httpx abandons the
  connection when it fires)
- One forced token refresh and retry on 401, never more
- Exponential backoff retries for 5xx and transient transport errors
- Roster path variants tried in priority order until one yields players

Every attempt is recorded as a FetchAttempt for debugging; the trail never
influences control flow.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

import httpx

from rosterarr.config import YahooSettings
from rosterarr.core.types import FailureKind, FetchAttempt, HealthResult, Player
from rosterarr.yahoo.auth import TokenManager
from rosterarr.yahoo.parser import REASON_EMPTY, parse_roster
from rosterarr.yahoo.retry import RetryPolicy

logger = logging.getLogger(__name__)

USER_AGENT = "rosterarr/0.1.0"
HEALTH_CHECK_PATH = "users;use_login=1"


@dataclass
class UpstreamResponse:
    """Final response of one logical upstream call (after retries)."""

    status: int | None
    body: str = ""
    access_token: str | None = None
    error: str | None = None
    unauthorized: bool = False

    @property
    def ok(self) -> bool:
        return self.status is not None and 200 <= self.status < 300


@dataclass(frozen=True)
class PathVariant:
    """One upstream request shape for a logical roster query."""

    label: str
    path: str
    week: str | None = None


@dataclass
class RosterFetch:
    """Result of trying every roster path variant.

    kind is None when players were found.
    """

    kind: FailureKind | None
    players: tuple[Player, ...] = ()
    resolved_week: str | None = None
    reason: str | None = None
    draft_status: str | None = None
    attempts: list[FetchAttempt] = field(default_factory=list)
    access_token: str | None = None


def build_roster_variants(team_key: str, week: str | int | None = None) -> list[PathVariant]:
    """Roster paths in priority order.

    With a week: the week-qualified path, then the current-week path as a
    fallback. Without a week: only the current-week path.
    """
    variants = []
    if week not in (None, ""):
        variants.append(PathVariant("with_week", f"team/{team_key}/roster;week={week}", str(week)))
    variants.append(
        PathVariant("fallback_no_week" if variants else "base", f"team/{team_key}/roster", None)
    )
    return variants


class YahooClient:
    """Low-level Yahoo API client with retry and refresh handling.

    Usage:
        with YahooClient(settings, token_manager) as client:
            fetch = client.fetch_roster("423.l.12345.t.1", "3", token, user_id)
            if fetch.kind is None:
                print(fetch.players)
    """

    def __init__(
        self,
        settings: YahooSettings,
        token_manager: TokenManager,
        retry_policy: RetryPolicy | None = None,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize Yahoo client.

        Args:
            settings: Endpoints and timeouts
            token_manager: Used for the one-time refresh after a 401
            retry_policy: Retry settings (default: built from settings)
            http_client: Optional pre-built client (tests pass a mock transport)
            sleep: Backoff sleep function
            clock: Monotonic clock for deadlines
        """
        self._settings = settings
        self._tokens = token_manager
        self._policy = retry_policy or RetryPolicy.from_settings(settings)
        self._client = http_client
        self._owns_client = http_client is None
        self._lock = threading.Lock()
        self._sleep = sleep
        self._clock = clock

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._policy

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client (thread-safe)."""
        if self._client is None:
            with self._lock:
                if self._client is None:
                    self._client = httpx.Client(
                        timeout=self._settings.timeout,
                        limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
                    )
        return self._client

    def _url(self, path: str) -> str:
        return f"{self._settings.api_base_url}/{path.lstrip('/')}"

    @staticmethod
    def _headers(token: str) -> dict:
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }

    def _remaining(self, deadline: float | None) -> float | None:
        if deadline is None:
            return None
        return deadline - self._clock()

    def _wait_before_retry(self, attempt: int, deadline: float | None, path: str, cause: str) -> bool:
        """Sleep for the backoff delay. False if the deadline leaves no room."""
        delay = self._policy.backoff(attempt)
        remaining = self._remaining(deadline)
        if remaining is not None and delay >= remaining:
            logger.error("[YAHOO] No time left to retry %s after %s", path, cause)
            return False
        logger.warning(
            "[YAHOO] %s for %s, retry %d/%d after %.1fs",
            cause,
            path,
            attempt + 1,
            self._policy.max_attempts - 1,
            delay,
        )
        self._sleep(delay)
        return True

    def request(
        self,
        path: str,
        access_token: str,
        user_id: str,
        *,
        timeout: float | None = None,
        deadline: float | None = None,
        attempts: list[FetchAttempt] | None = None,
        variant: str = "base",
        allow_refresh: bool = True,
    ) -> UpstreamResponse:
        """Make one logical authenticated GET with retry logic.

        Args:
            path: API path below the v2 base (e.g., "team/{key}/roster")
            access_token: Current bearer token
            user_id: Owner of the token, for the refresh-on-401 step
            timeout: Per-attempt timeout (default: settings.timeout)
            deadline: Monotonic deadline for the whole sequence
            attempts: List to append FetchAttempt records to
            variant: Path variant label for the attempt trail
            allow_refresh: False when the caller already spent its one
                refresh; a 401 is then terminal

        Returns:
            UpstreamResponse; access_token holds the refreshed token if a
            refresh happened
        """
        if attempts is None:
            attempts = []
        url = self._url(path)
        per_attempt = timeout or self._settings.timeout
        token = access_token
        refreshed = not allow_refresh
        attempt = 0

        while True:
            remaining = self._remaining(deadline)
            if remaining is not None and remaining <= 0:
                logger.error("[YAHOO] Deadline exceeded before request to %s", path)
                attempts.append(FetchAttempt(variant, path, None, "failed", "deadline_exceeded"))
                return UpstreamResponse(None, access_token=token, error="deadline_exceeded")

            attempt_timeout = per_attempt if remaining is None else min(per_attempt, remaining)

            try:
                response = self._get_client().get(
                    url,
                    params={"format": "json"},
                    headers=self._headers(token),
                    timeout=attempt_timeout,
                )
            except httpx.TimeoutException:
                error = "timeout"
            except httpx.TransportError as e:
                logger.debug("[YAHOO] Transport error for %s: %s", path, e)
                error = "network_error"
            except httpx.RequestError as e:
                # Non-retryable request exception
                logger.error("[YAHOO] Request failed (non-retryable) for %s: %s", path, e)
                attempts.append(FetchAttempt(variant, path, None, "failed", "request_error"))
                return UpstreamResponse(None, access_token=token, error="request_error")
            else:
                error = None

            if error:
                attempts.append(FetchAttempt(variant, path, None, "failed", error))
                if self._policy.should_retry(attempt) and self._wait_before_retry(
                    attempt, deadline, path, error
                ):
                    attempt += 1
                    continue
                logger.error("[YAHOO] Giving up on %s after %d attempt(s): %s", path, attempt + 1, error)
                return UpstreamResponse(None, access_token=token, error=error)

            status = response.status_code

            # 401: one forced refresh, not counted against the retry budget
            if status == 401:
                attempts.append(FetchAttempt(variant, path, status, "unauthorized"))
                if refreshed:
                    logger.warning("[YAHOO] Still unauthorized after token refresh for %s", path)
                    return UpstreamResponse(
                        status, response.text, token, error="unauthorized", unauthorized=True
                    )
                refreshed = True
                new_token = self._tokens.force_refresh(user_id, stale_token=token)
                if not new_token or new_token == token:
                    logger.warning("[YAHOO] Token refresh did not yield a new token for %s", path)
                    return UpstreamResponse(
                        status, response.text, token, error="unauthorized", unauthorized=True
                    )
                logger.debug("[YAHOO] Received 401, retrying %s with refreshed token", path)
                token = new_token
                continue

            if self._policy.is_retryable_status(status):
                attempts.append(FetchAttempt(variant, path, status, "failed", f"http_{status}"))
                if self._policy.should_retry(attempt) and self._wait_before_retry(
                    attempt, deadline, path, f"HTTP {status}"
                ):
                    attempt += 1
                    continue
                logger.error(
                    "[YAHOO] Max retries exceeded for %s (HTTP %d)", path, status
                )
                return UpstreamResponse(status, response.text, token, error=f"http_{status}")

            if response.is_success:
                attempts.append(FetchAttempt(variant, path, status, "ok"))
                return UpstreamResponse(status, response.text, token)

            # Other 4xx: not retryable
            logger.warning("[YAHOO] HTTP %d for %s", status, path)
            attempts.append(FetchAttempt(variant, path, status, "failed", f"http_{status}"))
            return UpstreamResponse(status, response.text, token, error=f"http_{status}")

    def fetch_roster(
        self,
        team_key: str,
        week: str | int | None,
        access_token: str,
        user_id: str,
        *,
        deadline: float | None = None,
    ) -> RosterFetch:
        """Fetch and parse a team roster, trying path variants in order.

        A variant that parses to zero players is not final; the next one is
        tried. Unauthorized stops immediately.

        Args:
            team_key: Yahoo team key (e.g., "423.l.12345.t.1")
            week: Optional scoring week
            access_token: Current bearer token
            user_id: Token owner
            deadline: Monotonic deadline (default: from the retry policy)

        Returns:
            RosterFetch describing players or the failure kind
        """
        if deadline is None:
            deadline = self._policy.deadline(self._clock())

        attempts: list[FetchAttempt] = []
        token = access_token
        refreshed = False
        empty: RosterFetch | None = None
        failure: tuple[FailureKind, str] | None = None

        for variant in build_roster_variants(team_key, week):
            response = self.request(
                variant.path,
                token,
                user_id,
                deadline=deadline,
                attempts=attempts,
                variant=variant.label,
                allow_refresh=not refreshed,
            )
            # One refresh per roster lookup, shared across variants
            if response.access_token and response.access_token != token:
                refreshed = True
            token = response.access_token or token

            if response.unauthorized:
                return RosterFetch(
                    kind=FailureKind.UNAUTHORIZED,
                    reason="unauthorized",
                    attempts=attempts,
                    access_token=token,
                )

            if not response.ok:
                failure = (
                    FailureKind.UPSTREAM_UNAVAILABLE,
                    response.error or f"http_{response.status}",
                )
                continue

            parsed = parse_roster(response.body)
            if parsed.players:
                logger.debug(
                    "[YAHOO] %s: %d players via %s", team_key, len(parsed.players), variant.label
                )
                return RosterFetch(
                    kind=None,
                    players=parsed.players,
                    resolved_week=variant.week,
                    draft_status=parsed.draft_status,
                    attempts=attempts,
                    access_token=token,
                )

            if not parsed.recognized:
                attempts[-1].outcome = parsed.reason or "failed"
                failure = (FailureKind.SHAPE_UNRECOGNIZED, parsed.reason or "shape_unrecognized")
                continue

            attempts[-1].outcome = REASON_EMPTY
            empty = RosterFetch(
                kind=FailureKind.EMPTY,
                reason=REASON_EMPTY,
                resolved_week=variant.week,
                draft_status=parsed.draft_status or (empty.draft_status if empty else None),
                attempts=attempts,
                access_token=token,
            )

        if empty is not None:
            return empty

        kind, reason = failure or (FailureKind.UPSTREAM_UNAVAILABLE, "no_response")
        return RosterFetch(kind=kind, reason=reason, attempts=attempts, access_token=token)

    def check_health(self, access_token: str) -> HealthResult:
        """Minimal upstream call with the short health timeout and no retries."""
        try:
            response = self._get_client().get(
                self._url(HEALTH_CHECK_PATH),
                params={"format": "json"},
                headers=self._headers(access_token),
                timeout=self._settings.health_timeout,
            )
        except httpx.TimeoutException:
            return HealthResult(False, False, "connectivity_error", error="timeout")
        except httpx.RequestError as e:
            return HealthResult(False, False, "connectivity_error", error=str(e) or type(e).__name__)

        ok = response.is_success
        return HealthResult(
            ok=ok,
            upstream_reachable=True,
            status="healthy" if ok else "yahoo_api_error",
            upstream_status=response.status_code,
        )

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client and self._owns_client:
            self._client.close()
            self._client = None

    def __enter__(self) -> "YahooClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()
