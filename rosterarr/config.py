"""Gateway configuration.

Settings come from environment variables with defaults, so constrained
deployments can tune timeouts and cache sizes without code changes.

Environment variables:
    YAHOO_CLIENT_ID / YAHOO_CLIENT_SECRET: OAuth client credentials (required)
    YAHOO_REDIRECT_URI: OAuth redirect URI (else derived from PUBLIC_BASE_URL)
    YAHOO_API_BASE_URL / YAHOO_TOKEN_URL: Upstream endpoints
    ROSTERARR_TIMEOUT: Per-attempt timeout for data calls (default: 10)
    ROSTERARR_HEALTH_TIMEOUT: Timeout for health checks (default: 5)
    ROSTERARR_RETRY_COUNT: Total attempts per upstream call (default: 3)
    ROSTERARR_RETRY_BASE_DELAY: Backoff base delay in seconds (default: 0.5)
    ROSTERARR_REQUEST_DEADLINE: Overall budget per roster request (default: 25)
    ROSTERARR_CACHE_MAX_ENTRIES: LRU capacity (default: 500)
    ROSTERARR_CACHE_TTL: Success entry lifetime in seconds (default: 30)
    ROSTERARR_ERROR_CACHE_TTL: Error entry lifetime in seconds (default: 300)
    ROSTERARR_DB_PATH: SQLite credential database (default: ./rosterarr.db)
    ROSTERARR_LOG_LEVEL: Root log level (default: INFO)
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass

YAHOO_API_BASE_URL = "https://fantasysports.yahooapis.com/fantasy/v2"
YAHOO_TOKEN_URL = "https://api.login.yahoo.com/oauth2/get_token"

# Subtracted from the upstream-reported token lifetime
TOKEN_EXPIRY_BUFFER_SECONDS = 120


class ConfigurationMissingError(RuntimeError):
    """Required credentials or configuration are absent."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing or invalid configuration: {', '.join(missing)}")


@dataclass
class YahooSettings:
    """Upstream, retry, and cache settings."""

    client_id: str | None = None
    client_secret: str | None = None
    redirect_uri: str = ""
    api_base_url: str = YAHOO_API_BASE_URL
    token_url: str = YAHOO_TOKEN_URL
    timeout: float = 10.0
    health_timeout: float = 5.0
    retry_count: int = 3
    retry_base_delay: float = 0.5
    request_deadline: float = 25.0
    token_expiry_buffer: int = TOKEN_EXPIRY_BUFFER_SECONDS
    cache_max_entries: int = 500
    cache_ttl: float = 30.0
    error_cache_ttl: float = 300.0
    db_path: str = "./rosterarr.db"
    log_level: str = "INFO"

    def missing_configuration(self) -> list[str]:
        """List missing or placeholder settings. Empty means configured."""
        problems = []
        if not self.client_id:
            problems.append("YAHOO_CLIENT_ID")
        elif self.client_id.startswith("your_"):
            problems.append("YAHOO_CLIENT_ID (placeholder value)")
        if not self.client_secret:
            problems.append("YAHOO_CLIENT_SECRET")
        elif self.client_secret.startswith("your_"):
            problems.append("YAHOO_CLIENT_SECRET (placeholder value)")
        if self.redirect_uri and not self.redirect_uri.startswith("http"):
            problems.append("YAHOO_REDIRECT_URI (must be a URL)")
        return problems

    @property
    def is_configured(self) -> bool:
        return not self.missing_configuration()


def _redirect_uri(env: Mapping[str, str]) -> str:
    if env.get("YAHOO_REDIRECT_URI"):
        return env["YAHOO_REDIRECT_URI"]
    base = env.get("PUBLIC_BASE_URL")
    if base:
        return f"{base.rstrip('/')}/api/yahoo/callback"
    return ""


def load_settings(environ: Mapping[str, str] | None = None, strict: bool = False) -> YahooSettings:
    """Build settings from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)
        strict: Raise ConfigurationMissingError if credentials are absent

    Returns:
        Populated YahooSettings
    """
    env = os.environ if environ is None else environ

    settings = YahooSettings(
        client_id=env.get("YAHOO_CLIENT_ID") or None,
        client_secret=env.get("YAHOO_CLIENT_SECRET") or None,
        redirect_uri=_redirect_uri(env),
        api_base_url=env.get("YAHOO_API_BASE_URL", YAHOO_API_BASE_URL).rstrip("/"),
        token_url=env.get("YAHOO_TOKEN_URL", YAHOO_TOKEN_URL),
        timeout=float(env.get("ROSTERARR_TIMEOUT", 10.0)),
        health_timeout=float(env.get("ROSTERARR_HEALTH_TIMEOUT", 5.0)),
        retry_count=int(env.get("ROSTERARR_RETRY_COUNT", 3)),
        retry_base_delay=float(env.get("ROSTERARR_RETRY_BASE_DELAY", 0.5)),
        request_deadline=float(env.get("ROSTERARR_REQUEST_DEADLINE", 25.0)),
        cache_max_entries=int(env.get("ROSTERARR_CACHE_MAX_ENTRIES", 500)),
        cache_ttl=float(env.get("ROSTERARR_CACHE_TTL", 30.0)),
        error_cache_ttl=float(env.get("ROSTERARR_ERROR_CACHE_TTL", 300.0)),
        db_path=env.get("ROSTERARR_DB_PATH", "./rosterarr.db"),
        log_level=env.get("ROSTERARR_LOG_LEVEL", "INFO").upper(),
    )

    if strict:
        missing = settings.missing_configuration()
        if missing:
            raise ConfigurationMissingError(missing)

    return settings
