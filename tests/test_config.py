"""Tests for environment-driven settings."""

import pytest

from rosterarr.config import ConfigurationMissingError, YahooSettings, load_settings
from rosterarr.utilities.parsing import safe_float, safe_str, short_id

CONFIGURED = {"YAHOO_CLIENT_ID": "abc", "YAHOO_CLIENT_SECRET": "def"}


class TestLoadSettings:
    def test_defaults(self):
        """An empty environment yields the documented defaults."""
        settings = load_settings({})
        assert settings.timeout == 10.0
        assert settings.health_timeout == 5.0
        assert settings.retry_count == 3
        assert settings.cache_max_entries == 500
        assert settings.cache_ttl == 30.0
        assert settings.error_cache_ttl == 300.0
        assert settings.log_level == "INFO"

    def test_overrides(self):
        """Environment values override defaults."""
        settings = load_settings(
            {
                **CONFIGURED,
                "ROSTERARR_TIMEOUT": "4",
                "ROSTERARR_RETRY_COUNT": "5",
                "ROSTERARR_CACHE_MAX_ENTRIES": "20",
                "ROSTERARR_LOG_LEVEL": "debug",
                "YAHOO_API_BASE_URL": "https://example.test/v2/",
            }
        )
        assert settings.timeout == 4.0
        assert settings.retry_count == 5
        assert settings.cache_max_entries == 20
        assert settings.log_level == "DEBUG"
        assert settings.api_base_url == "https://example.test/v2"

    def test_redirect_uri_derived_from_public_base_url(self):
        """The redirect URI is built from PUBLIC_BASE_URL."""
        settings = load_settings({"PUBLIC_BASE_URL": "https://rosterarr.test/"})
        assert settings.redirect_uri == "https://rosterarr.test/api/yahoo/callback"

    def test_explicit_redirect_uri_wins(self):
        """YAHOO_REDIRECT_URI takes precedence."""
        settings = load_settings(
            {"PUBLIC_BASE_URL": "https://a.test", "YAHOO_REDIRECT_URI": "https://b.test/cb"}
        )
        assert settings.redirect_uri == "https://b.test/cb"

    def test_strict_raises_when_missing(self):
        """Strict loading raises listing the missing variables."""
        with pytest.raises(ConfigurationMissingError) as exc:
            load_settings({}, strict=True)
        assert exc.value.missing == ["YAHOO_CLIENT_ID", "YAHOO_CLIENT_SECRET"]

    def test_strict_passes_when_configured(self):
        """Strict loading succeeds with credentials set."""
        assert load_settings(CONFIGURED, strict=True).is_configured


class TestMissingConfiguration:
    def test_placeholder_values_flagged(self):
        """your_ placeholders count as missing."""
        settings = YahooSettings(client_id="your_client_id", client_secret="your_secret")
        assert settings.missing_configuration() == [
            "YAHOO_CLIENT_ID (placeholder value)",
            "YAHOO_CLIENT_SECRET (placeholder value)",
        ]

    def test_redirect_must_be_url(self):
        """A redirect URI without a scheme is flagged."""
        settings = YahooSettings(client_id="a", client_secret="b", redirect_uri="localhost/cb")
        assert settings.missing_configuration() == ["YAHOO_REDIRECT_URI (must be a URL)"]


class TestParsingHelpers:
    @pytest.mark.parametrize(
        "value,expected",
        [("12.5", 12.5), (3, 3.0), ("N/A", 0.0), ("", 0.0), (None, 0.0), (True, 0.0), (float("nan"), 0.0)],
    )
    def test_safe_float(self, value, expected):
        """safe_float coerces or falls back to 0.0."""
        assert safe_float(value) == expected

    def test_safe_str(self):
        """safe_str strips and rejects blanks and containers."""
        assert safe_str("  QB ") == "QB"
        assert safe_str("   ") is None
        assert safe_str(7) == "7"
        assert safe_str({"full": "x"}) is None

    def test_short_id(self):
        """short_id truncates long ids for logs."""
        assert short_id("abcdefghijkl") == "abcdefgh..."
        assert short_id("abc") == "abc"
        assert short_id(None) == "<none>"
