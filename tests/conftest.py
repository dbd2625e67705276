"""Shared fixtures and Yahoo payload builders."""

import json

import httpx
import pytest

from rosterarr.config import YahooSettings
from rosterarr.core.types import CredentialRecord
from rosterarr.database import InMemoryCredentialStore

API_BASE = "https://yahoo.test/fantasy/v2"
TOKEN_URL = "https://login.yahoo.test/oauth2/get_token"
TEAM_KEY = "423.l.12345.t.1"
USER_ID = "user-0123456789"

NOW = 1_700_000_000.0


# ---------- Payload builders ----------


def player_entry(
    name: str = "Patrick Mahomes",
    team: str = "KC",
    position: str = "QB",
    points: float | str = 21.5,
    status: str | None = None,
    key: str = "423.p.1",
) -> dict:
    """One entry of a players collection in Yahoo's fragment-list form."""
    meta = [
        {"player_key": key},
        {"name": {"full": name, "first": name.split()[0], "last": name.split()[-1]}},
        {"editorial_team_abbr": team},
    ]
    if status:
        meta.append({"status": status})
    return {
        "player": [
            meta,
            {"selected_position": [{"coverage_type": "week"}, {"position": position}]},
            {"player_points": {"coverage_type": "week", "total": str(points)}},
        ]
    }


def roster_payload(entries: list[dict], draft_status: str = "postdraft") -> dict:
    """A team/{key}/roster response wrapping the given player entries."""
    players: dict = {str(i): entry for i, entry in enumerate(entries)}
    players["count"] = len(entries)
    return {
        "fantasy_content": {
            "team": [
                [{"team_key": TEAM_KEY}, {"name": "Touchdown Machines"}, {"draft_status": draft_status}],
                {"roster": {"coverage_type": "week", "0": {"players": players}}},
            ]
        }
    }


def many_players(count: int) -> list[dict]:
    return [player_entry(name=f"Player Number{i}", key=f"423.p.{i}") for i in range(count)]


def json_response(payload: dict, status: int = 200) -> httpx.Response:
    return httpx.Response(status, text=json.dumps(payload), headers={"Content-Type": "application/json"})


def token_response(access_token: str = "fresh-token", expires_in: int = 3600, **extra) -> httpx.Response:
    return json_response({"access_token": access_token, "expires_in": expires_in, **extra})


def is_token_request(request: httpx.Request) -> bool:
    return request.url.path.endswith("/get_token")


# ---------- Fakes ----------


class FakeClock:
    """Manually advanced clock; pass advance as the sleep function."""

    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingTransport:
    """MockTransport handler that records requests and replays queued responses.

    Each queue entry is an httpx.Response, an exception instance to raise, or
    a callable taking the request.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.url}")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(request)
        return item

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))

    def data_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if not is_token_request(r)]

    def token_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if is_token_request(r)]


# ---------- Fixtures ----------


@pytest.fixture
def settings() -> YahooSettings:
    return YahooSettings(
        client_id="test-client-id",
        client_secret="test-client-secret",
        redirect_uri="https://rosterarr.test/api/yahoo/callback",
        api_base_url=API_BASE,
        token_url=TOKEN_URL,
        retry_base_delay=0.5,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> InMemoryCredentialStore:
    """Store holding one unexpired credential record for USER_ID."""
    return InMemoryCredentialStore(
        {
            USER_ID: CredentialRecord(
                access_token="valid-token",
                refresh_token="refresh-1",
                expires_at=clock() + 1800,
            )
        }
    )
