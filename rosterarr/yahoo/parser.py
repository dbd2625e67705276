"""Tolerant Yahoo roster parser.

Maps raw roster payloads into Player tuples. Yahoo's JSON is a collection of
numbered dicts and fragment lists rather than plain objects, and its shape
has drifted over time, so every lookup tries the expected shape first and
then the alternates we have seen.

Expected shape (team/{team_key}/roster):

    fantasy_content.team = [
        [ {team_key}, {name}, ..., {draft_status} ],      # metadata fragments
        { "roster": { "0": { "players": {
            "0": { "player": [ [ {player_key}, {name: {full}}, ... ],
                               { "selected_position": [...] } ] },
            "count": 1,
        } } } },
    ]

parse_roster() never raises. Structural surprises degrade to an empty roster
plus a reason code.
"""

import json
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from rosterarr.core.types import DEFAULT_POSITION, UNKNOWN_PLAYER_NAME, Player
from rosterarr.utilities.parsing import parse_finite_float, safe_str

logger = logging.getLogger(__name__)

REASON_SHAPE_UNRECOGNIZED = "shape_unrecognized"
REASON_EMPTY = "empty"
REASON_PARSE_ERROR = "parse_error"

# Keys that sit beside real entries in Yahoo's numbered collections
SENTINEL_KEYS = frozenset({"count"})

# Fragments nest at most this deep ([[{...}], {...}])
MAX_FRAGMENT_DEPTH = 3


@dataclass(frozen=True)
class ParseResult:
    """Players parsed from one payload.

    reason is None when players were found, "empty" when the roster container
    was present but held no players, "shape_unrecognized" when the container
    could not be located, and "parse_error" when the payload was not JSON.
    """

    players: tuple[Player, ...] = ()
    reason: str | None = None
    draft_status: str | None = None
    skipped: int = 0

    @property
    def recognized(self) -> bool:
        return self.reason not in (REASON_SHAPE_UNRECOGNIZED, REASON_PARSE_ERROR)


# =============================================================================
# FIELD RULES
# =============================================================================

Extractor = Callable[[dict], Any]


def _lookup(value: Any, key: str | int) -> Any:
    """One step of a path walk.

    Lists are searched for the first dict holding a string key, so
    fragment lists like selected_position resolve the same as plain dicts.
    """
    if isinstance(key, int):
        if isinstance(value, list) and -len(value) <= key < len(value):
            return value[key]
        if isinstance(value, dict):
            return value.get(str(key))
        return None
    if isinstance(value, dict):
        return value.get(key)
    if isinstance(value, list):
        for item in value:
            if isinstance(item, dict) and key in item:
                return item[key]
    return None


def field_path(*keys: str | int) -> Extractor:
    """Extractor that walks nested keys, returning None on any missing link."""

    def extract(record: dict) -> Any:
        value: Any = record
        for key in keys:
            value = _lookup(value, key)
            if value is None:
                return None
        return value

    return extract


def joined(*extractors: Extractor, sep: str = " ") -> Extractor:
    """Extractor that joins the non-empty string results of other extractors."""

    def extract(record: dict) -> str | None:
        parts = [safe_str(e(record)) for e in extractors]
        present = [p for p in parts if p]
        return sep.join(present) if present else None

    return extract


# Ordered alternates per Player field; first usable value wins
FIELD_RULES: dict[str, tuple[Extractor, ...]] = {
    "name": (
        field_path("name", "full"),
        joined(field_path("name", "first"), field_path("name", "last")),
        field_path("name"),
        field_path("full_name"),
    ),
    "team": (
        field_path("editorial_team_abbr"),
        field_path("team_abbr"),
    ),
    "position": (
        field_path("selected_position", "position"),
        field_path("position"),
        field_path("display_position"),
    ),
    "status": (
        field_path("status"),
        field_path("injury_status"),
    ),
    "points": (
        field_path("player_points", "total"),
        field_path("points"),
    ),
}


def _first_text(record: dict, field: str) -> str | None:
    for extract in FIELD_RULES[field]:
        value = safe_str(extract(record))
        if value:
            return value
    return None


def _first_number(record: dict, field: str) -> float:
    for extract in FIELD_RULES[field]:
        value = parse_finite_float(extract(record))
        if value is not None:
            return value
    return 0.0


def build_player(record: dict) -> Player:
    """Build a Player from a merged upstream record."""
    return Player(
        name=_first_text(record, "name") or UNKNOWN_PLAYER_NAME,
        team=_first_text(record, "team") or "",
        position=_first_text(record, "position") or DEFAULT_POSITION,
        status=_first_text(record, "status"),
        points=_first_number(record, "points"),
    )


# =============================================================================
# STRUCTURE
# =============================================================================


def merge_fragments(fragments: Any) -> dict:
    """Shallow-merge a list of fragment dicts into one record.

    First-seen wins: Yahoo puts the most specific data first, so later
    fragments only fill keys that are still missing. Nested lists are
    flattened in order.
    """
    merged: dict = {}

    def visit(item: Any, depth: int) -> None:
        if isinstance(item, dict):
            for key, value in item.items():
                merged.setdefault(key, value)
        elif isinstance(item, list) and depth < MAX_FRAGMENT_DEPTH:
            for sub in item:
                visit(sub, depth + 1)

    visit(fragments, 0)
    return merged


def _team_fragments(payload: dict) -> list | None:
    content = payload.get("fantasy_content")
    if not isinstance(content, dict):
        return None
    team = content.get("team")
    if isinstance(team, dict):
        return [team]
    if isinstance(team, list) and team:
        return team
    return None


def _find_roster(team: list) -> dict | None:
    # Expected at team[1]; older responses put it elsewhere in the list
    candidates = [team[1]] + team if len(team) > 1 else team
    for fragment in candidates:
        if isinstance(fragment, dict) and isinstance(fragment.get("roster"), dict):
            return fragment["roster"]
    return None


def _find_players(roster: dict) -> dict | list | None:
    for container in (roster.get("0"), roster):
        if isinstance(container, dict):
            players = container.get("players")
            if isinstance(players, (dict, list)):
                return players
    return None


def _iter_entries(players: dict | list) -> Iterable[Any]:
    if isinstance(players, list):
        return players
    return (value for key, value in players.items() if key not in SENTINEL_KEYS)


def _entry_record(entry: Any) -> dict | None:
    if not isinstance(entry, dict):
        return None
    fragments = entry.get("player")
    if isinstance(fragments, dict):
        fragments = [fragments]
    if not isinstance(fragments, list) or not fragments:
        return None
    record = merge_fragments(fragments)
    return record or None


def _decode(payload: Any) -> Any:
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8", errors="replace")
    if isinstance(payload, str):
        return json.loads(payload)
    return payload


def parse_roster(payload: Any) -> ParseResult:
    """Parse a raw roster payload.

    Args:
        payload: Decoded JSON (dict) or raw JSON text/bytes

    Returns:
        ParseResult with players in upstream order and a reason code
    """
    try:
        data = _decode(payload)
    except (ValueError, RecursionError):
        logger.debug("[PARSER] Payload is not valid JSON")
        return ParseResult(reason=REASON_PARSE_ERROR)
    except Exception as e:
        logger.warning("[PARSER] Could not decode payload: %s", e)
        return ParseResult(reason=REASON_PARSE_ERROR)

    try:
        return _parse(data)
    except Exception as e:
        logger.warning("[PARSER] Unexpected roster shape: %s", e)
        return ParseResult(reason=REASON_SHAPE_UNRECOGNIZED)


def _parse(data: Any) -> ParseResult:
    if not isinstance(data, dict):
        return ParseResult(reason=REASON_SHAPE_UNRECOGNIZED)

    team = _team_fragments(data)
    if team is None:
        return ParseResult(reason=REASON_SHAPE_UNRECOGNIZED)

    draft_status = safe_str(merge_fragments(team[0]).get("draft_status"))

    roster = _find_roster(team)
    if roster is None:
        return ParseResult(reason=REASON_SHAPE_UNRECOGNIZED, draft_status=draft_status)

    players_container = _find_players(roster)
    if players_container is None:
        return ParseResult(reason=REASON_SHAPE_UNRECOGNIZED, draft_status=draft_status)

    players: list[Player] = []
    skipped = 0
    for entry in _iter_entries(players_container):
        record = _entry_record(entry)
        if record is None:
            skipped += 1
            continue
        players.append(build_player(record))

    if skipped:
        logger.debug("[PARSER] Skipped %d unusable player entries", skipped)

    return ParseResult(
        players=tuple(players),
        reason=None if players else REASON_EMPTY,
        draft_status=draft_status,
        skipped=skipped,
    )
