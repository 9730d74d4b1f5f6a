"""Match records as exposed by the GeoGuessr duel summary page.

The summary page embeds its state in a ``__NEXT_DATA__`` JSON block; the
``props.pageProps`` object carries the finished ``game`` and the viewer's
``userId``. These records are read-only once loaded.
"""

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from georeview.config import NARROW_FIELD_MODE
from georeview.errors import DataIntegrityError

_NEXT_DATA_RE = re.compile(
    r'<script[^>]*id="__NEXT_DATA__"[^>]*>(.*?)</script>',
    re.DOTALL | re.IGNORECASE,
)


def hex_to_ascii(value: str) -> str:
    """Decode a hex-digit-pair string, e.g. "4142" -> "AB"."""
    try:
        return bytes.fromhex(value).decode("latin-1")
    except ValueError as e:
        raise DataIntegrityError(f"Panorama id is not valid hex: {value!r}") from e


@dataclass(frozen=True)
class Guess:
    round_number: int
    score: int
    distance: float  # metres


@dataclass(frozen=True)
class Team:
    team_id: str
    player_id: Optional[str]  # first player; None when the team has no players
    guesses: tuple[Guess, ...] = ()

    def guess_for(self, round_number: int) -> Optional[Guess]:
        for guess in self.guesses:
            if guess.round_number == round_number:
                return guess
        return None


@dataclass(frozen=True)
class Panorama:
    pano_id_hex: str
    lat: float
    lng: float
    heading: float = 0.0
    pitch: float = 0.0
    country_code: str = ""

    @property
    def pano_id(self) -> str:
        return hex_to_ascii(self.pano_id_hex)


@dataclass(frozen=True)
class RoundRecord:
    number: int  # 1-based
    panorama: Panorama
    multiplier: float = 1.0


@dataclass(frozen=True)
class MatchRecord:
    match_id: str
    game_mode: str
    map_name: str
    rounds: tuple[RoundRecord, ...]
    teams: tuple[Team, ...]

    @property
    def is_narrow_field(self) -> bool:
        return self.game_mode == NARROW_FIELD_MODE


def _require(data: dict, key: str, where: str) -> Any:
    if not isinstance(data, dict) or key not in data:
        raise DataIntegrityError(f"Missing '{key}' in {where}")
    return data[key]


def _team_from_dict(data: dict) -> Team:
    players = data.get("players") or []
    if not players:
        return Team(team_id=str(data.get("id", "")), player_id=None)

    first = players[0]
    guesses = tuple(
        Guess(
            round_number=int(_require(g, "roundNumber", "guess")),
            score=int(g.get("score", 0)),
            distance=float(g.get("distance", 0)),
        )
        for g in first.get("guesses") or []
    )
    return Team(
        team_id=str(data.get("id", "")),
        player_id=first.get("playerId"),
        guesses=guesses,
    )


def match_from_dict(game: dict) -> MatchRecord:
    """Build a MatchRecord from the ``game`` object of the summary page."""
    options = _require(game, "options", "game")
    map_info = options.get("map") or {}

    rounds = []
    for i, raw in enumerate(_require(game, "rounds", "game")):
        pano = _require(raw, "panorama", f"round {i + 1}")
        rounds.append(
            RoundRecord(
                number=i + 1,
                panorama=Panorama(
                    pano_id_hex=str(_require(pano, "panoId", f"round {i + 1} panorama")),
                    lat=float(pano.get("lat", 0)),
                    lng=float(pano.get("lng", 0)),
                    heading=float(pano.get("heading") or 0),
                    pitch=float(pano.get("pitch") or 0),
                    country_code=pano.get("countryCode") or "",
                ),
                multiplier=float(raw.get("multiplier", 1)),
            )
        )

    return MatchRecord(
        match_id=str(_require(game, "gameId", "game")),
        game_mode=options.get("competitiveGameMode", ""),
        map_name=map_info.get("name", ""),
        rounds=tuple(rounds),
        teams=tuple(_team_from_dict(t) for t in game.get("teams") or []),
    )


def _page_props(document: dict) -> dict:
    if "props" in document:
        return document["props"].get("pageProps") or {}
    return document


def parse_match_page(text: str) -> tuple[MatchRecord, Optional[str]]:
    """Parse a saved summary page (HTML or JSON) into (match, user_id).

    Accepts a full ``__NEXT_DATA__`` document, a bare ``pageProps`` object,
    or an HTML page containing the ``__NEXT_DATA__`` script tag.
    """
    stripped = text.lstrip()
    if stripped.startswith("<"):
        found = _NEXT_DATA_RE.search(stripped)
        if not found:
            raise DataIntegrityError("No __NEXT_DATA__ block found in HTML page")
        stripped = found.group(1)

    try:
        document = json.loads(stripped)
    except json.JSONDecodeError as e:
        raise DataIntegrityError(f"Match data is not valid JSON: {e}") from e

    props = _page_props(document)
    game = _require(props, "game", "pageProps")
    return match_from_dict(game), props.get("userId")


def load_match_page(path: str | Path) -> tuple[MatchRecord, Optional[str]]:
    with open(path, "r", encoding="utf-8") as f:
        return parse_match_page(f.read())
