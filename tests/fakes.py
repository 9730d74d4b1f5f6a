"""Test doubles: sample match data, fake HTTP session, fake model transport."""

from __future__ import annotations

import io
import json
import threading

import requests
from PIL import Image

from georeview.errors import RateLimitedError, TransportError

USER_ID = "user-me"
OPPONENT_ID = "user-them"


def make_game(game_mode: str = "StandardDuels", rounds: int = 3, my_guess_rounds=None, opp_guess_rounds=None) -> dict:
    """Build a duel ``game`` object shaped like the summary page data."""
    my_guess_rounds = range(1, rounds + 1) if my_guess_rounds is None else my_guess_rounds
    opp_guess_rounds = range(1, rounds + 1) if opp_guess_rounds is None else opp_guess_rounds
    return {
        "gameId": "match-123",
        "options": {"competitiveGameMode": game_mode, "map": {"name": "A Community World"}},
        "rounds": [
            {
                "roundNumber": n,
                "multiplier": 1 + (n - 1) * 0.5,
                "panorama": {
                    # "PANO_n" hex-encoded
                    "panoId": f"PANO_{n}".encode("ascii").hex(),
                    "lat": 45.0 + n,
                    "lng": 7.0 + n,
                    "heading": 10.0 * n,
                    "pitch": 2.0,
                    "countryCode": "it",
                },
            }
            for n in range(1, rounds + 1)
        ],
        "teams": [
            {
                "id": "team-a",
                "players": [{
                    "playerId": OPPONENT_ID,
                    "guesses": [
                        {"roundNumber": n, "score": 4000 + n, "distance": 1500.5 * n}
                        for n in opp_guess_rounds
                    ],
                }],
            },
            {
                "id": "team-b",
                "players": [{
                    "playerId": USER_ID,
                    "guesses": [
                        {"roundNumber": n, "score": 3000 + n, "distance": 250000 * n}
                        for n in my_guess_rounds
                    ],
                }],
            },
        ],
    }


def report_entries(rounds: int) -> list[dict]:
    return [
        {
            "round": n,
            "actualRegion": "The Po Valley",
            "myGuessRegion": "Tuscany (250 km)",
            "opponentGuessRegion": "Lombardy (1 km)",
            "generalReview": f"Round {n} went to the opponent.",
            "locationReview": "Gen 4 coverage with white bollards.",
            "tips": [{"title": "Bollards", "body": "Italian bollards have a red band."}],
        }
        for n in range(1, rounds + 1)
    ]


def report_text(rounds: int, fenced: bool = False) -> str:
    text = json.dumps(report_entries(rounds))
    return f"```json\n{text}\n```" if fenced else text


def image_bytes(fmt: str = "JPEG") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), (30, 120, 60)).save(buf, format=fmt)
    return buf.getvalue()


class FakeResponse:
    def __init__(self, content: bytes = b"", status_code: int = 200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """Records thumbnail requests. ``fail(params)`` may return an exception to
    raise or an HTTP status code to answer with; None means success.
    """

    def __init__(self, content: bytes | None = None, fail=None):
        self.content = image_bytes() if content is None else content
        self.fail = fail or (lambda params: None)
        self.calls: list[dict] = []
        self._lock = threading.Lock()

    def get(self, url, params=None, timeout=None):
        with self._lock:
            self.calls.append(dict(params, _url=url, _timeout=timeout))
        outcome = self.fail(params)
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, int):
            return FakeResponse(b"", status_code=outcome)
        return FakeResponse(self.content)


class FakeTransport:
    """Returns scripted outcomes per call: text, or an exception to raise."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls: list[tuple[str, object]] = []

    def send(self, credential, payload):
        self.calls.append((credential, payload))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


RATE_LIMITED = RateLimitedError("429 quota exceeded")
BROKEN = TransportError("500 internal error")


