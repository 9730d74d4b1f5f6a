"""Project match rounds into the compact per-round summary sent to the model."""

from dataclasses import dataclass
from typing import Any, Optional, Union

from georeview.errors import DataIntegrityError
from georeview.match import Guess, MatchRecord, Team

NO_GUESS = "No guess"

GuessSummary = Union[dict[str, Any], str]  # {"score", "dist"} or NO_GUESS


@dataclass(frozen=True)
class RoundSummary:
    round: int
    multiplier: float
    country: str
    pano_id: str
    lat: float
    lng: float
    heading: float
    pitch: float
    my_guess: GuessSummary
    opponent_guess: GuessSummary

    def to_dict(self) -> dict:
        """Model-facing JSON shape."""
        return {
            "round": self.round,
            "multiplier": self.multiplier,
            "country": self.country,
            "loc": {
                "panoId": self.pano_id,
                "lat": self.lat,
                "lng": self.lng,
                "heading": self.heading,
                "pitch": self.pitch,
            },
            "myGuess": self.my_guess,
            "oppGuess": self.opponent_guess,
        }


def _format_distance(distance: float) -> str:
    if float(distance).is_integer():
        return f"{int(distance)}m"
    return f"{distance}m"


def _guess_summary(guess: Optional[Guess]) -> GuessSummary:
    if guess is None:
        return NO_GUESS
    return {"score": guess.score, "dist": _format_distance(guess.distance)}


def find_teams(match: MatchRecord, user_id: str) -> tuple[Team, Team]:
    """Return (user's team, opposing team) matched on each team's first player."""
    for team in match.teams:
        if team.player_id is None:
            raise DataIntegrityError(f"Team '{team.team_id}' in match {match.match_id} has no players")

    mine = next((t for t in match.teams if t.player_id == user_id), None)
    if mine is None:
        raise DataIntegrityError(f"No team in match {match.match_id} belongs to user {user_id}")

    opponent = next((t for t in match.teams if t.player_id != user_id), None)
    if opponent is None:
        raise DataIntegrityError(f"No opposing team in match {match.match_id}")

    return mine, opponent


def summarize_rounds(match: MatchRecord, user_id: str) -> list[RoundSummary]:
    """Summarize every round of the match from the point of view of user_id.

    Raises:
        DataIntegrityError: if the user's team or the opposing team is missing.
    """
    if not user_id:
        raise DataIntegrityError("A user id is required to summarize a match")

    mine, opponent = find_teams(match, user_id)

    summaries = []
    for record in sorted(match.rounds, key=lambda r: r.number):
        pano = record.panorama
        summaries.append(
            RoundSummary(
                round=record.number,
                multiplier=record.multiplier,
                country=pano.country_code,
                pano_id=pano.pano_id,
                lat=pano.lat,
                lng=pano.lng,
                heading=pano.heading,
                pitch=pano.pitch,
                my_guess=_guess_summary(mine.guess_for(record.number)),
                opponent_guess=_guess_summary(opponent.guess_for(record.number)),
            )
        )
    return summaries
