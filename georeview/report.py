"""Review report schema, validation and text rendering."""

import json
import re
from dataclasses import dataclass
from typing import Any, Optional

from georeview.errors import ReportValidationError

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)

# JSON field name -> RoundReview attribute
_TEXT_FIELDS = {
    "actualRegion": "actual_region",
    "myGuessRegion": "my_guess_region",
    "opponentGuessRegion": "opponent_guess_region",
    "generalReview": "general_review",
    "locationReview": "location_review",
}


@dataclass(frozen=True)
class Tip:
    title: str
    body: str


@dataclass(frozen=True)
class RoundReview:
    round: int
    actual_region: str
    my_guess_region: str
    opponent_guess_region: str
    general_review: str
    location_review: str
    tips: tuple[Tip, ...] = ()

    def to_dict(self) -> dict:
        data: dict[str, Any] = {"round": self.round}
        for key, attr in _TEXT_FIELDS.items():
            data[key] = getattr(self, attr)
        data["tips"] = [{"title": t.title, "body": t.body} for t in self.tips]
        return data


@dataclass(frozen=True)
class ReviewReport:
    """Per-round reviews for a whole match, ordered by round number."""
    rounds: tuple[RoundReview, ...]

    def __len__(self) -> int:
        return len(self.rounds)

    def for_round(self, round_number: int) -> Optional[RoundReview]:
        for review in self.rounds:
            if review.round == round_number:
                return review
        return None

    def to_json(self) -> str:
        return json.dumps([r.to_dict() for r in self.rounds], ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str) -> "ReviewReport":
        """Load a report previously written by ``to_json``."""
        return parse_report(text)


def strip_code_fences(text: str) -> str:
    """Remove ```json / ``` markup wrapped around a model answer."""
    return _FENCE_RE.sub("", text).strip()


def _require_str(item: dict, key: str, where: str) -> str:
    value = item.get(key)
    if not isinstance(value, str):
        raise ReportValidationError(f"{where}: '{key}' must be a string, got {type(value).__name__}")
    return value


def _parse_tips(raw: Any, where: str) -> tuple[Tip, ...]:
    if not isinstance(raw, list):
        raise ReportValidationError(f"{where}: 'tips' must be a list")
    tips = []
    for i, tip in enumerate(raw, 1):
        if not isinstance(tip, dict):
            raise ReportValidationError(f"{where}: tip {i} must be an object")
        tips.append(Tip(
            title=_require_str(tip, "title", f"{where} tip {i}"),
            body=_require_str(tip, "body", f"{where} tip {i}"),
        ))
    return tuple(tips)


def _parse_round(item: Any, index: int) -> RoundReview:
    where = f"entry {index}"
    if not isinstance(item, dict):
        raise ReportValidationError(f"{where} must be an object")

    number = item.get("round")
    # bool is an int subclass; reject it explicitly
    if not isinstance(number, int) or isinstance(number, bool):
        raise ReportValidationError(f"{where}: 'round' must be an integer")
    where = f"round {number}"

    fields = {attr: _require_str(item, key, where) for key, attr in _TEXT_FIELDS.items()}
    return RoundReview(round=number, tips=_parse_tips(item.get("tips"), where), **fields)


def parse_report(text: str, expected_rounds: Optional[int] = None) -> ReviewReport:
    """Parse and validate a model answer into a ReviewReport.

    Args:
        text: Raw model text, optionally fenced in code-block markup
        expected_rounds: Number of rounds in the source match. When omitted,
            the number of entries is used.

    Raises:
        ReportValidationError: if the text is not JSON, is not an array of
            complete round entries, or the round numbers are not exactly 1..N.
    """
    raw = strip_code_fences(text)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ReportValidationError(f"Response is not valid JSON: {e}\nResponse: {raw[:500]}") from e

    if not isinstance(data, list):
        raise ReportValidationError(f"Response must be a JSON array, got {type(data).__name__}")

    rounds = [_parse_round(item, i) for i, item in enumerate(data, 1)]

    n = len(rounds) if expected_rounds is None else expected_rounds
    numbers = [r.round for r in rounds]
    if len(numbers) != len(set(numbers)):
        raise ReportValidationError(f"Duplicate round numbers in report: {sorted(numbers)}")
    if set(numbers) != set(range(1, n + 1)):
        raise ReportValidationError(
            f"Report rounds {sorted(numbers)} do not match expected rounds 1..{n}"
        )

    return ReviewReport(rounds=tuple(sorted(rounds, key=lambda r: r.round)))


def format_round_review(review: RoundReview) -> str:
    """Format one round's review as a human-readable block."""
    lines = [
        f"## Round {review.round} Review",
        "",
        f"**Actual Location:** {review.actual_region}",
        f"**Your Guess:** {review.my_guess_region}",
        f"**Opponent Guess:** {review.opponent_guess_region}",
        "",
        review.general_review,
        "",
        review.location_review,
    ]
    if review.tips:
        lines.extend(["", "### Tips"])
        for tip in review.tips:
            lines.append(f"- **{tip.title}:** {tip.body}")
    return "\n".join(lines)


def format_report(report: ReviewReport) -> str:
    return "\n\n---\n\n".join(format_round_review(r) for r in report.rounds)
