"""Assemble the multimodal prompt for a match review.

The payload is one instruction block followed, for each round in order, by a
"Visuals for Round N" marker and that round's images. The model relies on
this ordering to tie images to rounds.
"""

import json
from dataclasses import dataclass, field
from typing import Sequence, Union

from google.genai import types

from georeview.match import MatchRecord
from georeview.streetview import FetchedView, RoundViews
from georeview.summary import RoundSummary

NARROW_FIELD_IMAGES = "2 images (slightly left, slightly right, they overlap in the centre)"
STANDARD_IMAGES = "6 images (front, right, back, left, up, bottom)"

REVIEW_PROMPT_TEMPLATE = """You are an elite GeoGuessr Coach and World Cup analyst.
Analyze these {round_count} rounds from a {game_mode} match on the map "{map_name}".

CRITICAL CONSTRAINTS:
1. Tone: Professional, encouraging, and insightful. Avoid being rude. Always refer to the opponent in third person and to the player in second person; you are not part of the game.
2. Technicality: Focus on "GeoGuessr Meta" (copyright, camera generations, car colors, bollards, utility poles) and "Env-Guessing" (soil, flora, road markings).
3. Tips: Provide 5 distinct tips for every round, based on what you can see in the images and on general knowledge. If my guess is in the wrong country, focus on how to get that country right. If the country is right, focus more on region-guessing.
4. Regions: Use descriptive geographic regions (e.g., "The Pampas", "The Po Valley", "Appalachian Foothills", "Mojave Desert") rather than just state/province names.
5. Output Format: Return EXACTLY ONE raw JSON array. Do not repeat the output. Do not include any text before or after the array.
6. Termination: End the response immediately after the final ']' bracket of the array.
7. For each round, you are given {image_description}. Use them to provide more accurate tips based on what I actually saw during the round.
8. When describing what you can see in the images, avoid numbering. Use instead the names given in point 7: all the images follow the order stated there. Do not mention that you have multiple images. Treat them as one big image, saying things like "on the left we can see", "looking at the bottom" and so on.

STRUCTURE:
[
  {{
    "round": number,
    "actualRegion": "Physiographic region name",
    "myGuessRegion": "Region name (distance in km)",
    "opponentGuessRegion": "Region name (distance in km)",
    "generalReview": "A balanced summary of the round. Acknowledge what led both players to their guesses, and explain the key differences between the player's guess and the actual location.",
    "locationReview": "A technical breakdown of the specific landscape. Mention things like copyright, coverage generation, meta cars, specific vegetation (e.g., Larch trees vs. Pines), or road line styles that confirm the exact location.",
    "tips": [
      {{
        "title": "Specific Meta/Clue",
        "body": "A specific, actionable piece of advice based on the clues present in this round."
      }}
    ]
  }}
]

DATA: {data}"""


@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class ImagePart:
    view: FetchedView


Part = Union[TextPart, ImagePart]


@dataclass
class PromptPayload:
    """Ordered text and image parts of a single model request."""
    parts: list[Part] = field(default_factory=list)

    def add_text(self, text: str) -> None:
        self.parts.append(TextPart(text))

    def add_image(self, view: FetchedView) -> None:
        self.parts.append(ImagePart(view))

    @property
    def image_count(self) -> int:
        return sum(1 for p in self.parts if isinstance(p, ImagePart))

    def to_parts(self) -> list:
        """Render as google-genai SDK parts."""
        rendered = []
        for part in self.parts:
            if isinstance(part, TextPart):
                rendered.append(types.Part.from_text(text=part.text))
            else:
                rendered.append(
                    types.Part.from_bytes(data=part.view.data, mime_type=part.view.mime_type)
                )
        return rendered

    def to_request_body(self) -> dict:
        """Render as a generateContent REST body with base64 inline images."""
        rendered = []
        for part in self.parts:
            if isinstance(part, TextPart):
                rendered.append({"text": part.text})
            else:
                rendered.append({
                    "inline_data": {
                        "mime_type": part.view.mime_type,
                        "data": part.view.b64,
                    }
                })
        return {"contents": [{"parts": rendered}]}


def round_marker(round_number: int) -> str:
    return f"--- Visuals for Round {round_number} ---"


def instruction_text(match: MatchRecord, summaries: Sequence[RoundSummary]) -> str:
    image_description = NARROW_FIELD_IMAGES if match.is_narrow_field else STANDARD_IMAGES
    return REVIEW_PROMPT_TEMPLATE.format(
        round_count=len(summaries),
        game_mode=match.game_mode,
        map_name=match.map_name,
        image_description=image_description,
        data=json.dumps([s.to_dict() for s in summaries]),
    )


def build_prompt(
    match: MatchRecord,
    summaries: Sequence[RoundSummary],
    round_views: Sequence[RoundViews],
) -> PromptPayload:
    """Build the instruction block plus per-round marker and images.

    Args:
        match: The match under review
        summaries: Round summaries, one per round
        round_views: Fetched views per round; rounds without an entry get a
            marker and no images
    """
    views_by_round = {rv.round: rv for rv in round_views}

    payload = PromptPayload()
    payload.add_text(instruction_text(match, summaries))

    for summary in sorted(summaries, key=lambda s: s.round):
        payload.add_text(round_marker(summary.round))
        views = views_by_round.get(summary.round)
        if views is None:
            continue
        for view in views.views:
            payload.add_image(view)

    return payload
