"""Street View thumbnails for a round, fetched concurrently.

Each round is shown to the model from a fixed set of view angles. Narrow
field (NMPZ) duels only ever show the player a straight-ahead window, so
two overlapping views are enough; standard duels get the four compass
directions plus sky and ground.
"""

import base64
import io
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional

import requests
from PIL import Image, UnidentifiedImageError

from georeview.config import NARROW_FIELD_MODE
from georeview.errors import ImageFetchError

logger = logging.getLogger(__name__)

THUMBNAIL_URL = "https://streetviewpixels-pa.googleapis.com/v1/thumbnail"
IMAGE_WIDTH = 1600
NARROW_FIELD_HEIGHT = 1300
STANDARD_HEIGHT = 1600
NARROW_FIELD_OFFSET = 20
MIME_TYPE = "image/jpeg"


@dataclass(frozen=True)
class ViewSpec:
    name: str
    yaw: float
    pitch: float


def view_specs(game_mode: str, heading: float = 0.0, pitch: float = 0.0) -> list[ViewSpec]:
    """Return the ordered view angles required for a game mode."""
    if game_mode == NARROW_FIELD_MODE:
        return [
            ViewSpec("LEFT", heading - NARROW_FIELD_OFFSET, pitch),
            ViewSpec("RIGHT", heading + NARROW_FIELD_OFFSET, pitch),
        ]
    return [
        ViewSpec("FRONT", heading, 0),
        ViewSpec("RIGHT", (heading + 90) % 360, 0),
        ViewSpec("BACK", (heading + 180) % 360, 0),
        ViewSpec("LEFT", (heading + 270) % 360, 0),
        ViewSpec("SKY", 0, -90),
        ViewSpec("GROUND", 0, 90),
    ]


def image_height(game_mode: str) -> int:
    return NARROW_FIELD_HEIGHT if game_mode == NARROW_FIELD_MODE else STANDARD_HEIGHT


@dataclass(frozen=True)
class FetchedView:
    spec: ViewSpec
    data: bytes
    mime_type: str = MIME_TYPE

    @property
    def b64(self) -> str:
        return base64.standard_b64encode(self.data).decode("ascii")


@dataclass
class RoundViews:
    """Views retrieved for one round; failed views are listed in ``missing``."""
    round: int
    views: list[FetchedView] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.missing


def _to_jpeg(data: bytes) -> bytes:
    """Decode image bytes, re-encoding to JPEG if needed."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            if img.format == "JPEG":
                return data
            out = io.BytesIO()
            img.convert("RGB").save(out, format="JPEG", quality=90)
            return out.getvalue()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ImageFetchError(f"Response is not a decodable image: {e}") from e


class ImageFetcher:
    """Fetches the view set for a panorama from the Street View thumbnail service."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        timeout_s: float = 30.0,
        max_workers: int = 6,
    ):
        self._session = session or requests.Session()
        self.timeout_s = timeout_s
        self.max_workers = max_workers

    def _params(self, pano_id: str, spec: ViewSpec, height: int) -> dict:
        return {
            "cb_client": "maps_sv.tactile",
            "w": IMAGE_WIDTH,
            "h": height,
            "panoid": pano_id,
            "yaw": spec.yaw,
            "pitch": spec.pitch,
        }

    def fetch_view(self, pano_id: str, spec: ViewSpec, height: int) -> FetchedView:
        """Fetch a single view. Raises ImageFetchError on any failure."""
        try:
            response = self._session.get(
                THUMBNAIL_URL,
                params=self._params(pano_id, spec, height),
                timeout=self.timeout_s,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise ImageFetchError(f"{spec.name} view of {pano_id} failed: {e}") from e

        return FetchedView(spec=spec, data=_to_jpeg(response.content))

    def fetch_round(
        self,
        round_number: int,
        pano_id: str,
        game_mode: str,
        heading: float = 0.0,
        pitch: float = 0.0,
    ) -> RoundViews:
        """Fetch every view for a round in parallel, dropping failures."""
        specs = view_specs(game_mode, heading, pitch)
        height = image_height(game_mode)
        result = RoundViews(round=round_number)

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(specs))) as executor:
            futures = [executor.submit(self.fetch_view, pano_id, spec, height) for spec in specs]

            # Collect in submission order so view order is preserved
            for spec, future in zip(specs, futures):
                try:
                    result.views.append(future.result())
                except ImageFetchError as e:
                    logger.warning(f"Round {round_number}: dropping view: {e}")
                    result.missing.append(spec.name)

        logger.debug(
            f"Round {round_number}: fetched {len(result.views)}/{len(specs)} views"
        )
        return result
