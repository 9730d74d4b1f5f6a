"""End-to-end review generation with caching and a single-flight guard."""

import enum
import logging
import threading
from dataclasses import dataclass
from typing import Optional

from georeview.cache import MatchId, ReviewCache
from georeview.client import ReviewClient
from georeview.config import Settings
from georeview.errors import ConfigurationMissingError
from georeview.gemini import GeminiTransport
from georeview.match import MatchRecord
from georeview.prompt import PromptPayload, build_prompt
from georeview.report import ReviewReport
from georeview.store import JsonFileStore, load_credentials
from georeview.streetview import ImageFetcher, RoundViews
from georeview.summary import RoundSummary, summarize_rounds

logger = logging.getLogger(__name__)


class RequestStatus(enum.Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class RequestState:
    status: RequestStatus = RequestStatus.IDLE
    match_id: Optional[str] = None
    report: Optional[ReviewReport] = None
    reason: Optional[str] = None


class ReviewService:
    """Coordinates summarizing, image fetching, generation and caching.

    At most one generation runs at a time per service. A caller arriving
    while one is in flight gets ``None`` back instead of starting another.
    """

    def __init__(
        self,
        store,
        *,
        client: Optional[ReviewClient] = None,
        fetcher: Optional[ImageFetcher] = None,
    ):
        self.store = store
        self.cache = ReviewCache(store)
        self.client = client or ReviewClient()
        self.fetcher = fetcher or ImageFetcher()
        self._lock = threading.Lock()
        self._state = RequestState()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReviewService":
        transport = GeminiTransport(
            settings.model,
            timeout_s=settings.model_timeout_s,
            temperature=settings.temperature,
        )
        return cls(
            JsonFileStore(settings.store_path),
            client=ReviewClient(transport),
            fetcher=ImageFetcher(timeout_s=settings.image_timeout_s, max_workers=settings.max_workers),
        )

    @property
    def state(self) -> RequestState:
        with self._lock:
            return self._state

    def _set_state(self, state: RequestState) -> None:
        with self._lock:
            self._state = state

    def _try_begin(self, match_id: str) -> Optional[RequestState]:
        """Claim the in-flight slot. Returns the state it replaced, or None if busy."""
        with self._lock:
            if self._state.status is RequestStatus.IN_FLIGHT:
                return None
            previous = self._state
            self._state = RequestState(RequestStatus.IN_FLIGHT, match_id=match_id)
            return previous

    def fetch_views(self, match: MatchRecord, summaries: list[RoundSummary]) -> list[RoundViews]:
        """Fetch images round by round; views within a round load in parallel."""
        return [
            self.fetcher.fetch_round(s.round, s.pano_id, match.game_mode, s.heading, s.pitch)
            for s in summaries
        ]

    def prepare(self, match: MatchRecord, user_id: str) -> tuple[list[RoundSummary], PromptPayload]:
        summaries = summarize_rounds(match, user_id)
        round_views = self.fetch_views(match, summaries)
        missing = sum(len(rv.missing) for rv in round_views)
        if missing:
            logger.warning(f"{missing} view(s) could not be fetched for match {match.match_id}")
        return summaries, build_prompt(match, summaries, round_views)

    def request_review(self, match: MatchRecord, user_id: str) -> Optional[ReviewReport]:
        """Return the review for a match, generating it on first request.

        Returns:
            The report, or None if another generation is already in flight.

        Raises:
            ConfigurationMissingError: no API keys are stored
            DataIntegrityError: the match data cannot be summarized
            GenerationExhaustedError: every credential failed
        """
        credentials = load_credentials(self.store)
        if not credentials:
            raise ConfigurationMissingError("No API keys stored; run the setup first")

        match_id = MatchId(match.match_id)
        cached = self.cache.get(match_id)
        if cached is not None:
            logger.info(f"Using cached review for match {match_id}")
            return cached

        previous = self._try_begin(match_id)
        if previous is None:
            logger.info("A review is already being generated; not starting another")
            return None

        try:
            # Another caller may have finished this match since the lookup above
            cached = self.cache.get(match_id)
            if cached is not None:
                self._set_state(previous)
                logger.info(f"Using cached review for match {match_id}")
                return cached

            summaries, payload = self.prepare(match, user_id)
            report = self.client.generate(credentials, payload, len(summaries))
            self.cache.put(match_id, report)
        except Exception as e:
            self._set_state(RequestState(RequestStatus.FAILED, match_id=match_id, reason=str(e)))
            raise

        self._set_state(RequestState(RequestStatus.COMPLETED, match_id=match_id, report=report))
        return report
