"""Per-match cache of completed review reports."""

import logging
from typing import NewType, Optional

from georeview.config import CACHE_PREFIX
from georeview.errors import ReportValidationError
from georeview.report import ReviewReport

logger = logging.getLogger(__name__)

MatchId = NewType("MatchId", str)


def cache_key(match_id: MatchId) -> str:
    """Storage key for a match, e.g. "georeview_<matchId>"."""
    if not match_id or not str(match_id).strip():
        raise ValueError("match_id must be a non-empty string")
    return f"{CACHE_PREFIX}_{match_id}"


class ReviewCache:
    """Write-once report cache on top of a key/value store.

    Entries never expire; they are only removed by ``clear``.
    """

    def __init__(self, store):
        self.store = store

    def get_raw(self, match_id: MatchId) -> Optional[str]:
        return self.store.get(cache_key(match_id))

    def get(self, match_id: MatchId) -> Optional[ReviewReport]:
        """Return the cached report, or None.

        An entry that no longer parses is discarded and treated as a miss.
        """
        raw = self.get_raw(match_id)
        if raw is None:
            return None
        try:
            return ReviewReport.from_json(raw)
        except ReportValidationError as e:
            logger.warning(f"Discarding unreadable cached review for match {match_id}: {e}")
            self.store.delete(cache_key(match_id))
            return None

    def put(self, match_id: MatchId, report: ReviewReport) -> bool:
        """Store a report unless one is already cached. Returns True if written."""
        key = cache_key(match_id)
        if self.store.get(key) is not None:
            logger.debug(f"Cache entry {key} already exists; keeping it")
            return False
        self.store.set(key, report.to_json())
        logger.info(f"Cached review for match {match_id}")
        return True

    def clear(self, match_id: Optional[MatchId] = None) -> int:
        """Remove one match's entry, or every cached review. Returns the count removed."""
        if match_id is not None:
            key = cache_key(match_id)
            if self.store.get(key) is None:
                return 0
            self.store.delete(key)
            return 1

        prefix = f"{CACHE_PREFIX}_"
        keys = [k for k in self.store.keys() if k.startswith(prefix)]
        for key in keys:
            self.store.delete(key)
        return len(keys)
