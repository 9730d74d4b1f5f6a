"""GeoReview - Gemini post-match reviews for GeoGuessr duels."""

__version__ = "0.1.0"

from georeview.cache import MatchId, ReviewCache, cache_key
from georeview.client import ReviewClient
from georeview.match import MatchRecord, RoundRecord, hex_to_ascii, load_match_page
from georeview.pipeline import RequestState, RequestStatus, ReviewService
from georeview.report import ReviewReport, RoundReview, Tip, parse_report
from georeview.rotation import AttemptOutcome, CredentialRotator
from georeview.summary import NO_GUESS, RoundSummary, summarize_rounds

__all__ = [
    "__version__",
    # cache.py
    "MatchId",
    "ReviewCache",
    "cache_key",
    # client.py
    "ReviewClient",
    # match.py
    "MatchRecord",
    "RoundRecord",
    "hex_to_ascii",
    "load_match_page",
    # pipeline.py
    "RequestState",
    "RequestStatus",
    "ReviewService",
    # report.py
    "ReviewReport",
    "RoundReview",
    "Tip",
    "parse_report",
    # rotation.py
    "AttemptOutcome",
    "CredentialRotator",
    # summary.py
    "NO_GUESS",
    "RoundSummary",
    "summarize_rounds",
]
