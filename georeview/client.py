"""Review client: dispatch a prompt across credentials and parse the answer."""

import logging
from typing import Sequence

from georeview.errors import RateLimitedError, ReportValidationError, TransportError
from georeview.gemini import GeminiTransport
from georeview.prompt import PromptPayload
from georeview.report import ReviewReport, parse_report
from georeview.rotation import AttemptOutcome, CredentialRotator

logger = logging.getLogger(__name__)


class ReviewClient:
    """Turns a PromptPayload into a validated ReviewReport.

    ``transport`` is any object with ``send(credential, payload) -> str`` that
    raises RateLimitedError or TransportError; anything else it raises
    counts as a failed attempt. GeminiTransport by default.
    """

    def __init__(self, transport=None):
        self.transport = transport or GeminiTransport()

    def attempt(self, credential: str, payload: PromptPayload, round_count: int) -> AttemptOutcome:
        """Try a single credential once."""
        try:
            text = self.transport.send(credential, payload)
        except RateLimitedError as e:
            return AttemptOutcome.rate_limited(e)
        except TransportError as e:
            return AttemptOutcome.failed(e)
        except Exception as e:
            logger.exception(f"Unexpected error from transport: {e}")
            return AttemptOutcome.failed(e)

        try:
            report = parse_report(text, expected_rounds=round_count)
        except ReportValidationError as e:
            return AttemptOutcome.failed(e)
        return AttemptOutcome.success(report)

    def generate(
        self,
        credentials: Sequence[str],
        payload: PromptPayload,
        round_count: int,
    ) -> ReviewReport:
        """Generate a report, rotating through credentials in order.

        Raises:
            GenerationExhaustedError: no credential produced a valid report
        """
        logger.info(
            f"Requesting review of {round_count} rounds "
            f"({payload.image_count} images, {len(credentials)} credentials)"
        )
        rotator = CredentialRotator(credentials)
        return rotator.run(lambda credential: self.attempt(credential, payload, round_count))
