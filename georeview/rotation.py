"""Sequential fallback across an ordered pool of API credentials."""

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from georeview.errors import GenerationExhaustedError
from georeview.store import mask_credential

logger = logging.getLogger(__name__)


class Outcome(enum.Enum):
    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    ERROR = "error"


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of trying one credential."""
    kind: Outcome
    value: Any = None
    error: Optional[Exception] = None

    @classmethod
    def success(cls, value: Any) -> "AttemptOutcome":
        return cls(Outcome.SUCCESS, value=value)

    @classmethod
    def rate_limited(cls, error: Optional[Exception] = None) -> "AttemptOutcome":
        return cls(Outcome.RATE_LIMITED, error=error)

    @classmethod
    def failed(cls, error: Exception) -> "AttemptOutcome":
        return cls(Outcome.ERROR, error=error)


class CredentialRotator:
    """Tries credentials one at a time, in order, until an attempt succeeds.

    Credentials are never retried and never tried concurrently; a rate-limited
    or failing credential simply hands over to the next one.
    """

    def __init__(self, credentials: Sequence[str]):
        self.credentials = list(credentials)

    def run(self, attempt: Callable[[str], AttemptOutcome]) -> Any:
        """Return the value of the first successful attempt.

        Raises:
            GenerationExhaustedError: every credential was rate limited or failed
        """
        outcomes: list[tuple[str, AttemptOutcome]] = []

        for i, credential in enumerate(self.credentials, 1):
            masked = mask_credential(credential)
            outcome = attempt(credential)
            outcomes.append((masked, outcome))

            if outcome.kind is Outcome.SUCCESS:
                logger.info(f"Credential {i}/{len(self.credentials)} ({masked}) succeeded")
                return outcome.value
            if outcome.kind is Outcome.RATE_LIMITED:
                logger.info(f"Credential {i}/{len(self.credentials)} ({masked}) is rate limited, trying next")
            else:
                logger.error(f"Credential {i}/{len(self.credentials)} ({masked}) failed: {outcome.error}")

        raise GenerationExhaustedError(
            f"Generation failed: all {len(self.credentials)} credentials exhausted",
            outcomes,
        )
