"""Error types raised by the review pipeline."""


class GeoReviewError(Exception):
    """Base class for georeview errors."""
    pass


class ConfigurationMissingError(GeoReviewError):
    """No API credentials are stored; the setup flow must run first."""
    pass


class CredentialFormatError(GeoReviewError):
    """Credentials supplied to the setup flow are malformed."""
    pass


class DataIntegrityError(GeoReviewError):
    """Match data lacks the structure the summarizer needs."""
    pass


class ImageFetchError(GeoReviewError):
    """A single Street View image could not be retrieved."""
    pass


class RateLimitedError(GeoReviewError):
    """The model endpoint rejected a credential with a rate-limit status."""
    pass


class TransportError(GeoReviewError):
    """The model request failed or returned an unusable envelope."""
    pass


class ReportValidationError(GeoReviewError):
    """The model answered, but not with a valid review report."""
    pass


class GenerationExhaustedError(GeoReviewError):
    """Every credential was tried and none produced a valid report."""

    def __init__(self, message: str, outcomes=()):
        super().__init__(message)
        self.outcomes = list(outcomes)
