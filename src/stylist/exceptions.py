"""
Exception hierarchy for the stylist components.

Components raise; the orchestrator and service facade decide where a
failure degrades to a fallback and where it reaches the caller.
"""


class StylistError(Exception):
    """Base class for all stylist errors."""


class AIServiceError(StylistError):
    """The generative AI provider failed or is not configured."""


class AIServiceBusyError(AIServiceError):
    """The provider kept answering 'service busy' after all retries."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class RateLimitExceededError(AIServiceError):
    """The client-side AI call budget for the current window is spent."""

    def __init__(self, retry_after_seconds: float):
        super().__init__(
            f"AI rate limit exceeded, retry in {retry_after_seconds:.1f}s"
        )
        self.retry_after_seconds = retry_after_seconds


class AdviceUnavailableError(StylistError):
    """The advice dataset could not be fetched (transient, not 'no match')."""


class InvalidTwinningRequestError(StylistError):
    """A twinning request is missing photos or names."""
