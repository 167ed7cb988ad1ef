"""Service error hierarchy for the generation pipeline and the live-data gateway.

This module defines the exception hierarchy for service-level errors:
- ProviderFailure: one provider call failed (rate limit, upstream error, empty text)
- AllProvidersExhausted / MalformedOutput: job-level generation failures
- InsufficientCredits / JobNotFound / InvalidState: job store and runner errors
- GatewayError: public live-data endpoint errors, each mapped to an HTTP status
"""

from typing import Optional


class ServiceError(Exception):
    """Base exception for all service errors."""

    pass


# Provider-level errors (recovered by fallback orchestration)
class ProviderFailure(ServiceError):
    """Base exception for a single failed provider call."""

    retryable: bool = False

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider


class RateLimited(ProviderFailure):
    """Upstream signalled throttling (429)."""

    retryable = True


class ProviderError(ProviderFailure):
    """Any other upstream failure (5xx, malformed request, timeout, configuration).

    Only 503 "overloaded" is retried within a single provider call.
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, provider)
        self.status_code = status_code
        self.retryable = status_code == 503


class EmptyResponse(ProviderFailure):
    """Call succeeded but produced no text."""

    pass


# Job-level generation errors
class AllProvidersExhausted(ServiceError):
    """Every provider in the fallback chain failed."""

    def __init__(self, attempts: list[tuple[str, str]]):
        self.attempts = attempts
        last_error = attempts[-1][1] if attempts else "No providers configured"
        super().__init__(f"All models failed. Last error: {last_error}")


class MalformedOutput(ServiceError):
    """Provider text could not be parsed into a non-empty array of objects."""

    pass


# Job store / runner errors
class InsufficientCredits(ServiceError):
    """User balance is below the minimum needed to submit a generation."""

    pass


class JobNotFound(ServiceError):
    """Job does not exist."""

    pass


class InvalidState(ServiceError):
    """Operation is not allowed in the job's current status."""

    pass


class UserNotFound(ServiceError):
    """User does not exist."""

    pass


class ResourceLimitReached(ServiceError):
    """Free-tier user already holds the maximum number of resources."""

    pass


# Live-data gateway errors
class GatewayError(ServiceError):
    """Base exception for public live-data endpoint errors."""

    status_code: int = 500


class ResourceNotFound(GatewayError):
    """Resource does not exist (404)."""

    status_code = 404


class ResourceNotLive(GatewayError):
    """Resource exists but is not published (400)."""

    status_code = 400


class OwnerMissing(GatewayError):
    """Resource references a user that no longer exists (500)."""

    status_code = 500


class QuotaExceeded(GatewayError):
    """Monthly API request quota reached (429)."""

    status_code = 429

    def __init__(self, message: str, limit: int, used: int):
        super().__init__(message)
        self.limit = limit
        self.used = used
