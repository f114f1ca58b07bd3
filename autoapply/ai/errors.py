"""
Error types for text-generation providers and the generation pipeline.

Provider adapters translate transport failures into these so the waterfall
can decide between "skip", "back off" and "give up" without looking at raw
HTTP objects.
"""

from typing import Any, Dict, Optional


class ProviderError(Exception):
    """Base exception for a failed provider attempt"""

    error_type = "ProviderError"

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.provider = provider
        self.model = model
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.provider:
            return f"{self.provider}/{self.model or '?'}: {self.message}"
        return self.message


class ProviderNetworkError(ProviderError):
    """Connection, DNS or transport failure"""
    error_type = "NetworkError"


class ProviderTimeoutError(ProviderError):
    """The attempt exceeded its request timeout"""
    error_type = "Timeout"


class ProviderRateLimitedError(ProviderError):
    """HTTP 429 or an equivalent rate-limit signal"""
    error_type = "RateLimited"

    def __init__(self, message: str, retry_after: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class ProviderHTTPError(ProviderError):
    """Non-success HTTP status other than 429"""
    error_type = "HTTPError"

    def __init__(self, message: str, status: int, **kwargs):
        super().__init__(message, **kwargs)
        self.status = status


class InvalidContentError(ProviderError):
    """Empty answer, answer outside the allowed options, or failed validation"""
    error_type = "InvalidContent"


class ProviderNotConfiguredError(ProviderError):
    """Provider cannot be used, e.g. its API key is missing"""
    error_type = "NotConfigured"


class GenerationCancelledError(Exception):
    """The caller signalled cancellation between provider attempts"""


class GenerationExhaustedError(Exception):
    """
    Every provider chain failed for an operation that has no safe default
    (match analysis, essays, tailoring). Surfaces as an operation failure.
    """

    error_type = "GenerationExhausted"
    status_code = 500

    def __init__(self, operation: str, last_error: Optional[BaseException] = None):
        self.operation = operation
        self.last_error = last_error
        detail = f" Last error: {last_error}" if last_error else ""
        super().__init__(f"AI {operation} failed on all providers.{detail}")
