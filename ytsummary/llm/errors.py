"""
Error taxonomy for the generation client.

Detection (``classify_error``) is kept apart from the control-flow decision
made by the cascade: the classifier only maps a caught failure to an
``ErrorKind``; ``ErrorKind.retryable`` says whether the cascade may move on
to the next model.
"""

from enum import Enum
from typing import Any, Optional, Sequence

import requests


class ErrorKind(str, Enum):
    OVERLOADED = "overloaded"
    RATE_LIMITED = "rate limited"
    AUTHENTICATION = "authentication failed"
    INVALID_REQUEST = "invalid request"
    NETWORK = "network error"
    TIMEOUT = "timed out"
    EMPTY_RESPONSE = "empty response"
    UNKNOWN = "unknown error"
    CONFIGURATION = "configuration error"
    SCHEMA_CONVERSION = "schema conversion error"
    INVALID_RESPONSE = "invalid response"
    EXHAUSTED = "cascade exhausted"

    @property
    def retryable(self) -> bool:
        """True when a different model may still succeed."""
        return self in _RETRYABLE_KINDS

    def __str__(self) -> str:
        return self.value


_RETRYABLE_KINDS = frozenset({ErrorKind.OVERLOADED, ErrorKind.RATE_LIMITED, ErrorKind.TIMEOUT})


class GenerationError(Exception):
    """Base class for every failure surfaced by the generation client."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, model: Optional[str] = None, attempts: Sequence[Any] = ()):
        super().__init__(message)
        self.message = message
        self.model = model
        self.attempts = list(attempts)


class ConfigurationError(GenerationError):
    kind = ErrorKind.CONFIGURATION


class SchemaConversionError(GenerationError):
    kind = ErrorKind.SCHEMA_CONVERSION


class NetworkError(GenerationError):
    kind = ErrorKind.NETWORK


class AuthenticationError(GenerationError):
    kind = ErrorKind.AUTHENTICATION


class InvalidRequestError(GenerationError):
    kind = ErrorKind.INVALID_REQUEST


class RateLimitedError(GenerationError):
    kind = ErrorKind.RATE_LIMITED


class OverloadedError(GenerationError):
    kind = ErrorKind.OVERLOADED


class AttemptTimeoutError(GenerationError):
    kind = ErrorKind.TIMEOUT


class UnknownProviderError(GenerationError):
    kind = ErrorKind.UNKNOWN


class ResponseValidationError(GenerationError):
    kind = ErrorKind.INVALID_RESPONSE


class ExhaustedCascadeError(GenerationError):
    """Every model in the cascade was tried without a usable answer."""

    kind = ErrorKind.EXHAUSTED

    def __init__(
        self,
        attempted_models: Sequence[str],
        last_kind: ErrorKind,
        last_error: Optional[str] = None,
        attempts: Sequence[Any] = (),
    ):
        self.attempted_models = tuple(attempted_models)
        self.last_kind = last_kind
        self.last_error = last_error
        message = (
            f"All Gemini models failed after trying: {', '.join(self.attempted_models)}. "
            f"Last error type: {last_kind}."
        )
        if last_error:
            message += f" {last_error}"
        super().__init__(
            message,
            model=self.attempted_models[-1] if self.attempted_models else None,
            attempts=attempts,
        )


class ProviderHTTPError(Exception):
    """HTTP-level failure reported by a provider (status + provider message)."""

    def __init__(self, status: int, message: str):
        super().__init__(f"HTTP {status}: {message}")
        self.status = status
        self.message = message


_ERROR_CLASSES = {
    ErrorKind.OVERLOADED: OverloadedError,
    ErrorKind.RATE_LIMITED: RateLimitedError,
    ErrorKind.AUTHENTICATION: AuthenticationError,
    ErrorKind.INVALID_REQUEST: InvalidRequestError,
    ErrorKind.NETWORK: NetworkError,
    ErrorKind.TIMEOUT: AttemptTimeoutError,
    ErrorKind.UNKNOWN: UnknownProviderError,
    ErrorKind.CONFIGURATION: ConfigurationError,
    ErrorKind.SCHEMA_CONVERSION: SchemaConversionError,
    ErrorKind.INVALID_RESPONSE: ResponseValidationError,
}

# Message fragments, matched against the lower-cased exception text
_NETWORK_MARKERS = (
    "fetch failed",
    "enotfound",
    "econnreset",
    "connection reset",
    "connection refused",
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
    "failed to establish a new connection",
)
_AUTH_MARKERS = ("api key", "unauthorized", "permission denied", "unauthenticated")
_OVERLOAD_MARKERS = ("503", "overload", "unavailable")
_RATE_LIMIT_MARKERS = ("429", "rate limit", "resource_exhausted", "quota")


def _status_of(exc: BaseException) -> Optional[int]:
    for attr in ("status", "status_code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(exc, "response", None)
    status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def classify_error(exc: BaseException) -> ErrorKind:
    """Map a caught failure to an ErrorKind.

    Order matters: connectivity first, then credentials, then the
    retryable overload/rate-limit signals, then malformed requests.
    """
    if isinstance(exc, GenerationError):
        return exc.kind
    if isinstance(exc, requests.exceptions.Timeout):
        return ErrorKind.TIMEOUT
    if isinstance(exc, requests.exceptions.ConnectionError):
        return ErrorKind.NETWORK
    if isinstance(exc, ConnectionError):
        return ErrorKind.NETWORK

    status = _status_of(exc)
    message = str(exc).lower()

    if any(marker in message for marker in _NETWORK_MARKERS):
        return ErrorKind.NETWORK
    if status in (401, 403) or "401" in message or any(m in message for m in _AUTH_MARKERS):
        return ErrorKind.AUTHENTICATION
    if status == 503 or any(m in message for m in _OVERLOAD_MARKERS):
        return ErrorKind.OVERLOADED
    if status == 429 or any(m in message for m in _RATE_LIMIT_MARKERS):
        return ErrorKind.RATE_LIMITED
    if status == 400 or "400" in message:
        return ErrorKind.INVALID_REQUEST
    return ErrorKind.UNKNOWN


def error_for_kind(
    kind: ErrorKind,
    message: str,
    model: Optional[str] = None,
    attempts: Sequence[Any] = (),
) -> GenerationError:
    """Build the typed exception that reports a failure of the given kind."""
    error_class = _ERROR_CLASSES.get(kind, UnknownProviderError)
    return error_class(message, model=model, attempts=attempts)
