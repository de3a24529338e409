"""错误分类模块：将 HTTP 状态码和响应体映射到封闭的错误类别集合。

Error classification for openaikit.

Every failure the execution engine can surface maps to exactly one
``ErrorKind``. Retry and presentation metadata live in fixed tables keyed
by kind, so callers can branch on the classification without touching
transport internals.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from openaikit.errors.base import OpenAIKitError
    from openaikit.types.envelope import APIErrorDetail


class ErrorKind(str, Enum):
    """Closed set of error classifications."""

    INVALID_REQUEST_TARGET = "invalid_request_target"
    """The request URL could not be built from the base URL and path."""

    INVALID_RESPONSE_SHAPE = "invalid_response_shape"
    """The server answered with something that is not a usable response."""

    AUTHENTICATION_FAILED = "authentication_failed"
    """HTTP 401: missing, invalid or revoked credential."""

    RATE_LIMITED = "rate_limited"
    """HTTP 429: request or token limits exceeded."""

    STRUCTURED_API_ERROR = "structured_api_error"
    """The service reported a failure using its error envelope."""

    DECODE_FAILED = "decode_failed"
    """The body could not be decoded as the declared type."""

    ENCODE_FAILED = "encode_failed"
    """The request body could not be serialized."""

    CLIENT_ERROR = "client_error"
    """Other 4xx status without an error envelope."""

    SERVER_ERROR = "server_error"
    """5xx status."""

    UNKNOWN_STATUS = "unknown_status"
    """Any status outside 2xx/4xx/5xx."""

    STREAMING_UNSUPPORTED = "streaming_unsupported"
    """A streaming call was made with a non-streaming descriptor."""

    INVALID_BINARY_PAYLOAD = "invalid_binary_payload"
    """Upload file data is empty or unusable."""

    TRANSPORT = "transport"
    """No response obtained: connection failure, timeout, protocol error."""


@dataclass(frozen=True)
class ErrorTraits:
    """Static metadata attached to an error kind.

    Attributes:
        title: User-facing category label
        retryable: Whether a retry may succeed
        retry_delay: Suggested backoff in seconds (retryable kinds only)
        requires_user_action: Whether the user must fix something first
        error_code: Stable machine-readable code, if any
    """

    title: str
    retryable: bool = False
    retry_delay: float | None = None
    requires_user_action: bool = False
    error_code: str | None = None


ERROR_TRAITS: dict[ErrorKind, ErrorTraits] = {
    ErrorKind.INVALID_REQUEST_TARGET: ErrorTraits(
        title="Connection Error", error_code="invalid_url"
    ),
    ErrorKind.INVALID_RESPONSE_SHAPE: ErrorTraits(
        title="Connection Error", error_code="invalid_response"
    ),
    ErrorKind.AUTHENTICATION_FAILED: ErrorTraits(
        title="Authentication Error",
        requires_user_action=True,
        error_code="authentication_failed",
    ),
    ErrorKind.RATE_LIMITED: ErrorTraits(
        title="Rate Limit Exceeded",
        retryable=True,
        retry_delay=60.0,
        error_code="rate_limit_exceeded",
    ),
    ErrorKind.STRUCTURED_API_ERROR: ErrorTraits(title="API Error"),
    ErrorKind.DECODE_FAILED: ErrorTraits(title="Data Processing Error"),
    ErrorKind.ENCODE_FAILED: ErrorTraits(title="Data Processing Error"),
    ErrorKind.CLIENT_ERROR: ErrorTraits(title="Request Error"),
    ErrorKind.SERVER_ERROR: ErrorTraits(
        title="Server Error", retryable=True, retry_delay=5.0
    ),
    ErrorKind.UNKNOWN_STATUS: ErrorTraits(title="Unknown Error"),
    ErrorKind.STREAMING_UNSUPPORTED: ErrorTraits(
        title="Feature Not Supported", error_code="streaming_not_supported"
    ),
    ErrorKind.INVALID_BINARY_PAYLOAD: ErrorTraits(
        title="Invalid File",
        requires_user_action=True,
        error_code="invalid_file_data",
    ),
    ErrorKind.TRANSPORT: ErrorTraits(title="Connection Error"),
}

# Envelope type/code value marking a retryable API error.
_RETRYABLE_API_ERROR = "server_error"

# Backoff in seconds for retryable API errors, keyed by envelope type.
_API_ERROR_DELAYS: dict[str, float] = {
    "rate_limit_error": 60.0,
}
_DEFAULT_API_ERROR_DELAY = 5.0

_API_ERROR_TITLES: dict[str, str] = {
    "invalid_request_error": "Invalid Request",
    "authentication_error": "Authentication Error",
    "rate_limit_error": "Rate Limit",
    "server_error": "Server Error",
    "engine_error": "Model Error",
}


def traits_for(kind: ErrorKind) -> ErrorTraits:
    """Get the fixed traits for an error kind."""
    return ERROR_TRAITS[kind]


def traits_for_api_error(detail: APIErrorDetail) -> ErrorTraits:
    """Derive traits for a structured API error from its envelope.

    Only ``server_error`` (as ``type`` or ``code``) makes an API error
    retryable. The backoff is then 60 seconds when ``type`` is
    ``rate_limit_error`` and 5 seconds otherwise; a ``rate_limit_error``
    envelope on its own is not retryable. The title follows the envelope
    ``type``.

    Args:
        detail: Decoded error envelope detail

    Returns:
        Traits for this particular API error
    """
    base = ERROR_TRAITS[ErrorKind.STRUCTURED_API_ERROR]
    title = _API_ERROR_TITLES.get(detail.type or "", base.title)

    delay = None
    if _RETRYABLE_API_ERROR in (detail.type, detail.code):
        delay = _API_ERROR_DELAYS.get(detail.type or "", _DEFAULT_API_ERROR_DELAY)

    return ErrorTraits(
        title=title,
        retryable=delay is not None,
        retry_delay=delay,
        requires_user_action=base.requires_user_action,
        error_code=detail.code,
    )


def classify_status(status_code: int, body: bytes | None = None) -> OpenAIKitError | None:
    """Map an HTTP status (and optional body) to an error.

    401 and 429 are classified from the status alone. Other 4xx statuses
    become a structured API error when the body holds the service's error
    envelope, otherwise a generic client error.

    Args:
        status_code: HTTP status code
        body: Raw response body, if it was read

    Returns:
        The error to raise, or None for 2xx statuses
    """
    from openaikit.codec import decode_api_error
    from openaikit.errors.base import (
        APIError,
        AuthenticationError,
        ClientError,
        RateLimitError,
        ServerError,
        UnknownStatusError,
    )

    if 200 <= status_code < 300:
        return None
    if status_code == 401:
        return AuthenticationError()
    if status_code == 429:
        return RateLimitError()
    if 400 <= status_code < 500:
        envelope = decode_api_error(body) if body else None
        if envelope is not None:
            return APIError(envelope, status_code=status_code)
        return ClientError(status_code)
    if 500 <= status_code < 600:
        return ServerError(status_code)
    return UnknownStatusError(status_code)
