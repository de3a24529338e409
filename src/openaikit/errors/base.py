"""错误基类：提供分层错误体系和结构化错误上下文。

Base error classes for openaikit.

Every failure raised by the execution engine or the streaming decoder is
an ``OpenAIKitError`` subclass, one per ``ErrorKind``:

- InvalidURLError: request URL could not be built
- InvalidResponseError: unusable response
- AuthenticationError: HTTP 401
- RateLimitError: HTTP 429
- APIError: service error envelope (wraps message/type/param/code)
- DecodingError / EncodingError: codec failures (wrap the cause)
- ClientError / ServerError / UnknownStatusError: status failures
- StreamingNotSupportedError: streaming call on a plain descriptor
- InvalidFileDataError: unusable upload payload
- TransportError: no response obtained
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from openaikit.errors.classification import (
    ErrorKind,
    ErrorTraits,
    traits_for,
    traits_for_api_error,
)

if TYPE_CHECKING:
    from openaikit.types.envelope import APIErrorEnvelope


@dataclass
class ErrorContext:
    """Structured error context for diagnostics.

    Provides actionable information for debugging and error handling.
    """

    field_path: str | None = None
    """Path to the problematic field (e.g., the offending request parameter)"""

    details: dict[str, Any] = field(default_factory=dict)
    """Additional details about the error"""

    source: str | None = None
    """Error source (e.g., 'transport', 'codec', 'remote')"""

    hint: str | None = None
    """Actionable hint for resolving the error"""

    def __str__(self) -> str:
        parts = []
        if self.source:
            parts.append(f"[{self.source}]")
        if self.field_path:
            parts.append(f"at '{self.field_path}'")
        if self.hint:
            parts.append(f"(hint: {self.hint})")
        return " ".join(parts)


class OpenAIKitError(Exception):
    """Base class for all openaikit errors.

    Attributes:
        message: Human-readable error message
        context: Structured error context
        kind: Classification of this error
    """

    kind: ClassVar[ErrorKind]

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
    ) -> None:
        self.message = message
        self.context = context or ErrorContext()
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the full error message."""
        ctx_str = str(self.context)
        if ctx_str:
            return f"{self.message} {ctx_str}"
        return self.message

    def with_hint(self, hint: str) -> OpenAIKitError:
        """Add a hint to this error."""
        self.context.hint = hint
        return self

    @property
    def traits(self) -> ErrorTraits:
        """Retry and presentation metadata for this error."""
        return traits_for(self.kind)

    @property
    def retryable(self) -> bool:
        """Whether retrying the request may succeed."""
        return self.traits.retryable

    @property
    def retry_delay(self) -> float | None:
        """Suggested delay in seconds before retrying."""
        return self.traits.retry_delay

    @property
    def title(self) -> str:
        """User-facing category label."""
        return self.traits.title

    @property
    def requires_user_action(self) -> bool:
        """Whether the user has to intervene before a retry makes sense."""
        return self.traits.requires_user_action

    @property
    def error_code(self) -> str | None:
        """Machine-readable error code."""
        return self.traits.error_code

    @property
    def affected_parameter(self) -> str | None:
        """Name of the offending request field, when the service reported one."""
        return None

    @property
    def status_code(self) -> int | None:
        """HTTP status code associated with this error, if any."""
        return None


class InvalidURLError(OpenAIKitError):
    """The request URL could not be constructed."""

    kind = ErrorKind.INVALID_REQUEST_TARGET

    def __init__(self, url: str | None = None, cause: Exception | None = None) -> None:
        ctx = ErrorContext(source="transport")
        if url:
            ctx.details["url"] = url
        super().__init__("Invalid URL", ctx)
        self.url = url
        self.__cause__ = cause


class InvalidResponseError(OpenAIKitError):
    """The server returned a response that couldn't be processed."""

    kind = ErrorKind.INVALID_RESPONSE_SHAPE

    def __init__(self, message: str = "Invalid response from server") -> None:
        super().__init__(message, ErrorContext(source="transport"))


class AuthenticationError(OpenAIKitError):
    """Authentication with the API failed (HTTP 401)."""

    kind = ErrorKind.AUTHENTICATION_FAILED

    def __init__(self) -> None:
        super().__init__(
            "Authentication failed. Check your API key.",
            ErrorContext(source="remote", details={"status_code": 401}),
        )

    @property
    def status_code(self) -> int:
        return 401


class RateLimitError(OpenAIKitError):
    """The API rate limit has been exceeded (HTTP 429)."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(self) -> None:
        super().__init__(
            "Rate limit exceeded. Please try again later.",
            ErrorContext(source="remote", details={"status_code": 429}),
        )

    @property
    def status_code(self) -> int:
        return 429


class APIError(OpenAIKitError):
    """Error reported by the service through its error envelope.

    Retryability, backoff and title are derived from the envelope ``type``
    and ``code`` rather than from the fixed kind table.

    Attributes:
        envelope: The full decoded error envelope
        http_status: Status of the response that carried the envelope
    """

    kind = ErrorKind.STRUCTURED_API_ERROR

    def __init__(
        self,
        envelope: APIErrorEnvelope,
        *,
        status_code: int | None = None,
    ) -> None:
        detail = envelope.error
        ctx = ErrorContext(source="remote", field_path=detail.param)
        if detail.type:
            ctx.details["type"] = detail.type
        if detail.code:
            ctx.details["code"] = detail.code
        if status_code is not None:
            ctx.details["status_code"] = status_code
        super().__init__(detail.message, ctx)
        self.envelope = envelope
        self.http_status = status_code

    @property
    def type(self) -> str | None:
        return self.envelope.error.type

    @property
    def param(self) -> str | None:
        return self.envelope.error.param

    @property
    def code(self) -> str | None:
        return self.envelope.error.code

    @property
    def traits(self) -> ErrorTraits:
        return traits_for_api_error(self.envelope.error)

    @property
    def affected_parameter(self) -> str | None:
        return self.envelope.error.param

    @property
    def status_code(self) -> int | None:
        return self.http_status


class DecodingError(OpenAIKitError):
    """Failed to decode a response body or stream event.

    The underlying decoder error is kept as ``__cause__`` and ``cause``.
    """

    kind = ErrorKind.DECODE_FAILED

    def __init__(self, cause: Exception, *, target: str | None = None) -> None:
        ctx = ErrorContext(source="codec")
        if target:
            ctx.details["target"] = target
        super().__init__(f"Failed to decode response: {cause}", ctx)
        self.cause = cause
        self.__cause__ = cause


class EncodingError(OpenAIKitError):
    """Failed to encode the request body."""

    kind = ErrorKind.ENCODE_FAILED

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"Failed to encode request: {cause}", ErrorContext(source="codec"))
        self.cause = cause
        self.__cause__ = cause


class _StatusError(OpenAIKitError):
    """Shared base for errors that carry only an HTTP status."""

    _label: ClassVar[str]

    def __init__(self, status_code: int) -> None:
        super().__init__(
            f"{self._label} with status code: {status_code}",
            ErrorContext(source="remote", details={"status_code": status_code}),
        )
        self._status_code = status_code

    @property
    def status_code(self) -> int:
        return self._status_code


class ClientError(_StatusError):
    """A 4xx status without a decodable error envelope."""

    kind = ErrorKind.CLIENT_ERROR
    _label = "Client error"


class ServerError(_StatusError):
    """A 5xx status."""

    kind = ErrorKind.SERVER_ERROR
    _label = "Server error"


class UnknownStatusError(_StatusError):
    """A status outside the 2xx, 4xx and 5xx ranges."""

    kind = ErrorKind.UNKNOWN_STATUS
    _label = "Unknown error"


class StreamingNotSupportedError(OpenAIKitError):
    """The request descriptor does not declare a stream event type."""

    kind = ErrorKind.STREAMING_UNSUPPORTED

    def __init__(self, request: Any = None) -> None:
        ctx = ErrorContext(source="client")
        if request is not None:
            ctx.details["request"] = type(request).__name__
        super().__init__("Streaming is not supported for this request", ctx)


class InvalidFileDataError(OpenAIKitError):
    """The upload payload is empty or otherwise unusable."""

    kind = ErrorKind.INVALID_BINARY_PAYLOAD

    def __init__(self, filename: str | None = None) -> None:
        ctx = ErrorContext(source="multipart")
        if filename:
            ctx.details["filename"] = filename
        super().__init__("Invalid file data provided", ctx)
        self.filename = filename


class TransportError(OpenAIKitError):
    """No usable HTTP response was obtained.

    Raised when:
    - Network connection failure
    - Request or stream timeout
    - Protocol errors mid-exchange
    """

    kind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="transport")
        if url:
            ctx.details["url"] = url
        super().__init__(message, ctx)
        self.url = url
        self.__cause__ = cause
