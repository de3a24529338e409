"""OpenAI 风格 API 的类型化异步客户端运行时。

openaikit: typed async client runtime for OpenAI-style JSON/HTTP APIs.

Request descriptors declare what to call and which type to decode into;
the execution engine performs JSON exchanges, server-sent event streams
and multipart uploads, and classifies every failure into a typed error.
"""
from __future__ import annotations

from openaikit.client import OpenAIKit
from openaikit.config import Configuration
from openaikit.errors import (
    APIError,
    AuthenticationError,
    ClientError,
    DecodingError,
    EncodingError,
    ErrorKind,
    InvalidFileDataError,
    InvalidResponseError,
    InvalidURLError,
    OpenAIKitError,
    RateLimitError,
    ServerError,
    StreamingNotSupportedError,
    TransportError,
    UnknownStatusError,
)
from openaikit.resilience import RetryConfig, RetryPolicy, RetryResult, with_retry
from openaikit.streaming import EventStream
from openaikit.transport import NetworkClient
from openaikit.types import (
    APIErrorDetail,
    APIErrorEnvelope,
    EmptyBody,
    EmptyResponse,
    FileUploadRequest,
    HTTPMethod,
    JSONRequest,
    Request,
    StreamableRequest,
    StreamingJSONRequest,
    UploadRequest,
)

__version__ = "0.1.0"

__all__ = [
    # Client
    "Configuration",
    "NetworkClient",
    "OpenAIKit",
    # Errors
    "APIError",
    "AuthenticationError",
    "ClientError",
    "DecodingError",
    "EncodingError",
    "ErrorKind",
    "InvalidFileDataError",
    "InvalidResponseError",
    "InvalidURLError",
    "OpenAIKitError",
    "RateLimitError",
    "ServerError",
    "StreamingNotSupportedError",
    "TransportError",
    "UnknownStatusError",
    # Resilience
    "RetryConfig",
    "RetryPolicy",
    "RetryResult",
    "with_retry",
    # Streaming
    "EventStream",
    # Types
    "APIErrorDetail",
    "APIErrorEnvelope",
    "EmptyBody",
    "EmptyResponse",
    "FileUploadRequest",
    "HTTPMethod",
    "JSONRequest",
    "Request",
    "StreamableRequest",
    "StreamingJSONRequest",
    "UploadRequest",
    # Version
    "__version__",
]
