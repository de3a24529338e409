"""错误体系：提供封闭分类的结构化错误类型。

Error hierarchy for openaikit.

Provides one exception per classification plus the fixed retry and
presentation tables.
"""

from openaikit.errors.base import (
    APIError,
    AuthenticationError,
    ClientError,
    DecodingError,
    EncodingError,
    ErrorContext,
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
from openaikit.errors.classification import (
    ERROR_TRAITS,
    ErrorKind,
    ErrorTraits,
    classify_status,
    traits_for,
    traits_for_api_error,
)

__all__ = [
    "APIError",
    "AuthenticationError",
    "ClientError",
    "DecodingError",
    "ERROR_TRAITS",
    "EncodingError",
    "ErrorContext",
    "ErrorKind",
    "ErrorTraits",
    "InvalidFileDataError",
    "InvalidResponseError",
    "InvalidURLError",
    "OpenAIKitError",
    "RateLimitError",
    "ServerError",
    "StreamingNotSupportedError",
    "TransportError",
    "UnknownStatusError",
    "classify_status",
    "traits_for",
    "traits_for_api_error",
]
