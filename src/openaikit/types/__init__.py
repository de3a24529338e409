"""
Type definitions for openaikit.

This module provides:
- Request descriptor contracts and ready-made descriptors
- The service error envelope models
"""

from openaikit.types.envelope import APIErrorDetail, APIErrorEnvelope
from openaikit.types.request import (
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

__all__ = [
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
]
