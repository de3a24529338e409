"""
Request descriptors.

A descriptor is a side-effect-free description of one HTTP exchange. The
execution engine consumes three narrow contracts, one per entry point:

- Request: plain JSON exchange (``NetworkClient.execute``)
- StreamableRequest: Request plus a per-event type (``NetworkClient.stream``)
- UploadRequest: multipart payload producer (``NetworkClient.upload``)

The contracts are structural; any object exposing the attributes works.
``JSONRequest``, ``StreamingJSONRequest`` and ``FileUploadRequest`` are
ready-made frozen implementations.

A GET descriptor must not carry a body. This is a caller precondition and
is not validated here; the engine never sends a body with GET.
"""

from __future__ import annotations

from collections.abc import Awaitable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict

from openaikit.errors import InvalidFileDataError
from openaikit.multipart import MultipartEncoder

ResponseT = TypeVar("ResponseT")
EventT = TypeVar("EventT")
ResponseT_co = TypeVar("ResponseT_co", covariant=True)
EventT_co = TypeVar("EventT_co", covariant=True)


class HTTPMethod(str, Enum):
    """HTTP methods used by the API."""

    GET = "GET"
    POST = "POST"
    DELETE = "DELETE"


class Request(Protocol[ResponseT_co]):
    """Contract for a plain JSON exchange.

    ``method`` defaults to POST and ``body`` to None when an implementation
    does not define them.
    """

    @property
    def path(self) -> str:
        """Endpoint path, relative to the configured base URL."""
        ...

    @property
    def response_type(self) -> type[ResponseT_co]:
        """Type the success body is decoded into."""
        ...


class StreamableRequest(Request[ResponseT_co], Protocol[ResponseT_co, EventT_co]):
    """Contract for a request that can be answered with an event stream."""

    @property
    def stream_event_type(self) -> type[EventT_co]:
        """Type each ``data:`` frame is decoded into."""
        ...


class UploadRequest(Protocol[ResponseT_co]):
    """Contract for a multipart upload.

    ``multipart_data`` may return the payload directly or an awaitable
    resolving to it.
    """

    @property
    def path(self) -> str: ...

    @property
    def response_type(self) -> type[ResponseT_co]: ...

    def multipart_data(self, boundary: str) -> bytes | Awaitable[bytes]: ...


class EmptyBody(BaseModel):
    """Placeholder body for requests that send none."""

    model_config = ConfigDict(extra="forbid")


class EmptyResponse(BaseModel):
    """Placeholder response type; also accepts an empty body."""

    model_config = ConfigDict(extra="allow")


@dataclass(frozen=True)
class JSONRequest(Generic[ResponseT]):
    """Plain JSON request descriptor.

    Example:
        >>> request = JSONRequest("models", ModelList, method=HTTPMethod.GET)
        >>> models = await client.execute(request)
    """

    path: str
    response_type: type[ResponseT]
    method: HTTPMethod = HTTPMethod.POST
    body: Any = None


@dataclass(frozen=True)
class StreamingJSONRequest(JSONRequest[ResponseT], Generic[ResponseT, EventT]):
    """JSON request that may also be consumed as an event stream.

    Example:
        >>> request = StreamingJSONRequest(
        ...     "chat/completions",
        ...     ChatCompletion,
        ...     body=params,
        ...     stream_event_type=ChatCompletionChunk,
        ... )
        >>> async for chunk in client.stream(request):
        ...     print(chunk)
    """

    stream_event_type: type[EventT] = field(kw_only=True)


@dataclass(frozen=True)
class FileUploadRequest(Generic[ResponseT]):
    """Upload one file plus plain form fields.

    The file part is written first, followed by ``fields`` in mapping
    order.
    """

    path: str
    response_type: type[ResponseT]
    file: bytes
    filename: str
    fields: Mapping[str, str] = field(default_factory=dict)
    file_field: str = "file"
    content_type: str | None = None

    def multipart_data(self, boundary: str) -> bytes:
        """Build the multipart payload.

        Raises:
            InvalidFileDataError: If the file data is empty
        """
        if not self.file:
            raise InvalidFileDataError(self.filename)

        encoder = MultipartEncoder()
        encoder.add_file(
            self.file_field,
            self.filename,
            self.file,
            content_type=self.content_type,
        )
        for name, value in self.fields.items():
            encoder.add_field(name, value)
        return encoder.encode(boundary)
