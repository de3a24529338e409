"""HTTP 传输层：基于 httpx 的请求执行引擎，支持 JSON、流式和文件上传。

Request execution engine built on httpx.

Provides:
- JSON request/response exchanges (``execute``)
- Server-sent event streams decoded into typed events (``stream``)
- multipart/form-data uploads (``upload``)
- Status classification into ``OpenAIKitError`` subclasses
"""

from __future__ import annotations

import asyncio
import importlib.util
import inspect
import time
from typing import TYPE_CHECKING, Any

import httpx

from openaikit.codec import decode_response, encode_body
from openaikit.errors import (
    EncodingError,
    InvalidFileDataError,
    InvalidURLError,
    OpenAIKitError,
    StreamingNotSupportedError,
    TransportError,
    classify_status,
)
from openaikit.multipart import MultipartEncoder, generate_boundary
from openaikit.streaming import BufferedLineSource, EventStream, NativeLineSource, SSEDecoder
from openaikit.telemetry import get_logger
from openaikit.transport.auth import get_auth_header
from openaikit.types.request import HTTPMethod

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from openaikit.config import Configuration
    from openaikit.streaming import LineSource
    from openaikit.types.request import Request, StreamableRequest, UploadRequest


_DEFAULT_CONNECT_TIMEOUT = 10.0

_JSON_CONTENT_TYPE = "application/json"
_EVENT_STREAM_CONTENT_TYPE = "text/event-stream"

_UA_VERSION: str | None = None


def _http2_enabled() -> bool:
    """Enable HTTP/2 only when the optional h2 dependency is present."""
    return importlib.util.find_spec("h2") is not None


def _get_ua_version() -> str:
    """Get package version for User-Agent (cached)."""
    global _UA_VERSION
    if _UA_VERSION is None:
        from importlib.metadata import PackageNotFoundError, version

        try:
            _UA_VERSION = version("openaikit-python")
        except PackageNotFoundError:
            _UA_VERSION = "0.1.0"
    return _UA_VERSION


def user_agent() -> str:
    """Fixed client identifier sent with every request."""
    return f"openaikit-python/{_get_ua_version()}"


def _method_of(request: Any) -> HTTPMethod:
    method = getattr(request, "method", HTTPMethod.POST)
    if isinstance(method, HTTPMethod):
        return method
    try:
        return HTTPMethod(str(method).upper())
    except ValueError as e:
        raise EncodingError(e) from e


class NetworkClient:
    """Executes request descriptors over a pooled httpx client.

    The instance holds no per-call state and can be shared by concurrent
    tasks.

    Example:
        >>> client = NetworkClient(Configuration(api_key="sk-..."))
        >>> models = await client.execute(JSONRequest("models", ModelList, method=HTTPMethod.GET))
        >>> async with client.stream(chat_request) as events:
        ...     async for chunk in events:
        ...         print(chunk)
    """

    def __init__(
        self,
        configuration: Configuration,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            configuration: Immutable client configuration
            http_client: Pre-built httpx client (not closed by ``aclose``)
        """
        self._configuration = configuration
        self._owns_client = http_client is None
        self._client = http_client or self._create_client(configuration)
        self._base_url = httpx.URL(configuration.base_url.rstrip("/") + "/")
        self._logger = get_logger("openaikit.transport")

    @staticmethod
    def _create_client(configuration: Configuration) -> httpx.AsyncClient:
        timeout = httpx.Timeout(
            configuration.timeout,
            connect=min(configuration.timeout, _DEFAULT_CONNECT_TIMEOUT),
        )
        return httpx.AsyncClient(
            timeout=timeout,
            proxy=configuration.proxy,
            http2=_http2_enabled(),
            trust_env=configuration.trust_env,
        )

    @property
    def configuration(self) -> Configuration:
        return self._configuration

    async def aclose(self) -> None:
        """Close the connection pool if this engine created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> NetworkClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Request building
    # ------------------------------------------------------------------

    def _resolve_url(self, path: str) -> httpx.URL:
        try:
            return self._base_url.join(path.lstrip("/"))
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            raise InvalidURLError(f"{self._base_url}{path}", cause=e) from e

    def _build_headers(self, extra_headers: dict[str, str] | None = None) -> dict[str, str]:
        config = self._configuration
        headers = {
            "Accept": _JSON_CONTENT_TYPE,
            "User-Agent": user_agent(),
        }
        headers.update(get_auth_header(config.api_key))
        if config.organization:
            headers["OpenAI-Organization"] = config.organization
        if config.project:
            headers["OpenAI-Project"] = config.project
        if extra_headers:
            headers.update(extra_headers)
        return headers

    def _build_request(
        self,
        request: Request[Any],
        extra_headers: dict[str, str] | None = None,
    ) -> httpx.Request:
        """Build the HTTP request for a JSON descriptor.

        GET requests never carry a body, even if the descriptor has one.
        """
        method = _method_of(request)
        headers = self._build_headers(extra_headers)
        content: bytes | None = None

        body = getattr(request, "body", None)
        if method is not HTTPMethod.GET and body is not None:
            content = encode_body(body)
            headers["Content-Type"] = _JSON_CONTENT_TYPE

        return self._new_request(method.value, request.path, headers, content)

    def _new_request(
        self,
        method: str,
        path: str,
        headers: dict[str, str],
        content: bytes | None,
    ) -> httpx.Request:
        url = self._resolve_url(path)
        try:
            return self._client.build_request(method, url, headers=headers, content=content)
        except httpx.InvalidURL as e:
            raise InvalidURLError(str(url), cause=e) from e

    # ------------------------------------------------------------------
    # Exchange
    # ------------------------------------------------------------------

    async def _send(self, http_request: httpx.Request, *, stream: bool = False) -> httpx.Response:
        url = str(http_request.url)
        try:
            return await self._client.send(http_request, stream=stream)
        except httpx.UnsupportedProtocol as e:
            raise InvalidURLError(url, cause=e) from e
        except httpx.ConnectError as e:
            raise TransportError(f"Connection failed: {e}", url=url, cause=e) from e
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timed out: {e}", url=url, cause=e) from e
        except httpx.HTTPError as e:
            raise TransportError(f"HTTP error: {e}", url=url, cause=e) from e

    def _raise_for_status(self, response: httpx.Response, body: bytes | None) -> None:
        error = classify_status(response.status_code, body)
        if error is not None:
            self._logger.warning(
                "Request failed",
                method=response.request.method,
                url=str(response.request.url),
                status=response.status_code,
                kind=error.kind.value,
            )
            raise error

    async def _exchange(self, http_request: httpx.Request, response_type: Any) -> Any:
        started = time.monotonic()
        self._logger.debug(
            "Request started",
            method=http_request.method,
            url=str(http_request.url),
        )

        response = await self._send(http_request)
        self._logger.debug(
            "Request completed",
            method=http_request.method,
            url=str(http_request.url),
            status=response.status_code,
            elapsed_ms=round((time.monotonic() - started) * 1000, 1),
        )

        self._raise_for_status(response, response.content)
        return decode_response(response.content, response_type, status_code=response.status_code)

    async def execute(self, request: Request[Any]) -> Any:
        """Perform a JSON exchange and decode the result.

        Args:
            request: Request descriptor

        Returns:
            Body decoded as ``request.response_type``

        Raises:
            OpenAIKitError: Classified failure (transport, status, codec)
        """
        http_request = self._build_request(request)
        return await self._exchange(http_request, request.response_type)

    async def upload(self, request: UploadRequest[Any]) -> Any:
        """POST a multipart payload and decode the result.

        A fresh boundary is generated for every call.

        Args:
            request: Upload descriptor

        Returns:
            Body decoded as ``request.response_type``

        Raises:
            InvalidFileDataError: Empty payload
            EncodingError: Payload could not be produced
            OpenAIKitError: Classified failure (transport, status, codec)
        """
        boundary = generate_boundary()
        try:
            payload = request.multipart_data(boundary)
            if inspect.isawaitable(payload):
                payload = await payload
        except OpenAIKitError:
            raise
        except Exception as e:
            raise EncodingError(e) from e

        if not payload:
            raise InvalidFileDataError()

        headers = self._build_headers({"Content-Type": MultipartEncoder.content_type(boundary)})
        http_request = self._new_request(HTTPMethod.POST.value, request.path, headers, bytes(payload))
        return await self._exchange(http_request, request.response_type)

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    def stream(self, request: StreamableRequest[Any, Any]) -> EventStream[Any]:
        """Open an event stream for a streaming-capable descriptor.

        The request is built immediately (so encoding problems surface
        here) and sent on first iteration. The response status is checked
        before any line is parsed.

        Args:
            request: Descriptor declaring ``stream_event_type``

        Returns:
            Single-pass stream of decoded events

        Raises:
            StreamingNotSupportedError: Descriptor has no event type
            EncodingError: Body could not be serialized or method is unsupported
        """
        event_type = getattr(request, "stream_event_type", None)
        if event_type is None:
            raise StreamingNotSupportedError(request)

        http_request = self._build_request(request, {"Accept": _EVENT_STREAM_CONTENT_TYPE})
        return EventStream(self._stream_events(http_request, event_type))

    def _line_source(self, response: httpx.Response) -> LineSource:
        if self._configuration.manual_line_buffering:
            return BufferedLineSource(response.aiter_bytes())
        return NativeLineSource(response)

    async def _read_error_body(self, response: httpx.Response) -> bytes | None:
        try:
            return await response.aread()
        except httpx.HTTPError:
            return None

    async def _stream_events(
        self,
        http_request: httpx.Request,
        event_type: Any,
    ) -> AsyncGenerator[Any, None]:
        url = str(http_request.url)
        deadline = asyncio.get_running_loop().time() + self._configuration.stream_timeout

        self._logger.debug("Stream opening", method=http_request.method, url=url)
        response = await self._send(http_request, stream=True)
        count = 0
        try:
            if not response.is_success:
                body = await self._read_error_body(response)
                self._raise_for_status(response, body)

            events = SSEDecoder(event_type).decode(self._line_source(response).lines())
            try:
                while True:
                    try:
                        async with asyncio.timeout_at(deadline):
                            event = await anext(events)
                    except StopAsyncIteration:
                        break
                    except TimeoutError as e:
                        raise TransportError(
                            "Stream exceeded resource timeout", url=url, cause=e
                        ) from e
                    except httpx.HTTPError as e:
                        raise TransportError(f"Stream interrupted: {e}", url=url, cause=e) from e
                    count += 1
                    yield event
            finally:
                await events.aclose()
        finally:
            await response.aclose()
            self._logger.debug("Stream closed", url=url, events=count)
