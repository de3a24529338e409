"""Tests for the NetworkClient execution engine."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass

import httpx
import pytest

from openaikit import Configuration
from openaikit.errors import (
    APIError,
    AuthenticationError,
    ClientError,
    DecodingError,
    EncodingError,
    InvalidFileDataError,
    InvalidResponseError,
    InvalidURLError,
    RateLimitError,
    ServerError,
    StreamingNotSupportedError,
    TransportError,
    UnknownStatusError,
)
from openaikit.transport import NetworkClient
from openaikit.types import (
    EmptyResponse,
    FileUploadRequest,
    HTTPMethod,
    JSONRequest,
    StreamingJSONRequest,
)
from tests.helpers import BASE_URL, ChatChunk, Model, ModelList, error_envelope, sse_body

MODELS_URL = f"{BASE_URL}/models"
CHAT_URL = f"{BASE_URL}/chat/completions"
FILES_URL = f"{BASE_URL}/files"


def _list_models() -> JSONRequest[ModelList]:
    return JSONRequest("models", ModelList, method=HTTPMethod.GET)


def _chat_stream() -> StreamingJSONRequest[Model, ChatChunk]:
    return StreamingJSONRequest(
        "chat/completions",
        Model,
        body={"model": "gpt-4o", "stream": True},
        stream_event_type=ChatChunk,
    )


def _chunks(n: int) -> list[str]:
    return [json.dumps({"id": f"c{i}", "content": f"t{i}"}) for i in range(n)]


@dataclass(frozen=True)
class AsyncUpload:
    """Upload descriptor that builds its payload asynchronously."""

    path: str
    response_type: type
    payload: bytes

    async def multipart_data(self, boundary: str) -> bytes:
        return self.payload.replace(b"{boundary}", boundary.encode())


@dataclass(frozen=True)
class BrokenUpload:
    path: str = "files"
    response_type: type = Model

    def multipart_data(self, boundary: str) -> bytes:
        raise OSError("file vanished")


class ScriptedByteStream(httpx.AsyncByteStream):
    """Response body that emits fixed chunks, then stalls or fails."""

    def __init__(
        self,
        chunks: list[bytes],
        *,
        stall: bool = False,
        error: Exception | None = None,
    ) -> None:
        self.chunks = chunks
        self.stall = stall
        self.error = error
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error
        if self.stall:
            await asyncio.sleep(30)

    async def aclose(self) -> None:
        self.closed = True


def _first_frame() -> bytes:
    return f"data: {_chunks(1)[0]}\n\n".encode()


class TestRequestBuilding:
    """Tests for URL, header and body construction."""

    @pytest.mark.asyncio
    async def test_headers(self, httpx_mock) -> None:
        """Test credential, identification and tenancy headers."""
        httpx_mock.add_response(url=MODELS_URL, method="GET", json={"data": []})
        configuration = Configuration(
            api_key="sk-test-key",
            base_url=BASE_URL,
            organization="org-123",
            project="proj-456",
        )

        async with NetworkClient(configuration) as client:
            await client.execute(_list_models())

        request = httpx_mock.get_request()
        assert request.headers["Authorization"] == "Bearer sk-test-key"
        assert request.headers["OpenAI-Organization"] == "org-123"
        assert request.headers["OpenAI-Project"] == "proj-456"
        assert request.headers["User-Agent"].startswith("openaikit-python/")
        assert request.headers["Accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_optional_headers_omitted(self, httpx_mock, configuration) -> None:
        """Test organization and project headers are absent when unset."""
        httpx_mock.add_response(url=MODELS_URL, method="GET", json={"data": []})

        async with NetworkClient(configuration) as client:
            await client.execute(_list_models())

        request = httpx_mock.get_request()
        assert "OpenAI-Organization" not in request.headers
        assert "OpenAI-Project" not in request.headers

    @pytest.mark.asyncio
    async def test_get_never_sends_body(self, httpx_mock, configuration) -> None:
        """Test a GET descriptor carrying a body is sent without one."""
        httpx_mock.add_response(url=MODELS_URL, method="GET", json={"data": []})
        request = JSONRequest("/models", ModelList, method=HTTPMethod.GET, body={"ignored": True})

        async with NetworkClient(configuration) as client:
            await client.execute(request)

        sent = httpx_mock.get_request()
        assert sent.content == b""
        assert "Content-Type" not in sent.headers

    @pytest.mark.asyncio
    async def test_lowercase_method_accepted(self, httpx_mock, configuration) -> None:
        """Test a plain string method is normalised to the enum."""
        httpx_mock.add_response(url=MODELS_URL, method="GET", json={"data": []})

        async with NetworkClient(configuration) as client:
            await client.execute(JSONRequest("models", ModelList, method="get"))

        assert httpx_mock.get_request().method == "GET"

    @pytest.mark.asyncio
    async def test_unsupported_method_raises_encoding_error(
        self, httpx_mock, configuration
    ) -> None:
        """Test an unknown method fails inside the error taxonomy without sending."""
        request = JSONRequest("models", ModelList, method="PUT")

        async with NetworkClient(configuration) as client:
            with pytest.raises(EncodingError) as exc_info:
                await client.execute(request)

        assert isinstance(exc_info.value.__cause__, ValueError)
        assert httpx_mock.get_requests() == []

    @pytest.mark.asyncio
    async def test_unsupported_method_on_stream(self, httpx_mock, configuration) -> None:
        """Test stream construction reports an unknown method eagerly."""
        request = StreamingJSONRequest(
            "chat/completions", ChatChunk, method="PATCH", stream_event_type=ChatChunk
        )

        async with NetworkClient(configuration) as client:
            with pytest.raises(EncodingError):
                client.stream(request)

        assert httpx_mock.get_requests() == []

    @pytest.mark.asyncio
    async def test_post_json_body(self, httpx_mock, configuration) -> None:
        """Test POST bodies are JSON encoded without null fields."""
        httpx_mock.add_response(url=f"{BASE_URL}/models", method="POST", json={"id": "m1"})
        request = JSONRequest("models", Model, body=Model(id="m1"))

        async with NetworkClient(configuration) as client:
            result = await client.execute(request)

        sent = httpx_mock.get_request()
        assert sent.headers["Content-Type"] == "application/json"
        assert json.loads(sent.content) == {"id": "m1", "object": "model"}
        assert result.id == "m1"

    @pytest.mark.asyncio
    async def test_invalid_path(self, configuration) -> None:
        """Test an unbuildable URL fails before anything is sent."""
        async with NetworkClient(configuration) as client:
            with pytest.raises(InvalidURLError):
                await client.execute(JSONRequest("models\x00", Model, method=HTTPMethod.GET))

    @pytest.mark.asyncio
    async def test_encoding_failure(self, configuration) -> None:
        """Test an unserializable body fails before anything is sent."""
        async with NetworkClient(configuration) as client:
            with pytest.raises(EncodingError):
                await client.execute(JSONRequest("models", Model, body={"x": object()}))


class TestExecute:
    """Tests for JSON exchanges and status classification."""

    @pytest.mark.asyncio
    async def test_decodes_success(self, httpx_mock, configuration) -> None:
        """Test a 2xx body is decoded into the declared type."""
        httpx_mock.add_response(
            url=MODELS_URL,
            method="GET",
            json={"object": "list", "data": [{"id": "gpt-4o", "owned_by": "openai"}]},
        )

        async with NetworkClient(configuration) as client:
            models = await client.execute(_list_models())

        assert models.data[0].id == "gpt-4o"
        assert models.data[0].owned_by == "openai"

    @pytest.mark.asyncio
    async def test_delete_with_empty_body(self, httpx_mock, configuration) -> None:
        """Test an empty 2xx body decodes into EmptyResponse."""
        httpx_mock.add_response(url=f"{BASE_URL}/files/file-1", method="DELETE", content=b"")

        async with NetworkClient(configuration) as client:
            result = await client.execute(
                JSONRequest("files/file-1", EmptyResponse, method=HTTPMethod.DELETE)
            )

        assert isinstance(result, EmptyResponse)

    @pytest.mark.asyncio
    async def test_empty_body_for_typed_response(self, httpx_mock, configuration) -> None:
        """Test an empty 2xx body is invalid for a typed response."""
        httpx_mock.add_response(url=MODELS_URL, method="GET", content=b"")

        async with NetworkClient(configuration) as client:
            with pytest.raises(InvalidResponseError):
                await client.execute(_list_models())

    @pytest.mark.asyncio
    async def test_401_regardless_of_body(self, httpx_mock, configuration) -> None:
        """Test 401 is an authentication error even with an envelope body."""
        httpx_mock.add_response(
            url=MODELS_URL,
            method="GET",
            status_code=401,
            json=error_envelope("Incorrect API key", "invalid_request_error", code="invalid_api_key"),
        )

        async with NetworkClient(configuration) as client:
            with pytest.raises(AuthenticationError) as exc_info:
                await client.execute(_list_models())

        assert exc_info.value.requires_user_action

    @pytest.mark.asyncio
    async def test_429_regardless_of_body(self, httpx_mock, configuration) -> None:
        """Test 429 is a rate limit error with a 60 second delay."""
        httpx_mock.add_response(url=MODELS_URL, method="GET", status_code=429, text="slow down")

        async with NetworkClient(configuration) as client:
            with pytest.raises(RateLimitError) as exc_info:
                await client.execute(_list_models())

        assert exc_info.value.retryable
        assert exc_info.value.retry_delay == 60.0

    @pytest.mark.asyncio
    async def test_503_is_retryable_server_error(self, httpx_mock, configuration) -> None:
        """Test 5xx statuses map to a retryable server error."""
        httpx_mock.add_response(url=MODELS_URL, method="GET", status_code=503)

        async with NetworkClient(configuration) as client:
            with pytest.raises(ServerError) as exc_info:
                await client.execute(_list_models())

        assert exc_info.value.status_code == 503
        assert exc_info.value.retryable
        assert exc_info.value.retry_delay == 5.0

    @pytest.mark.asyncio
    async def test_4xx_with_envelope(self, httpx_mock, configuration) -> None:
        """Test a 4xx envelope surfaces its message, param and code."""
        httpx_mock.add_response(
            url=CHAT_URL,
            method="POST",
            status_code=400,
            json=error_envelope(
                "Invalid value for 'temperature'",
                "invalid_request_error",
                param="temperature",
                code="invalid_value",
            ),
        )

        async with NetworkClient(configuration) as client:
            with pytest.raises(APIError) as exc_info:
                await client.execute(JSONRequest("chat/completions", Model, body={"temperature": 9}))

        error = exc_info.value
        assert error.message == "Invalid value for 'temperature'"
        assert error.affected_parameter == "temperature"
        assert error.error_code == "invalid_value"
        assert error.status_code == 400

    @pytest.mark.asyncio
    async def test_4xx_without_envelope(self, httpx_mock, configuration) -> None:
        """Test a 4xx status with an arbitrary body is a client error."""
        httpx_mock.add_response(url=MODELS_URL, method="GET", status_code=404, text="Not Found")

        async with NetworkClient(configuration) as client:
            with pytest.raises(ClientError) as exc_info:
                await client.execute(_list_models())

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_status(self, httpx_mock, configuration) -> None:
        """Test statuses outside 2xx/4xx/5xx."""
        httpx_mock.add_response(url=MODELS_URL, method="GET", status_code=304)

        async with NetworkClient(configuration) as client:
            with pytest.raises(UnknownStatusError) as exc_info:
                await client.execute(_list_models())

        assert exc_info.value.status_code == 304

    @pytest.mark.asyncio
    async def test_2xx_envelope_fallback(self, httpx_mock, configuration) -> None:
        """Test a 2xx error envelope raises the API error, not a decode error."""
        httpx_mock.add_response(
            url=MODELS_URL,
            method="GET",
            json=error_envelope("The server had an error", "server_error"),
        )

        async with NetworkClient(configuration) as client:
            with pytest.raises(APIError) as exc_info:
                await client.execute(_list_models())

        assert exc_info.value.retryable
        assert exc_info.value.retry_delay == 5.0

    @pytest.mark.asyncio
    async def test_2xx_undecodable(self, httpx_mock, configuration) -> None:
        """Test a 2xx body matching neither type nor envelope."""
        httpx_mock.add_response(url=MODELS_URL, method="GET", json={"unexpected": True})

        async with NetworkClient(configuration) as client:
            with pytest.raises(DecodingError):
                await client.execute(_list_models())

    @pytest.mark.asyncio
    async def test_connection_failure(self, httpx_mock, configuration) -> None:
        """Test a failed connection is a transport error keeping its cause."""
        httpx_mock.add_exception(httpx.ConnectError("connection refused"), url=MODELS_URL)

        async with NetworkClient(configuration) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.execute(_list_models())

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert exc_info.value.url == MODELS_URL

    @pytest.mark.asyncio
    async def test_timeout(self, httpx_mock, configuration) -> None:
        """Test a timeout is a transport error."""
        httpx_mock.add_exception(httpx.ReadTimeout("too slow"), url=MODELS_URL)

        async with NetworkClient(configuration) as client:
            with pytest.raises(TransportError):
                await client.execute(_list_models())


class TestUpload:
    """Tests for multipart uploads."""

    @pytest.mark.asyncio
    async def test_boundary_matches_payload(self, httpx_mock, configuration) -> None:
        """Test the Content-Type boundary is the one used in the payload."""
        httpx_mock.add_response(url=FILES_URL, method="POST", json={"id": "file-1"})
        request = FileUploadRequest(
            "files", Model, file=b"hello", filename="notes.txt", fields={"purpose": "assistants"}
        )

        async with NetworkClient(configuration) as client:
            result = await client.upload(request)

        sent = httpx_mock.get_request()
        content_type = sent.headers["Content-Type"]
        assert content_type.startswith("multipart/form-data; boundary=")
        boundary = content_type.split("boundary=", 1)[1]
        assert sent.content.startswith(f"--{boundary}\r\n".encode())
        assert sent.content.endswith(f"--{boundary}--\r\n".encode())
        assert b"Content-Type: text/plain\r\n" in sent.content
        assert sent.headers["Authorization"] == "Bearer sk-test-key"
        assert result.id == "file-1"

    @pytest.mark.asyncio
    async def test_fresh_boundary_per_upload(self, httpx_mock, configuration) -> None:
        """Test every upload uses a new boundary."""
        httpx_mock.add_response(url=FILES_URL, method="POST", json={"id": "file-1"})
        httpx_mock.add_response(url=FILES_URL, method="POST", json={"id": "file-2"})
        request = FileUploadRequest("files", Model, file=b"x", filename="a.png")

        async with NetworkClient(configuration) as client:
            await client.upload(request)
            await client.upload(request)

        first, second = (r.headers["Content-Type"] for r in httpx_mock.get_requests())
        assert first != second

    @pytest.mark.asyncio
    async def test_async_payload(self, httpx_mock, configuration) -> None:
        """Test descriptors may build their payload asynchronously."""
        httpx_mock.add_response(url=FILES_URL, method="POST", json={"id": "file-1"})
        request = AsyncUpload("files", Model, b"--{boundary}\r\n\r\nx\r\n--{boundary}--\r\n")

        async with NetworkClient(configuration) as client:
            await client.upload(request)

        sent = httpx_mock.get_request()
        boundary = sent.headers["Content-Type"].split("boundary=", 1)[1]
        assert sent.content == f"--{boundary}\r\n\r\nx\r\n--{boundary}--\r\n".encode()
        assert sent.method == "POST"

    @pytest.mark.asyncio
    async def test_empty_file(self, configuration) -> None:
        """Test empty file data fails without a request."""
        async with NetworkClient(configuration) as client:
            with pytest.raises(InvalidFileDataError):
                await client.upload(FileUploadRequest("files", Model, file=b"", filename="a.png"))

    @pytest.mark.asyncio
    async def test_payload_failure(self, configuration) -> None:
        """Test an error while building the payload is an encoding error."""
        async with NetworkClient(configuration) as client:
            with pytest.raises(EncodingError) as exc_info:
                await client.upload(BrokenUpload())

        assert isinstance(exc_info.value.__cause__, OSError)


class TestStream:
    """Tests for event streams."""

    @pytest.mark.asyncio
    async def test_events_until_done(self, httpx_mock, configuration) -> None:
        """Test one event per data frame, stopping at the terminal marker."""
        httpx_mock.add_response(
            url=CHAT_URL,
            method="POST",
            content=sse_body(*_chunks(3)),
            headers={"Content-Type": "text/event-stream"},
        )

        async with NetworkClient(configuration) as client:
            async with client.stream(_chat_stream()) as events:
                received = [event async for event in events]

        assert [e.content for e in received] == ["t0", "t1", "t2"]
        sent = httpx_mock.get_request()
        assert sent.headers["Accept"] == "text/event-stream"
        assert json.loads(sent.content) == {"model": "gpt-4o", "stream": True}

    @pytest.mark.asyncio
    async def test_manual_line_buffering(self, httpx_mock) -> None:
        """Test the byte-buffering line source yields the same events."""
        httpx_mock.add_response(url=CHAT_URL, method="POST", content=sse_body(*_chunks(2)))
        configuration = Configuration(
            api_key="sk-test-key", base_url=BASE_URL, manual_line_buffering=True
        )

        async with NetworkClient(configuration) as client:
            received = [event async for event in client.stream(_chat_stream())]

        assert [e.id for e in received] == ["c0", "c1"]

    @pytest.mark.asyncio
    async def test_open_failure_emits_no_events(self, httpx_mock, configuration) -> None:
        """Test a non-2xx status fails before any event."""
        httpx_mock.add_response(
            url=CHAT_URL,
            method="POST",
            status_code=500,
            content=sse_body(*_chunks(2)),
        )

        received = []
        async with NetworkClient(configuration) as client:
            with pytest.raises(ServerError):
                async for event in client.stream(_chat_stream()):
                    received.append(event)

        assert received == []

    @pytest.mark.asyncio
    async def test_open_failure_with_envelope(self, httpx_mock, configuration) -> None:
        """Test a 4xx envelope on stream open becomes an API error."""
        httpx_mock.add_response(
            url=CHAT_URL,
            method="POST",
            status_code=400,
            json=error_envelope("stream_options requires stream", "invalid_request_error"),
        )

        async with NetworkClient(configuration) as client:
            with pytest.raises(APIError):
                async for _ in client.stream(_chat_stream()):
                    pass

    @pytest.mark.asyncio
    async def test_malformed_event(self, httpx_mock, configuration) -> None:
        """Test a malformed payload ends the stream with a decoding error."""
        httpx_mock.add_response(
            url=CHAT_URL,
            method="POST",
            content=sse_body(_chunks(1)[0], "{broken", _chunks(2)[1]),
        )

        received = []
        async with NetworkClient(configuration) as client:
            with pytest.raises(DecodingError):
                async for event in client.stream(_chat_stream()):
                    received.append(event)

        assert [e.id for e in received] == ["c0"]

    @pytest.mark.asyncio
    async def test_early_close(self, httpx_mock, configuration) -> None:
        """Test breaking out and closing does not raise."""
        httpx_mock.add_response(url=CHAT_URL, method="POST", content=sse_body(*_chunks(5)))

        async with NetworkClient(configuration) as client:
            stream = client.stream(_chat_stream())
            async with stream:
                async for event in stream:
                    if event.id == "c1":
                        break

        assert stream.closed

    @pytest.mark.asyncio
    async def test_early_exit_closes_response(self, httpx_mock, configuration) -> None:
        """Test abandoning the stream releases the response body."""
        body = ScriptedByteStream([_first_frame()], stall=True)
        httpx_mock.add_response(url=CHAT_URL, method="POST", stream=body)

        async with NetworkClient(configuration) as client:
            async with client.stream(_chat_stream()) as events:
                async for event in events:
                    assert event.id == "c0"
                    break

        assert body.closed

    @pytest.mark.asyncio
    async def test_stall_exceeds_resource_timeout(self, httpx_mock) -> None:
        """Test a stream that stops sending ends with a transport error."""
        body = ScriptedByteStream([_first_frame()], stall=True)
        httpx_mock.add_response(url=CHAT_URL, method="POST", stream=body)
        configuration = Configuration(
            api_key="sk-test-key", base_url=BASE_URL, timeout=0.2, resource_timeout=0.3
        )

        received = []
        async with NetworkClient(configuration) as client:
            with pytest.raises(TransportError, match="resource timeout") as exc_info:
                async for event in client.stream(_chat_stream()):
                    received.append(event)

        assert [e.id for e in received] == ["c0"]
        assert isinstance(exc_info.value.__cause__, TimeoutError)
        assert body.closed

    @pytest.mark.asyncio
    @pytest.mark.parametrize("manual_line_buffering", [False, True])
    async def test_mid_stream_read_error(self, httpx_mock, manual_line_buffering: bool) -> None:
        """Test a connection drop after the first event becomes a transport error."""
        body = ScriptedByteStream([_first_frame()], error=httpx.ReadError("connection reset"))
        httpx_mock.add_response(url=CHAT_URL, method="POST", stream=body)
        configuration = Configuration(
            api_key="sk-test-key",
            base_url=BASE_URL,
            manual_line_buffering=manual_line_buffering,
        )

        received = []
        async with NetworkClient(configuration) as client:
            with pytest.raises(TransportError, match="Stream interrupted") as exc_info:
                async for event in client.stream(_chat_stream()):
                    received.append(event)

        assert [e.id for e in received] == ["c0"]
        assert isinstance(exc_info.value.__cause__, httpx.ReadError)
        assert body.closed

    @pytest.mark.asyncio
    async def test_lazy_send(self, configuration) -> None:
        """Test nothing is sent until the stream is iterated."""
        async with NetworkClient(configuration) as client:
            stream = client.stream(_chat_stream())
            await stream.aclose()

        assert stream.closed

    @pytest.mark.asyncio
    async def test_streaming_not_supported(self, configuration) -> None:
        """Test a descriptor without an event type is refused immediately."""
        async with NetworkClient(configuration) as client:
            with pytest.raises(StreamingNotSupportedError):
                client.stream(JSONRequest("chat/completions", Model, body={}))

    @pytest.mark.asyncio
    async def test_connection_failure(self, httpx_mock, configuration) -> None:
        """Test a transport failure on open surfaces on first iteration."""
        httpx_mock.add_exception(httpx.ConnectError("connection refused"), url=CHAT_URL)

        async with NetworkClient(configuration) as client:
            with pytest.raises(TransportError):
                async for _ in client.stream(_chat_stream()):
                    pass


class TestLifecycle:
    """Tests for client ownership."""

    @pytest.mark.asyncio
    async def test_external_client_not_closed(self, configuration) -> None:
        """Test a caller-supplied httpx client stays open."""
        http_client = httpx.AsyncClient()
        client = NetworkClient(configuration, http_client=http_client)
        await client.aclose()
        assert not http_client.is_closed
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self, configuration) -> None:
        """Test the engine closes the client it created."""
        client = NetworkClient(configuration)
        await client.aclose()
        assert client._client.is_closed
