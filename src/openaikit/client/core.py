"""核心客户端实现：为请求描述符提供统一的执行、流式与上传入口。

Core OpenAIKit client.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from openaikit.config import Configuration
from openaikit.resilience import RetryConfig, with_retry
from openaikit.transport import NetworkClient

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    import httpx

    from openaikit.errors import OpenAIKitError
    from openaikit.streaming import EventStream
    from openaikit.types.request import Request, StreamableRequest, UploadRequest

T = TypeVar("T")


class OpenAIKit:
    """Entry point for calling the API with request descriptors.

    Resource-specific helpers (chat, images, files, ...) are thin
    descriptor factories on top of the three engine operations exposed
    here.

    Example:
        >>> async with OpenAIKit("sk-...") as kit:
        ...     models = await kit.execute(
        ...         JSONRequest("models", ModelList, method=HTTPMethod.GET)
        ...     )
        ...     async with kit.stream(chat_request) as events:
        ...         async for chunk in events:
        ...             print(chunk)

        >>> # Retry transient failures
        >>> reply = await kit.with_retry(
        ...     lambda: kit.execute(chat_request),
        ...     RetryConfig.rate_limit_optimized(),
        ... )
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        organization: str | None = None,
        project: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        configuration: Configuration | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Create a client.

        Without an explicit ``configuration`` the settings are read from
        the environment (see ``Configuration.from_env``); keyword
        arguments take precedence over the environment.

        Args:
            api_key: API key (default: OPENAI_API_KEY)
            organization: Organization identifier
            project: Project identifier
            base_url: Base endpoint override
            timeout: Request timeout in seconds
            configuration: Complete configuration (other settings ignored)
            http_client: Pre-built httpx client; the caller keeps ownership

        Raises:
            ValueError: If no API key can be resolved
        """
        if configuration is None:
            configuration = Configuration.from_env(
                api_key,
                organization=organization,
                project=project,
                base_url=base_url,
                timeout=timeout,
            )
        self._configuration = configuration
        self._network = NetworkClient(configuration, http_client=http_client)

    @property
    def configuration(self) -> Configuration:
        """Immutable configuration shared by all calls."""
        return self._configuration

    @property
    def network(self) -> NetworkClient:
        """Underlying execution engine."""
        return self._network

    async def execute(self, request: Request[T]) -> T:
        """Perform a JSON exchange and return the decoded response."""
        return await self._network.execute(request)

    def stream(self, request: StreamableRequest[Any, T]) -> EventStream[T]:
        """Open an event stream; the request is sent on first iteration."""
        return self._network.stream(request)

    async def upload(self, request: UploadRequest[T]) -> T:
        """Send a multipart upload and return the decoded response."""
        return await self._network.upload(request)

    async def with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        config: RetryConfig | None = None,
        on_retry: Callable[[int, OpenAIKitError, float], Any] | None = None,
    ) -> T:
        """Run ``operation`` with retries for retryable failures.

        Args:
            operation: Zero-argument coroutine factory, called once per attempt
            config: Retry configuration (default: ``RetryConfig.default()``)
            on_retry: Optional callback ``(next_attempt, error, delay)``

        Returns:
            Result of the first successful attempt
        """
        return await with_retry(operation, config, on_retry)

    async def aclose(self) -> None:
        """Release pooled connections."""
        await self._network.aclose()

    async def __aenter__(self) -> OpenAIKit:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()
