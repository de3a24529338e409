"""
Single-pass event stream handle.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

EventT = TypeVar("EventT")


class EventStream(Generic[EventT]):
    """Lazily produced events of one streaming exchange.

    The underlying request is sent on first iteration. The stream can be
    iterated once; closing it early (``aclose``, leaving ``async with``,
    breaking out and closing, or task cancellation) releases the HTTP
    response without raising.

    Example:
        >>> async with client.stream(request) as events:
        ...     async for event in events:
        ...         print(event)
    """

    def __init__(self, events: AsyncGenerator[EventT, None]) -> None:
        self._events = events
        self._iterated = False
        self._closed = False

    @property
    def closed(self) -> bool:
        """Whether the stream was closed or ran to completion."""
        return self._closed

    def __aiter__(self) -> EventStream[EventT]:
        if self._iterated:
            raise RuntimeError("EventStream can only be iterated once; issue a new stream call")
        self._iterated = True
        return self

    async def __anext__(self) -> EventT:
        if self._closed:
            raise StopAsyncIteration
        try:
            return await self._events.__anext__()
        except BaseException:
            self._closed = True
            raise

    async def aclose(self) -> None:
        """Stop consuming and release the underlying exchange."""
        self._closed = True
        await self._events.aclose()

    async def __aenter__(self) -> EventStream[EventT]:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()
