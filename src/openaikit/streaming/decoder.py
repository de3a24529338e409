"""
Server-Sent Events decoder.

Parses the ``data:`` frames of an event stream::

    data: {"id": "chunk-1", ...}

    data: {"id": "chunk-2", ...}

    data: [DONE]

Per line:
- empty line: frame separator, skipped
- line without the data prefix (``event:``, ``id:``, comments): skipped
- ``data: [DONE]``: graceful end of stream
- any other data line: one JSON payload decoded as the event type; a
  payload that fails to decode ends the stream with ``DecodingError``
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from openaikit import codec
from openaikit.errors import DecodingError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

EventT = TypeVar("EventT")

DATA_PREFIX = "data: "
DONE_SIGNAL = "[DONE]"


class LineAction(str, Enum):
    """What the decoder does with one line."""

    SKIP = "skip"
    DONE = "done"
    DATA = "data"


@dataclass(frozen=True)
class ParsedLine:
    action: LineAction
    payload: str | None = None


class SSEDecoder(Generic[EventT]):
    """Decode SSE lines into typed events.

    Attributes:
        event_type: Type each data payload is decoded into
        prefix: Data line prefix (default: "data: ")
        done_signal: End of stream token (default: "[DONE]")
    """

    def __init__(
        self,
        event_type: type[EventT] | Any,
        *,
        prefix: str = DATA_PREFIX,
        done_signal: str = DONE_SIGNAL,
    ) -> None:
        self.event_type = event_type
        self.prefix = prefix
        self.done_signal = done_signal

    def parse_line(self, line: str) -> ParsedLine:
        """Classify a single line."""
        if not line:
            return ParsedLine(LineAction.SKIP)
        if not line.startswith(self.prefix):
            return ParsedLine(LineAction.SKIP)

        payload = line[len(self.prefix):]
        if payload == self.done_signal:
            return ParsedLine(LineAction.DONE)
        return ParsedLine(LineAction.DATA, payload)

    def decode_payload(self, payload: str) -> EventT:
        """Decode one data payload.

        Raises:
            DecodingError: If the payload is not a valid event
        """
        try:
            return codec.decode(payload, self.event_type)
        except ValueError as e:
            raise DecodingError(
                e, target=getattr(self.event_type, "__name__", repr(self.event_type))
            ) from e

    async def decode(self, lines: AsyncIterator[str]) -> AsyncIterator[EventT]:
        """Decode a line stream into events.

        Args:
            lines: Lines in arrival order

        Yields:
            Decoded events, in wire order

        Raises:
            DecodingError: On the first payload that fails to decode
        """
        async for line in lines:
            parsed = self.parse_line(line)
            if parsed.action is LineAction.SKIP:
                continue
            if parsed.action is LineAction.DONE:
                return
            yield self.decode_payload(parsed.payload or "")
