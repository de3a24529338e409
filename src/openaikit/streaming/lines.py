"""
Line sources for event streams.

The SSE decoder consumes text lines. Where the transport already frames
lines (httpx ``aiter_lines``) ``NativeLineSource`` passes them through;
for raw byte chunks ``BufferedLineSource`` does the framing itself.
"""

from __future__ import annotations

import codecs
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator

    import httpx


_TERMINATOR = re.compile(r"\r\n|\r|\n")


class LineSource(ABC):
    """Produces the lines of one stream, without terminators."""

    @abstractmethod
    def lines(self) -> AsyncIterator[str]:
        """Iterate over complete lines in arrival order."""
        ...


class NativeLineSource(LineSource):
    """Lines framed by httpx."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    async def lines(self) -> AsyncIterator[str]:
        async for line in self._response.aiter_lines():
            yield line


class BufferedLineSource(LineSource):
    """Lines split out of raw byte chunks.

    Bytes are decoded incrementally, so a multi-byte character split
    across chunks is reassembled. ``\\n``, ``\\r\\n`` and a bare ``\\r`` all
    end a line. A ``\\r`` at the end of a chunk is held until the next chunk
    shows whether a ``\\n`` follows. An incomplete trailing line is carried
    into the next chunk and flushed when the input ends.

    Example:
        >>> source = BufferedLineSource(response.aiter_bytes())
        >>> async for line in source.lines():
        ...     print(line)
    """

    def __init__(self, chunks: AsyncIterable[bytes], encoding: str = "utf-8") -> None:
        self._chunks = chunks
        self._encoding = encoding

    @staticmethod
    def _split(buffer: str, *, final: bool) -> tuple[list[str], str]:
        lines = []
        start = 0
        for match in _TERMINATOR.finditer(buffer):
            if not final and match.group() == "\r" and match.end() == len(buffer):
                break
            lines.append(buffer[start : match.start()])
            start = match.end()
        return lines, buffer[start:]

    async def lines(self) -> AsyncIterator[str]:
        decoder = codecs.getincrementaldecoder(self._encoding)(errors="replace")
        buffer = ""

        async for chunk in self._chunks:
            buffer += decoder.decode(chunk)
            complete, buffer = self._split(buffer, final=False)
            for line in complete:
                yield line

        buffer += decoder.decode(b"", final=True)
        complete, buffer = self._split(buffer, final=True)
        for line in complete:
            yield line
        if buffer:
            yield buffer
