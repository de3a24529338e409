"""
Streaming layer - turns an event-stream response into typed events.

- LineSource: line framing (native httpx lines or manual byte buffering)
- SSEDecoder: data-frame state machine with ``[DONE]`` termination
- EventStream: single-pass async iterator handed to callers
"""

from openaikit.streaming.decoder import (
    DATA_PREFIX,
    DONE_SIGNAL,
    LineAction,
    ParsedLine,
    SSEDecoder,
)
from openaikit.streaming.lines import BufferedLineSource, LineSource, NativeLineSource
from openaikit.streaming.stream import EventStream

__all__ = [
    "BufferedLineSource",
    "DATA_PREFIX",
    "DONE_SIGNAL",
    "EventStream",
    "LineAction",
    "LineSource",
    "NativeLineSource",
    "ParsedLine",
    "SSEDecoder",
]
