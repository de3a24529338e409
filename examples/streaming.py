#!/usr/bin/env python3
"""
Streaming example.

Demonstrates consuming a server-sent event stream as typed chunks,
including early termination.

Usage:
    export OPENAI_API_KEY="your-api-key"
    python examples/streaming.py
"""

import asyncio

from chat_models import ChatCompletion, ChatCompletionChunk, ChatMessage, ChatParams

from openaikit import OpenAIKit, StreamingJSONRequest
from openaikit.telemetry import KitLogger, LogLevel


def chat_request(prompt: str) -> StreamingJSONRequest:
    return StreamingJSONRequest(
        "chat/completions",
        ChatCompletion,
        body=ChatParams(
            model="gpt-4o-mini",
            messages=[ChatMessage(role="user", content=prompt)],
            stream=True,
        ),
        stream_event_type=ChatCompletionChunk,
    )


async def main() -> None:
    """Run streaming example."""
    KitLogger.configure(level=LogLevel.DEBUG)

    async with OpenAIKit() as kit:
        # Full stream, ends at the [DONE] marker
        print("Story: ", end="")
        async for chunk in kit.stream(chat_request("Tell me a very short story.")):
            for choice in chunk.choices:
                if choice.delta.content:
                    print(choice.delta.content, end="", flush=True)
        print()

        # Stop after a handful of chunks; leaving the block releases the response
        received = 0
        async with kit.stream(chat_request("Count from 1 to 100.")) as events:
            async for _ in events:
                received += 1
                if received == 5:
                    break
        print(f"Stopped early after {received} chunks")


if __name__ == "__main__":
    asyncio.run(main())
