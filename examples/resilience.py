#!/usr/bin/env python3
"""
Retry example.

The engine never retries on its own; wrap calls that may hit rate limits
or transient server errors.

Usage:
    export OPENAI_API_KEY="your-api-key"
    python examples/resilience.py
"""

import asyncio

from chat_models import ChatCompletion, ChatMessage, ChatParams

from openaikit import JSONRequest, OpenAIKit, OpenAIKitError, RetryConfig


def on_retry(attempt: int, error: OpenAIKitError, delay: float) -> None:
    print(f"  attempt {attempt + 1} after {error.title} (waiting {delay:.1f}s)")


async def main() -> None:
    """Run retry example."""
    async with OpenAIKit() as kit:
        request = JSONRequest(
            "chat/completions",
            ChatCompletion,
            body=ChatParams(
                model="gpt-4o-mini",
                messages=[ChatMessage(role="user", content="Say hello.")],
            ),
        )

        try:
            completion = await kit.with_retry(
                lambda: kit.execute(request),
                RetryConfig.rate_limit_optimized(),
                on_retry=on_retry,
            )
        except OpenAIKitError as e:
            print(f"Gave up: {e.title} ({e.kind.value})")
            if e.requires_user_action:
                print("  fix the request or credentials before retrying")
            return

        print(completion.choices[0].message.content)


if __name__ == "__main__":
    asyncio.run(main())
