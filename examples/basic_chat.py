#!/usr/bin/env python3
"""
Basic chat completion example.

This example demonstrates the simplest way to use openaikit
for a JSON request/response exchange.

Usage:
    export OPENAI_API_KEY="your-api-key"
    python examples/basic_chat.py
"""

import asyncio

from chat_models import ChatCompletion, ChatMessage, ChatParams

from openaikit import HTTPMethod, JSONRequest, OpenAIKit, OpenAIKitError


async def main() -> None:
    """Run basic chat example."""
    # Reads OPENAI_API_KEY (and OPENAI_ORG_ID, OPENAI_BASE_URL, ...) from the environment
    async with OpenAIKit() as kit:
        request = JSONRequest(
            "chat/completions",
            ChatCompletion,
            body=ChatParams(
                model="gpt-4o-mini",
                messages=[
                    ChatMessage(role="system", content="You are a helpful assistant."),
                    ChatMessage(role="user", content="What is the capital of France?"),
                ],
                temperature=0.7,
            ),
        )

        try:
            completion = await kit.execute(request)
        except OpenAIKitError as e:
            print(f"{e.title}: {e.message}")
            if e.affected_parameter:
                print(f"  parameter: {e.affected_parameter}")
            return

        print(f"Response: {completion.choices[0].message.content}")
        print(f"Finish reason: {completion.choices[0].finish_reason}")
        print(f"Created: {completion.created:%Y-%m-%d %H:%M:%S}")
        if completion.usage:
            print(f"Tokens: {completion.usage.prompt_tokens} in, {completion.usage.completion_tokens} out")

        # GET requests never carry a body
        models = await kit.execute(JSONRequest("models", dict, method=HTTPMethod.GET))
        print(f"Available models: {len(models.get('data', []))}")


if __name__ == "__main__":
    asyncio.run(main())
