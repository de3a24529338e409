"""
Minimal chat completion models shared by the examples.

openaikit only moves descriptors over the wire; resource models like these
are defined by the application (or a resource layer on top).
"""

from __future__ import annotations

from openaikit.codec import EpochDateTime, WireModel


class ChatMessage(WireModel):
    role: str
    content: str | None = None


class ChatParams(WireModel):
    model: str
    messages: list[ChatMessage]
    temperature: float | None = None
    max_tokens: int | None = None
    stream: bool | None = None


class Choice(WireModel):
    index: int
    message: ChatMessage
    finish_reason: str | None = None


class Usage(WireModel):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class ChatCompletion(WireModel):
    id: str
    created: EpochDateTime
    model: str
    choices: list[Choice]
    usage: Usage | None = None


class Delta(WireModel):
    role: str | None = None
    content: str | None = None


class ChunkChoice(WireModel):
    index: int
    delta: Delta
    finish_reason: str | None = None


class ChatCompletionChunk(WireModel):
    id: str
    created: EpochDateTime
    model: str
    choices: list[ChunkChoice]


class FileObject(WireModel):
    id: str
    bytes: int
    filename: str
    purpose: str
    created_at: EpochDateTime
