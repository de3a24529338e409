"""Shared models and payload builders for openaikit tests."""

from __future__ import annotations

from pydantic import BaseModel

BASE_URL = "https://api.test.local/v1"


class Model(BaseModel):
    """Minimal model resource used as a decoded response."""

    id: str
    object: str = "model"
    owned_by: str | None = None


class ModelList(BaseModel):
    data: list[Model]


class ChatChunk(BaseModel):
    """Streaming chunk with only the fields the tests look at."""

    id: str
    content: str = ""


def sse_body(*payloads: str, done: bool = True) -> bytes:
    """Build an event-stream body from raw data payloads."""
    lines = [f"data: {payload}\n\n" for payload in payloads]
    if done:
        lines.append("data: [DONE]\n\n")
    return "".join(lines).encode("utf-8")


def error_envelope(
    message: str,
    type_: str | None = None,
    param: str | None = None,
    code: str | None = None,
) -> dict:
    """Service error envelope as sent on the wire."""
    return {"error": {"message": message, "type": type_, "param": param, "code": code}}
