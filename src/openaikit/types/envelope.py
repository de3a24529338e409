"""
Structured error envelope returned by the service.

Wire format::

    {"error": {"message": "...", "type": "...", "param": "...", "code": "..."}}
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class APIErrorDetail(BaseModel):
    """Body of the error envelope."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    message: str = Field(description="Human-readable error message")
    type: str | None = Field(default=None, description="Error type, e.g. invalid_request_error")
    param: str | None = Field(default=None, description="Offending request field")
    code: str | None = Field(default=None, description="Machine-readable error code")


class APIErrorEnvelope(BaseModel):
    """Top-level error envelope."""

    model_config = ConfigDict(extra="allow")

    error: APIErrorDetail
