"""
JSON codec shared by every exchange.

Rules:
- Outbound bodies are serialized with wire (snake_case) field names and
  without unset optional fields.
- Inbound snake_case keys map back to the declared attribute names.
- ``EpochDateTime`` fields travel as integer seconds since the epoch.
- A body that fails to decode as the declared type is checked against the
  service error envelope before it is reported as a decode failure.
"""

from __future__ import annotations

from datetime import datetime
from functools import lru_cache
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    PlainSerializer,
    TypeAdapter,
    ValidationError,
)
from pydantic.alias_generators import to_snake
from pydantic_core import PydanticSerializationError

from openaikit.errors import APIError, DecodingError, EncodingError, InvalidResponseError
from openaikit.types.envelope import APIErrorEnvelope
from openaikit.types.request import EmptyResponse


def _to_epoch_seconds(value: datetime) -> int:
    return int(value.timestamp())


EpochDateTime = Annotated[
    datetime,
    PlainSerializer(_to_epoch_seconds, return_type=int, when_used="json"),
]
"""Datetime carried on the wire as seconds since the epoch."""


class WireModel(BaseModel):
    """Base model for request and response bodies.

    Field names are aliased to snake_case on the wire; either the wire name
    or the attribute name is accepted when validating.
    """

    model_config = ConfigDict(
        alias_generator=to_snake,
        populate_by_name=True,
        extra="ignore",
    )


_ANY_ADAPTER: TypeAdapter[Any] = TypeAdapter(Any)


@lru_cache(maxsize=256)
def _adapter(type_: Any) -> TypeAdapter[Any]:
    return TypeAdapter(type_)


def _type_name(type_: Any) -> str:
    return getattr(type_, "__name__", None) or repr(type_)


def encode_body(body: Any) -> bytes:
    """Serialize a request body to JSON bytes.

    Args:
        body: Pydantic model, dataclass, mapping, list or scalar

    Returns:
        UTF-8 JSON payload

    Raises:
        EncodingError: If the value cannot be serialized
    """
    try:
        if isinstance(body, BaseModel):
            return body.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
        return _ANY_ADAPTER.dump_json(body, by_alias=True, exclude_none=True)
    except (PydanticSerializationError, TypeError, ValueError) as e:
        raise EncodingError(e) from e


def decode(data: bytes | str, type_: Any) -> Any:
    """Decode JSON into the declared type.

    ``bytes`` targets receive the raw payload untouched.

    Raises:
        pydantic.ValidationError: If the payload does not match the type
    """
    if type_ is bytes:
        return data if isinstance(data, bytes) else data.encode("utf-8")
    if isinstance(type_, type) and issubclass(type_, BaseModel):
        return type_.model_validate_json(data)
    return _adapter(type_).validate_json(data)


def decode_api_error(data: bytes | str | None) -> APIErrorEnvelope | None:
    """Decode the service error envelope, or None if the body is not one."""
    if not data:
        return None
    try:
        return APIErrorEnvelope.model_validate_json(data)
    except ValidationError:
        return None


def _accepts_empty(type_: Any) -> bool:
    return type_ in (None, type(None), EmptyResponse, bytes)


def decode_response(
    data: bytes,
    type_: Any,
    *,
    status_code: int | None = None,
) -> Any:
    """Decode a success body, falling back to the error envelope.

    Args:
        data: Raw response body
        type_: Declared success type
        status_code: Response status, recorded on envelope errors

    Returns:
        Decoded value

    Raises:
        InvalidResponseError: Empty body where content was required
        APIError: Body is the service error envelope
        DecodingError: Body matches neither
    """
    if not data.strip():
        if not _accepts_empty(type_):
            raise InvalidResponseError("Empty response body")
        if type_ is EmptyResponse:
            return EmptyResponse()
        if type_ is bytes:
            return data
        return None

    try:
        return decode(data, type_)
    except ValueError as e:
        envelope = decode_api_error(data)
        if envelope is not None:
            raise APIError(envelope, status_code=status_code) from e
        raise DecodingError(e, target=_type_name(type_)) from e
