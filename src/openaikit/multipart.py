"""
multipart/form-data encoding for uploads.

Parts are written in the order they were added, so the same inputs and
boundary always yield byte-identical payloads.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from pathlib import PurePath

from openaikit.errors import InvalidFileDataError

_CRLF = b"\r\n"

# Extension to content type for file parts
_MIME_TYPES: dict[str, str] = {
    "json": "application/json",
    "jsonl": "application/json",
    "pdf": "application/pdf",
    "txt": "text/plain",
    "md": "text/plain",
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "m4a": "audio/mp4",
    "webm": "audio/webm",
}

_DEFAULT_MIME_TYPE = "application/octet-stream"


def generate_boundary() -> str:
    """Generate a fresh boundary token.

    Collisions with part content are assumed not to happen and are not
    checked.
    """
    return uuid.uuid4().hex


def mime_type_for(filename: str) -> str:
    """Guess a content type from a filename extension."""
    ext = PurePath(filename).suffix.lstrip(".").lower()
    return _MIME_TYPES.get(ext, _DEFAULT_MIME_TYPE)


@dataclass(frozen=True)
class MultipartPart:
    """One form part.

    Attributes:
        name: Form field name
        data: Raw part content
        filename: File name (binary parts only)
        content_type: Content type (binary parts only)
    """

    name: str
    data: bytes
    filename: str | None = None
    content_type: str | None = None

    def headers(self) -> bytes:
        disposition = f'Content-Disposition: form-data; name="{self.name}"'
        if self.filename is not None:
            disposition += f'; filename="{self.filename}"'
        lines = [disposition]
        if self.content_type:
            lines.append(f"Content-Type: {self.content_type}")
        return "\r\n".join(lines).encode("utf-8") + _CRLF


class MultipartEncoder:
    """Builder for multipart/form-data payloads.

    Example:
        >>> encoder = MultipartEncoder()
        >>> encoder.add_file("file", "data.jsonl", payload)
        >>> encoder.add_field("purpose", "fine-tune")
        >>> body = encoder.encode(generate_boundary())
    """

    def __init__(self) -> None:
        self._parts: list[MultipartPart] = []

    @property
    def parts(self) -> list[MultipartPart]:
        """Parts in insertion order."""
        return list(self._parts)

    def add_field(self, name: str, value: str | int | float | bool) -> MultipartEncoder:
        """Add a plain text field.

        Args:
            name: Field name
            value: Field value; non-strings are converted with ``str()``

        Returns:
            Self for chaining
        """
        if isinstance(value, bool):
            text = "true" if value else "false"
        else:
            text = str(value)
        self._parts.append(MultipartPart(name=name, data=text.encode("utf-8")))
        return self

    def add_file(
        self,
        name: str,
        filename: str,
        data: bytes,
        *,
        content_type: str | None = None,
    ) -> MultipartEncoder:
        """Add a binary file part.

        Args:
            name: Field name (usually "file")
            filename: File name sent to the server
            data: File content
            content_type: Explicit content type; guessed from the extension if omitted

        Returns:
            Self for chaining

        Raises:
            InvalidFileDataError: If data is empty
        """
        if not data:
            raise InvalidFileDataError(filename)
        self._parts.append(
            MultipartPart(
                name=name,
                data=bytes(data),
                filename=filename,
                content_type=content_type or mime_type_for(filename),
            )
        )
        return self

    def encode(self, boundary: str) -> bytes:
        """Serialize all parts using the given boundary.

        Args:
            boundary: Boundary token (without leading dashes)

        Returns:
            Complete multipart payload
        """
        delimiter = f"--{boundary}".encode()
        chunks: list[bytes] = []
        for part in self._parts:
            chunks.append(delimiter + _CRLF)
            chunks.append(part.headers())
            chunks.append(_CRLF)
            chunks.append(part.data)
            chunks.append(_CRLF)
        chunks.append(delimiter + b"--" + _CRLF)
        return b"".join(chunks)

    @staticmethod
    def content_type(boundary: str) -> str:
        """Content-Type header value declaring the boundary."""
        return f"multipart/form-data; boundary={boundary}"
