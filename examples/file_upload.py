#!/usr/bin/env python3
"""
File upload example.

Uploads a JSONL file with multipart/form-data.

Usage:
    export OPENAI_API_KEY="your-api-key"
    python examples/file_upload.py path/to/batch.jsonl
"""

import asyncio
import sys
from pathlib import Path

from chat_models import FileObject

from openaikit import FileUploadRequest, InvalidFileDataError, OpenAIKit


async def main(path: Path) -> None:
    """Run upload example."""
    request = FileUploadRequest(
        "files",
        FileObject,
        file=path.read_bytes(),
        filename=path.name,
        fields={"purpose": "batch"},
    )

    async with OpenAIKit() as kit:
        try:
            uploaded = await kit.upload(request)
        except InvalidFileDataError:
            print(f"{path} is empty")
            return

    print(f"Uploaded {uploaded.filename} as {uploaded.id} ({uploaded.bytes} bytes)")


if __name__ == "__main__":
    asyncio.run(main(Path(sys.argv[1])))
