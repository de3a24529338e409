"""
Client configuration.

``Configuration`` is immutable for the lifetime of a client and shared
read-only by every request issued through it.

Environment variables read by ``Configuration.from_env``:
- OPENAI_API_KEY: API key
- OPENAI_ORG_ID: Organization identifier
- OPENAI_PROJECT_ID: Project identifier
- OPENAI_BASE_URL: Base endpoint
- OPENAI_TIMEOUT_SECS: Request timeout in seconds
- OPENAI_HTTP_TRUST_ENV: Set to "1" to honour proxy environment settings
- OPENAI_PROXY_URL: Proxy URL (only with OPENAI_HTTP_TRUST_ENV=1)
"""

from __future__ import annotations

import os
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Any

from openaikit.transport.auth import resolve_api_key

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_TIMEOUT = 60.0


def _trust_env_enabled() -> bool:
    return os.getenv("OPENAI_HTTP_TRUST_ENV", "0") == "1"


@dataclass(frozen=True)
class Configuration:
    """Credentials, endpoint and timeout policy for a client.

    Attributes:
        api_key: Bearer credential
        organization: Optional organization identifier
        project: Optional project identifier
        base_url: Base endpoint that request paths resolve against
        timeout: Request timeout in seconds (bounds header acquisition)
        resource_timeout: Total stream duration in seconds (default: 2 * timeout)
        proxy: Optional proxy URL
        trust_env: Whether httpx should read proxy/cert settings from the environment
        manual_line_buffering: Split streamed bytes into lines in the decoder
            instead of relying on httpx line iteration
    """

    api_key: str = field(repr=False)
    organization: str | None = None
    project: str | None = None
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    resource_timeout: float | None = None
    proxy: str | None = None
    trust_env: bool = False
    manual_line_buffering: bool = False

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ValueError("api_key must not be empty")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.resource_timeout is None:
            object.__setattr__(self, "resource_timeout", self.timeout * 2)
        elif self.resource_timeout <= 0:
            raise ValueError(f"resource_timeout must be positive, got {self.resource_timeout}")

    @property
    def stream_timeout(self) -> float:
        """Resolved total stream duration in seconds."""
        return self.resource_timeout if self.resource_timeout is not None else self.timeout * 2

    @classmethod
    def from_env(cls, api_key: str | None = None, **overrides: Any) -> Configuration:
        """Build a configuration from environment variables.

        Args:
            api_key: Explicit API key (overrides OPENAI_API_KEY)
            **overrides: Field values that take precedence over the environment

        Returns:
            Configuration instance

        Raises:
            ValueError: If no API key can be resolved
        """
        key = resolve_api_key(api_key)
        if not key:
            raise ValueError("No API key provided and OPENAI_API_KEY is not set")

        values: dict[str, Any] = {}
        if org := os.getenv("OPENAI_ORG_ID"):
            values["organization"] = org
        if project := os.getenv("OPENAI_PROJECT_ID"):
            values["project"] = project
        if base_url := os.getenv("OPENAI_BASE_URL"):
            values["base_url"] = base_url
        if env_timeout := os.getenv("OPENAI_TIMEOUT_SECS"):
            with suppress(ValueError):
                values["timeout"] = float(env_timeout)
        if _trust_env_enabled():
            values["trust_env"] = True
            if proxy := os.getenv("OPENAI_PROXY_URL"):
                values["proxy"] = proxy

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(api_key=key, **values)
