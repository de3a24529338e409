"""
API key resolution and auth headers.

Resolution order:
1. Explicit value
2. Environment variable (``OPENAI_API_KEY`` unless overridden)
"""

from __future__ import annotations

import os

DEFAULT_API_KEY_ENV = "OPENAI_API_KEY"


def resolve_api_key(
    explicit_key: str | None = None,
    env_var: str = DEFAULT_API_KEY_ENV,
) -> str | None:
    """Resolve the API key.

    Args:
        explicit_key: Explicitly provided API key
        env_var: Environment variable to fall back to

    Returns:
        Resolved API key or None if not found
    """
    if explicit_key:
        return explicit_key

    key = os.getenv(env_var)
    if key:
        return key.strip()

    return None


def get_auth_header(api_key: str | None) -> dict[str, str]:
    """Build the bearer authorization header.

    Args:
        api_key: API key; no header is produced when empty

    Returns:
        Dictionary with the Authorization header, or empty
    """
    if not api_key:
        return {}
    return {"Authorization": f"Bearer {api_key}"}
