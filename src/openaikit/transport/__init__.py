"""
Transport layer - HTTP execution engine for API communication.

Provides httpx-based transport with:
- JSON exchanges, SSE streaming and multipart uploads
- Status classification into typed errors
- Proxy configuration and optional HTTP/2
- API key resolution
"""

from openaikit.transport.auth import get_auth_header, resolve_api_key
from openaikit.transport.http import NetworkClient, user_agent

__all__ = [
    "NetworkClient",
    "get_auth_header",
    "resolve_api_key",
    "user_agent",
]
