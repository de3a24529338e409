"""Root pytest fixtures for openaikit tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from openaikit import Configuration
from openaikit.telemetry import clear_log_context
from tests.helpers import BASE_URL

if TYPE_CHECKING:
    from collections.abc import Iterator

OPENAI_ENV_VARS = (
    "OPENAI_API_KEY",
    "OPENAI_ORG_ID",
    "OPENAI_PROJECT_ID",
    "OPENAI_BASE_URL",
    "OPENAI_TIMEOUT_SECS",
    "OPENAI_HTTP_TRUST_ENV",
    "OPENAI_PROXY_URL",
)


@pytest.fixture
def configuration() -> Configuration:
    """Configuration pointing at a fake host."""
    return Configuration(api_key="sk-test-key", base_url=BASE_URL, timeout=5.0)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[pytest.MonkeyPatch]:
    """Remove every OPENAI_* variable the configuration reads."""
    for name in OPENAI_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield monkeypatch


@pytest.fixture(autouse=True)
def _reset_log_context() -> Iterator[None]:
    yield
    clear_log_context()
