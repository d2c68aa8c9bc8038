"""
Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import asyncio
import logging
from collections.abc import Sequence

import pytest

from gemchat.config import clear_settings_cache
from gemchat.conversations import Message
from gemchat.llm import FALLBACK_TITLE, BaseCompletionClient

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires a Gemini API key)",
    )


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (calls the real API)"
    )
    config.addinivalue_line("markers", "unit: mark test as unit test (default)")


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless explicitly enabled."""
    if config.getoption("--run-integration"):
        return
    skip_integration = pytest.mark.skip(
        reason="Integration tests disabled (use --run-integration to enable)."
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def configure_test_logging(caplog):
    """
    Configure logging for tests.

    The CLI raises the package logger to CRITICAL; reset it so every test
    starts with records flowing to caplog.
    """
    logging.getLogger("gemchat").setLevel(logging.NOTSET)
    caplog.set_level(logging.DEBUG)
    yield


# ============================================================================
# Settings
# ============================================================================


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Point settings at a temporary store and ignore any local .env file."""
    storage_path = tmp_path / "storage.json"
    monkeypatch.setenv("GEMCHAT_ENV_SOURCE", "environment")
    monkeypatch.setenv("STORAGE_BACKEND", "file")
    monkeypatch.setenv("STORAGE_PATH", str(storage_path))
    monkeypatch.delenv("LLM_API_KEY", raising=False)
    clear_settings_cache()
    yield storage_path
    clear_settings_cache()


# ============================================================================
# Completion Client Fake
# ============================================================================


class FakeCompletionClient(BaseCompletionClient):
    """
    Scripted completion client.

    Each complete() call consumes the next entry of ``replies``: a string is
    returned, an exception is raised, and a future is awaited so tests can
    control resolution order.
    """

    def __init__(self):
        super().__init__(client_name="fake")
        self.replies: list = []
        self.title: str = FALLBACK_TITLE
        self.complete_calls: list[tuple[list[Message], str, str]] = []
        self.title_calls: list[list[Message]] = []
        self.closed = False

    async def complete(
        self,
        history: Sequence[Message],
        system_instruction: str,
        api_key: str,
    ) -> str:
        self.complete_calls.append((list(history), system_instruction, api_key))
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, asyncio.Future):
            return await reply
        return reply

    async def suggest_title(self, exchange: Sequence[Message], api_key: str) -> str:
        self.title_calls.append(list(exchange))
        return self.title

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_client():
    """Scripted completion client with no network access."""
    return FakeCompletionClient()
