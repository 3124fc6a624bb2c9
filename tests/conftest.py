"""Shared test fixtures for chatstream.

Provides settings isolation, a loaded chat and an in-memory backend
built on ``httpx.MockTransport``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import pytest

from chatstream.client import ChatAPIClient
from chatstream.schema.chat import ChatWithMessages
from chatstream.settings import Settings, get_settings
from tests.helpers.backend import FakeBackend, make_message

# =============================================================================
# SETTINGS
# =============================================================================


@pytest.fixture(autouse=True)
def test_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[Settings]:
    """Provide test settings with safe defaults via the environment."""
    monkeypatch.setenv("ENVIRONMENT", "testing")
    monkeypatch.setenv("BACKEND_URL", "http://backend.test")
    monkeypatch.setenv("API_TOKEN", "test-token")
    monkeypatch.setenv("USER_ID", "user_1")
    monkeypatch.delenv("BACKEND_SERVER_URL", raising=False)
    monkeypatch.delenv("NEXT_PUBLIC_BACKEND_SERVER_URL", raising=False)
    monkeypatch.delenv("ROLLBACK_ON_CANCEL", raising=False)
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


# =============================================================================
# CHAT
# =============================================================================


@pytest.fixture
def chat() -> ChatWithMessages:
    """A loaded chat with one earlier exchange."""
    return ChatWithMessages(
        id="chat-1",
        title="Quarterly report",
        project_id="proj-1",
        messages=[
            make_message("m1", "user", "What is in the report?"),
            make_message("m2", "assistant", "Revenue figures."),
        ],
    )


# =============================================================================
# BACKEND
# =============================================================================


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def api_client(backend: FakeBackend) -> AsyncIterator[ChatAPIClient]:
    """ChatAPIClient wired to the fake backend."""
    client = ChatAPIClient(transport=backend.transport)
    yield client
    await client.close()
