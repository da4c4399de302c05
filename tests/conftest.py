"""Shared fixtures for wrapkit tests."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def mock_client():
    """A client shaped like an OpenAI-style SDK."""
    return SimpleNamespace(
        chat=SimpleNamespace(
            completions=SimpleNamespace(
                create=AsyncMock(return_value={"id": "test-completion"}),
            ),
        ),
        models=SimpleNamespace(
            list=AsyncMock(return_value={"data": [{"id": "gpt-4o"}]}),
        ),
        files=SimpleNamespace(
            create=AsyncMock(return_value={"id": "file-1"}),
            delete=AsyncMock(return_value={"deleted": True}),
        ),
        embeddings=SimpleNamespace(
            create=AsyncMock(return_value={"data": []}),
        ),
        sync_method=MagicMock(return_value="sync-result"),
        base_url="https://api.example.com/v1",
        max_retries=2,
    )
