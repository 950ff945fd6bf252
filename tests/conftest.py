import pytest
from unittest.mock import AsyncMock, Mock

from adhdone.api import AdhdoneAI
from adhdone.config import Settings
from adhdone.storage import MemoryKeyValueStore

LLM_SUGGESTION = (
    '{"message": "Try opening the file and nothing else.", '
    '"suggestedStartStep": "Open the report document", '
    '"reminderIntervalMinutes": 20}'
)


class FakeClock:
    """Controllable replacement for time.time."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend():
    return MemoryKeyValueStore()


@pytest.fixture
def settings():
    return Settings(offline=False)


@pytest.fixture
def provider():
    """Mock completion provider answering with a valid suggestion."""
    mock_provider = Mock()
    mock_provider.complete = AsyncMock(return_value=LLM_SUGGESTION)
    return mock_provider


@pytest.fixture
def provider_factory(provider):
    return Mock(return_value=provider)


@pytest.fixture
def api(settings, backend, clock, provider_factory):
    """Isolated instance over an in-memory store."""
    return AdhdoneAI(settings=settings, backend=backend, clock=clock, provider_factory=provider_factory)
