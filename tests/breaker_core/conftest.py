from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from tests.breaker_core.support.fakes import (
    FakeClock,
    FakeLogger,
    RecordingListener,
)


@pytest.fixture
def fake_logger() -> FakeLogger:
    """Provide a fresh structured logger test double per test."""
    return FakeLogger()


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a manually advanced clock per test."""
    return FakeClock()


@pytest.fixture
def recording_listener() -> RecordingListener:
    """Provide a fresh event-recording breaker listener per test."""
    return RecordingListener()


@pytest.fixture
def restore_root_logging() -> Iterator[None]:
    """Detach handlers installed by ``configure_structlog`` after the test."""
    yield
    logging.basicConfig(handlers=[logging.NullHandler()], force=True)
    logging.getLogger().setLevel(logging.WARNING)
