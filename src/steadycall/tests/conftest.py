"""Shared fixtures for steadycall tests."""

from __future__ import annotations

import os
import random
from dataclasses import dataclass, field

import pytest

from steadycall.foundation.config import clear_settings_cache
from steadycall.runtime.observability import BoundLogger, LogEntry
from steadycall.runtime.retry import RetryPolicy
from steadycall.testing import FakeClock, RecordingSleep


@dataclass
class CaptureRenderer:
    """Collects log entries in memory."""
    entries: list[LogEntry] = field(default_factory=list)

    def render(self, entry: LogEntry) -> None:
        self.entries.append(entry)

    def events(self) -> list[str]:
        return [e.event for e in self.entries]


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> object:
    """Isolate every test from STEADYCALL_* environment and the settings cache."""
    for key in list(os.environ):
        if key.startswith("STEADYCALL_"):
            monkeypatch.delenv(key)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def capture() -> CaptureRenderer:
    return CaptureRenderer()


@pytest.fixture
def logger(capture: CaptureRenderer) -> BoundLogger:
    return BoundLogger(context={"logger": "test"}, _renderer=capture)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def policy() -> RetryPolicy:
    """Fast, deterministic policy: no jitter, tiny deadline."""
    return RetryPolicy(timeout=0.5, max_retries=3, base_delay=1.0, max_delay=30.0, jitter=False,
                       rng=random.Random(0))
