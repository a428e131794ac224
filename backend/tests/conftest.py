"""Shared fixtures: a throwaway SQLite database per test."""
from pathlib import Path

import pytest

from uptimekit.database import create_engine_for, create_session_factory, init_db
from uptimekit.models import Monitor
from uptimekit.services.checker import Outcome
from uptimekit.services.history import HistoryStore


@pytest.fixture
async def engine(tmp_path: Path):
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'uptimekit.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def store(session_factory) -> HistoryStore:
    return HistoryStore(session_factory)


@pytest.fixture
def add_monitor(session_factory):
    async def _add(
        name: str = "Example",
        target: str = "https://example.com",
        type: str = "http",
        **fields,
    ) -> Monitor:
        async with session_factory() as session:
            monitor = Monitor(name=name, target=target, type=type, **fields)
            session.add(monitor)
            await session.commit()
            return monitor
    return _add


class FakeChecker:
    """Returns canned outcomes per target; exceptions are raised as-is."""

    def __init__(self, outcomes=None, default=None):
        self.outcomes = outcomes or {}
        self.default = default or Outcome.ok(120)
        self.calls = []

    async def probe(self, monitor_type, target):
        self.calls.append((monitor_type, target))
        outcome = self.outcomes.get(target, self.default)
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return await outcome()
        return outcome


@pytest.fixture
def make_checker():
    return FakeChecker
