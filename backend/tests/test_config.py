"""Tests for database URL selection."""
import pytest

from uptimekit import config
from uptimekit.config import get_database_url


@pytest.mark.parametrize(
    "url, expected",
    [
        ("postgres://u:p@db:5432/up", "postgresql+asyncpg://u:p@db:5432/up"),
        ("postgresql://u:p@db:5432/up", "postgresql+asyncpg://u:p@db:5432/up"),
        ("postgresql+asyncpg://u:p@db:5432/up", "postgresql+asyncpg://u:p@db:5432/up"),
        ("sqlite+aiosqlite:///tmp/up.db", "sqlite+aiosqlite:///tmp/up.db"),
    ],
)
def test_database_url_rewrites_to_async_driver(monkeypatch, url, expected):
    monkeypatch.setattr(config.settings, "database_url", url)
    assert get_database_url() == expected


def test_defaults_to_sqlite_in_data_path(monkeypatch):
    monkeypatch.setattr(config.settings, "database_url", None)
    monkeypatch.setattr(config.settings, "data_path", "/srv/data")
    assert get_database_url() == "sqlite+aiosqlite:////srv/data/uptimekit.db"
