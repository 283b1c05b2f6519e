"""
Shared fixtures for histree tests.
"""

from datetime import datetime, timezone

import pytest

from histree.database import HistoryDB
from histree.entry import HistoryEntry


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Point XDG paths and HOME at a temporary directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(home / ".local" / "share"))
    monkeypatch.setenv("XDG_CONFIG_DIRS", str(tmp_path / "etc" / "xdg"))
    monkeypatch.delenv("HISTREE_DB", raising=False)
    return home


@pytest.fixture
def db(tmp_path):
    """A freshly initialized history database."""
    database = HistoryDB(tmp_path / "history.db")
    yield database
    database.close()


@pytest.fixture
def make_entry():
    """Factory for entries with sensible defaults."""

    def _make(command="ls -la", directory="/home/user", minute=0, **kwargs):
        kwargs.setdefault("exit_code", 0)
        kwargs.setdefault("hostname", "test-host")
        kwargs.setdefault("process_id", 12345)
        kwargs.setdefault(
            "timestamp", datetime(2023, 5, 15, 12, minute, 0, tzinfo=timezone.utc)
        )
        return HistoryEntry(command=command, directory=directory, **kwargs)

    return _make
