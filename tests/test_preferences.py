"""Tests for preferences storage.

These tests verify:
1. Memory and SQLite preferences share the same get/set contract
2. SQLite values survive reopening the file
3. The store restores and persists the view mode through them
"""

import os
import tempfile

import pytest
import pytest_asyncio

from querylist.preferences import MemoryPreferences, Preferences, SqlitePreferences
from querylist.query import ViewMode


@pytest_asyncio.fixture
async def sqlite_prefs():
    """Create a temporary preferences database."""
    with tempfile.TemporaryDirectory() as tmpdir:
        prefs = SqlitePreferences(os.path.join(tmpdir, "prefs.db"))
        await prefs.connect()
        yield prefs
        await prefs.close()


class TestPreferencesContract:
    """get/set behaviour common to every backend."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("backend", ["memory", "sqlite"])
    async def test_missing_key_is_none(self, backend, sqlite_prefs):
        prefs = MemoryPreferences() if backend == "memory" else sqlite_prefs
        assert await prefs.get("jobs:view-mode") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("backend", ["memory", "sqlite"])
    async def test_set_replaces_value(self, backend, sqlite_prefs):
        prefs = MemoryPreferences() if backend == "memory" else sqlite_prefs
        await prefs.set("jobs:view-mode", "table")
        await prefs.set("jobs:view-mode", "split")
        assert await prefs.get("jobs:view-mode") == "split"

    def test_backends_satisfy_protocol(self):
        assert isinstance(MemoryPreferences(), Preferences)
        assert isinstance(SqlitePreferences(":memory:"), Preferences)


class TestSqlitePreferences:
    """Tests specific to the SQLite backend."""

    @pytest.mark.asyncio
    async def test_values_survive_reopen(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "nested", "prefs.db")
            prefs = await SqlitePreferences(path).connect()
            await prefs.set("applications:view-mode", "table")
            await prefs.close()

            reopened = await SqlitePreferences(path).connect()
            assert await reopened.get("applications:view-mode") == "table"
            await reopened.close()

    def test_conn_before_connect_raises(self):
        with pytest.raises(RuntimeError):
            SqlitePreferences("unused.db").conn


class TestViewModePersistence:
    """The store reads and writes the view mode through preferences."""

    @pytest.mark.asyncio
    async def test_stored_mode_restored_on_mount(self, make_store):
        prefs = MemoryPreferences({"jobs:view-mode": "split"})
        store = make_store(view_mode_key="jobs:view-mode", preferences=prefs)
        await store.mount()
        await store.settle()
        assert store.state.view_mode == ViewMode.SPLIT

    @pytest.mark.asyncio
    async def test_unknown_stored_mode_ignored(self, make_store):
        prefs = MemoryPreferences({"jobs:view-mode": "carousel"})
        store = make_store(view_mode_key="jobs:view-mode", default_view_mode="table", preferences=prefs)
        await store.mount()
        await store.settle()
        assert store.state.view_mode == ViewMode.TABLE

    @pytest.mark.asyncio
    async def test_change_written_through(self, make_store, sqlite_prefs):
        store = make_store(view_mode_key="jobs:view-mode", preferences=sqlite_prefs)
        await store.mount()
        await store.settle()
        await store.set_view_mode("table")
        assert await sqlite_prefs.get("jobs:view-mode") == "table"
