"""Tests for fcpbot-store implementations."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from unittest.mock import MagicMock

import pytest
from github import GithubException

from fcpbot_store.base import StoreError
from fcpbot_store.gist import GistStore
from fcpbot_store.memory import MemoryStore
from fcpbot_store.models import DeliveryRecord, LedgerEntry
from fcpbot_store.sqlite import SQLiteStore

V1 = datetime(2024, 5, 1, 9, 0, 0)
V2 = datetime(2024, 5, 2, 9, 0, 0, 250000)


def _make_entry(title="Stabilize foo", channels=("@rust_fcp",), version=V1, fmt=1):
    return LedgerEntry(
        info={"id": 1, "title": title, "updated_at": version.isoformat()},
        messages={c: DeliveryRecord(message_id=100 + i, version=version, format=fmt) for i, c in enumerate(channels)},
    )


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TestModels:
    def test_persisted_shape(self):
        d = _make_entry(version=V2).to_dict()
        assert d["messages"]["@rust_fcp"] == {"id": 100, "version": "2024-05-02T09:00:00.250000", "format": 1}
        assert d["info"]["title"] == "Stabilize foo"

    def test_from_dict_tolerates_missing_messages(self):
        entry = LedgerEntry.from_dict({"info": {"id": 3}})
        assert entry.messages == {}

    def test_is_current(self):
        record = DeliveryRecord(message_id=1, version=V1, format=1)
        assert record.is_current(V1, 1)
        assert not record.is_current(V2, 1)
        assert not record.is_current(V1, 2)


# ---------------------------------------------------------------------------
# MemoryStore
# ---------------------------------------------------------------------------


class TestMemoryStore:
    def test_get_missing_returns_none(self):
        assert MemoryStore().get("1") is None

    def test_put_and_get(self):
        store = MemoryStore()
        store.put("1", _make_entry())
        entry = store.get("1")
        assert entry.messages["@rust_fcp"].message_id == 100
        assert entry.messages["@rust_fcp"].version == V1

    def test_returned_entry_is_a_copy(self):
        store = MemoryStore()
        store.put("1", _make_entry())
        store.get("1").messages.clear()
        assert "@rust_fcp" in store.get("1").messages

    def test_initial_entries_and_keys(self):
        store = MemoryStore({"1": _make_entry(), "2": _make_entry()})
        assert store.keys() == ["1", "2"]


# ---------------------------------------------------------------------------
# SQLiteStore
# ---------------------------------------------------------------------------


class TestSQLiteStore:
    def test_put_and_get(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        store.put("1", _make_entry(channels=("@a", "@b")))

        entry = store.get("1")
        assert set(entry.messages) == {"@a", "@b"}
        assert entry.messages["@b"].message_id == 101
        assert entry.info["title"] == "Stabilize foo"
        store.close()

    def test_get_missing_returns_none(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        assert store.get("404") is None
        store.close()

    def test_put_replaces_existing_entry(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        store.put("1", _make_entry(version=V1))
        store.put("1", _make_entry(version=V2, fmt=2))

        entry = store.get("1")
        assert entry.messages["@rust_fcp"].version == V2
        assert entry.messages["@rust_fcp"].format == 2
        assert store.keys() == ["1"]
        store.close()

    def test_keys_in_numeric_order(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        for key in ("10", "2", "33", "1"):
            store.put(key, _make_entry())
        assert store.keys() == ["1", "2", "10", "33"]
        store.close()

    def test_persists_across_connections(self, tmp_path):
        db_path = str(tmp_path / "test.db")
        store_a = SQLiteStore(db_path=db_path)
        store_a.put("7", _make_entry())
        store_a.close()

        store_b = SQLiteStore(db_path=db_path)
        assert store_b.get("7").messages["@rust_fcp"].message_id == 100
        store_b.close()

    def test_corrupt_row_raises_store_error(self, tmp_path):
        db_path = str(tmp_path / "test.db")
        store = SQLiteStore(db_path=db_path)
        conn = sqlite3.connect(db_path)
        conn.execute("INSERT INTO ledger (key, value) VALUES ('9', 'not json')")
        conn.commit()
        conn.close()

        with pytest.raises(StoreError, match="Corrupt"):
            store.get("9")
        store.close()

    def test_closed_connection_raises_store_error(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        store.close()
        with pytest.raises(StoreError):
            store.put("1", _make_entry())
        with pytest.raises(StoreError):
            store.get("1")

    def test_unopenable_path_raises_store_error(self, tmp_path):
        with pytest.raises(StoreError):
            SQLiteStore(db_path=str(tmp_path / "missing-dir" / "test.db"))


# ---------------------------------------------------------------------------
# GistStore
# ---------------------------------------------------------------------------


def _make_gist_mock(existing: dict | None = None, raw: str | None = None):
    """Return a mock Gist object with fcpbot_ledger.json pre-populated."""
    gist = MagicMock()
    if existing is None and raw is None:
        gist.files = {}
    else:
        file_mock = MagicMock()
        file_mock.content = raw if raw is not None else json.dumps(existing)
        gist.files = {"fcpbot_ledger.json": file_mock}
    return gist


def _make_gist_store():
    """Return a GistStore with a mocked Github client."""
    store = object.__new__(GistStore)
    store._gist_id = "abc123"
    store._gh = MagicMock()
    store._records = None
    return store


@pytest.fixture
def plain_file_content(mocker):
    """Make InputFileContent return its content so edit() payloads are easy to inspect."""
    return mocker.patch("fcpbot_store.gist.InputFileContent", side_effect=lambda content: content)


def _written(gist) -> dict:
    return json.loads(gist.edit.call_args.kwargs["files"]["fcpbot_ledger.json"])


class TestGistStore:
    def test_get_missing_file_returns_none(self):
        store = _make_gist_store()
        store._gh.get_gist.return_value = _make_gist_mock()
        assert store.get("1") is None

    def test_get_existing_entry(self):
        store = _make_gist_store()
        store._gh.get_gist.return_value = _make_gist_mock({"1": _make_entry().to_dict()})
        entry = store.get("1")
        assert entry.messages["@rust_fcp"].message_id == 100

    def test_put_writes_whole_ledger(self, plain_file_content):
        store = _make_gist_store()
        gist = _make_gist_mock({"1": _make_entry().to_dict()})
        store._gh.get_gist.return_value = gist

        store.put("2", _make_entry(title="Another"))

        gist.edit.assert_called_once()
        content = _written(gist)
        assert set(content) == {"1", "2"}
        assert content["2"]["info"]["title"] == "Another"

    def test_reads_gist_once_per_store(self, plain_file_content):
        store = _make_gist_store()
        store._gh.get_gist.return_value = _make_gist_mock({})
        store.get("1")
        store.get("2")
        store.keys()
        assert store._gh.get_gist.call_count == 1

    def test_put_visible_to_following_get(self, plain_file_content):
        store = _make_gist_store()
        store._gh.get_gist.return_value = _make_gist_mock({})
        store.put("5", _make_entry())
        assert store.get("5").messages["@rust_fcp"].message_id == 100
        assert store.keys() == ["5"]

    def test_read_failure_raises_store_error(self):
        store = _make_gist_store()
        store._gh.get_gist.side_effect = GithubException(404, {"message": "Not Found"}, None)
        with pytest.raises(StoreError, match="Cannot read"):
            store.get("1")

    def test_write_failure_raises_and_keeps_cache(self, plain_file_content):
        store = _make_gist_store()
        gist = _make_gist_mock({})
        gist.edit.side_effect = GithubException(403, {"message": "Forbidden"}, None)
        store._gh.get_gist.return_value = gist

        with pytest.raises(StoreError, match="Cannot write"):
            store.put("1", _make_entry())
        assert store.get("1") is None

    def test_invalid_json_raises_store_error(self):
        store = _make_gist_store()
        store._gh.get_gist.return_value = _make_gist_mock(raw="{not json")
        with pytest.raises(StoreError, match="not valid JSON"):
            store.get("1")

    def test_non_object_raises_store_error(self):
        store = _make_gist_store()
        store._gh.get_gist.return_value = _make_gist_mock(raw="[]")
        with pytest.raises(StoreError, match="JSON object"):
            store.keys()
