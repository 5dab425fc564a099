"""Tests for snapshots and snapshot stores."""

import json
import logging

import pandas as pd
import pytest

from geocache.board import Board
from geocache.cache_store import Memento
from geocache.persistence import (
    FORMAT_VERSION,
    JSONFileStore,
    MemoryStore,
    ObserverState,
    WorldSnapshot,
)


@pytest.fixture
def board():
    return Board(1e-4, visibility_radius=1)


@pytest.fixture
def snapshot(board):
    observer = ObserverState(
        position=board.canonical_cell(2, -1),
        held_coins=3,
        trail=[board.canonical_cell(0, 0), board.canonical_cell(1, -1), board.canonical_cell(2, -1)],
    )
    caches = {
        board.canonical_cell(3, 4): Memento(coin_count=36, next_serial=2),
        board.canonical_cell(-1, 0): Memento(coin_count=0, next_serial=5),
    }
    return WorldSnapshot(observer=observer, caches=caches)


class TestWorldSnapshot:
    """Tests for WorldSnapshot serialization."""

    def test_to_dict_layout(self, snapshot):
        data = snapshot.to_dict()
        assert data == {
            "format_version": FORMAT_VERSION,
            "observer": {
                "position": [2, -1],
                "held_coins": 3,
                "trail": [[0, 0], [1, -1], [2, -1]],
            },
            "caches": {
                "-1,0": {"version": 1, "coin_count": 0, "next_serial": 5},
                "3,4": {"version": 1, "coin_count": 36, "next_serial": 2},
            },
        }
        assert list(data["caches"]) == ["-1,0", "3,4"]

    def test_dict_round_trip_canonicalizes(self, board, snapshot):
        data = json.loads(json.dumps(snapshot.to_dict()))
        restored = WorldSnapshot.from_dict(data, board)
        assert restored == snapshot
        assert restored.observer.position is board.canonical_cell(2, -1)
        assert all(board.canonical_cell(c.i, c.j) is c for c in restored.caches)

    def test_fresh(self, board):
        fresh = WorldSnapshot.fresh(board.canonical_cell(0, 0))
        assert fresh.observer == ObserverState(position=board.canonical_cell(0, 0))
        assert fresh.caches == {}
        assert fresh.total_coins() == 0

    def test_total_coins(self, snapshot):
        assert snapshot.total_coins() == 3 + 36 + 0

    def test_to_dataframe(self, snapshot):
        df = snapshot.to_dataframe()
        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == ["i", "j", "coin_count", "next_serial"]
        assert df.to_dict("records") == [
            {"i": -1, "j": 0, "coin_count": 0, "next_serial": 5},
            {"i": 3, "j": 4, "coin_count": 36, "next_serial": 2},
        ]

    def test_empty_dataframe(self, board):
        df = WorldSnapshot.fresh(board.canonical_cell(0, 0)).to_dataframe()
        assert df.empty
        assert list(df.columns) == ["i", "j", "coin_count", "next_serial"]


class TestMemoryStore:
    """Tests for the in-memory store and the shared load logic."""

    def test_load_nothing(self, board):
        assert MemoryStore().load(board) is None

    def test_save_load(self, board, snapshot):
        store = MemoryStore()
        store.save(snapshot)
        assert store.load(board) == snapshot

    def test_clear(self, board, snapshot):
        store = MemoryStore()
        store.save(snapshot)
        store.clear()
        assert store.load(board) is None

    @pytest.mark.parametrize(
        "text",
        [
            "{not json",
            "[]",
            "null",
            json.dumps({"format_version": 1}),
            json.dumps({"format_version": 1, "observer": {}, "caches": {}}),
            json.dumps(
                {
                    "format_version": 1,
                    "observer": {"position": [0, 0], "held_coins": -1, "trail": []},
                    "caches": {},
                }
            ),
            json.dumps(
                {
                    "format_version": 1,
                    "observer": {"position": [0, 0], "held_coins": 0, "trail": []},
                    "caches": {"zero": {"version": 1, "coin_count": 1, "next_serial": 0}},
                }
            ),
        ],
    )
    def test_unreadable_payload(self, board, caplog, text):
        """Test corrupt payloads load as nothing and are logged."""
        with caplog.at_level(logging.WARNING):
            assert MemoryStore(text).load(board) is None
        assert "ignoring unreadable stored world" in caplog.text

    def test_foreign_format_version(self, board, snapshot, caplog):
        """Test a payload from another format version loads as nothing."""
        data = snapshot.to_dict()
        data["format_version"] = FORMAT_VERSION + 1
        with caplog.at_level(logging.WARNING):
            assert MemoryStore(json.dumps(data)).load(board) is None
        assert "Unsupported format version" in caplog.text

    def test_unversioned_payload(self, board, snapshot):
        data = snapshot.to_dict()
        del data["format_version"]
        assert MemoryStore(json.dumps(data)).load(board) is None

    def test_foreign_memento_version(self, board, snapshot):
        data = snapshot.to_dict()
        data["caches"]["3,4"]["version"] = 99
        assert MemoryStore(json.dumps(data)).load(board) is None

    @pytest.mark.parametrize("version", [True, 1.0, "1"])
    def test_format_version_must_be_an_integer(self, board, snapshot, version):
        """Test a format version that only compares equal to the current one loads as nothing."""
        data = snapshot.to_dict()
        data["format_version"] = version
        assert MemoryStore(json.dumps(data)).load(board) is None

    def test_memento_version_must_be_an_integer(self, board, snapshot):
        data = snapshot.to_dict()
        data["caches"]["3,4"]["version"] = True
        assert MemoryStore(json.dumps(data)).load(board) is None


class TestJSONFileStore:
    """Tests for the JSON file store."""

    def test_save_creates_directories(self, tmp_path, board, snapshot):
        path = tmp_path / "saves" / "world.json"
        store = JSONFileStore(path)
        store.save(snapshot)
        assert path.exists()
        assert json.loads(path.read_text()) == snapshot.to_dict()
        assert [p.name for p in path.parent.iterdir()] == ["world.json"]

    def test_round_trip(self, tmp_path, board, snapshot):
        path = tmp_path / "world.json"
        JSONFileStore(path).save(snapshot)
        assert JSONFileStore(str(path)).load(board) == snapshot

    def test_overwrite(self, tmp_path, board, snapshot):
        store = JSONFileStore(tmp_path / "world.json")
        store.save(WorldSnapshot.fresh(board.canonical_cell(0, 0)))
        store.save(snapshot)
        assert store.load(board) == snapshot

    def test_missing_file(self, tmp_path, board):
        assert JSONFileStore(tmp_path / "absent.json").load(board) is None

    def test_corrupt_file(self, tmp_path, board):
        path = tmp_path / "world.json"
        path.write_bytes(b"\xff\xfe garbage")
        assert JSONFileStore(path).load(board) is None

    def test_clear(self, tmp_path, board, snapshot):
        path = tmp_path / "world.json"
        store = JSONFileStore(path)
        store.save(snapshot)
        store.clear()
        assert not path.exists()
        store.clear()
