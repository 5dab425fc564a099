"""Durable storage of the whole world.

A WorldSnapshot (observer state plus a memento for every cache that ever
spawned) is the only thing that gets persisted. It is written as one versioned
JSON document:

    {
        "format_version": 1,
        "observer": {"position": [i, j], "held_coins": n, "trail": [[i, j], ...]},
        "caches": {"i,j": {"version": 1, "coin_count": n, "next_serial": k}, ...}
    }

Storage backends subclass SnapshotStore and only move text around; parsing
and validation live here. Anything that cannot be read back (missing, corrupt,
foreign version) loads as None so the host can start a fresh world.
"""

from __future__ import annotations

import json
import os
import pathlib
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from geocache.board import Board, Cell
from geocache.cache_store import Memento
from geocache.errors import VersionMismatchError
from geocache.geocache_logging import create_module_logger

__all__ = [
    "FORMAT_VERSION",
    "JSONFileStore",
    "MemoryStore",
    "ObserverState",
    "SnapshotStore",
    "WorldSnapshot",
]

FORMAT_VERSION = 1

_logger = create_module_logger()


@dataclass
class ObserverState:
    """Where the observer is, what it holds, and where it has been.

    Attributes:
        position: the cell the observer is in
        held_coins: coins the observer is carrying
        trail: cells visited, oldest first
    """

    position: Cell
    held_coins: int = 0
    trail: list[Cell] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "position": list(self.position.coordinate),
            "held_coins": self.held_coins,
            "trail": [list(cell.coordinate) for cell in self.trail],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], board: Board) -> ObserverState:
        held_coins = data["held_coins"]
        if isinstance(held_coins, bool) or not isinstance(held_coins, int):
            raise ValueError(f"held_coins must be an integer, got {held_coins!r}")
        if held_coins < 0:
            raise ValueError(f"held_coins must be >= 0, got {held_coins}")
        return cls(
            position=_cell_from_pair(data["position"], board),
            held_coins=held_coins,
            trail=[_cell_from_pair(pair, board) for pair in data["trail"]],
        )


@dataclass
class WorldSnapshot:
    """Everything needed to bring a world back after a restart.

    Attributes:
        observer: the observer's state
        caches: a memento for every cell that has ever held a cache
    """

    observer: ObserverState
    caches: dict[Cell, Memento] = field(default_factory=dict)

    @classmethod
    def fresh(cls, position: Cell) -> WorldSnapshot:
        """The snapshot of a never visited world with the observer at position."""
        return cls(observer=ObserverState(position=position))

    def total_coins(self) -> int:
        """Coins held by the observer plus coins in all caches."""
        return self.observer.held_coins + sum(
            memento.coin_count for memento in self.caches.values()
        )

    def to_dict(self) -> dict[str, Any]:
        ordered = sorted(self.caches.items(), key=lambda item: item[0].coordinate)
        return {
            "format_version": FORMAT_VERSION,
            "observer": self.observer.to_dict(),
            "caches": {str(cell): memento.to_dict() for cell, memento in ordered},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], board: Board) -> WorldSnapshot:
        """Rebuild a snapshot, canonicalizing all cells on board.

        Raises:
            VersionMismatchError: if the format version is unsupported
            ValueError, KeyError, TypeError: if the payload is malformed
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Snapshot payload must be an object, got {type(data)}")
        VersionMismatchError.check(data.get("format_version"), FORMAT_VERSION)

        caches = {}
        for key, value in data["caches"].items():
            i, j = key.split(",")
            caches[board.canonical_cell(int(i), int(j))] = Memento.from_dict(value)

        return cls(observer=ObserverState.from_dict(data["observer"], board), caches=caches)

    def to_dataframe(self) -> pd.DataFrame:
        """Return one row per cache with columns i, j, coin_count and next_serial."""
        records = [
            {
                "i": cell.i,
                "j": cell.j,
                "coin_count": memento.coin_count,
                "next_serial": memento.next_serial,
            }
            for cell, memento in sorted(
                self.caches.items(), key=lambda item: item[0].coordinate
            )
        ]
        return pd.DataFrame(
            records, columns=["i", "j", "coin_count", "next_serial"]
        )


class SnapshotStore(ABC):
    """Abstract base class for snapshot storage backends.

    Subclasses must implement:
        - _read: return the stored text, or None if nothing is stored
        - _write: replace the stored text
        - clear: remove whatever is stored

    The base class handles (de)serialization and the fallback to None on
    unreadable data.
    """

    def save(self, snapshot: WorldSnapshot) -> None:
        """Persist a snapshot, replacing any previous one."""
        self._write(json.dumps(snapshot.to_dict(), sort_keys=True))

    def load(self, board: Board) -> WorldSnapshot | None:
        """Load the stored snapshot with its cells canonicalized on board.

        Returns:
            the snapshot, or None if nothing usable is stored
        """
        text = self._read()
        if text is None:
            return None

        try:
            return WorldSnapshot.from_dict(json.loads(text), board)
        except VersionMismatchError as e:
            _logger.warning(f"ignoring stored world: {e.original_message}")
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            _logger.warning(f"ignoring unreadable stored world: {e!r}")
        return None

    @abstractmethod
    def _read(self) -> str | None: ...

    @abstractmethod
    def _write(self, text: str) -> None: ...

    @abstractmethod
    def clear(self) -> None: ...


class MemoryStore(SnapshotStore):
    """Keeps the serialized snapshot in memory, like a browser's local storage."""

    def __init__(self, text: str | None = None):
        """Initialize the store, optionally with previously saved text."""
        self.text = text

    def _read(self) -> str | None:
        return self.text

    def _write(self, text: str) -> None:
        self.text = text

    def clear(self) -> None:
        self.text = None


class JSONFileStore(SnapshotStore):
    """Stores the snapshot as a single JSON file.

    Usage:
        store = JSONFileStore("saves/world.json")
        world = World.resume(store, spawn_probability=0.1)
    """

    def __init__(self, path: str | os.PathLike):
        """Initialize the store.

        Args:
            path: the file to write; parent directories are created on save
        """
        self.path = pathlib.Path(path)

    def _read(self) -> str | None:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            _logger.warning(f"ignoring undecodable stored world {self.path}: {e!r}")
            return None

    def _write(self, text: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # write next to the target and swap it in, so a crash never leaves half a file
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_name, self.path)
        except BaseException:
            pathlib.Path(tmp_name).unlink(missing_ok=True)
            raise

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)

    def __repr__(self):  # noqa: D105
        return f"JSONFileStore({str(self.path)!r})"


def _cell_from_pair(pair, board: Board) -> Cell:
    i, j = pair
    if not all(isinstance(c, int) and not isinstance(c, bool) for c in (i, j)):
        raise ValueError(f"cell coordinates must be integers, got {pair!r}")
    return board.canonical_cell(i, j)
