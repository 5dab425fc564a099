"""Authoritative mutable state of caches, with memento based snapshot/restore.

The CacheStore owns at most one live GeocacheState per cell. When a cache
drops out of view it is evicted: its state is reduced to a Memento that the
store keeps, so the cache can later be rebuilt exactly instead of being
regenerated from scratch.

Never hold on to a GeocacheState across an evict/materialize cycle; eviction
invalidates the object. Resolve state by cell each time it is needed.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from geocache.board import Board, Cell
from geocache.errors import EmptyCacheError, NoCacheError, VersionMismatchError
from geocache.geocache_logging import create_module_logger
from geocache.luck import CacheGenerator

__all__ = ["MEMENTO_VERSION", "CacheStore", "Coin", "GeocacheState", "Memento"]

MEMENTO_VERSION = 1

_logger = create_module_logger()


@dataclass(frozen=True, slots=True)
class Coin:
    """An individually numbered coin once withdrawn from a cache."""

    origin: Cell
    serial: int

    def __str__(self):  # noqa: D105
        return f"{self.origin.i}:{self.origin.j}#{self.serial}"


@dataclass(frozen=True, slots=True)
class Memento:
    """Serializable snapshot of a cache, sufficient to rebuild it exactly.

    Attributes:
        coin_count: number of coins currently in the cache
        next_serial: serial the next collected coin will get
        version: format version of this memento
    """

    coin_count: int
    next_serial: int
    version: int = MEMENTO_VERSION

    def to_dict(self) -> dict[str, int]:
        return {
            "version": self.version,
            "coin_count": self.coin_count,
            "next_serial": self.next_serial,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Memento:
        version = data.get("version")
        VersionMismatchError.check(version, MEMENTO_VERSION)
        coin_count = _require_non_negative_int(data["coin_count"], "coin_count")
        next_serial = _require_non_negative_int(data["next_serial"], "next_serial")
        return cls(coin_count=coin_count, next_serial=next_serial, version=version)


@dataclass
class GeocacheState:
    """Mutable state of one cache.

    Attributes:
        cell: the cell this cache lives in
        coin_count: coins currently in the cache
        issued_coins: every coin ever collected from this cache, oldest first
    """

    cell: Cell
    coin_count: int
    issued_coins: list[Coin] = field(default_factory=list)

    @property
    def next_serial(self) -> int:
        """Serial of the next coin to be collected.

        Serials start at 0 and are never reused, so this equals the number of coins issued.
        """
        return len(self.issued_coins)

    def collect(self) -> Coin:
        """Take one coin out of the cache."""
        if self.coin_count == 0:
            raise EmptyCacheError(self.cell)
        coin = Coin(self.cell, self.next_serial)
        self.coin_count -= 1
        self.issued_coins.append(coin)
        return coin

    def deposit(self) -> None:
        """Put one coin back; deposited coins are plain counts and get no serial."""
        self.coin_count += 1

    def to_memento(self) -> Memento:
        return Memento(coin_count=self.coin_count, next_serial=self.next_serial)

    @classmethod
    def from_memento(cls, cell: Cell, memento: Memento) -> GeocacheState:
        VersionMismatchError.check(memento.version, MEMENTO_VERSION)
        issued = [Coin(cell, serial) for serial in range(memento.next_serial)]
        return cls(cell=cell, coin_count=memento.coin_count, issued_coins=issued)


class CacheStore:
    """Holds live cache state and the mementos of evicted caches.

    Attributes:
        board (Board): the board cells are canonicalized on
        generator (CacheGenerator): decides spawning and initial coin counts

    """

    def __init__(self, board: Board, generator: CacheGenerator) -> None:
        """Initialize an empty store.

        Args:
            board: the board cells are canonicalized on
            generator: decides spawning and initial coin counts
        """
        self.board = board
        self.generator = generator
        self._live: dict[Cell, GeocacheState] = {}
        self._mementos: dict[Cell, Memento] = {}

    def materialize(self, cell: Cell) -> GeocacheState:
        """Return the live state of the cache at cell, creating or restoring it if needed.

        Args:
            cell: the cell to materialize

        Returns:
            GeocacheState: the one live state for this cell

        Raises:
            NoCacheError: if the cell has no cache
        """
        cell = self.board.canonicalize(cell)
        state = self._live.get(cell)
        if state is not None:
            return state

        memento = self._mementos.get(cell)
        if memento is not None:
            state = GeocacheState.from_memento(cell, memento)
            _logger.debug(f"restored cache {cell} from memento {memento}")
        elif self.generator.should_spawn(cell):
            state = GeocacheState(cell, self.generator.initial_coin_count(cell))
            _logger.debug(f"spawned cache {cell} with {state.coin_count} coins")
        else:
            raise NoCacheError(cell)

        self._live[cell] = state
        self._mementos.pop(cell, None)
        return state

    def collect(self, cell: Cell) -> tuple[int, Coin]:
        """Take one coin out of the cache at cell.

        Returns:
            the remaining coin count and the newly issued coin

        Raises:
            NoCacheError: if the cell has no cache
            EmptyCacheError: if the cache has no coins left
        """
        state = self.materialize(cell)
        coin = state.collect()
        return state.coin_count, coin

    def deposit(self, cell: Cell) -> int:
        """Put one coin into the cache at cell and return the new coin count.

        Notes:
            whether the depositor actually holds a coin is checked by the caller.
        """
        state = self.materialize(cell)
        state.deposit()
        return state.coin_count

    def snapshot(self, cell: Cell) -> Memento | None:
        """Return a memento of the cache at cell without evicting it, None if it is unknown."""
        cell = self.board.canonicalize(cell)
        state = self._live.get(cell)
        if state is not None:
            return state.to_memento()
        return self._mementos.get(cell)

    def evict(self, cell: Cell) -> Memento | None:
        """Drop the live state of the cache at cell, keeping only its memento.

        Returns:
            the memento, or None if the cell never held a cache
        """
        cell = self.board.canonicalize(cell)
        state = self._live.pop(cell, None)
        if state is None:
            return self._mementos.get(cell)

        memento = state.to_memento()
        self._mementos[cell] = memento
        _logger.debug(f"evicted cache {cell} as {memento}")
        return memento

    def restore(self, cell: Cell, memento: Memento) -> GeocacheState:
        """Install a memento as the live state of cell, bypassing generation.

        Raises:
            VersionMismatchError: if the memento's version is unsupported
        """
        cell = self.board.canonicalize(cell)
        state = GeocacheState.from_memento(cell, memento)
        self._live[cell] = state
        self._mementos.pop(cell, None)
        return state

    def is_live(self, cell: Cell) -> bool:
        return self.board.canonicalize(cell) in self._live

    def live_cells(self) -> Iterator[Cell]:
        return iter(list(self._live))

    def mementos(self) -> dict[Cell, Memento]:
        """Return a memento for every known cache, live ones snapshotted in place."""
        content = dict(self._mementos)
        content.update({cell: state.to_memento() for cell, state in self._live.items()})
        return content

    def load_mementos(self, mementos: Mapping[Cell, Memento]) -> None:
        """Replace all content of the store with the given evicted caches.

        Every memento is checked before anything is replaced, so a rejected load
        leaves the store as it was.

        Raises:
            VersionMismatchError: if any memento's version is unsupported
        """
        loaded = {}
        for cell, memento in mementos.items():
            VersionMismatchError.check(memento.version, MEMENTO_VERSION)
            loaded[self.board.canonicalize(cell)] = memento
        self._live.clear()
        self._mementos = loaded

    def clear(self) -> None:
        self._live.clear()
        self._mementos.clear()

    def __len__(self) -> int:  # noqa: D105
        return len(self._live) + len(self._mementos)

    def __contains__(self, cell: Cell) -> bool:  # noqa: D105
        cell = self.board.canonicalize(cell)
        return cell in self._live or cell in self._mementos


def _require_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{field_name} must be a non-negative integer, got {value!r}")
    return value
