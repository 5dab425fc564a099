"""The world class for geocache.

Core Objects: World

A World owns one Board, one CacheGenerator, one CacheStore, one
VisibilityManager and the observer's state. Hosts (renderers, input handlers,
location sensors) talk to it only through the ``on_*`` handlers and the
snapshot methods; each handler runs to completion before the next one starts,
and saves to the attached store once its mutation is done.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from geocache.board import Board, Cell
from geocache.cache_store import CacheStore, Coin
from geocache.errors import (
    CacheError,
    EmptyCacheError,
    NoCacheError,
    NoHeldCoinsError,
)
from geocache.geocache_logging import create_module_logger, method_logger
from geocache.luck import CacheGenerator
from geocache.persistence import ObserverState, SnapshotStore, WorldSnapshot
from geocache.scenario import WorldScenario
from geocache.visibility import VisibilityChange, VisibilityManager

__all__ = ["DIRECTIONS", "InteractionResult", "World"]

_logger = create_module_logger()

DIRECTIONS: dict[str, tuple[int, int]] = {
    "north": (1, 0),
    "south": (-1, 0),
    "east": (0, 1),
    "west": (0, -1),
}


@dataclass(frozen=True)
class InteractionResult:
    """Outcome of a collect or deposit.

    Attributes:
        ok: whether the interaction happened
        remaining: coins left in the cache afterwards (None if there is no cache)
        coin: the coin collected, for successful collects only
        error: why the interaction did not happen
    """

    ok: bool
    remaining: int | None = None
    coin: Coin | None = None
    error: CacheError | None = None


class World:
    """A lattice world of caches explored by a single observer.

    Attributes:
        scenario: the parameters this world was built with
        board: the cell registry
        generator: decides where caches spawn
        caches: live and evicted cache state
        visibility: tracks which caches are active
        store: where snapshots are saved after each mutation, if anywhere
        observer: the observer's position, held coins and trail

    """

    @method_logger(__name__)
    def __init__(
        self,
        scenario: WorldScenario | None = None,
        store: SnapshotStore | None = None,
        generator: CacheGenerator | None = None,
        **kwargs: Any,
    ) -> None:
        """Create a fresh, never visited world.

        Args:
            scenario: the world's parameters
            store: where to save snapshots after each mutating handler
            generator: decides where caches spawn, defaults to a CacheGenerator
                using the scenario's spawn probability
            kwargs: parameters for a new WorldScenario, if scenario is not given

        Notes:
            you have to pass either scenario or keyword parameters, but not both.
            The observer is placed at the scenario's start cell, but no cache is
            activated until the first ``on_observer_move``.
        """
        if scenario is not None and kwargs:
            raise ValueError("you have to pass either a scenario or parameters, not both")
        if scenario is None:
            scenario = WorldScenario(**kwargs)

        self.board = Board(scenario.tile_width, scenario.visibility_radius)
        if generator is None:
            generator = CacheGenerator(scenario.spawn_probability)
        self.generator = generator
        self.caches = CacheStore(self.board, self.generator)
        self.visibility = VisibilityManager(self.board, self.caches)
        self.observer = ObserverState(position=self.start_cell(scenario))
        self.store = store

        scenario.world = self
        self.scenario = scenario

    @classmethod
    def resume(
        cls,
        store: SnapshotStore,
        scenario: WorldScenario | None = None,
        generator: CacheGenerator | None = None,
        **kwargs: Any,
    ) -> World:
        """Create a world from whatever the store holds, or a fresh one if it holds nothing usable."""
        world = cls(scenario, store=store, generator=generator, **kwargs)
        snapshot = store.load(world.board)
        if snapshot is None:
            _logger.info("no usable stored world, starting fresh")
        else:
            world.apply_snapshot(snapshot)
        return world

    def start_cell(self, scenario: WorldScenario | None = None) -> Cell:
        scenario = self.scenario if scenario is None else scenario
        return self.board.canonical_cell(*scenario.start)

    @property
    def position(self) -> Cell:
        return self.observer.position

    @property
    def held_coins(self) -> int:
        return self.observer.held_coins

    @property
    def trail(self) -> list[Cell]:
        return list(self.observer.trail)

    @property
    def active_cells(self) -> list[Cell]:
        return self.visibility.active_cells

    def on_observer_move(self, position: Cell | Sequence[float]) -> VisibilityChange:
        """Move the observer and update which caches are active.

        Args:
            position: a cell, or a (lat, lng) point that is mapped onto the board

        Returns:
            VisibilityChange: caches activated and deactivated by the move
        """
        if isinstance(position, Cell):
            cell = self.board.canonicalize(position)
        else:
            cell = self.board.cell_for_point(position)

        self.observer.position = cell
        if not self.observer.trail or self.observer.trail[-1] is not cell:
            self.observer.trail.append(cell)

        change = self.visibility.update(cell)
        self._save()
        return change

    def on_observer_step(self, direction: str) -> VisibilityChange:
        """Move the observer one cell north, south, east or west."""
        try:
            di, dj = DIRECTIONS[direction]
        except KeyError:
            raise ValueError(
                f"Unknown direction {direction!r}, use one of {list(DIRECTIONS)}"
            ) from None
        current = self.observer.position
        return self.on_observer_move(
            self.board.canonical_cell(current.i + di, current.j + dj)
        )

    def on_collect(self, cell: Cell) -> InteractionResult:
        """Move one coin from the cache at cell to the observer."""
        cell = self.board.canonicalize(cell)
        if not self.visibility.is_active(cell):
            return InteractionResult(ok=False, error=NoCacheError(cell))

        try:
            remaining, coin = self.caches.collect(cell)
        except EmptyCacheError as e:
            return InteractionResult(ok=False, remaining=0, error=e)

        self.observer.held_coins += 1
        _logger.debug(f"collected coin {coin}, {remaining} left")
        self._save()
        return InteractionResult(ok=True, remaining=remaining, coin=coin)

    def on_deposit(self, cell: Cell) -> InteractionResult:
        """Move one coin from the observer into the cache at cell."""
        cell = self.board.canonicalize(cell)
        if not self.visibility.is_active(cell):
            return InteractionResult(ok=False, error=NoCacheError(cell))
        if self.observer.held_coins == 0:
            remaining = self.caches.materialize(cell).coin_count
            return InteractionResult(
                ok=False, remaining=remaining, error=NoHeldCoinsError(cell)
            )

        remaining = self.caches.deposit(cell)
        self.observer.held_coins -= 1
        _logger.debug(f"deposited a coin into {cell}, now {remaining}")
        self._save()
        return InteractionResult(ok=True, remaining=remaining)

    def on_reset(self) -> None:
        """Forget everything and return to a brand new world, also in the store."""
        self.caches.clear()
        self.visibility.clear()
        self.observer = ObserverState(position=self.start_cell())
        _logger.info("world reset")
        self._save()

    def query_snapshot(self) -> WorldSnapshot:
        """Return a snapshot of the complete current state."""
        observer = ObserverState(
            position=self.observer.position,
            held_coins=self.observer.held_coins,
            trail=list(self.observer.trail),
        )
        return WorldSnapshot(observer=observer, caches=self.caches.mementos())

    def apply_snapshot(self, snapshot: WorldSnapshot) -> VisibilityChange:
        """Replace the complete current state with a snapshot.

        All stored caches start dormant; if the observer has moved at least once,
        the ones around it are then reactivated from their mementos.

        Returns:
            VisibilityChange: the caches activated around the restored position

        Raises:
            VersionMismatchError: if a memento's version is unsupported; the
                world is left unchanged
        """
        observer = snapshot.observer
        restored = ObserverState(
            position=self.board.canonicalize(observer.position),
            held_coins=observer.held_coins,
            trail=[self.board.canonicalize(cell) for cell in observer.trail],
        )
        # load_mementos validates everything before it replaces anything
        self.caches.load_mementos(snapshot.caches)
        self.visibility.clear()
        self.visibility.mark_dormant(self.caches.mementos())
        self.observer = restored
        # an empty trail means the observer never entered the world
        change = VisibilityChange()
        if self.observer.trail:
            change = self.visibility.update(self.observer.position)
        self._save()
        return change

    def _save(self) -> None:
        if self.store is not None:
            self.store.save(self.query_snapshot())

    def __repr__(self):  # noqa: D105
        return (
            f"World(position={self.position}, held_coins={self.held_coins}, "
            f"active={len(self.visibility.active_cells)}, known_caches={len(self.caches)})"
        )
