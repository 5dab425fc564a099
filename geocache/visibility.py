"""Activation and deactivation of caches around a moving observer.

Every cell goes through a small state machine:

    UNKNOWN --(no spawn)--> ABSENT        (terminal, never re-rolled)
    UNKNOWN --(spawn)-----> ACTIVE
    ACTIVE  --(leaves view)--> DORMANT    (state kept as a memento)
    DORMANT --(enters view)--> ACTIVE

The VisibilityManager drives these transitions on the CacheStore and reports
which cells changed so a renderer can add or remove markers without working
out the difference itself.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from geocache.board import Board, Cell
from geocache.cache_store import CacheStore
from geocache.errors import NoCacheError
from geocache.geocache_logging import create_module_logger

__all__ = ["CellStatus", "VisibilityChange", "VisibilityManager"]

_logger = create_module_logger()


class CellStatus(Enum):
    """Lifecycle status of a cell."""

    UNKNOWN = "unknown"
    ABSENT = "absent"
    ACTIVE = "active"
    DORMANT = "dormant"


@dataclass(frozen=True)
class VisibilityChange:
    """Cells that became active and cells that stopped being active after a move."""

    activated: frozenset[Cell] = frozenset()
    deactivated: frozenset[Cell] = frozenset()

    def __bool__(self):  # noqa: D105
        return bool(self.activated or self.deactivated)


class VisibilityManager:
    """Keeps the set of active caches in line with the observer's neighborhood.

    Attributes:
        board (Board): the board neighborhoods are computed on
        store (CacheStore): the store caches are materialized in and evicted from
        visibility_radius (int): Chebyshev radius of the visible area

    """

    def __init__(
        self, board: Board, store: CacheStore, visibility_radius: int | None = None
    ) -> None:
        """Initialize the manager with every cell UNKNOWN.

        Args:
            board: the board neighborhoods are computed on
            store: the store caches are materialized in and evicted from
            visibility_radius: radius of the visible area, defaults to the board's
        """
        self.board = board
        self.store = store
        self.visibility_radius = (
            board.visibility_radius if visibility_radius is None else visibility_radius
        )
        self._status: dict[Cell, CellStatus] = {}
        self._active: dict[Cell, None] = {}

    def status(self, cell: Cell) -> CellStatus:
        return self._status.get(self.board.canonicalize(cell), CellStatus.UNKNOWN)

    @property
    def active_cells(self) -> list[Cell]:
        """Active cells ordered by ascending i, then ascending j."""
        return sorted(self._active, key=lambda cell: cell.coordinate)

    def update(self, center: Cell) -> VisibilityChange:
        """Recompute the visible area around center and apply the transitions.

        Args:
            center: the cell the observer is in

        Returns:
            VisibilityChange: cells activated and deactivated by this update
        """
        visible = self.board.neighborhood(
            self.board.canonicalize(center), self.visibility_radius
        )
        visible_set = set(visible)

        deactivated = [cell for cell in self._active if cell not in visible_set]
        for cell in deactivated:
            self.store.evict(cell)
            del self._active[cell]
            self._status[cell] = CellStatus.DORMANT

        activated = []
        for cell in visible:
            status = self._status.get(cell, CellStatus.UNKNOWN)
            if status in (CellStatus.ACTIVE, CellStatus.ABSENT):
                continue
            try:
                self.store.materialize(cell)
            except NoCacheError:
                self._status[cell] = CellStatus.ABSENT
                continue
            self._status[cell] = CellStatus.ACTIVE
            self._active[cell] = None
            activated.append(cell)

        change = VisibilityChange(frozenset(activated), frozenset(deactivated))
        if change:
            _logger.debug(
                f"visibility around {center}: +{len(activated)} -{len(deactivated)} caches"
            )
        return change

    def mark_dormant(self, cells: Iterable[Cell]) -> None:
        """Record cells whose caches are held as mementos in the store."""
        for cell in cells:
            cell = self.board.canonicalize(cell)
            self._active.pop(cell, None)
            self._status[cell] = CellStatus.DORMANT

    def is_active(self, cell: Cell) -> bool:
        return self.board.canonicalize(cell) in self._active

    def clear(self) -> None:
        """Forget every decision, returning all cells to UNKNOWN."""
        self._status.clear()
        self._active.clear()
