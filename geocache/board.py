"""The lattice on which caches live.

A Board maps continuous points onto an unbounded grid of square tiles and
hands out canonical Cell instances:
- Cell: an immutable (i, j) lattice address
- Board: a flyweight registry of cells, plus point/bounds conversion and
  Chebyshev neighborhoods

Cells are interned per board, so two lookups of the same coordinate return the
very same object. Consumers can therefore compare cells with ``is`` or use them
as dictionary keys without worrying about duplicate instances. The registry
only grows; cells are never dropped while the board is alive.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from itertools import product

import numpy as np

from geocache.errors import ConfigurationError

__all__ = ["Board", "Cell"]


@dataclass(frozen=True, slots=True)
class Cell:
    """One address in the integer lattice.

    Attributes:
        i: row index, grows with the first point component (latitude)
        j: column index, grows with the second point component (longitude)
    """

    i: int
    j: int

    @property
    def coordinate(self) -> tuple[int, int]:
        """The (i, j) tuple of this cell."""
        return self.i, self.j

    def __str__(self):  # noqa: D105
        return f"{self.i},{self.j}"


class Board:
    """Flyweight registry of lattice cells with fixed-size square tiles.

    Attributes:
        tile_width (float): edge length of one tile in point units
        visibility_radius (int): default radius used by ``cells_near_point``

    """

    def __init__(self, tile_width: float, visibility_radius: int = 0) -> None:
        """Initialise the board.

        Args:
            tile_width: edge length of a tile, must be > 0
            visibility_radius: Chebyshev radius (in cells) of the area around a point
        """
        self.tile_width = tile_width
        self.visibility_radius = visibility_radius
        self._validate_parameters()

        self._known_cells: dict[tuple[int, int], Cell] = {}

    def _validate_parameters(self):
        if isinstance(self.tile_width, bool) or not isinstance(
            self.tile_width, int | float
        ):
            raise ConfigurationError("tile_width", "must be a number")
        if not self.tile_width > 0 or not np.isfinite(self.tile_width):
            raise ConfigurationError("tile_width", "must be a positive finite number")
        _check_radius(self.visibility_radius, "visibility_radius")

    def canonical_cell(self, i: int, j: int) -> Cell:
        """Return the unique Cell instance for (i, j), creating it on first request.

        Raises:
            ValueError: if i or j is not an integer
        """
        for value in (i, j):
            if isinstance(value, bool) or not isinstance(value, int | np.integer):
                raise ValueError(f"Cell coordinates must be integers, got {value!r}.")
        key = (int(i), int(j))
        try:
            return self._known_cells[key]
        except KeyError:
            cell = self._known_cells[key] = Cell(*key)
            return cell

    def canonicalize(self, cell: Cell) -> Cell:
        """Return the registry's instance for a cell that may come from elsewhere."""
        return self.canonical_cell(cell.i, cell.j)

    def cell_for_point(self, point: Sequence[float] | np.ndarray) -> Cell:
        """Find the cell whose tile contains the given point.

        Args:
            point: a (lat, lng) style pair of floats

        Returns:
            Cell: the cell c for which ``cell_bounds(c)`` contains the point

        Raises:
            ValueError: if the point is not a finite pair of numbers
        """
        position = np.asarray(point, dtype=float)
        if position.shape != (2,) or not np.all(np.isfinite(position)):
            raise ValueError(f"Point {point} is not a finite (lat, lng) pair.")

        w = self.tile_width
        coord = np.floor(position / w)
        # division can round across a tile edge, so settle against the bounds
        coord = np.where(position < coord * w, coord - 1, coord)
        coord = np.where(position >= (coord + 1) * w, coord + 1, coord)

        return self.canonical_cell(int(coord[0]), int(coord[1]))

    def cell_bounds(self, cell: Cell) -> tuple[np.ndarray, np.ndarray]:
        """Return the half-open rectangle [min, max) covered by a cell.

        Args:
            cell: the cell to get the bounds for

        Returns:
            a (south_west, north_east) pair of numpy arrays
        """
        lower = np.array([cell.i, cell.j], dtype=float)
        return lower * self.tile_width, (lower + 1) * self.tile_width

    def neighborhood(self, center: Cell, radius: int) -> list[Cell]:
        """Return all cells within Chebyshev distance ``radius`` of center.

        The (2 * radius + 1) ** 2 cells are ordered by ascending i, then ascending j.
        The center itself is included.
        """
        _check_radius(radius, "radius")
        rows = range(center.i - radius, center.i + radius + 1)
        columns = range(center.j - radius, center.j + radius + 1)
        return [self.canonical_cell(i, j) for i, j in product(rows, columns)]

    def cells_near_point(self, point: Sequence[float] | np.ndarray) -> list[Cell]:
        """Return the visible neighborhood around the cell containing a point."""
        return self.neighborhood(self.cell_for_point(point), self.visibility_radius)

    def __len__(self) -> int:  # noqa: D105
        return len(self._known_cells)

    def __contains__(self, coordinate: tuple[int, int]) -> bool:  # noqa: D105
        return tuple(coordinate) in self._known_cells

    def __getitem__(self, key: tuple[int, int]) -> Cell:  # noqa: D105
        return self.canonical_cell(*key)

    def __repr__(self):  # noqa: D105
        return (
            f"Board(tile_width={self.tile_width}, "
            f"visibility_radius={self.visibility_radius}, known_cells={len(self)})"
        )


def _check_radius(radius, name: str) -> None:
    if isinstance(radius, bool) or not isinstance(radius, int | np.integer):
        raise ConfigurationError(name, "must be an integer")
    if radius < 0:
        raise ConfigurationError(name, "must be >= 0")
