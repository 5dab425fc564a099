"""Deterministic, seed-reproducible randomness for cache generation.

Nothing here keeps state: ``luck`` hashes its arguments, so the same seed
parts give the same number on every run and every platform. This is what
allows a cache to be forgotten and later regenerated identically.
"""

from __future__ import annotations

import hashlib
import math

from geocache.board import Cell
from geocache.errors import ConfigurationError

__all__ = ["CacheGenerator", "luck"]

_MANTISSA_BITS = 53


def _stringify(part) -> str:
    if part is None:
        return ""
    if isinstance(part, bool):
        return "true" if part else "false"
    if isinstance(part, float):
        return repr(part)
    return str(part)


def luck(*seed_parts) -> float:
    """Return a number in [0, 1) determined only by the seed parts.

    The parts are stringified, joined with commas and hashed with SHA-256.
    Python's builtin ``hash`` is salted per process and is not used.

    Args:
        seed_parts: primitive values (ints, strings, floats, booleans, None)

    Examples:
        >>> luck(3, 4) == luck(3, 4)
        True
        >>> luck(3, 4) == luck("3,4")
        True

    """
    key = ",".join(_stringify(part) for part in seed_parts)
    digest = hashlib.sha256(key.encode("utf-8")).digest()
    bits = int.from_bytes(digest[:8], "big") >> (64 - _MANTISSA_BITS)
    return bits / (1 << _MANTISSA_BITS)


class CacheGenerator:
    """Decides which cells hold a cache and how many coins it starts with.

    Attributes:
        spawn_probability (float): chance in [0, 1] that a given cell holds a cache

    """

    def __init__(self, spawn_probability: float) -> None:
        """Initialize a generator.

        Args:
            spawn_probability: chance in [0, 1] that a given cell holds a cache
        """
        if isinstance(spawn_probability, bool) or not isinstance(
            spawn_probability, int | float
        ):
            raise ConfigurationError("spawn_probability", "must be a number")
        if not 0 <= spawn_probability <= 1:
            raise ConfigurationError("spawn_probability", "must be in [0, 1]")
        self.spawn_probability = spawn_probability

    def decide(self, *seed_parts) -> float:
        """Return the deterministic number in [0, 1) for the seed parts."""
        return luck(*seed_parts)

    def should_spawn(self, cell: Cell) -> bool:
        """Whether the cell holds a cache."""
        return self.decide(cell.i, cell.j) < self.spawn_probability

    def initial_coin_count(self, cell: Cell) -> int:
        """Number of coins a freshly generated cache at this cell starts with."""
        return math.floor(self.decide(cell.i, cell.j, "initialValue") * 100)

    def __repr__(self):  # noqa: D105
        return f"CacheGenerator(spawn_probability={self.spawn_probability})"
