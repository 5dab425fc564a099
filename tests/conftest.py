"""Shared fixtures for the geocache tests."""

import pytest

from geocache.luck import CacheGenerator


class FixedGenerator(CacheGenerator):
    """A CacheGenerator whose decide values can be pinned per seed.

    Seeds not in ``values`` fall back to ``default``, or to the real hash if
    default is None.
    """

    def __init__(self, spawn_probability, values=None, default=None):
        super().__init__(spawn_probability)
        self.values = dict(values or {})
        self.default = default

    def decide(self, *seed_parts):
        try:
            return self.values[seed_parts]
        except KeyError:
            if self.default is None:
                return super().decide(*seed_parts)
            return self.default


@pytest.fixture
def fixed_generator():
    """Return the FixedGenerator class so tests can build generators with pinned values."""
    return FixedGenerator
