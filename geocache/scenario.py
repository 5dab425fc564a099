"""World parameters supplied by the host."""

from __future__ import annotations

from collections.abc import MutableMapping
from itertools import count
from typing import TYPE_CHECKING, Any, ClassVar

from geocache.errors import ConfigurationError

if TYPE_CHECKING:
    from geocache.world import World

__all__ = ["WorldScenario"]


def _check_tile_width(value):
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ConfigurationError("tile_width", "must be a number")
    if not 0 < value < float("inf"):
        raise ConfigurationError("tile_width", "must be a positive finite number")


def _check_visibility_radius(value):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError("visibility_radius", "must be an integer")
    if value < 0:
        raise ConfigurationError("visibility_radius", "must be >= 0")


def _check_spawn_probability(value):
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ConfigurationError("spawn_probability", "must be a number")
    if not 0 <= value <= 1:
        raise ConfigurationError("spawn_probability", "must be in [0, 1]")


def _check_start(value):
    try:
        i, j = value
    except (TypeError, ValueError):
        raise ConfigurationError("start", "must be a pair of integers") from None
    if not all(isinstance(c, int) and not isinstance(c, bool) for c in (i, j)):
        raise ConfigurationError("start", "must be a pair of integers")


class WorldScenario(MutableMapping):
    """The tunable parameters of a world.

    Attributes:
        world : the world instance to which this scenario belongs
        scenario_id : a unique identifier for this scenario, auto-generated, starting from 0

    Notes:
        in essence, this is a mutable mapping with validation and
        protection, so it cannot be mutated once a world uses it.

    """

    defaults: ClassVar[dict[str, Any]] = {
        "tile_width": 1e-4,
        "visibility_radius": 8,
        "spawn_probability": 0.1,
        "start": (0, 0),
    }
    validators: ClassVar[dict] = {
        "tile_width": _check_tile_width,
        "visibility_radius": _check_visibility_radius,
        "spawn_probability": _check_spawn_probability,
        "start": _check_start,
    }
    _ids: ClassVar[count] = count(0)

    __slots__ = ("__dict__", "scenario_id", "world")

    def __init__(self, **kwargs):
        """Initialize a WorldScenario.

        Args:
            kwargs: world parameters; missing ones take their default

        Raises:
            ConfigurationError: if a parameter is unknown or invalid
        """
        self.world: World | None = None
        self.scenario_id: int = next(self._ids)
        for key, value in {**self.defaults, **kwargs}.items():
            self[key] = value

    def __setitem__(self, key, value):  # noqa: D105
        if self.world is not None:
            raise ValueError("Cannot mutate scenario while it is bound to a world")
        try:
            validator = self.validators[key]
        except KeyError:
            raise ConfigurationError(key, "is not a known world parameter") from None
        validator(value)
        if key == "start":
            value = tuple(value)

        self.__dict__[key] = value

    def __getitem__(self, key):  # noqa: D105
        return self.__dict__[key]

    def __delitem__(self, key):  # noqa: D105
        raise ConfigurationError(key, "world parameters cannot be removed")

    def __iter__(self):  # noqa: D105
        return iter(self.__dict__)

    def __len__(self):  # noqa: D105
        return len(self.__dict__)

    def __setattr__(self, key, value):  # noqa: D105
        if key not in self.__slots__:
            self.__setitem__(key, value)
        else:
            super().__setattr__(key, value)

    def __getattr__(self, key):  # noqa: D105
        try:
            return self.__dict__[key]
        except KeyError:
            raise AttributeError(
                f"'{type(self).__name__}' object has no attribute '{key}'"
            ) from None

    def to_dict(self):
        """Return a dict representation of the scenario."""
        content = self.__dict__.copy()
        content["scenario_id"] = self.scenario_id
        return content

    def __repr__(self):  # noqa: D105
        params = ", ".join(f"{k}={v!r}" for k, v in self.__dict__.items())
        return f"{type(self).__name__}({params})"
