"""geocache: a deterministic lattice world of collectible coin caches.

Core Objects: World, Board, CacheStore, VisibilityManager, WorldSnapshot.
"""

import datetime

__title__ = "geocache"
__version__ = "1.0.0"
__license__ = "Apache 2.0"
_this_year = datetime.datetime.now(tz=datetime.UTC).date().year
__copyright__ = f"Copyright {_this_year} geocache contributors"

from geocache.board import Board, Cell  # noqa: E402
from geocache.cache_store import CacheStore, Coin, GeocacheState, Memento  # noqa: E402
from geocache.luck import CacheGenerator, luck  # noqa: E402
from geocache.persistence import (  # noqa: E402
    JSONFileStore,
    MemoryStore,
    ObserverState,
    SnapshotStore,
    WorldSnapshot,
)
from geocache.scenario import WorldScenario  # noqa: E402
from geocache.visibility import CellStatus, VisibilityChange, VisibilityManager  # noqa: E402
from geocache.world import InteractionResult, World  # noqa: E402

__all__ = [
    "Board",
    "CacheGenerator",
    "CacheStore",
    "Cell",
    "CellStatus",
    "Coin",
    "GeocacheState",
    "InteractionResult",
    "JSONFileStore",
    "Memento",
    "MemoryStore",
    "ObserverState",
    "SnapshotStore",
    "VisibilityChange",
    "VisibilityManager",
    "World",
    "WorldScenario",
    "WorldSnapshot",
    "luck",
]
