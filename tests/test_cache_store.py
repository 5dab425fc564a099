"""Tests for the CacheStore and cache mementos."""

import pytest

from geocache.board import Board
from geocache.cache_store import MEMENTO_VERSION, CacheStore, Coin, Memento
from geocache.errors import EmptyCacheError, NoCacheError, VersionMismatchError


@pytest.fixture
def board():
    return Board(1e-4, visibility_radius=1)


@pytest.fixture
def store(board, fixed_generator):
    generator = fixed_generator(
        0.1,
        {
            (3, 4): 0.04,
            (3, 4, "initialValue"): 0.375,
            (0, 0): 0.5,
            (1, 1): 0.0,
            (1, 1, "initialValue"): 0.02,
        },
    )
    return CacheStore(board, generator)


def test_materialize_spawns_from_generator(board, store):
    """Test a lucky cell is created with its initial coin count."""
    cell = board.canonical_cell(3, 4)
    state = store.materialize(cell)
    assert state.cell is cell
    assert state.coin_count == 37
    assert state.issued_coins == []
    assert state.next_serial == 0


def test_materialize_returns_single_live_instance(board, store):
    """Test repeated materialize calls share one state object."""
    cell = board.canonical_cell(3, 4)
    assert store.materialize(cell) is store.materialize(cell)
    assert store.materialize(board.canonical_cell(3, 4)) is store.materialize(cell)
    assert list(store.live_cells()) == [cell]


def test_materialize_unlucky_cell(board, store):
    """Test a cell the generator declines has no cache."""
    cell = board.canonical_cell(0, 0)
    with pytest.raises(NoCacheError) as excinfo:
        store.materialize(cell)
    assert excinfo.value.cell is cell
    assert cell not in store


def test_collect_then_deposit(board, store):
    """Test collect then deposit leaves the count but keeps the issued coin."""
    cell = board.canonical_cell(3, 4)
    remaining, coin = store.collect(cell)
    assert remaining == 36
    assert coin == Coin(cell, 0)
    assert str(coin) == "3:4#0"

    assert store.deposit(cell) == 37
    state = store.materialize(cell)
    assert state.coin_count == 37
    assert len(state.issued_coins) == 1


def test_collect_until_empty(board, store):
    """Test an empty cache refuses further collects."""
    cell = board.canonical_cell(1, 1)
    coins = [store.collect(cell)[1] for _ in range(2)]
    assert [c.serial for c in coins] == [0, 1]
    with pytest.raises(EmptyCacheError):
        store.collect(cell)
    assert store.materialize(cell).coin_count == 0


def test_serials_never_reused(board, store):
    """Test serials keep increasing across deposits."""
    cell = board.canonical_cell(3, 4)
    serials = []
    for _ in range(5):
        serials.append(store.collect(cell)[1].serial)
        store.deposit(cell)
        store.deposit(cell)
    assert serials == [0, 1, 2, 3, 4]
    assert store.materialize(cell).coin_count == 42


def test_evict_and_rematerialize(board, store):
    """Test an evicted cache comes back exactly as it was."""
    cell = board.canonical_cell(3, 4)
    store.collect(cell)
    store.collect(cell)
    store.deposit(cell)
    before = store.materialize(cell)

    memento = store.evict(cell)
    assert memento == Memento(coin_count=36, next_serial=2)
    assert not store.is_live(cell)
    assert cell in store

    after = store.materialize(cell)
    assert after is not before
    assert after.coin_count == before.coin_count
    assert after.issued_coins == before.issued_coins
    assert store.collect(cell)[1].serial == 2


def test_restore_round_trip(board, store):
    """Test restore(cell, evict(cell)) reproduces the state."""
    cell = board.canonical_cell(3, 4)
    store.collect(cell)
    expected = store.materialize(cell).to_memento()

    state = store.restore(cell, store.evict(cell))
    assert state.to_memento() == expected
    assert store.is_live(cell)


def test_restore_bypasses_generation(board, store):
    """Test restore installs state even where nothing would spawn."""
    cell = board.canonical_cell(0, 0)
    state = store.restore(cell, Memento(coin_count=4, next_serial=1))
    assert state.coin_count == 4
    assert state.issued_coins == [Coin(cell, 0)]
    assert store.materialize(cell) is state


def test_restore_version_mismatch(board, store):
    """Test an unsupported memento version is refused."""
    cell = board.canonical_cell(3, 4)
    with pytest.raises(VersionMismatchError):
        store.restore(cell, Memento(coin_count=1, next_serial=0, version=MEMENTO_VERSION + 1))
    assert not store.is_live(cell)


def test_evict_never_spawned(board, store):
    """Test evicting an unknown cell is a no-op."""
    assert store.evict(board.canonical_cell(0, 0)) is None
    assert len(store) == 0


def test_snapshot_does_not_evict(board, store):
    """Test snapshot leaves the live entry in place."""
    cell = board.canonical_cell(3, 4)
    store.collect(cell)
    assert store.snapshot(cell) == Memento(coin_count=36, next_serial=1)
    assert store.is_live(cell)
    assert store.snapshot(board.canonical_cell(9, 9)) is None


def test_mementos_cover_live_and_evicted(board, store):
    """Test mementos() lists every known cache."""
    a, b = board.canonical_cell(3, 4), board.canonical_cell(1, 1)
    store.materialize(a)
    store.materialize(b)
    store.evict(b)
    assert store.mementos() == {
        a: Memento(coin_count=37, next_serial=0),
        b: Memento(coin_count=2, next_serial=0),
    }


def test_load_mementos_and_clear(board, store):
    """Test loading replaces the content and clear empties it."""
    store.materialize(board.canonical_cell(3, 4))
    cell = board.canonical_cell(-2, 5)
    store.load_mementos({cell: Memento(coin_count=9, next_serial=3)})
    assert list(store.live_cells()) == []
    assert store.materialize(cell).coin_count == 9
    store.clear()
    assert len(store) == 0


def test_rejected_load_leaves_store_intact(board, store):
    """Test a load with one bad memento changes nothing in the store."""
    live = board.canonical_cell(3, 4)
    evicted = board.canonical_cell(1, 1)
    store.collect(live)
    store.materialize(evicted)
    store.evict(evicted)
    before = store.mementos()

    mementos = {
        board.canonical_cell(-2, 5): Memento(coin_count=9, next_serial=3),
        live: Memento(coin_count=1, next_serial=0, version=MEMENTO_VERSION + 1),
    }
    with pytest.raises(VersionMismatchError):
        store.load_mementos(mementos)

    assert store.mementos() == before
    assert store.is_live(live)
    assert store.collect(live) == (35, Coin(live, 1))


class TestMemento:
    """Tests for memento serialization."""

    def test_dict_round_trip(self):
        memento = Memento(coin_count=5, next_serial=7)
        assert memento.to_dict() == {"version": 1, "coin_count": 5, "next_serial": 7}
        assert Memento.from_dict(memento.to_dict()) == memento

    def test_wrong_version(self):
        with pytest.raises(VersionMismatchError):
            Memento.from_dict({"version": 2, "coin_count": 5, "next_serial": 7})
        with pytest.raises(VersionMismatchError):
            Memento.from_dict({"coin_count": 5, "next_serial": 7})

    @pytest.mark.parametrize("coin_count", [-1, 1.5, "3", True])
    def test_invalid_values(self, coin_count):
        with pytest.raises(ValueError, match="coin_count"):
            Memento.from_dict({"version": 1, "coin_count": coin_count, "next_serial": 0})

    @pytest.mark.parametrize("version", [True, 1.0, "1"])
    def test_version_must_be_an_integer(self, version):
        """Test values that merely compare equal to the version are refused."""
        with pytest.raises(VersionMismatchError):
            Memento.from_dict({"version": version, "coin_count": 5, "next_serial": 7})
