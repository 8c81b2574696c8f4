import threading

import pyarrow as pa
import pytest

from reftable.compute.sorting import OrderIndex
from reftable.compute.store import ColumnStore
from reftable.errors import ConcurrentQueryError, DimensionMismatch, UnknownColumn


@pytest.fixture
def store():
    return ColumnStore(
        {"id": [1, 2, 3], "grp": ["A", "A", "B"], "val": pa.array([1.5, None, 3.0])}
    )


def test_store_init(store):
    assert store.column_names == ["id", "grp", "val"]
    assert store.num_rows == 3
    assert len(store) == 3
    assert "grp" in store
    assert "missing" not in store
    assert repr(store) == "ColumnStore(columns=['id', 'grp', 'val'], rows=3)"


def test_store_init_different_lengths():
    with pytest.raises(DimensionMismatch):
        ColumnStore({"a": [1, 2, 3], "b": [1, 2]})


def test_store_init_without_columns():
    store = ColumnStore(num_rows=5)
    assert store.num_rows == 5
    assert store.column_names == []
    store.set("a", list(range(5)))
    assert store.get("a").to_pylist() == [0, 1, 2, 3, 4]


def test_store_from_arrow():
    store = ColumnStore.from_arrow(
        pa.table({"a": pa.chunked_array([[1, 2], [3]]), "b": ["x", "y", "z"]})
    )
    assert store.num_rows == 3
    assert isinstance(store.get("a"), pa.Array)
    assert store.get("a").to_pylist() == [1, 2, 3]


def test_get_unknown_column(store):
    with pytest.raises(UnknownColumn) as excinfo:
        store.get("missing")
    assert excinfo.value.name == "missing"
    assert isinstance(excinfo.value, KeyError)
    assert str(excinfo.value) == (
        "Unknown column: 'missing', available columns are ['id', 'grp', 'val']"
    )


def test_set_adds_and_replaces(store):
    store.set("flag", [True, False, True])
    assert store.column_names == ["id", "grp", "val", "flag"]
    store.set("id", pa.array([10, 20, 30]))
    assert store.get("id").to_pylist() == [10, 20, 30]
    assert store.column_names == ["id", "grp", "val", "flag"]


def test_set_wrong_length(store):
    with pytest.raises(DimensionMismatch):
        store.set("id", [1, 2])
    assert store.get("id").to_pylist() == [1, 2, 3]


def test_remove(store):
    store.remove("grp")
    assert store.column_names == ["id", "val"]
    assert store.num_rows == 3
    with pytest.raises(UnknownColumn):
        store.remove("grp")


def test_take(store):
    batch = store.take([2, 0, 2], ["grp", "id"])
    assert batch.to_pydict() == {"grp": ["B", "A", "B"], "id": [3, 1, 3]}
    assert store.take([]).num_rows == 0
    assert store.take([]).schema == store.batch().schema


def test_copy_is_independent(store):
    clone = store.copy()
    clone.set("id", [7, 8, 9])
    store.remove("val")
    assert store.get("id").to_pylist() == [1, 2, 3]
    assert clone.column_names == ["id", "grp", "val"]
    assert clone.get("id").to_pylist() == [7, 8, 9]


@pytest.mark.parametrize(
    "mutation",
    [
        lambda s: s.set("id", [3, 2, 1]),
        lambda s: s.set("other", [0, 0, 0]),
        lambda s: s.remove("val"),
    ],
)
def test_any_mutation_invalidates_index(store, mutation):
    OrderIndex([("grp", "ascending")]).index_for(store)
    assert store.active_index is not None
    version = store.version

    mutation(store)

    assert store.active_index is None
    assert store.version == version + 1


def test_set_active_index_for_old_version(store):
    index = OrderIndex([("grp", "ascending")]).build_index(store)
    store.set("id", [3, 2, 1])
    with pytest.raises(ValueError):
        store.set_active_index(index)


def test_copy_keeps_active_index(store):
    OrderIndex([("grp", "ascending")]).index_for(store)
    clone = store.copy()
    assert clone.active_index.names == ["grp"]
    clone.set("id", [0, 0, 0])
    assert clone.active_index is None
    assert store.active_index.names == ["grp"]


def test_writer_guard(store):
    with store.writer():
        with pytest.raises(ConcurrentQueryError):
            with store.writer():
                pass
    # Released once done.
    with store.writer():
        pass


def test_writer_guard_other_thread(store):
    errors = []

    def write():
        try:
            with store.writer():
                pass
        except ConcurrentQueryError as e:
            errors.append(e)

    with store.writer():
        thread = threading.Thread(target=write)
        thread.start()
        thread.join()

    assert len(errors) == 1
