import random

import pyarrow as pa
import pytest

from reftable.compute.grouping import By, GroupEngine, SortedBy
from reftable.compute.store import ColumnStore
from reftable.errors import UnknownColumn

TEST_DATA = {
    "city": ["Rome", "Milan", "Rome", "Turin", "Milan", "Rome"],
    "shop": ["A", "A", "B", "A", "A", "A"],
    "n_employees": [10, 15, 8, 12, 20, 3],
}


@pytest.fixture
def store():
    return ColumnStore(TEST_DATA)


def _keys(groups):
    return [group.key for group in groups]


def _rows(groups):
    return [group.rows for group in groups]


def test_by_keys():
    assert By("a", "b").keys == ["a", "b"]
    assert By(["a", "b"]).keys == ["a", "b"]
    assert SortedBy("a", "-b").names == ["a", "b"]
    assert SortedBy("a", "-b").sort_keys == [("a", "ascending"), ("b", "descending")]
    assert str(SortedBy("a")) == "SortedBy('a')"


@pytest.mark.parametrize("by", [None, By()])
def test_no_grouping(store, by):
    groups = GroupEngine(store).groups([5, 0, 3], by)
    assert len(groups) == 1
    assert groups[0].key == ()
    assert groups[0].rows == [5, 0, 3]


def test_no_grouping_empty_selection(store):
    groups = GroupEngine(store).groups([], None)
    assert _rows(groups) == [[]]


def test_appearance_order(store):
    groups = GroupEngine(store).groups(list(range(6)), By("city"))
    assert _keys(groups) == [("Rome",), ("Milan",), ("Turin",)]
    assert _rows(groups) == [[0, 2, 5], [1, 4], [3]]


def test_appearance_order_follows_selection(store):
    groups = GroupEngine(store).groups([3, 1, 0, 4], By("city"))
    assert _keys(groups) == [("Turin",), ("Milan",), ("Rome",)]
    assert _rows(groups) == [[3], [1, 4], [0]]


def test_multiple_keys(store):
    groups = GroupEngine(store).groups(list(range(6)), By("city", "shop"))
    assert _keys(groups) == [("Rome", "A"), ("Milan", "A"), ("Rome", "B"), ("Turin", "A")]
    assert _rows(groups) == [[0, 5], [1, 4], [2], [3]]


def test_sorted_order(store):
    groups = GroupEngine(store).groups([5, 4, 3, 2, 1, 0], SortedBy("city"))
    assert _keys(groups) == [("Milan",), ("Rome",), ("Turin",)]
    # Rows retain the selection order inside each group.
    assert _rows(groups) == [[4, 1], [5, 2, 0], [3]]


def test_sorted_order_descending(store):
    groups = GroupEngine(store).groups(list(range(6)), SortedBy("-city", "shop"))
    assert _keys(groups) == [("Turin", "A"), ("Rome", "A"), ("Rome", "B"), ("Milan", "A")]


def test_sorted_grouping_sets_active_index(store):
    assert store.active_index is None
    GroupEngine(store).groups([0, 1], SortedBy("city", "shop"))
    assert store.active_index.names == ["city", "shop"]
    # Appearance grouping doesn't touch the index.
    GroupEngine(store).groups([0, 1], By("shop"))
    assert store.active_index.names == ["city", "shop"]


def test_sorted_grouping_reuses_active_index(store):
    GroupEngine(store).groups(list(range(6)), SortedBy("city"))
    index = store.active_index
    GroupEngine(store).groups([1, 2], SortedBy("city"))
    assert store.active_index is index


def test_na_keys_form_a_group():
    store = ColumnStore({"k": pa.array(["x", None, "x", None]), "v": [1, 2, 3, 4]})
    appearance = GroupEngine(store).groups([0, 1, 2, 3], By("k"))
    assert _keys(appearance) == [("x",), (None,)]
    assert _rows(appearance) == [[0, 2], [1, 3]]
    ordered = GroupEngine(store).groups([3, 2, 1, 0], SortedBy("k"))
    assert _keys(ordered) == [("x",), (None,)]
    assert _rows(ordered) == [[2, 0], [3, 1]]


def test_duplicated_rows_in_selection(store):
    groups = GroupEngine(store).groups([0, 0, 1], By("city"))
    assert _rows(groups) == [[0, 0], [1]]


def test_unknown_grouping_column(store):
    with pytest.raises(UnknownColumn):
        GroupEngine(store).groups([0], By("country"))


@pytest.mark.parametrize("by", [By("city"), SortedBy("city", "shop"), By("shop")])
@pytest.mark.parametrize("seed", [1, 2, 3])
def test_partition_property(store, by, seed):
    rnd = random.Random(seed)
    selection = [rnd.randrange(store.num_rows) for _ in range(20)]
    groups = GroupEngine(store).groups(selection, by)

    all_rows = [row for group in groups for row in group.rows]
    assert sorted(all_rows) == sorted(selection)
    # Each group only contains rows matching its key.
    for group in groups:
        for row in group.rows:
            assert tuple(TEST_DATA[name][row] for name in by.names) == group.key
    # Keys are unique.
    assert len(set(_keys(groups))) == len(groups)


@pytest.mark.parametrize("seed", [1, 2, 3])
def test_order_policies(store, seed):
    rnd = random.Random(seed)
    selection = [rnd.randrange(store.num_rows) for _ in range(20)]

    appearance = GroupEngine(store).groups(selection, By("city"))
    first_seen = list(dict.fromkeys(TEST_DATA["city"][row] for row in selection))
    assert [group.key[0] for group in appearance] == first_seen

    ordered = GroupEngine(store).groups(selection, SortedBy("city"))
    assert _keys(ordered) == sorted(_keys(ordered))
    # Same groups, with the same rows in the same order.
    assert sorted(_rows(ordered)) == sorted(_rows(appearance))
