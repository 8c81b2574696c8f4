import pyarrow as pa
import pytest

from reftable.compute import col
from reftable.compute.filtering import RowSelector
from reftable.compute.store import ColumnStore
from reftable.errors import ShapeMismatch, TypeMismatch, UnknownColumn


@pytest.fixture
def store():
    return ColumnStore(
        {
            "grp": pa.array(["A", "A", None, "B", "C"]),
            "val": pa.array([10, None, 30, 5, 7]),
        }
    )


@pytest.mark.parametrize("selector", [None, slice(None)])
def test_all_rows(store, selector):
    assert RowSelector(selector).select(store) == [0, 1, 2, 3, 4]


def test_slice(store):
    assert RowSelector(slice(1, 4)).select(store) == [1, 2, 3]
    assert RowSelector(slice(None, None, -2)).select(store) == [4, 2, 0]


def test_predicate(store):
    assert RowSelector(col("grp") == "A").select(store) == [0, 1]
    assert RowSelector(col("val") >= 7).select(store) == [0, 2, 4]


def test_predicate_na_is_excluded(store):
    # val is NA at row 1, grp is NA at row 2: both excluded in any case.
    assert RowSelector(col("val") > 0).select(store) == [0, 2, 3, 4]
    assert RowSelector(~(col("val") > 0)).select(store) == []
    assert RowSelector(col("grp") != "A").select(store) == [3, 4]


def test_predicate_combinations(store):
    assert RowSelector((col("grp") == "A") & (col("val") > 5)).select(store) == [0]
    # Row 2 has val > 20 but grp NA, so the whole predicate is NA.
    assert RowSelector((col("grp") == "B") | (col("val") > 20)).select(store) == [3]


def test_predicate_na_propagates_through_or(store):
    # Row 1 has grp == "A" but val NA, NA | true is NA and thus excluded.
    assert RowSelector((col("val") > 100) | (col("grp") == "A")).select(store) == [0]


def test_predicate_isin(store):
    assert RowSelector(col("grp").isin(["A", "C"])).select(store) == [0, 1, 4]


def test_predicate_is_na(store):
    assert RowSelector(col("val").is_na()).select(store) == [1]


def test_predicate_constant(store):
    assert RowSelector(col("val").is_na() | True).select(store) == [0, 1, 2, 3, 4]
    assert RowSelector(False).select(store) == []
    assert RowSelector(True).select(store) == [0, 1, 2, 3, 4]


def test_predicate_not_boolean(store):
    with pytest.raises(TypeMismatch):
        RowSelector(col("val") + 1).select(store)


def test_predicate_type_mismatch(store):
    with pytest.raises(TypeMismatch):
        RowSelector(col("grp") > 3).select(store)


def test_predicate_unknown_column(store):
    with pytest.raises(UnknownColumn):
        RowSelector(col("missing") > 3).select(store)


def test_positions(store):
    assert RowSelector([4, 0, 0]).select(store) == [4, 0, 0]
    assert RowSelector(-1).select(store) == [4]
    assert RowSelector(range(2)).select(store) == [0, 1]
    assert RowSelector([]).select(store) == []


def test_positions_out_of_range(store):
    with pytest.raises(IndexError):
        RowSelector([5]).select(store)
    with pytest.raises(IndexError):
        RowSelector(-6).select(store)


def test_positions_invalid(store):
    with pytest.raises(TypeError):
        RowSelector([1, "a"]).select(store)
    with pytest.raises(TypeError):
        RowSelector("grp").select(store)


def test_mask(store):
    assert RowSelector([True, False, True, False, False]).select(store) == [0, 2]
    assert RowSelector(pa.array([None, True, False, True, None])).select(store) == [1, 3]


def test_mask_wrong_length(store):
    with pytest.raises(ShapeMismatch):
        RowSelector([True, False]).select(store)
