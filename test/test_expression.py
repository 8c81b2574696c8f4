import pyarrow as pa
import pyarrow.compute as pc
import pytest

from reftable.compute.base import ColumnRef, Literal, col, lit
from reftable.compute.expressions import FunctionCallExpression, true_divide
from reftable.errors import TypeMismatch, UnknownColumn


@pytest.fixture
def sample_batch():
    return pa.RecordBatch.from_arrays(
        [pa.array([1, 2, 3, 4, 5]), pa.array(["a", "b", "c", "d", "e"])],
        names=["numbers", "letters"],
    )


def test_function_call_expression_init():
    expr = FunctionCallExpression(pc.add, ColumnRef("numbers"), 1)
    assert expr.func == pc.add
    assert len(expr.args) == 2
    assert isinstance(expr.args[0], ColumnRef)
    assert expr.args[1] == 1


def test_function_call_expression_str():
    expr = FunctionCallExpression(pc.add, ColumnRef("numbers"), 1)
    assert str(expr) == "pyarrow.compute.add(ColumnRef(numbers),1)"


def test_function_call_expression_apply_simple(sample_batch):
    expr = FunctionCallExpression(pc.add, ColumnRef("numbers"), 1)
    result = expr.apply(sample_batch)
    assert result.equals(pa.array([2, 3, 4, 5, 6]))


def test_function_call_expression_apply_nested(sample_batch):
    inner_expr = FunctionCallExpression(pc.multiply, ColumnRef("numbers"), 2)
    outer_expr = FunctionCallExpression(pc.add, inner_expr, 1)
    result = outer_expr.apply(sample_batch)
    assert result.equals(pa.array([3, 5, 7, 9, 11]))


def test_function_call_expression_options(sample_batch):
    expr = FunctionCallExpression(pc.round, true_divide(pa.array([1, 2]), 3), ndigits=2)
    assert expr.apply(sample_batch).to_pylist() == [0.33, 0.67]


def test_function_call_expression_apply_null_handling(sample_batch):
    batch = pa.RecordBatch.from_arrays(
        [pa.array([1, None, 3, 4, 5]), sample_batch["letters"]],
        names=["numbers", "letters"],
    )
    result = (col("numbers") + 1).apply(batch)
    assert result.equals(pa.array([2, None, 4, 5, 6]))


def test_function_call_expression_apply_invalid_column():
    batch = pa.RecordBatch.from_arrays([pa.array([1, 2, 3])], names=["numbers"])
    expr = FunctionCallExpression(pc.add, ColumnRef("non_existent"), 1)
    with pytest.raises(UnknownColumn):
        expr.apply(batch)


def test_function_call_expression_apply_type_mismatch():
    batch = pa.RecordBatch.from_arrays([pa.array(["a", "b", "c"])], names=["letters"])
    expr = FunctionCallExpression(pc.add, ColumnRef("letters"), 1)
    with pytest.raises(TypeMismatch) as excinfo:
        expr.apply(batch)
    assert isinstance(excinfo.value.__cause__, pa.ArrowNotImplementedError)


def test_literal(sample_batch):
    assert lit(3).apply(sample_batch).as_py() == 3
    assert Literal(3, type=pa.float64()).apply(sample_batch).type == pa.float64()
    assert Literal(pa.scalar("x")).apply(sample_batch).as_py() == "x"


@pytest.mark.parametrize(
    "expr, expected",
    [
        (col("numbers") == 2, [False, True, False, False, False]),
        (col("numbers") != 2, [True, False, True, True, True]),
        (col("numbers") < 2, [True, False, False, False, False]),
        (col("numbers") <= 2, [True, True, False, False, False]),
        (col("numbers") > 4, [False, False, False, False, True]),
        (col("numbers") >= 4, [False, False, False, True, True]),
        ((col("numbers") > 1) & (col("numbers") < 4), [False, True, True, False, False]),
        ((col("numbers") < 2) | (col("numbers") > 4), [True, False, False, False, True]),
        (~(col("numbers") > 1), [True, False, False, False, False]),
        (col("letters").isin(["a", "e"]), [True, False, False, False, True]),
        (col("numbers") - 1, [0, 1, 2, 3, 4]),
        (10 - col("numbers"), [9, 8, 7, 6, 5]),
        (2 * col("numbers"), [2, 4, 6, 8, 10]),
        (1 + col("numbers"), [2, 3, 4, 5, 6]),
        (-col("numbers"), [-1, -2, -3, -4, -5]),
        (col("numbers") / 2, [0.5, 1.0, 1.5, 2.0, 2.5]),
        (10 / col("numbers"), [10.0, 5.0, 10 / 3, 2.5, 2.0]),
    ],
)
def test_operators(sample_batch, expr, expected):
    assert expr.apply(sample_batch).to_pylist() == expected


def test_operators_str():
    expr = (col("a") > 1) & (col("b") == "x")
    assert str(expr) == (
        "pyarrow.compute.and_(pyarrow.compute.greater(ColumnRef(a),1),"
        "pyarrow.compute.equal(ColumnRef(b),x))"
    )


def test_na_comparison_is_na():
    batch = pa.record_batch({"v": pa.array([1, None])})
    assert (col("v") == 1).apply(batch).to_pylist() == [True, None]
    assert ((col("v") == 1) | True).apply(batch).to_pylist() == [True, None]
