"""Base classes for expressions evaluated by the engine.

Expressions describe how to compute new data from the
columns of a table. They are evaluated against an
*evaluation context*: a :class:`pyarrow.RecordBatch` holding
only the rows visible to the expression, which are the
rows of the current group or of the whole selection
when the query is not grouped.

Column names used in an expression are thus bound
explicitly to the slice of the column in the context,
there is no lookup in any ambient scope::

    (RecordBatch of group rows) --> Expression.apply --> Array or Scalar

An expression can produce a vector (one value per row
of the context) or a scalar (one value for the whole
context, like ``sum(val)``).

Expressions support Python operators, so that predicates
and computations can be written naturally:

>>> import pyarrow as pa
>>> batch = pa.record_batch({"val": [1, 2, 3]})
>>> (col("val") > 1).apply(batch).to_pylist()
[False, True, True]
>>> (col("val") * 10).apply(batch).to_pylist()
[10, 20, 30]
"""

import abc
from typing import Any

import pyarrow as pa

from ..errors import UnknownColumn


def _call(func: str, *args: Any) -> "Expression":
    # expressions.py depends on this module, import it lazily.
    from . import expressions

    return expressions.FunctionCallExpression(getattr(expressions, func), *args)


class Expression(abc.ABC):
    """Expression to apply to an evaluation context.

    Typical example of expressions are: A + B
    which is expected to sum column A of the context
    to column B and return the result.

    As the engine is Column Major, applying an expression
    always results in a new column, a :class:`pyarrow.Array`,
    or in a single :class:`pyarrow.Scalar` when the expression
    reduces the data.
    """

    @abc.abstractmethod
    def apply(self, batch: pa.RecordBatch) -> pa.Array | pa.Scalar:
        """Apply the expression to an evaluation context.

        Expression classes must implement this method
        to dictate what will happen when an expression
        is applied.

        Suppose want to implement a ``SumExpression`` class
        that might look like::

            class SumExpression(Expression):
                def __init__(self, lcol, rcol):
                    self.lcol = lcol  # left column name
                    self.rcol = rcol  # right column name

                def apply(self, batch):
                    return pyarrow.compute.add(
                        batch[self.lcol],
                        batch[self.rcol]
                    )
        """
        ...

    @abc.abstractmethod
    def __str__(self) -> str:
        """Human readable representation of the expression."""
        ...

    def __repr__(self) -> str:
        return str(self)

    # Comparisons, NA compared to anything is NA.
    def __eq__(self, other: Any) -> "Expression":  # type: ignore[override]
        return _call("equal", self, other)

    def __ne__(self, other: Any) -> "Expression":  # type: ignore[override]
        return _call("not_equal", self, other)

    def __lt__(self, other: Any) -> "Expression":
        return _call("less", self, other)

    def __le__(self, other: Any) -> "Expression":
        return _call("less_equal", self, other)

    def __gt__(self, other: Any) -> "Expression":
        return _call("greater", self, other)

    def __ge__(self, other: Any) -> "Expression":
        return _call("greater_equal", self, other)

    __hash__ = None  # type: ignore[assignment]

    # Boolean logic
    def __and__(self, other: Any) -> "Expression":
        return _call("and_", self, other)

    def __rand__(self, other: Any) -> "Expression":
        return _call("and_", other, self)

    def __or__(self, other: Any) -> "Expression":
        return _call("or_", self, other)

    def __ror__(self, other: Any) -> "Expression":
        return _call("or_", other, self)

    def __invert__(self) -> "Expression":
        return _call("invert", self)

    # Arithmetic
    def __add__(self, other: Any) -> "Expression":
        return _call("add", self, other)

    def __radd__(self, other: Any) -> "Expression":
        return _call("add", other, self)

    def __sub__(self, other: Any) -> "Expression":
        return _call("subtract", self, other)

    def __rsub__(self, other: Any) -> "Expression":
        return _call("subtract", other, self)

    def __mul__(self, other: Any) -> "Expression":
        return _call("multiply", self, other)

    def __rmul__(self, other: Any) -> "Expression":
        return _call("multiply", other, self)

    def __truediv__(self, other: Any) -> "Expression":
        return _call("true_divide", self, other)

    def __rtruediv__(self, other: Any) -> "Expression":
        return _call("true_divide", other, self)

    def __neg__(self) -> "Expression":
        return _call("negate", self)

    def isin(self, values: list) -> "Expression":
        """Check if the values are part of the provided list."""
        return _call("is_in", self, values)

    def is_na(self) -> "Expression":
        """Check which values are NA."""
        return _call("is_null", self)


class ColumnRef(Expression):
    """References a column in the evaluation context.

    When another expression or the engine need
    to operate on a specific column, we will
    need a way to reference that column and its data.

    This expression is aware of the column and when
    applied to a context returns the data for
    that column restricted to the rows of the context.
    """

    def __init__(self, name: str) -> None:
        """
        :param name: The name of the column being referenced.
        """
        self.name = name

    def apply(self, batch: pa.RecordBatch) -> pa.Array:
        """Get the data for the column."""
        if self.name not in batch.schema.names:
            raise UnknownColumn(self.name, batch.schema.names)
        return batch.column(self.name)

    def __str__(self) -> str:
        return f"ColumnRef({self.name})"


class Literal(Expression):
    """A constant value.

    Applying a literal always provides the same scalar,
    which is broadcast to all the rows of the group
    when used as a result of a query.
    """

    def __init__(self, value: Any, type: pa.DataType | None = None) -> None:
        """
        :param value: The python value or :class:`pyarrow.Scalar`.
        :param type: The arrow type of the value, inferred when not provided.
        """
        if isinstance(value, pa.Scalar):
            self.value = value
        else:
            self.value = pa.scalar(value, type=type)

    def apply(self, batch: pa.RecordBatch) -> pa.Scalar:
        """Provide the literal value."""
        return self.value

    def __str__(self) -> str:
        return f"Literal({self.value!r})"


col = ColumnRef
lit = Literal
