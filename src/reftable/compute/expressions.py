"""Expressions computing new data from the evaluation context.

The engine needs expressions in a few places:

Row selectors need a ``predicate``, an expression that
returns ``true`` or ``false`` (or NA) for each row.

Computed columns and aggregates need an expression that
computes the values for the new column, for example ``A + B``
or ``sum(A)``.

Assignments need an expression computing the values
that will be written into the table.

All of them are built on :class:`FunctionCallExpression`,
which invokes a compute function on its arguments.
This module also exposes the compute functions used by
the operators of :class:`reftable.compute.base.Expression`.
"""

from typing import Any

import pyarrow as pa
import pyarrow.compute as pc

from .. import utils
from ..errors import TypeMismatch
from .base import Expression

equal = pc.equal
not_equal = pc.not_equal
less = pc.less
less_equal = pc.less_equal
greater = pc.greater
greater_equal = pc.greater_equal
# Not the kleene variants: NA and anything is NA.
and_ = pc.and_
or_ = pc.or_
invert = pc.invert
add = pc.add
subtract = pc.subtract
multiply = pc.multiply
negate = pc.negate
is_null = pc.is_null


def true_divide(dividend: Any, divisor: Any) -> pa.Array | pa.Scalar:
    """Divide always producing floating point values.

    Arrow divides integers with an integer division,
    while the ``/`` operator is expected to be a true division.
    """
    return pc.divide(_as_float(dividend), _as_float(divisor))


def is_in(values: Any, value_set: list) -> pa.Array | pa.Scalar:
    """Check if each value is part of ``value_set``."""
    return pc.is_in(values, value_set=pa.array(value_set))


def _as_float(value: Any) -> Any:
    if isinstance(value, (pa.Array, pa.ChunkedArray, pa.Scalar)):
        if pa.types.is_integer(value.type):
            return value.cast(pa.float64())
    elif isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    return value


def apply_expression_if_needed(batch: pa.RecordBatch, o: Expression | Any) -> Any:
    """Invoke Apply on expressions when needed

    If the provided object is an Expression,
    it will be applied to the target batch.

    Otherwise it will treat it as if it's
    already the result of an expression
    or a literal value.

    This allows us to apply all arguments
    we receive without having to care if
    they are the data we need or if they
    are the expression resulting in that data.
    """
    if isinstance(o, Expression):
        o = o.apply(batch)
    return o


class FunctionCallExpression(Expression):
    """Call a compute function on its arguments.

    Given a compute function, and a set of arguments
    (other expressions, literals or data), execute
    the function on the provided arguments and return
    the resulting data.

    For example to sum two columns this would be used as::

        FunctionCallExpression(pyarrow.compute.add, ColumnRef("A"), ColumnRef("B"))

    Arrow errors caused by incompatible types, like comparing
    a text column with a number, are reported as
    :class:`reftable.errors.TypeMismatch`.
    """

    def __init__(self, func: callable, *args: Expression | Any, **options: Any) -> None:
        """
        :param func: The function accepting the arguments.
        :param *args: The arguments for the function.
        :param **options: Keyword arguments forwarded to the function as they are.
        """
        self.func = func
        self.args = args
        self.options = options

    def __str__(self) -> str:
        func_qualname = utils.inspect.get_qualname(self.func)
        return f"{func_qualname}({','.join(map(str, self.args))})"

    def apply(self, batch: pa.RecordBatch) -> pa.Array | pa.Scalar:
        """Invoke the function resolving all arguments on the context.

        When the function arguments are expressions themselves,
        this will apply the expressions on the provided context
        and the resulting data will be used as the arguments for the
        function.
        """
        args = tuple(apply_expression_if_needed(batch, arg) for arg in self.args)
        try:
            return self.func(*args, **self.options)
        except (pa.ArrowNotImplementedError, pa.ArrowTypeError) as e:
            raise TypeMismatch(f"Unable to evaluate {self}: {e}") from e
