"""Evaluation of the column part of a query.

Once the rows of a query are selected and partitioned into
groups, the column part of the query decides what the result
looks like. It can be:

1. A **list of column names**, which projects those columns
   verbatim: ``["city", "shop"]``. A single name returns
   the values of that column.
2. A **computed expression**, a single
   :class:`reftable.compute.base.Expression` or a ``{name: Expression}``
   dictionary. Columns referenced by the expressions are bound
   to the rows of the current group, so ``col("val") * 2``
   doubles the values of the group and ``SumAggregation("val")``
   sums them.
3. A **grouped aggregate**, which is just the case of computed
   expressions that all produce a scalar for each group.
   The result has one row per group, with the grouping columns
   followed by the computed columns.

Every vector computed for a group must have as many values
as the rows of the group, or a single value that is then
broadcast to all the rows. Scalars are broadcast too.

>>> from reftable.compute.base import col
>>> from reftable.compute.aggregate import N, SumAggregation
>>> from reftable.compute.grouping import By, GroupEngine
>>> from reftable.compute.store import ColumnStore
>>> store = ColumnStore({"grp": ["A", "A", "B"], "val": [1, 2, 3]})
>>> groups = GroupEngine(store).groups([0, 1, 2], By("grp"))
>>> evaluator = ColumnExpressionEvaluator(store)
>>> evaluator.evaluate({"n": N, "total": SumAggregation("val")}, groups, By("grp")).to_pydict()
{'grp': ['A', 'B'], 'n': [2, 1], 'total': [3, 3]}
>>> evaluator.evaluate({"double": col("val") * 2}, groups, By("grp")).to_pydict()
{'grp': ['A', 'A', 'B'], 'double': [2, 4, 6]}
"""

from typing import Any, Mapping, Sequence

import pyarrow as pa

from ..errors import ShapeMismatch, TypeMismatch
from .base import ColumnRef, Expression, Literal
from .grouping import By, Group
from .store import ColumnStore

Result = pa.Table | pa.Array | pa.Scalar


class ColumnExpressionEvaluator:
    """Compute the result of a query for its groups of rows."""

    DEFAULT_GROUP_COLUMN = "V1"

    def __init__(self, store: ColumnStore) -> None:
        """
        :param store: The store the groups refer to.
        """
        self.store = store

    def evaluate(self, select: Any, groups: list[Group], by: By | None = None) -> Result:
        """Compute the result for the given groups.

        :param select: Column names, a single expression or ``{name: expression}``.
        :param groups: The groups as emitted by :class:`reftable.compute.grouping.GroupEngine`.
        :param by: The grouping specification the groups were made with.
        :returns: A :class:`pyarrow.Table`, or the values of a single column
                  or expression when the query is not grouped.
        """
        key_names = by.names if by is not None else []

        if select is None:
            select = [n for n in self.store.column_names if n not in key_names]

        if isinstance(select, str):
            if not key_names:
                return self._single(ColumnRef(select), groups)
            select = [select]

        if isinstance(select, Expression):
            if not key_names:
                return self._single(select, groups)
            select = {self.DEFAULT_GROUP_COLUMN: select}

        if isinstance(select, Sequence) and all(isinstance(n, str) for n in select):
            if not key_names:
                return self._project(list(select), groups)
            select = {n: ColumnRef(n) for n in select if n not in key_names}

        if not isinstance(select, Mapping):
            raise TypeError(f"Unsupported column expression: {select!r}")

        duplicates = set(select) & set(key_names)
        if duplicates:
            raise ValueError(f"Result columns {sorted(duplicates)} clash with grouping columns")
        return self._compute(dict(select), groups, key_names)

    def group_values(self, expression: Any, batch: pa.RecordBatch) -> pa.Array:
        """Evaluate an expression and broadcast it to all the rows of the context.

        :param expression: The expression to evaluate or a literal value.
        :param batch: The rows of the group.
        """
        value = self.apply(expression, batch)
        return self._broadcast(value, batch.num_rows)

    def apply(self, expression: Any, batch: pa.RecordBatch) -> pa.Array | pa.Scalar:
        """Apply an expression, or a literal value, to an evaluation context."""
        if isinstance(expression, Expression):
            value = expression.apply(batch)
        elif isinstance(expression, (pa.Array, pa.ChunkedArray, pa.Scalar)):
            value = expression
        else:
            value = Literal(expression).apply(batch)
        if isinstance(value, pa.ChunkedArray):
            value = value.combine_chunks()
        elif not isinstance(value, (pa.Array, pa.Scalar)):
            value = pa.scalar(value)
        self._check_shape(expression, value, batch.num_rows)
        return value

    def _single(self, expression: Expression, groups: list[Group]) -> pa.Array | pa.Scalar:
        # Not grouped, there is a single group with all the selected rows.
        (group,) = groups
        return self.apply(expression, self.store.take(group.rows))

    def _project(self, names: list[str], groups: list[Group]) -> pa.Table:
        (group,) = groups
        return pa.Table.from_batches([self.store.take(group.rows, names)])

    def _compute(
        self, expressions: dict[str, Any], groups: list[Group], key_names: list[str]
    ) -> pa.Table:
        key_rows: list[int] = []
        pieces: dict[str, list[pa.Array]] = {name: [] for name in expressions}

        for group in groups:
            batch = self.store.take(group.rows)
            values = {name: self.apply(expr, batch) for name, expr in expressions.items()}
            num_rows = self._result_length(values, len(group))
            for name, value in values.items():
                pieces[name].append(self._broadcast(value, num_rows))
            if key_names:
                key_rows.extend([group.rows[0]] * num_rows)

        if not groups:
            # No groups at all, infer the result types from an empty context.
            batch = self.store.take([])
            for name, expr in expressions.items():
                pieces[name].append(self._broadcast(self.apply(expr, batch), 0))

        arrays = []
        if key_names:
            arrays.extend(self.store.take(key_rows, key_names).columns)
        arrays.extend(concat_results(name, pieces[name]) for name in expressions)
        return pa.Table.from_arrays(arrays, names=key_names + list(expressions))

    @staticmethod
    def _result_length(values: dict[str, pa.Array | pa.Scalar], group_size: int) -> int:
        """How many rows the group contributes to the result.

        A group of rows contributes one row per row of the group
        when any of the expressions computed a vector for it,
        otherwise it's an aggregate and contributes a single row.
        """
        for value in values.values():
            if isinstance(value, pa.Array) and len(value) != 1:
                return group_size
        return 1

    @staticmethod
    def _check_shape(expression: Any, value: pa.Array | pa.Scalar, group_size: int) -> None:
        if isinstance(value, pa.Array) and len(value) not in (group_size, 1):
            raise ShapeMismatch(
                f"{expression} produced {len(value)} values for a group of {group_size} rows"
            )

    @staticmethod
    def _broadcast(value: pa.Array | pa.Scalar, num_rows: int) -> pa.Array:
        if isinstance(value, pa.Array):
            if len(value) == num_rows:
                return value
            value = value[0]
        return pa.repeat(value, num_rows)


def concat_results(name: str, pieces: list[pa.Array]) -> pa.Array:
    """Concatenate the values computed for each group in a single column.

    :param name: The name of the column, used for error reporting.
    :param pieces: The values of each group.
    """
    # Groups where the result was NA might have produced null typed values.
    types = [p.type for p in pieces if not pa.types.is_null(p.type)]
    if not types:
        return pa.concat_arrays(pieces)
    target = types[0]
    try:
        return pa.concat_arrays([p.cast(target) for p in pieces])
    except (pa.ArrowInvalid, pa.ArrowNotImplementedError, pa.ArrowTypeError) as e:
        raise TypeMismatch(f"Column {name!r} has values of different types: {e}") from e
