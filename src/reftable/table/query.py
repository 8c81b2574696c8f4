"""Evaluation of queries against a table.

A :class:`Query` is the combination of three parts,
all of them optional::

    Query(where, select, by)

* ``where`` selects the rows, see :class:`reftable.compute.RowSelector`.
* ``select`` decides the columns of the result, or the columns
  to write for assignment queries, see
  :class:`reftable.compute.ColumnExpressionEvaluator` and
  :class:`reftable.compute.Assign`.
* ``by`` (or ``sorted_by``) partitions the selected rows in groups,
  see :class:`reftable.compute.GroupEngine`.

Evaluating a query always follows the same steps::

    select rows -> group them -> evaluate per group -> new Table
                                                    \\-> write to the store (assignment)

The result of a query is a new table that can be queried
again. Each query is fully evaluated before the next one starts,
:func:`chain` evaluates a sequence of queries this way.
"""

from typing import TYPE_CHECKING, Any

import pyarrow as pa

from ..compute import (
    Assign,
    By,
    ColumnExpressionEvaluator,
    GroupEngine,
    MutationEngine,
    RowSelector,
    SortedBy,
)

if TYPE_CHECKING:
    from .table import Table


def _grouping(keys: Any, sorted: bool) -> By | None:
    if keys is None:
        return None
    if isinstance(keys, By):
        # An explicit policy wins over the keyword it was passed with.
        return keys
    cls = SortedBy if sorted else By
    if isinstance(keys, str):
        return cls(keys)
    return cls(list(keys))


class Query:
    """A single step of selection, computation and grouping.

    >>> from reftable import Table, col, N
    >>> table = Table({"grp": ["A", "A", "B"], "val": [10, 20, 30]})
    >>> Query(where=col("val") > 10, select={"n": N}, by="grp").evaluate(table).to_pydict()
    {'grp': ['A', 'B'], 'n': [1, 1]}
    """

    def __init__(
        self,
        where: Any = None,
        select: Any = None,
        by: Any = None,
        sorted_by: Any = None,
    ) -> None:
        """
        :param where: The row selector, ``None`` for all rows.
        :param select: The columns of the result or an :class:`reftable.compute.Assign`.
        :param by: Grouping columns, groups are emitted in order of appearance.
        :param sorted_by: Grouping columns, groups are emitted in key order.
        """
        if by is not None and sorted_by is not None:
            raise ValueError("Only one of by and sorted_by can be provided")
        self.where = where
        self.select = select
        self.grouping = _grouping(by, False) if by is not None else _grouping(sorted_by, True)

    def __str__(self) -> str:
        return f"Query(where={self.where}, select={self.select}, by={self.grouping})"

    @property
    def is_assignment(self) -> bool:
        return isinstance(self.select, Assign)

    def evaluate(self, table: "Table") -> "Table | pa.Array | pa.Scalar":
        """Run the query against a table.

        :returns: A new table for regular queries. The values
                  for queries selecting a single column or expression.
                  The same table for assignment queries, after its
                  store was modified.
        """
        store = table.store
        rows = RowSelector(self.where).select(store)
        groups = GroupEngine(store).groups(rows, self.grouping)

        if self.is_assignment:
            MutationEngine(store).apply(self.select, groups)
            return table

        result = ColumnExpressionEvaluator(store).evaluate(
            self.select, groups, self.grouping
        )
        if isinstance(result, pa.Table):
            return table.__class__.from_arrow(result)
        return result


def chain(table: "Table", *queries: Query) -> "Table | pa.Array | pa.Scalar":
    """Evaluate queries one after the other.

    Each query is evaluated against the result of the previous one.

    >>> from reftable import Table, col, N
    >>> table = Table({"grp": ["A", "A", "B"], "val": [10, 20, 30]})
    >>> chain(table, Query(select={"n": N}, by="grp"), Query(where=col("n") > 1)).to_pydict()
    {'grp': ['A'], 'n': [2]}
    """
    from .table import Table

    result: Any = table
    for step, query in enumerate(queries):
        if not isinstance(result, Table):
            raise TypeError(
                f"Query {step} can't be applied to {type(result).__name__}, a Table is required"
            )
        result = query.evaluate(result)
    return result
