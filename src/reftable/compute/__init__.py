"""The reftable Compute Engine

The compute engine implements the building blocks
that a query is made of. Each of them is in charge
of one step of the evaluation of a query::

    ColumnStore --> RowSelector --> GroupEngine --> ColumnExpressionEvaluator --> result
                                                \\-> MutationEngine --> ColumnStore

* :class:`ColumnStore` owns the columns of a table, as :class:`pyarrow.Array` objects.
* :class:`RowSelector` picks the rows the query operates on.
* :class:`GroupEngine` partitions the selected rows in groups,
  relying on :class:`OrderIndex` when groups must be sorted.
* :class:`ColumnExpressionEvaluator` computes the result of the query
  for each group.
* :class:`MutationEngine` writes the result of assignment queries
  back into the store.

The blocks can be used directly:

>>> from reftable.compute import col, ColumnStore, RowSelector, GroupEngine, By
>>> from reftable.compute import ColumnExpressionEvaluator, SumAggregation
>>> store = ColumnStore({"grp": ["A", "A", "B", "B"], "val": [10, 20, 30, 5]})
>>> rows = RowSelector(col("val") > 5).select(store)
>>> groups = GroupEngine(store).groups(rows, By("grp"))
>>> ColumnExpressionEvaluator(store).evaluate(
...     {"total": SumAggregation("val")}, groups, By("grp")
... ).to_pydict()
{'grp': ['A', 'B'], 'total': [30, 30]}

But usually they are combined by :class:`reftable.Table` queries.
"""

from .aggregate import (
    Aggregation,
    CountAggregation,
    MaxAggregation,
    MeanAggregation,
    MinAggregation,
    N,
    RowCount,
    SumAggregation,
)
from .base import ColumnRef, Expression, Literal, col, lit
from .expressions import FunctionCallExpression
from .filtering import RowSelector
from .grouping import By, Group, GroupEngine, SortedBy
from .mutation import DROP, Assign, MutationEngine, PendingWrite, assign
from .selection import ColumnExpressionEvaluator
from .sorting import OrderIndex, parse_sort_keys
from .store import ActiveIndex, ColumnStore

__all__ = (
    "ActiveIndex",
    "Aggregation",
    "Assign",
    "By",
    "ColumnExpressionEvaluator",
    "ColumnRef",
    "ColumnStore",
    "CountAggregation",
    "DROP",
    "Expression",
    "FunctionCallExpression",
    "Group",
    "GroupEngine",
    "Literal",
    "MaxAggregation",
    "MeanAggregation",
    "MinAggregation",
    "MutationEngine",
    "N",
    "OrderIndex",
    "PendingWrite",
    "RowCount",
    "RowSelector",
    "SortedBy",
    "SumAggregation",
    "assign",
    "col",
    "lit",
    "parse_sort_keys",
)
