"""reftable

An in-memory columnar table engine with reference semantics.

Data is queried through the ``table[where, select, by]`` access pattern:
select rows, compute new columns or aggregates, optionally grouping
the rows, and update tables in place:

>>> from reftable import Table, col, N, By, SortedBy, SumAggregation, assign
>>> table = Table({"id": [1, 2, 3, 4, 5, 6],
...                "grp": ["A", "A", "B", "B", "C", "C"],
...                "val": [10, 20, 30, 5, 7, 1]})
>>> table[:, {"n": N}, By("grp")].to_pydict()
{'grp': ['A', 'B', 'C'], 'n': [2, 2, 2]}
>>> table[:, {"total": SumAggregation("val")}, SortedBy("grp")].to_pydict()
{'grp': ['A', 'B', 'C'], 'total': [30, 35, 8]}
>>> _ = table[col("grp") == "A", assign(val=0)]
>>> table.column("val").to_pylist()
[0, 0, 30, 5, 7, 1]

Tables are handles to a shared store: aliases see the
changes made through any of them, copies don't.

The engine is constituted by two packages:

* The Compute Engine (:mod:`reftable.compute`), with the storage
  and the blocks that queries are made of.
* The Table API (:mod:`reftable.table`), which provides the table
  handles and the query evaluation.
"""

from . import compute
from .compute import (
    DROP,
    By,
    CountAggregation,
    MaxAggregation,
    MeanAggregation,
    MinAggregation,
    N,
    SortedBy,
    SumAggregation,
    assign,
    col,
    lit,
)
from .errors import (
    ConcurrentQueryError,
    DimensionMismatch,
    ReftableError,
    ShapeMismatch,
    TypeMismatch,
    UnknownColumn,
)
from .table import Query, Table, chain, order

__all__ = (
    "compute",
    "Table",
    "Query",
    "chain",
    "order",
    "col",
    "lit",
    "N",
    "By",
    "SortedBy",
    "assign",
    "DROP",
    "SumAggregation",
    "MinAggregation",
    "MaxAggregation",
    "MeanAggregation",
    "CountAggregation",
    "ReftableError",
    "UnknownColumn",
    "DimensionMismatch",
    "ShapeMismatch",
    "TypeMismatch",
    "ConcurrentQueryError",
)
