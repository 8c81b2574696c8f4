"""Expressions that reduce the rows of a group to a single value.

Frequently when analysing data is necessary
to compute statistics like the min, max, average, etc...
of the data stored in tables.

Aggregations are expressions like any other, but they
produce a scalar. When a query is grouped, every aggregation
is evaluated once per group and the result has one row
for each group.

For example, given the following data::

    city, shop, n_employees
    New York, Shop A, 10
    New York, Shop B, 15
    Los Angeles, Shop C, 8
    Los Angeles, Shop D, 12
    New York, Shop E, 20

We could group by city and compute the sum of the employees
to get::

    city, total_employees
    New York, 45
    Los Angeles, 20

The :data:`N` symbol is special, it provides the number of
rows in the current group without needing any column.

>>> import pyarrow as pa
>>> batch = pa.record_batch({"n_employees": [10, 15, None]})
>>> SumAggregation("n_employees").apply(batch).as_py()
25
>>> CountAggregation("n_employees").apply(batch).as_py()
2
>>> N.apply(batch).as_py()
3
"""

import abc
from typing import Any

import pyarrow as pa
import pyarrow.compute as pc

from ..errors import TypeMismatch
from .base import ColumnRef, Expression

__all__ = (
    "Aggregation",
    "RowCount",
    "N",
    "SumAggregation",
    "MinAggregation",
    "MaxAggregation",
    "MeanAggregation",
    "CountAggregation",
)


class RowCount(Expression):
    """Number of rows in the current group or selection."""

    def apply(self, batch: pa.RecordBatch) -> pa.Scalar:
        return pa.scalar(batch.num_rows, type=pa.int64())

    def __str__(self) -> str:
        return "N"


N = RowCount()


class Aggregation(Expression):
    """Base class for aggregations.

    Every aggregation reduces the values of a column,
    or the values produced by another expression,
    to a single scalar.
    """

    def __init__(self, column: str | Expression) -> None:
        """
        :param column: The name of the column to aggregate or an expression
                       computing the values to aggregate.
        """
        if isinstance(column, str):
            column = ColumnRef(column)
        self.column = column

    def __str__(self) -> str:
        if isinstance(self.column, ColumnRef):
            return f"{self.__class__.__name__}({self.column.name})"
        return f"{self.__class__.__name__}({self.column})"

    def apply(self, batch: pa.RecordBatch) -> pa.Scalar:
        values = self.column.apply(batch)
        try:
            return self._aggregate(values)
        except (pa.ArrowNotImplementedError, pa.ArrowTypeError) as e:
            raise TypeMismatch(f"Unable to compute {self}: {e}") from e

    @abc.abstractmethod
    def _aggregate(self, data: Any) -> pa.Scalar: ...


class SumAggregation(Aggregation):
    """Compute the sum of an aggregated column."""

    def _aggregate(self, data: Any) -> pa.Scalar:
        return pc.sum(data)


class MinAggregation(Aggregation):
    """Compute the min of an aggregated column."""

    def _aggregate(self, data: Any) -> pa.Scalar:
        return pc.min(data)


class MaxAggregation(Aggregation):
    """Compute the max of an aggregated column."""

    def _aggregate(self, data: Any) -> pa.Scalar:
        return pc.max(data)


class MeanAggregation(Aggregation):
    """Compute the mean of an aggregated column."""

    def _aggregate(self, data: Any) -> pa.Scalar:
        return pc.mean(data)


class CountAggregation(Aggregation):
    """Count the values of an aggregated column that are not NA.

    Use :data:`N` to count rows regardless of NA values.
    """

    def _aggregate(self, data: Any) -> pa.Scalar:
        return pc.count(data)
