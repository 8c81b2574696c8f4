"""Selection of the rows a query operates on.

A common request in queries is to filter the data to
pick only the rows that respect a specific filter.
An example is the ``WHERE`` condition in SQL queries.

The :class:`RowSelector` converts a selector into the
ordered list of row indices the rest of the query
will operate on. The supported selectors are:

* ``None`` or ``:`` (``slice(None)``), all the rows in order.
* A predicate :class:`reftable.compute.base.Expression`,
  the rows where the predicate is true in ascending order.
* Positions, a single ``int`` or a sequence of them, taken
  in the order they are provided. Repeated positions
  select the row multiple times.
* A ``slice`` of positions.
* A mask, a sequence of booleans with one entry per row.

Predicates follow the NA semantic of the compute functions:
comparing NA with anything produces NA, and combining NA
with ``&`` or ``|`` produces NA as well. A row whose predicate
is NA is **excluded** from the selection, exactly like
a row whose predicate is false.

>>> import pyarrow as pa
>>> from reftable.compute.base import col
>>> from reftable.compute.store import ColumnStore
>>> store = ColumnStore({"val": pa.array([10, None, 30, 5])})
>>> RowSelector(col("val") > 6).select(store)
[0, 2]
>>> RowSelector(~(col("val") > 6)).select(store)
[3]
>>> RowSelector([3, -1, 0]).select(store)
[3, 3, 0]
"""

from typing import Any, Sequence

import pyarrow as pa
import pyarrow.compute as pc

from ..errors import ShapeMismatch, TypeMismatch
from .base import Expression
from .store import ColumnStore


class RowSelector:
    """Resolve a selector to the list of selected row indices."""

    def __init__(self, selector: Any = None) -> None:
        """
        :param selector: The predicate, positions, slice or mask. ``None`` selects all rows.
        """
        self.selector = selector

    def __str__(self) -> str:
        return f"RowSelector({self.selector})"

    def select(self, store: ColumnStore) -> list[int]:
        """Compute the selected rows of the store.

        :param store: The store the selector is applied to.
        """
        selector = self.selector
        num_rows = store.num_rows
        if selector is None:
            return list(range(num_rows))
        if isinstance(selector, slice):
            return list(range(num_rows)[selector])
        if isinstance(selector, Expression):
            return self._from_mask(selector.apply(store.batch()), num_rows)
        if isinstance(selector, (pa.Array, pa.ChunkedArray)):
            return self._from_mask(selector, num_rows)
        if isinstance(selector, bool):
            return self._from_mask(pa.scalar(selector), num_rows)
        if isinstance(selector, int):
            return self._from_positions([selector], num_rows)
        if isinstance(selector, Sequence) and not isinstance(selector, str):
            if len(selector) and all(isinstance(v, bool) for v in selector):
                return self._from_mask(pa.array(selector, type=pa.bool_()), num_rows)
            return self._from_positions(selector, num_rows)
        raise TypeError(f"Unsupported row selector: {selector!r}")

    @staticmethod
    def _from_positions(positions: Sequence[int], num_rows: int) -> list[int]:
        rows = []
        for position in positions:
            if isinstance(position, bool) or not isinstance(position, int):
                raise TypeError(f"Row positions must be integers, got {position!r}")
            if not -num_rows <= position < num_rows:
                raise IndexError(f"Row {position} out of range for {num_rows} rows")
            rows.append(position % num_rows)
        return rows

    @staticmethod
    def _from_mask(mask: pa.Array | pa.Scalar, num_rows: int) -> list[int]:
        if not pa.types.is_boolean(mask.type):
            raise TypeMismatch(f"Row selector must be boolean, got {mask.type}")

        if isinstance(mask, pa.Scalar):
            # A constant predicate, NA is false like anywhere else.
            return list(range(num_rows)) if mask.as_py() else []

        if len(mask) != num_rows:
            raise ShapeMismatch(
                f"Row selector has {len(mask)} values, expected {num_rows}"
            )
        # NA -> false, the row is excluded.
        mask = pc.fill_null(mask, False)
        return pc.indices_nonzero(mask).to_pylist()
