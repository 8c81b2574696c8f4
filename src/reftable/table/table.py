"""The Table object itself."""

from typing import Any, Mapping, Self

import pyarrow as pa
import pyarrow.csv

from ..compute import By, ColumnStore, OrderIndex, parse_sort_keys
from ..utils import tabulate
from .query import Query


class Table:
    """Handle to columnar data, queried by row selector, columns and groups.

    A Table is a *reference* to a :class:`reftable.compute.ColumnStore`.
    Tables created with :meth:`alias` reference the same store,
    so modifying the data through one of them makes the change
    visible through all of them. :meth:`copy` instead creates
    a table with its own store.

    Tables are queried with the ``table[where, select, by]`` syntax:

    >>> from reftable import col, N, SumAggregation, By, SortedBy, assign
    >>> table = Table({"grp": ["A", "A", "B", "B"], "val": [10, 20, 30, 5]})
    >>> table[col("val") > 5].to_pydict()
    {'grp': ['A', 'A', 'B'], 'val': [10, 20, 30]}
    >>> table[:, {"total": SumAggregation("val")}, SortedBy("grp")].to_pydict()
    {'grp': ['A', 'B'], 'total': [30, 35]}
    >>> table[:, "val"].to_pylist()
    [10, 20, 30, 5]

    Assignment queries modify the table in place:

    >>> other = table.alias()
    >>> _ = table[col("grp") == "B", assign(val=0)]
    >>> other.to_pydict()
    {'grp': ['A', 'A', 'B', 'B'], 'val': [10, 20, 0, 0]}
    """

    def __init__(self, data: ColumnStore | Mapping[str, Any] | None = None) -> None:
        """
        :param data: The store to reference, or ``{name: values}``
                     to create a table with a new store.
        """
        if data is None:
            data = ColumnStore()
        elif not isinstance(data, ColumnStore):
            if not isinstance(data, Mapping):
                raise ValueError("Invalid input, expected a ColumnStore or a dictionary")
            data = ColumnStore(data)
        self._store = data

    @classmethod
    def from_pydict(cls, data: Mapping[str, Any]) -> Self:
        """Create a table from ``{name: values}``."""
        return cls(ColumnStore(data))

    @classmethod
    def from_arrow(cls, data: pa.Table | pa.RecordBatch) -> Self:
        """Create a table from a :class:`pyarrow.Table` or :class:`pyarrow.RecordBatch`."""
        return cls(ColumnStore.from_arrow(data))

    @classmethod
    def from_csv(cls, filename: str) -> Self:
        """Load a CSV file into a new table.

        Column types are detected by the arrow CSV reader.

        :param filename: The path to a local CSV file.
        """
        return cls.from_arrow(pyarrow.csv.read_csv(filename))

    @property
    def store(self) -> ColumnStore:
        """The store referenced by this table."""
        return self._store

    @property
    def num_rows(self) -> int:
        return self._store.num_rows

    @property
    def column_names(self) -> list[str]:
        return self._store.column_names

    def __len__(self) -> int:
        return self._store.num_rows

    def alias(self) -> Self:
        """A new handle referencing the same store."""
        return self.__class__(self._store)

    def copy(self) -> Self:
        """A new table with its own copy of the data."""
        return self.__class__(self._store.copy())

    def shares_store(self, other: "Table") -> bool:
        """If the two tables reference the same store."""
        return self._store is other._store

    def column(self, name: str) -> pa.Array:
        """The values of a column."""
        return self._store.get(name)

    def __setitem__(self, name: str, values: Any) -> None:
        """Add or replace a whole column."""
        self._store.set(name, values)

    def __delitem__(self, name: str) -> None:
        """Remove a column."""
        self._store.remove(name)

    def __contains__(self, name: str) -> bool:
        return name in self._store

    def __getitem__(self, item: Any) -> "Table | pa.Array | pa.Scalar":
        """Query the table.

        Supports ``table[where]``, ``table[where, select]``
        and ``table[where, select, By(...)]`` or ``SortedBy(...)``.
        """
        if not isinstance(item, tuple):
            return Query(where=item).evaluate(self)
        if len(item) == 1:
            return Query(where=item[0]).evaluate(self)
        if len(item) == 2:
            where, select = item
            return Query(where=where, select=select).evaluate(self)
        if len(item) == 3:
            where, select, by = item
            if not isinstance(by, By):
                raise TypeError(f"Grouping must be By or SortedBy, got {by!r}")
            return Query(where=where, select=select, by=by).evaluate(self)
        raise TypeError(f"Too many query parts: {len(item)}")

    def query(
        self,
        where: Any = None,
        select: Any = None,
        by: Any = None,
        sorted_by: Any = None,
    ) -> "Table | pa.Array | pa.Scalar":
        """Query the table using keyword arguments.

        See :class:`reftable.table.query.Query` for the meaning of the arguments.
        """
        return Query(where=where, select=select, by=by, sorted_by=sorted_by).evaluate(self)

    def order_by(self, *keys: str | tuple[str, str]) -> Self:
        """A new table with the rows sorted by the keys.

        Keys prefixed by ``-`` are sorted in descending order.
        """
        return order(self, *keys)

    def set_index(self, *keys: str | tuple[str, str]) -> Self:
        """Compute and cache the sort index of the table for the keys.

        Rows are not reordered, the index will be used by
        following sorted groupings on the same keys until
        the table is modified.
        """
        OrderIndex(parse_sort_keys(*keys)).index_for(self._store)
        return self

    @property
    def index(self) -> list[str] | None:
        """Names of the columns of the active index, if any."""
        index = self._store.active_index
        return index.names if index is not None else None

    def to_arrow(self) -> pa.Table:
        """The current data as a :class:`pyarrow.Table`."""
        return self._store.to_arrow()

    def to_pydict(self) -> dict[str, list]:
        """The current data as ``{name: [values]}``."""
        return self.to_arrow().to_pydict()

    def __str__(self) -> str:
        return tabulate.tabulate(self.to_arrow())

    def __repr__(self) -> str:
        return f"Table(columns={self.column_names}, rows={self.num_rows})"


def order(table: Table, *keys: str | tuple[str, str]) -> Table:
    """Sort the rows of a table by one or more keys.

    The sort is stable, rows that are equal on all
    the keys keep their relative order.

    >>> table = Table({"grp": ["B", "A", "B"], "val": [1, 2, 3]})
    >>> order(table, "grp", "-val").to_pydict()
    {'grp': ['A', 'B', 'B'], 'val': [2, 3, 1]}
    """
    store = table.store
    permutation = OrderIndex(parse_sort_keys(*keys)).permutation(store)
    return table.__class__.from_arrow(store.take(permutation))
