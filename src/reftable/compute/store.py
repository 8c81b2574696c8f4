"""The mutable storage shared by table handles.

A :class:`ColumnStore` owns the named columns of one table.
All columns are :class:`pyarrow.Array` objects of the same length,
the row count of the store is decided when the store is created
and never changes afterward. Only the set of columns, or
their content, can change.

Arrow arrays are immutable, so changing the content of a column
means replacing the array in the store with a new one.
This makes copying a store cheap: the copy references the same
arrays, but any write to either store replaces arrays only in
the store that was written::

    store --> {"id": Array, "val": Array}
    copy  --> {"id": Array, "val": Array}   # same arrays, different mapping

Multiple :class:`reftable.Table` handles can reference the same
store, a write through one handle is visible through all of them.

A store can also carry an *active index*: the cached result
of sorting its rows by some key columns. The index is valid
only until the next mutation of the store, any ``set`` or ``remove``
invalidates it.
"""

import contextlib
import logging
import threading
from typing import Any, Iterator, Mapping

import pyarrow as pa

from ..errors import ConcurrentQueryError, DimensionMismatch, UnknownColumn

logger = logging.getLogger(__name__)


class ActiveIndex:
    """A cached sort order of the rows of a store.

    It remembers the sort keys it was computed for,
    the resulting permutation of the rows, the dense rank
    of every row key and the version of the store at the
    time it was computed.
    """

    def __init__(
        self,
        keys: list[tuple[str, str]],
        permutation: list[int],
        ranks: list[int],
        version: int,
    ) -> None:
        """
        :param keys: The ``(column, direction)`` pairs of the sort.
        :param permutation: The row indices in sorted order.
        :param ranks: For each row, the dense rank of its key tuple.
        :param version: The version of the store the index refers to.
        """
        self.keys = list(keys)
        self.permutation = permutation
        self.ranks = ranks
        self.version = version

    @property
    def names(self) -> list[str]:
        """Names of the key columns."""
        return [name for name, _ in self.keys]

    def __repr__(self) -> str:
        return f"ActiveIndex(keys={self.keys}, version={self.version})"


class ColumnStore:
    """Named columns of equal length.

    >>> store = ColumnStore({"id": [1, 2, 3], "grp": ["A", "A", "B"]})
    >>> store.column_names
    ['id', 'grp']
    >>> store.num_rows
    3
    >>> store.set("val", [10, 20, 30])
    >>> store.get("val").to_pylist()
    [10, 20, 30]
    >>> store.set("val", [1, 2])
    Traceback (most recent call last):
        ...
    reftable.errors.DimensionMismatch: Column 'val' has 2 rows, expected 3
    """

    def __init__(
        self, columns: Mapping[str, Any] | None = None, num_rows: int | None = None
    ) -> None:
        """
        :param columns: The initial columns as ``{name: values}``, values can be
                        :class:`pyarrow.Array` or any sequence accepted by :func:`pyarrow.array`.
        :param num_rows: The number of rows of the store, needed only when
                         creating a store without columns.
        """
        columns = dict(columns or {})
        converted = {name: self._as_array(values) for name, values in columns.items()}
        if num_rows is None:
            num_rows = len(next(iter(converted.values()))) if converted else 0

        self._num_rows = num_rows
        self._columns: dict[str, pa.Array] = {}
        for name, values in converted.items():
            self._check_length(name, values)
            self._columns[name] = values

        self.version = 0
        self._active_index: ActiveIndex | None = None
        self._writer_lock = threading.Lock()

    @classmethod
    def from_arrow(cls, data: pa.Table | pa.RecordBatch) -> "ColumnStore":
        """Create a store from an arrow Table or RecordBatch."""
        return cls(
            {name: data.column(name) for name in data.column_names},
            num_rows=data.num_rows,
        )

    @property
    def num_rows(self) -> int:
        return self._num_rows

    @property
    def column_names(self) -> list[str]:
        return list(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def __contains__(self, name: str) -> bool:
        return name in self._columns

    def __repr__(self) -> str:
        return f"ColumnStore(columns={self.column_names}, rows={self._num_rows})"

    def get(self, name: str) -> pa.Array:
        """Get the data of a column.

        :param name: The name of the column.
        """
        try:
            return self._columns[name]
        except KeyError:
            raise UnknownColumn(name, self.column_names) from None

    def set(self, name: str, column: Any) -> None:
        """Add a new column or replace an existing one.

        :param name: The name of the column.
        :param column: The values of the column, they must be as many as the rows.
        """
        column = self._as_array(column)
        self._check_length(name, column)
        self._columns[name] = column
        self._mutated()

    def remove(self, name: str) -> None:
        """Delete a column from the store.

        :param name: The name of the column to delete.
        """
        if name not in self._columns:
            raise UnknownColumn(name, self.column_names)
        del self._columns[name]
        self._mutated()

    def take(self, rows: list[int], columns: list[str] | None = None) -> pa.RecordBatch:
        """Materialize the given rows as a RecordBatch.

        :param rows: The row indices to take, in the order they should appear.
        :param columns: The columns to take, all of them by default.
        """
        names = self.column_names if columns is None else columns
        indices = pa.array(rows, type=pa.int64())
        return pa.RecordBatch.from_arrays(
            [self.get(name).take(indices) for name in names], names=names
        )

    def batch(self) -> pa.RecordBatch:
        """All the rows of the store as a RecordBatch, without copying data."""
        return pa.RecordBatch.from_arrays(
            list(self._columns.values()), names=self.column_names
        )

    def to_arrow(self) -> pa.Table:
        """Snapshot of the current content as a :class:`pyarrow.Table`."""
        return pa.Table.from_arrays(
            list(self._columns.values()), names=self.column_names
        )

    def copy(self) -> "ColumnStore":
        """Create a new store with the same content.

        The new store shares no state with this one, writing
        to any of the two will not affect the other.
        """
        clone = self.__class__(self._columns, num_rows=self._num_rows)
        index = self.active_index
        if index is not None:
            clone.set_active_index(
                ActiveIndex(index.keys, index.permutation, index.ranks, clone.version)
            )
        return clone

    @property
    def active_index(self) -> ActiveIndex | None:
        """The cached sort index, if any is still valid."""
        index = self._active_index
        if index is not None and index.version != self.version:
            # Can only happen for indexes computed against an older version.
            self._active_index = index = None
        return index

    def set_active_index(self, index: ActiveIndex) -> None:
        """Cache a sort index for the current version of the store."""
        if index.version != self.version:
            raise ValueError(
                f"Index computed for version {index.version}, store is at {self.version}"
            )
        logger.debug("Caching active index on %r for keys %s", self, index.keys)
        self._active_index = index

    def invalidate_index(self) -> None:
        """Drop the active index, if any."""
        if self._active_index is not None:
            logger.debug("Invalidating active index %r", self._active_index)
        self._active_index = None

    @contextlib.contextmanager
    def writer(self) -> Iterator["ColumnStore"]:
        """Guard a sequence of writes against concurrent writers.

        The engine is single threaded and performs no locking,
        running two queries that write the same store at the same
        time is not supported and is reported as
        :class:`reftable.errors.ConcurrentQueryError`
        instead of waiting for the other writer.
        """
        if not self._writer_lock.acquire(blocking=False):
            raise ConcurrentQueryError(f"{self!r} is already being written")
        try:
            yield self
        finally:
            self._writer_lock.release()

    def _mutated(self) -> None:
        self.version += 1
        self.invalidate_index()

    def _check_length(self, name: str, column: pa.Array) -> None:
        if len(column) != self._num_rows:
            raise DimensionMismatch(
                f"Column {name!r} has {len(column)} rows, expected {self._num_rows}"
            )

    @staticmethod
    def _as_array(values: Any) -> pa.Array:
        if isinstance(values, pa.ChunkedArray):
            return values.combine_chunks()
        if isinstance(values, pa.Array):
            return values
        return pa.array(values)
