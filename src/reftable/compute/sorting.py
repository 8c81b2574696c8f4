"""Stable multi-key sorting of the rows of a store.

When computing ranks or looking for most significant
values, it's often necessary to sort the data based
on one or more columns.

Sorted data also benefits grouping: the sorted grouping
policy emits groups in the order of their keys, and it
does so by looking at the rank of each key in the sort order.

This module implements the sorting capabilities through
:class:`OrderIndex`, which computes a permutation of the rows.
The sort is stable: rows that are equal on all the keys
retain their original relative order.

>>> from reftable.compute.store import ColumnStore
>>> store = ColumnStore({"grp": ["B", "A", "B", "A"], "val": [1, 2, 3, 4]})
>>> OrderIndex(parse_sort_keys("grp", "-val")).permutation(store)
[3, 1, 2, 0]
"""

import logging
import warnings

import pyarrow as pa
import pyarrow.compute as pc

from ..errors import TypeMismatch, UnknownColumn
from .store import ActiveIndex, ColumnStore

logger = logging.getLogger(__name__)

ASCENDING = "ascending"
DESCENDING = "descending"


def parse_sort_keys(*keys: str | tuple[str, str]) -> list[tuple[str, str]]:
    """Convert key specifications to ``(column, direction)`` pairs.

    A key can be a column name, optionally prefixed
    by ``-`` for a descending order, or an explicit
    ``(column, direction)`` pair.

    >>> parse_sort_keys("a", "-b", ("c", "descending"))
    [('a', 'ascending'), ('b', 'descending'), ('c', 'descending')]
    """
    sorting = []
    for key in keys:
        if isinstance(key, tuple):
            name, direction = key
            if direction not in (ASCENDING, DESCENDING):
                raise ValueError(f"Invalid sort direction: {direction!r}")
        elif key.startswith("-"):
            name, direction = key[1:], DESCENDING
        else:
            name, direction = key, ASCENDING
        if not name:
            raise ValueError(f"Invalid sort key: {key!r}")
        sorting.append((name, direction))
    return sorting


class OrderIndex:
    """Sort rows based on one or more columns.

    The index expects a list of ``(column, direction)`` pairs.
    Rows are compared by the first column, ties are broken
    by the second column and so on. Rows that are tied on all
    the columns keep the order they had.

    NA values are placed after all the other values
    regardless of the direction, unless a different
    ``null_placement`` is requested.
    """

    DEFAULT_NULL_PLACEMENT = "at_end"

    def __init__(
        self, keys: list[tuple[str, str]], null_placement: str | None = None
    ) -> None:
        """
        :param keys: The ``(column, direction)`` pairs in the order they should be sorted.
        :param null_placement: ``"at_end"`` or ``"at_start"``.
        """
        if not keys:
            raise ValueError("At least one sort key is required")
        self.keys = parse_sort_keys(*keys)
        self.null_placement = null_placement or self.DEFAULT_NULL_PLACEMENT

    def __str__(self) -> str:
        return f"OrderIndex(keys={self.keys})"

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.keys]

    def permutation(self, store: ColumnStore, rows: list[int] | None = None) -> list[int]:
        """Sort the rows of the store.

        :param store: The store containing the key columns.
        :param rows: Sort only the given rows, by default all rows of the store.
        :returns: The row indices in sorted order.
        """
        if rows is None:
            rows = list(range(store.num_rows))
        keys_data = self._keys_data(store, rows)
        try:
            with warnings.catch_warnings():
                # Newer pyarrow wants the placement on each key, older ones
                # only accept it for the whole sort.
                warnings.filterwarnings(
                    "ignore", message=".*null_placement.*", category=FutureWarning
                )
                # sort_indices is a stable sort.
                order = pc.sort_indices(
                    keys_data, sort_keys=self.keys, null_placement=self.null_placement
                )
        except (pa.ArrowNotImplementedError, pa.ArrowTypeError) as e:
            raise TypeMismatch(f"Unable to sort by {self.keys}: {e}") from e
        return [rows[i] for i in order.to_pylist()]

    def ranks(self, store: ColumnStore, permutation: list[int]) -> list[int]:
        """Compute the dense rank of the key of each row.

        Rows with the same key share the same rank,
        the first key in sort order has rank ``0``.

        :param store: The store containing the key columns.
        :param permutation: All the rows of the store in sorted order.
        """
        # Dictionary encoding makes equal values, NA and NaN included,
        # share the same code so we don't have to compare arrow scalars.
        codes = [
            pc.dictionary_encode(store.get(name)).indices.to_pylist()
            for name in self.names
        ]
        ranks = [0] * store.num_rows
        current_rank = -1
        previous_key = None
        for row in permutation:
            key = tuple(column_codes[row] for column_codes in codes)
            if key != previous_key:
                current_rank += 1
                previous_key = key
            ranks[row] = current_rank
        return ranks

    def build_index(self, store: ColumnStore) -> ActiveIndex:
        """Compute the index of all the rows of the store."""
        permutation = self.permutation(store)
        return ActiveIndex(
            self.keys, permutation, self.ranks(store, permutation), store.version
        )

    def index_for(self, store: ColumnStore) -> ActiveIndex:
        """Get the active index of the store, computing it when needed.

        If the store already has a valid active index for
        the same keys it is reused, otherwise a new one is computed
        and cached as the active index of the store.
        """
        index = store.active_index
        if index is not None and index.keys == self.keys:
            logger.debug("Reusing active index of %r for keys %s", store, self.keys)
            return index

        logger.debug("Computing index of %r for keys %s", store, self.keys)
        index = self.build_index(store)
        store.set_active_index(index)
        return index

    def _keys_data(self, store: ColumnStore, rows: list[int]) -> pa.RecordBatch:
        for name in self.names:
            if name not in store:
                raise UnknownColumn(name, store.column_names)
        # The same column might be used more than once in the keys.
        names = list(dict.fromkeys(self.names))
        return store.take(rows, names)
