"""Partitioning of selected rows into groups.

Grouped queries evaluate their expressions once for
every group of rows sharing the same values in the
grouping columns. For example, given::

    row, city, n_employees
    0,   New York, 10
    1,   Los Angeles, 8
    2,   New York, 20

Grouping by city produces two groups::

    ("New York",)    -> rows [0, 2]
    ("Los Angeles",) -> rows [1]

Two policies are supported for the order of the groups:

* :class:`By` emits the groups in the order their key
  is first seen while scanning the selection.
* :class:`SortedBy` emits the groups in ascending order
  of their key, and caches the sort as the active index
  of the store so that following sorted groupings on the
  same keys don't have to sort again.

Under both policies the rows inside a group retain
the order they had in the selection, and every selected
row ends up in exactly one group.
"""

import pyarrow as pa
import pyarrow.compute as pc

from ..errors import UnknownColumn
from .sorting import OrderIndex, parse_sort_keys
from .store import ColumnStore


class By:
    """Group by columns, emitting groups in order of appearance.

    >>> By("city", "shop").names
    ['city', 'shop']
    >>> By(["city"]).names
    ['city']
    """

    sorted = False

    def __init__(self, *keys: str | list[str]) -> None:
        """
        :param keys: The names of the grouping columns, or a single list of names.
        """
        if len(keys) == 1 and isinstance(keys[0], (list, tuple)):
            keys = tuple(keys[0])
        self.keys = list(keys)

    @property
    def names(self) -> list[str]:
        return list(self.keys)

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({', '.join(map(repr, self.keys))})"

    __repr__ = __str__


class SortedBy(By):
    """Group by columns, emitting groups in ascending key order.

    Keys prefixed by ``-`` are sorted in descending order.
    """

    sorted = True

    @property
    def sort_keys(self) -> list[tuple[str, str]]:
        return parse_sort_keys(*self.keys)

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.sort_keys]


class Group:
    """The rows of a selection sharing the same key."""

    __slots__ = ("key", "rows")

    def __init__(self, key: tuple, rows: list[int]) -> None:
        """
        :param key: The values of the grouping columns, ``()`` when not grouped.
        :param rows: The row indices of the group, in selection order.
        """
        self.key = key
        self.rows = rows

    def __len__(self) -> int:
        return len(self.rows)

    def __repr__(self) -> str:
        return f"Group(key={self.key!r}, rows={self.rows!r})"


class GroupEngine:
    """Partition a selection of rows of a store into groups.

    >>> store = ColumnStore({"grp": ["B", "A", "B", "C"]})
    >>> engine = GroupEngine(store)
    >>> engine.groups([0, 1, 2, 3], By("grp"))
    [Group(key=('B',), rows=[0, 2]), Group(key=('A',), rows=[1]), Group(key=('C',), rows=[3])]
    >>> engine.groups([3, 2, 1, 0], SortedBy("grp"))
    [Group(key=('A',), rows=[1]), Group(key=('B',), rows=[2, 0]), Group(key=('C',), rows=[3])]
    """

    def __init__(self, store: ColumnStore) -> None:
        """
        :param store: The store containing the grouping columns.
        """
        self.store = store

    def groups(self, selection: list[int], by: By | None) -> list[Group]:
        """Partition the selected rows.

        :param selection: The selected row indices.
        :param by: The grouping specification, ``None`` for no grouping.
        """
        if by is None or not by.keys:
            # The whole selection is a single implicit group.
            return [Group((), list(selection))]

        names = by.names
        for name in names:
            if name not in self.store:
                raise UnknownColumn(name, self.store.column_names)

        groups = self._appearance_groups(selection, names)
        if by.sorted:
            index = OrderIndex(by.sort_keys).index_for(self.store)
            # All rows of a group share the same rank.
            groups.sort(key=lambda group: index.ranks[group.rows[0]])
        return groups

    def _appearance_groups(self, selection: list[int], names: list[str]) -> list[Group]:
        # Compare dictionary codes instead of values, NA and NaN
        # keys get a code like any other value and form their own group.
        codes = [self._codes(self.store.get(name)) for name in names]

        rows_by_key: dict[tuple, list[int]] = {}
        for row in selection:
            key = tuple(column_codes[row] for column_codes in codes)
            rows_by_key.setdefault(key, []).append(row)

        columns = [self.store.get(name) for name in names]
        return [
            Group(tuple(column[rows[0]].as_py() for column in columns), rows)
            for rows in rows_by_key.values()
        ]

    @staticmethod
    def _codes(column: pa.Array) -> list[int | None]:
        return pc.dictionary_encode(column).indices.to_pylist()
