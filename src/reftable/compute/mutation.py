"""In place updates of a store.

Assignment queries don't produce a new table: they compute
values for one or more target columns and write them into
the store the query was run against. Every handle referencing
that store sees the change.

Given the rows selected by the query, each target column is:

* **created** when it doesn't exist yet. Rows that were not
  selected get NA.
* **replaced** when it exists and all the rows were selected.
  The new values can be of a different type.
* **partially updated** when only some rows were selected.
  Only the selected rows are written, converting the new
  values to the type of the column, all other rows keep
  their previous value. Numbers are only written to numeric
  columns and text only to text columns.
* **removed** when the value is the :data:`DROP` marker.

The update happens in two phases. First all the new values
are computed against the store as it was before the query,
then they are all written. So no expression ever sees
a partially written store, and if any value can't be
computed or converted nothing is written at all.

>>> from reftable.compute.base import col
>>> from reftable.compute.filtering import RowSelector
>>> from reftable.compute.grouping import GroupEngine
>>> from reftable.compute.store import ColumnStore
>>> store = ColumnStore({"grp": ["A", "A", "B"], "val": [10, 20, 30]})
>>> groups = GroupEngine(store).groups(RowSelector(col("grp") == "A").select(store), None)
>>> MutationEngine(store).apply(assign(val=0, flag=True), groups)
>>> store.to_arrow().to_pydict()
{'grp': ['A', 'A', 'B'], 'val': [0, 0, 30], 'flag': [True, True, None]}
"""

import logging
from typing import Any, Mapping

import pyarrow as pa
import pyarrow.compute as pc

from ..errors import TypeMismatch, UnknownColumn
from .grouping import Group
from .selection import ColumnExpressionEvaluator, concat_results
from .store import ColumnStore

logger = logging.getLogger(__name__)


class _Drop:
    """Marker requesting the removal of a column."""

    def __repr__(self) -> str:
        return "DROP"


DROP = _Drop()


class Assign:
    """The targets of an assignment query.

    >>> from reftable.compute.base import col
    >>> Assign({"total": col("a") + col("b"), "old": DROP})
    Assign(total=pyarrow.compute.add(ColumnRef(a),ColumnRef(b)), old=DROP)
    """

    def __init__(self, targets: Mapping[str, Any]) -> None:
        """
        :param targets: ``{column name: value}``, values can be expressions,
                        literal values or :data:`DROP`.
        """
        if not targets:
            raise ValueError("An assignment requires at least one target column")
        self.targets = dict(targets)

    def __str__(self) -> str:
        targets = ", ".join(f"{name}={value}" for name, value in self.targets.items())
        return f"Assign({targets})"

    __repr__ = __str__


def assign(**targets: Any) -> Assign:
    """Shortcut to create an :class:`Assign` using keyword arguments."""
    return Assign(targets)


class PendingWrite:
    """New values computed for a target column, not yet written."""

    __slots__ = ("target", "rows", "values")

    def __init__(self, target: str, rows: list[int], values: pa.Array | None) -> None:
        """
        :param target: The name of the column to write.
        :param rows: The rows to write, in the same order as ``values``.
        :param values: The values to write, ``None`` to remove the column.
        """
        self.target = target
        self.rows = rows
        self.values = values

    @property
    def drop(self) -> bool:
        return self.values is None

    def __repr__(self) -> str:
        return f"PendingWrite({self.target!r}, rows={len(self.rows)}, drop={self.drop})"


class MutationEngine:
    """Apply assignments to a store in place."""

    def __init__(self, store: ColumnStore) -> None:
        """
        :param store: The store that will be modified.
        """
        self.store = store
        self.evaluator = ColumnExpressionEvaluator(store)

    def apply(self, assignment: Assign, groups: list[Group]) -> None:
        """Compute and write the assignment for the given groups.

        :param assignment: The target columns and their values.
        :param groups: The selected rows, partitioned in groups.
        """
        with self.store.writer():
            self.commit(self.plan(assignment, groups))

    def plan(self, assignment: Assign, groups: list[Group]) -> list[PendingWrite]:
        """Compute the values of all the targets without writing anything.

        Values are computed for each group separately, so
        that aggregates like ``N`` refer to the rows of the group.
        """
        writes = []
        for target, value in assignment.targets.items():
            if value is DROP:
                writes.append(PendingWrite(target, [], None))
                continue

            rows: list[int] = []
            pieces = []
            for group in groups:
                batch = self.store.take(group.rows)
                pieces.append(self.evaluator.group_values(value, batch))
                rows.extend(group.rows)
            if not pieces:
                pieces.append(self.evaluator.group_values(value, self.store.take([])))
            writes.append(PendingWrite(target, rows, concat_results(target, pieces)))
        return writes

    def commit(self, writes: list[PendingWrite]) -> None:
        """Write the computed values into the store.

        All the new columns are prepared before writing
        the first one, so that a failure leaves the store untouched.
        """
        prepared = [(write.target, self._prepare(write)) for write in writes]
        for target, column in prepared:
            if column is None:
                self.store.remove(target)
            else:
                self.store.set(target, column)
        logger.debug(
            "Committed %d writes to %r: %s",
            len(prepared),
            self.store,
            [target for target, _ in prepared],
        )

    def _prepare(self, write: PendingWrite) -> pa.Array | None:
        store = self.store
        if write.drop:
            if write.target not in store:
                raise UnknownColumn(write.target, store.column_names)
            return None

        if write.target not in store:
            return self._scatter(None, write.rows, write.values)

        if len(set(write.rows)) == store.num_rows:
            # Every row is written, the column is replaced as a whole.
            return self._scatter(None, write.rows, write.values)

        current = store.get(write.target)
        if not _castable(write.values.type, current.type):
            raise TypeMismatch(
                f"Cannot write {write.values.type} values to column "
                f"{write.target!r} of type {current.type}"
            )
        try:
            values = write.values.cast(current.type)
        except (pa.ArrowInvalid, pa.ArrowNotImplementedError, pa.ArrowTypeError) as e:
            raise TypeMismatch(
                f"Cannot write {write.values.type} values to column "
                f"{write.target!r} of type {current.type}: {e}"
            ) from e
        return self._scatter(current, write.rows, values)

    def _scatter(self, base: pa.Array | None, rows: list[int], values: pa.Array) -> pa.Array:
        """Place ``values`` at the ``rows`` positions of a full column.

        Positions that are not written keep the values of ``base``
        or get NA when there is no ``base``. When a row is written
        more than once the last value wins.
        """
        positions: list[int | None] = [None] * self.store.num_rows
        for i, row in enumerate(rows):
            positions[row] = i
        scattered = values.take(pa.array(positions, type=pa.int64()))
        if base is None:
            return scattered
        written = pa.array([p is not None for p in positions], type=pa.bool_())
        return pc.if_else(written, scattered, base)


def _is_numeric(type_: pa.DataType) -> bool:
    return (
        pa.types.is_integer(type_)
        or pa.types.is_floating(type_)
        or pa.types.is_decimal(type_)
    )


def _is_text(type_: pa.DataType) -> bool:
    return pa.types.is_string(type_) or pa.types.is_large_string(type_)


def _castable(source: pa.DataType, target: pa.DataType) -> bool:
    """If values of ``source`` type can be written into a ``target`` column.

    Arrow happily casts numbers to text and back, but a partial
    update must never change what kind of values a column holds.
    Only NA values, numbers between numeric columns and text
    between text columns are converted.
    """
    if source == target or pa.types.is_null(source):
        return True
    if _is_numeric(source) and _is_numeric(target):
        return True
    return _is_text(source) and _is_text(target)
