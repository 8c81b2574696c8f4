"""Format tabular data into a text table for print.

The `tabulate` function takes a `pyarrow.Table` (or `RecordBatch`) and formats it
into a text table. Floats are shown with 2 decimal places, missing values as ``NA``,
numeric columns are right aligned and long strings are truncated.
It's what ``print(table)`` shows for a :class:`reftable.Table`.

Example:

    >>> import pyarrow as pa
    >>> data = {
    ...     "Product": ["Videogame", "Laptop", None],
    ...     "Quantity": [8, 12, 7],
    ...     "Price": [66.5, 138.72, None],
    ... }
    >>> print(tabulate(pa.table(data)))
    Product   | Quantity |  Price
    --------- | -------- | ------
    Videogame |        8 |  66.50
    Laptop    |       12 | 138.72
    NA        |        7 |     NA
"""

from typing import Any

import pyarrow as pa

NA_REPR = "NA"


def tabulate(
    table: pa.Table | pa.RecordBatch, max_rows: int = 20, max_width: int = 30
) -> str:
    """Format a Table into a text table.

    :param table: The data to format.
    :param max_rows: Rows after this one are only counted.
    :param max_width: Longer values are truncated.
    """
    cols = table.column_names
    numeric = [_is_numeric(field.type) for field in table.schema]
    rows = [
        [format_value(row[c], max_width) for c in cols]
        for row in table.slice(0, max_rows).to_pylist()
    ]

    colsizes = compute_max_colsize(cols, rows)
    lines = [
        maketablerow(cols, colsizes, numeric),
        maketablerow(["-" * size for size in colsizes], colsizes, numeric),
    ]
    lines.extend(maketablerow(row, colsizes, numeric) for row in rows)

    text = "\n".join(lines)
    if table.num_rows > max_rows:
        text += f"\n... and {table.num_rows - max_rows} more rows"
    return text


def compute_max_colsize(cols: list[str], rows: list[list[str]]) -> list[int]:
    """Compute the maximum size of each column in a table."""
    return [
        max([len(name)] + [len(row[idx]) for row in rows])
        for idx, name in enumerate(cols)
    ]


def maketablerow(values: list[str], colsizes: list[int], right: list[bool]) -> str:
    """Make a table row, padding each value to the size of its column."""
    cells = [
        value.rjust(size) if align_right else value.ljust(size)
        for value, size, align_right in zip(values, colsizes, right)
    ]
    return " | ".join(cells).rstrip()


def format_value(v: Any, max_width: int = 30) -> str:
    """Format a single value to be printed in the table."""
    if v is None:
        return NA_REPR
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, float):
        return f"{v:.2f}"

    v = str(v)
    if len(v) > max_width:
        v = v[: max_width - 3] + "..."
    return v


def _is_numeric(type_: pa.DataType) -> bool:
    return (
        pa.types.is_integer(type_)
        or pa.types.is_floating(type_)
        or pa.types.is_decimal(type_)
    )
