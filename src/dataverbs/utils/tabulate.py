"""Render a store as a text table.

Printing a :class:`dataverbs.compute.ColumnStore` goes through :func:`tabulate`,
which lays the data out column by column: the column name, a short
label of its type, and the values. Numbers are right aligned so that
their digits line up, missing values are shown as ``NA`` and only
the first rows are shown.

    >>> import pyarrow as pa
    >>> data = {
    ...     "carrier": ["UA", "AA", "DL"],
    ...     "flights": [8, None, 7],
    ...     "delay": [6.5, 38.72, 77.46],
    ... }
    >>> print(tabulate(pa.RecordBatch.from_pydict(data)))
    carrier | flights | delay
    <str>   |   <int> | <dbl>
    ------- | ------- | -----
    UA      |       8 |  6.50
    AA      |      NA | 38.72
    DL      |       7 | 77.46
"""

from typing import Any

import pyarrow as pa

from .. import config


def tabulate(recordbatch: pa.RecordBatch, max_rows: int | None = None) -> str:
    """Format a RecordBatch into a text table.

    :param recordbatch: The data to format.
    :param max_rows: How many rows to show at most,
                     defaults to ``DATAVERBS_DISPLAY_MAX_ROWS``.
    """
    if max_rows is None:
        max_rows = config.DISPLAY_MAX_ROWS

    shown = recordbatch.slice(0, max_rows)
    columns = [
        format_column(field, shown.column(idx))
        for idx, field in enumerate(recordbatch.schema)
    ]
    lines = [" | ".join(cells).rstrip() for cells in zip(*columns)]

    hidden = recordbatch.num_rows - shown.num_rows
    if hidden > 0:
        lines.append(f"... and {hidden} more rows")
    return "\n".join(lines)


def format_column(field: pa.Field, values: pa.Array) -> list[str]:
    """The cells of a column, all padded to the same width.

    The first three cells are the name, the type label
    and the separator, followed by one cell per value.
    """
    cells = [field.name, type_label(field.type)]
    cells.extend(format_value(v) for v in values.to_pylist())
    width = max(len(c) for c in cells)

    dtype = field.type
    numeric = pa.types.is_integer(dtype) or pa.types.is_floating(dtype) or pa.types.is_decimal(dtype)
    pad = str.rjust if numeric else str.ljust
    padded = [pad(c, width) for c in cells]
    return padded[:2] + ["-" * width] + padded[2:]


def type_label(dtype: pa.DataType) -> str:
    """Short label for the type of a column, like ``<int>`` or ``<fct>``."""
    if pa.types.is_integer(dtype):
        return "<int>"
    elif pa.types.is_floating(dtype):
        return "<dbl>"
    elif pa.types.is_string(dtype) or pa.types.is_large_string(dtype):
        return "<str>"
    elif pa.types.is_boolean(dtype):
        return "<lgl>"
    elif pa.types.is_dictionary(dtype):
        return "<ord>" if dtype.ordered else "<fct>"
    elif pa.types.is_null(dtype):
        return "<na>"
    return f"<{dtype}>"


def format_value(v: Any) -> str:
    """Text of a single cell.

    Missing values are shown as ``NA``, floats are
    formatted to 2 decimal places and long strings are truncated
    to ``DATAVERBS_DISPLAY_MAX_WIDTH`` characters.
    """
    if v is None:
        return "NA"
    elif isinstance(v, bool):
        return "true" if v else "false"
    elif isinstance(v, float):
        return f"{v:.2f}"

    text = str(v)
    width = config.DISPLAY_MAX_WIDTH
    if len(text) > width:
        text = text[: max(width - 3, 0)] + "..."
    return text
