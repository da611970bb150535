"""Load data into a ColumnStore.

The compute engine works on data that was already loaded in memory.
These helpers fetch the data from files, convert it into the format
accepted by the compute engine and return it as a :class:`ColumnStore`.

They are used to do things like loading data from CSV files
or equivalent operations, for anything more advanced
the data can be loaded with :mod:`pyarrow` directly and
converted with :func:`from_arrow`.
"""

import pyarrow as pa
import pyarrow.csv
import pyarrow.parquet

from .store import ColumnStore


def read_csv(filename: str, block_size: int | None = None) -> ColumnStore:
    """Load data from a CSV file.

    Empty cells and values like ``NA`` become missing values.

    :param filename: The path of the local CSV file.
    :param block_size: How many bytes to parse at once,
                       influences memory usage while parsing.
    """
    table = pa.csv.read_csv(
        filename,
        read_options=pa.csv.ReadOptions(block_size=block_size),
        convert_options=pa.csv.ConvertOptions(strings_can_be_null=True),
    )
    return ColumnStore.from_arrow(table)


def read_parquet(filename: str) -> ColumnStore:
    """Load data from a Parquet file.

    :param filename: The path of the local parquet file.
    """
    return ColumnStore.from_arrow(pa.parquet.read_table(filename))


def from_arrow(table: pa.Table | pa.RecordBatch) -> ColumnStore:
    """Use an in-memory :class:`pyarrow.Table` or :class:`pyarrow.RecordBatch` as a store."""
    return ColumnStore.from_arrow(table)
