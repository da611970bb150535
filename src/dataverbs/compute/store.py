"""The in-memory container of the data.

A :class:`ColumnStore` is an ordered set of named columns,
all with the same number of values. It's the data every operator
of the compute engine receives and emits.

The store is backed by a single :class:`pyarrow.RecordBatch`,
so each column is a contiguous :class:`pyarrow.Array` and missing
values are represented by Arrow nulls, which are distinct from any
other value of the column.

Stores are immutable: there is no method that changes a store,
the methods that look like changes (``with_column``, ``filter``, ``take``...)
always return a new store and leave the original one untouched.
This makes safe to keep around and reuse intermediate results.

>>> store = ColumnStore({"x": [0, 3, 4], "y": [5, None, 0]})
>>> store.num_rows
3
>>> store.with_column("z", [1, 2, 3]).column_names
['x', 'y', 'z']
>>> store.column_names
['x', 'y']
"""

from typing import Any, Iterable, Mapping, Self

import pyarrow as pa

from ..errors import ExpressionTypeError, NameResolutionError, ShapeError
from ..utils.tabulate import tabulate


def to_array(values: Any) -> pa.Array:
    """Convert any sequence of values to a :class:`pyarrow.Array`.

    Arrow arrays are returned as they are, chunked arrays
    are combined in a single contiguous array and any other
    Python sequence is converted, ``None`` becoming a missing value.
    """
    if isinstance(values, pa.Array):
        return values
    elif isinstance(values, pa.ChunkedArray):
        return values.combine_chunks()

    try:
        return pa.array(list(values))
    except (pa.ArrowInvalid, pa.ArrowTypeError) as e:
        raise ExpressionTypeError(f"Unable to build a column from values: {e}") from e


def broadcast(value: pa.Array | pa.ChunkedArray | pa.Scalar, length: int) -> pa.Array:
    """Make sure the result of an expression is a column of ``length`` rows.

    Literals and aggregates evaluate to a single scalar,
    which is repeated for every row of the store.
    """
    if isinstance(value, pa.Scalar):
        return pa.repeat(value, length)

    value = to_array(value)
    if len(value) != length:
        raise ShapeError(
            f"Expression produced {len(value)} values, but the store has {length} rows"
        )
    return value


class ColumnStore:
    """Named columns of values sharing the same length.

    Columns can be numeric, text, boolean or categorical.
    Categorical and ordered factors are represented through
    Arrow dictionary arrays::

        pa.array(["Fair", "Good"]).dictionary_encode()

    The order of the rows is meaningful and is preserved
    by all operators unless they explicitly reorder rows.
    """

    def __init__(self, columns: Mapping[str, Any] | None = None) -> None:
        """
        :param columns: A mapping of column names to the values of the column.
                        The values can be Arrow arrays or any Python sequence.
        """
        columns = columns or {}
        names = list(columns.keys())
        arrays = [to_array(values) for values in columns.values()]

        lengths = {name: len(array) for name, array in zip(names, arrays)}
        if len(set(lengths.values())) > 1:
            raise ShapeError(f"Columns must all have the same length, got {lengths}")

        self._batch = pa.RecordBatch.from_arrays(arrays, names=names)

    @classmethod
    def from_arrow(cls, data: pa.Table | pa.RecordBatch) -> Self:
        """Create a store from a :class:`pyarrow.Table` or :class:`pyarrow.RecordBatch`."""
        names = data.column_names
        if len(set(names)) != len(names):
            raise ShapeError(f"Column names must be unique, got {names}")
        return cls(dict(zip(names, data.columns)))

    @classmethod
    def from_pylist(cls, rows: Iterable[Mapping[str, Any]]) -> Self:
        """Create a store from a list of rows, each one a dictionary.

        >>> ColumnStore.from_pylist([{"x": 2, "y": 4}, {"x": 5, "y": 5}]).to_pydict()
        {'x': [2, 5], 'y': [4, 5]}
        """
        rows = list(rows)
        if not rows:
            return cls()
        return cls.from_arrow(pa.RecordBatch.from_pylist(rows))

    @property
    def schema(self) -> pa.Schema:
        """The names and types of the columns."""
        return self._batch.schema

    @property
    def column_names(self) -> list[str]:
        return self._batch.schema.names

    @property
    def num_rows(self) -> int:
        return self._batch.num_rows

    @property
    def num_columns(self) -> int:
        return self._batch.num_columns

    def __len__(self) -> int:
        return self.num_rows

    def __contains__(self, name: object) -> bool:
        return name in self.column_names

    def column(self, name: str) -> pa.Array:
        """Get the values of a column.

        :param name: The name of the column.
        """
        if name not in self.column_names:
            raise NameResolutionError(name, self.column_names)
        return self._batch.column(name)

    def evaluate(self, expression: "Expression") -> pa.Array:  # noqa: F821
        """Evaluate an expression against every row of the store.

        All columns referenced by the expression are checked
        before evaluating it, then the result is broadcast to
        the number of rows of the store when it's a scalar.
        """
        expression.validate(self.column_names)
        return broadcast(expression.apply(self), self.num_rows)

    def with_column(self, name: str, values: Any) -> Self:
        """Return a new store with the column added or replaced.

        When a column with the same name already exists, it's
        replaced keeping its position. Otherwise the new column
        is appended as the last one.
        """
        values = to_array(values)
        if self.num_columns and len(values) != self.num_rows:
            raise ShapeError(
                f"Column {name!r} has {len(values)} values, but the store has {self.num_rows} rows"
            )

        columns = self._columns()
        columns[name] = values
        return self.__class__(columns)

    def select(self, names: Iterable[str]) -> Self:
        """Return a new store with only the given columns, in the given order."""
        return self.__class__({name: self.column(name) for name in names})

    def filter(self, mask: pa.Array) -> Self:
        """Keep only the rows where the mask is ``true``.

        Rows where the mask is ``false`` or missing are discarded.
        """
        return self._from_batch(
            self._batch.filter(mask, null_selection_behavior="drop")
        )

    def take(self, indices: pa.Array | list[int]) -> Self:
        """Return a new store with the rows at the given indices, in that order."""
        return self._from_batch(self._batch.take(indices))

    def to_arrow(self) -> pa.Table:
        return pa.Table.from_batches([self._batch])

    def to_recordbatch(self) -> pa.RecordBatch:
        return self._batch

    def to_pydict(self) -> dict[str, list[Any]]:
        return self._batch.to_pydict()

    def to_pylist(self) -> list[dict[str, Any]]:
        return self._batch.to_pylist()

    def equals(self, other: "ColumnStore") -> bool:
        """Check if two stores contain the same columns and values."""
        return self._batch.equals(other._batch)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ColumnStore):
            return NotImplemented
        return self.equals(other)

    __hash__ = None

    def __str__(self) -> str:
        return tabulate(self._batch)

    def __repr__(self) -> str:
        return f"ColumnStore(columns={self.column_names}, rows={self.num_rows})"

    def _columns(self) -> dict[str, pa.Array]:
        return dict(zip(self.column_names, self._batch.columns))

    @classmethod
    def _from_batch(cls, batch: pa.RecordBatch) -> Self:
        store = cls.__new__(cls)
        store._batch = batch
        return store
