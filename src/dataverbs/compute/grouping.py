"""Split the rows of a store in groups.

Frequently when analysing data it's necessary to compute
statistics for each subset of the data sharing some values,
like the average delay of the flights for each carrier.

Grouping by ``carrier`` a store like::

    carrier, delay
    UA, 10
    AA, 5
    UA, 20

Partitions its rows in two groups::

    ("UA",) -> rows [0, 2]
    ("AA",) -> rows [1]

The groups are listed in the order the key first appears in the data,
and a missing key value forms a group of its own.
Each row belongs exactly to one group.

A :class:`GroupedStore` is the store together with its partitions,
and the operators that receive one apply their logic separately
to each group. For example summarising a grouped store emits one row
per group, and mutating a grouped store computes aggregations within the group.
"""

import logging
import math
from typing import Any, Iterable, Iterator, Self

import pyarrow as pa
import pyarrow.compute as pc

from ..errors import AggregateDomainError
from .base import Expression, Operator
from .store import ColumnStore

log = logging.getLogger(__name__)


class _NaNKey:
    """Grouping key used in place of NaN, which is not equal to itself."""

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _NaNKey)

    def __hash__(self) -> int:
        return hash("NaN")


_NAN_KEY = _NaNKey()


def _hashable_key(value: Any) -> Any:
    if isinstance(value, float) and math.isnan(value):
        return _NAN_KEY
    return value


class GroupingIndex:
    """Mapping of each distinct key to the indices of the rows sharing it.

    Missing values are compared as equal to each other when grouping,
    so all rows with a missing key end up in the same group.
    This is different from comparisons in expressions,
    where a missing value is never equal to anything, but grouping
    needs every row to belong to exactly one group.
    """

    def __init__(self, partitions: dict[tuple, pa.Int64Array]) -> None:
        """
        :param partitions: The indices of the rows of each group,
                           in the order the groups should be emitted.
                           Prefer :meth:`build` to create an index.
        """
        self.partitions = partitions

    @classmethod
    def build(cls, store: ColumnStore, keys: list[str]) -> Self:
        """Compute the groups of a store.

        The key of each row is the tuple of the values
        of its key columns. The first time a key is seen
        we create a new group for it, which makes so that
        groups are ordered by their first appearance.

        :param store: The store with the rows to group.
        :param keys: The columns whose values identify the group.
        """
        key_columns = [store.column(k).to_pylist() for k in keys]

        rows_by_key: dict[tuple, list[int]] = {}
        for row_index, row_key in enumerate(zip(*key_columns)):
            row_key = tuple(_hashable_key(v) for v in row_key)
            rows_by_key.setdefault(row_key, []).append(row_index)

        partitions = {
            key: pa.array(rows, type=pa.int64()) for key, rows in rows_by_key.items()
        }
        log.debug("Grouped %d rows by %s in %d groups", store.num_rows, keys, len(partitions))
        return cls(partitions)

    @property
    def num_groups(self) -> int:
        return len(self.partitions)

    def __iter__(self) -> Iterator[pa.Int64Array]:
        return iter(self.partitions.values())

    def sizes(self) -> list[int]:
        """How many rows each group has."""
        return [len(indices) for indices in self.partitions.values()]

    def first_rows(self) -> pa.Int64Array:
        """The index of the first row of each group."""
        return pa.array([indices[0].as_py() for indices in self], type=pa.int64())


class GroupedStore:
    """A store whose rows have been partitioned by one or more key columns.

    It behaves like a :class:`ColumnStore` for reading data,
    but evaluating expressions on it happens separately
    for each group.

    >>> store = ColumnStore({"c": ["A", "B", "A"], "v": [10, 20, 30]})
    >>> grouped = group_by(store, "c")
    >>> grouped.group_keys()
    [('A',), ('B',)]
    >>> grouped.index.sizes()
    [2, 1]
    """

    def __init__(
        self, store: ColumnStore, keys: list[str], index: GroupingIndex | None = None
    ) -> None:
        """
        :param store: The data being grouped.
        :param keys: The columns to group by.
        :param index: A precomputed index, it's built when not provided.
        """
        if not keys:
            raise ValueError("At least one grouping key is required")
        for key in keys:
            store.column(key)

        self.store = store
        self.keys = list(keys)
        self.index = index if index is not None else GroupingIndex.build(store, self.keys)

    @property
    def num_groups(self) -> int:
        return self.index.num_groups

    @property
    def num_rows(self) -> int:
        return self.store.num_rows

    @property
    def column_names(self) -> list[str]:
        return self.store.column_names

    @property
    def schema(self) -> pa.Schema:
        return self.store.schema

    def __len__(self) -> int:
        return self.num_rows

    def column(self, name: str) -> pa.Array:
        return self.store.column(name)

    def partitions(self) -> Iterator[ColumnStore]:
        """Iterate over the rows of each group as a separate store."""
        for indices in self.index:
            yield self.store.take(indices)

    def group_keys(self) -> list[tuple]:
        """The values of the key columns for each group."""
        keys = self.store.select(self.keys).take(self.index.first_rows())
        return [tuple(row[k] for k in self.keys) for row in keys.to_pylist()]

    def evaluate(self, expression: Expression) -> pa.Array:
        """Evaluate an expression separately for each group.

        The expression is applied to the rows of each group
        and the results are put back in the original order of
        the rows, so ``col("x") - Mean("x")`` subtracts from
        each value the mean of its own group.
        """
        expression.validate(self.column_names)
        if not expression.contains_aggregate():
            # Row by row expressions give the same result with or without groups.
            return self.store.evaluate(expression)
        if not self.num_groups:
            # Aggregations undefined on no rows have no value to give.
            try:
                return self.store.evaluate(expression)
            except AggregateDomainError:
                return pa.array([], type=pa.null())

        chunks = [part.evaluate(expression) for part in self.partitions()]
        values = pa.concat_arrays(_unify_types(chunks))
        positions = pa.concat_arrays(list(self.index))
        return values.take(pc.sort_indices(positions))

    def regroup(self, store: ColumnStore) -> Self:
        """Group a new store by the same keys."""
        return self.__class__(store, self.keys)

    def with_column(self, name: str, values: Any) -> Self:
        store = self.store.with_column(name, values)
        if name in self.keys:
            return self.regroup(store)
        # Rows didn't move, so the groups are still the same.
        return self.__class__(store, self.keys, self.index)

    def select(self, names: Iterable[str]) -> Self:
        """Select columns, grouping keys are always preserved."""
        names = list(names)
        missing_keys = [k for k in self.keys if k not in names]
        return self.__class__(self.store.select(missing_keys + names), self.keys, self.index)

    def filter(self, mask: pa.Array) -> Self:
        return self.regroup(self.store.filter(mask))

    def take(self, indices: pa.Array | list[int]) -> Self:
        return self.regroup(self.store.take(indices))

    def to_arrow(self) -> pa.Table:
        return self.store.to_arrow()

    def to_pydict(self) -> dict[str, list[Any]]:
        return self.store.to_pydict()

    def to_pylist(self) -> list[dict[str, Any]]:
        return self.store.to_pylist()

    def __str__(self) -> str:
        return f"Groups: {', '.join(self.keys)} [{self.num_groups}]\n{self.store}"

    def __repr__(self) -> str:
        return (
            f"GroupedStore(keys={self.keys}, groups={self.num_groups}, "
            f"columns={self.column_names}, rows={self.num_rows})"
        )


def _unify_types(chunks: list[pa.Array]) -> list[pa.Array]:
    """Cast chunks of only missing values to the type of the others.

    A group where a value is missing everywhere might produce
    a null typed chunk, that can't be concatenated to the other ones.
    """
    target = next((c.type for c in chunks if not pa.types.is_null(c.type)), None)
    if target is None:
        return chunks
    return [c.cast(target) if pa.types.is_null(c.type) else c for c in chunks]


Relation = ColumnStore | GroupedStore
"""What operators accept and emit: a store, grouped or not."""


class GroupByNode(Operator):
    """Group the rows of a store by one or more key columns.

    >>> store = ColumnStore({"c": ["A", "B", "A"], "v": [10, 20, 30]})
    >>> GroupByNode(["c"]).apply(store).num_groups
    2
    """

    def __init__(self, keys: list[str], add: bool = False) -> None:
        """
        :param keys: The columns to group by.
        :param add: When the store is already grouped, add the keys
                    to the existing ones instead of replacing them.
        """
        if not keys:
            raise ValueError("At least one grouping key is required")
        self.keys = list(keys)
        self.add = add

    def __str__(self) -> str:
        return f"GroupByNode(keys={self.keys}, add={self.add})"

    def apply(self, store: Relation) -> GroupedStore:
        keys = self.keys
        if isinstance(store, GroupedStore):
            if self.add:
                keys = store.keys + [k for k in keys if k not in store.keys]
            store = store.store
        return GroupedStore(store, keys)


class UngroupNode(Operator):
    """Drop the grouping of a store, returning the plain store."""

    def __str__(self) -> str:
        return "UngroupNode()"

    def apply(self, store: Relation) -> ColumnStore:
        if isinstance(store, GroupedStore):
            return store.store
        return store


def group_by(store: Relation, *keys: str, add: bool = False) -> GroupedStore:
    """Group a store by the given key columns, see :class:`GroupByNode`."""
    return GroupByNode(list(keys), add=add).apply(store)


def ungroup(store: Relation) -> ColumnStore:
    """Remove the grouping from a store, see :class:`UngroupNode`."""
    return UngroupNode().apply(store)
