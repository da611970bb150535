"""Operators that perform sorting of rows.

When looking for the most significant values,
like the most delayed flights, it's often necessary
to sort the data based on one or more columns.

This module implements the sorting capabilities.
"""

from typing import Any

import pyarrow as pa
import pyarrow.compute as pc

from .base import Operator, as_expression, col
from .grouping import Relation


class SortKey:
    """An expression to sort by, and in which direction."""

    def __init__(self, expression: Any, descending: bool = False) -> None:
        """
        :param expression: Column name or expression whose values are sorted.
        :param descending: Sort from the largest to the smallest value.
        """
        if isinstance(expression, str):
            expression = col(expression)
        self.expression = as_expression(expression)
        self.descending = descending

    def __str__(self) -> str:
        order = "descending" if self.descending else "ascending"
        return f"{self.expression} {order}"

    __repr__ = __str__


def desc(expression: Any) -> SortKey:
    """Mark a sorting key as descending."""
    return SortKey(expression, descending=True)


class ArrangeNode(Operator):
    """Sort rows based on one or more columns or expressions.

    The rows will be sorted based on the keys in the order
    they are provided, so the second key is only used to sort
    rows with the same value for the first one.
    Missing values are always placed at the end
    and rows with the same values keep their original order.

    >>> from dataverbs.compute import ColumnStore
    >>> store = ColumnStore({"values": [3, None, 1, 4, 2]})
    >>> ArrangeNode(["values"]).apply(store).to_pydict()
    {'values': [1, 2, 3, 4, None]}
    >>> ArrangeNode([desc("values")]).apply(store).to_pydict()
    {'values': [4, 3, 2, 1, None]}
    """

    def __init__(self, keys: list[Any]) -> None:
        """
        :param keys: Column names, expressions or :class:`SortKey` to sort by.
        """
        if not keys:
            raise ValueError("At least one sorting key is required")
        self.sorting = [k if isinstance(k, SortKey) else SortKey(k) for k in keys]

    def __str__(self) -> str:
        return f"ArrangeNode(sorting={self.sorting})"

    def apply(self, store: Relation) -> Relation:
        """Sort the rows of the store.

        Sorting keys that are expressions need to be evaluated first,
        so all keys are computed into a temporary batch that is sorted
        to find the new order of the rows.
        """
        names = [f"key{idx}" for idx, _ in enumerate(self.sorting)]
        keys = pa.RecordBatch.from_arrays(
            [store.evaluate(key.expression) for key in self.sorting], names=names
        )
        order = pc.sort_indices(
            keys,
            sort_keys=[
                (name, "descending" if key.descending else "ascending")
                for name, key in zip(names, self.sorting)
            ],
            null_placement="at_end",
        )
        return store.take(order)


def arrange(store: Relation, *keys: Any) -> Relation:
    """Sort the rows of the store, see :class:`ArrangeNode`."""
    return ArrangeNode(list(keys)).apply(store)
