"""Operators that implement selection of columns.

Datasets frequently have far more columns than the
ones needed by an analysis. Selecting only the interesting
ones makes the data easier to look at.

This module implements the selection capabilities.
"""

from .base import Operator
from .grouping import Relation


class SelectNode(Operator):
    """Keep only the given columns, in the given order.

    >>> from dataverbs.compute import ColumnStore
    >>> store = ColumnStore({"a": [1, 2, 3], "b": [4, 5, 6], "c": [7, 8, 9]})
    >>> SelectNode(["c", "a"]).apply(store).to_pydict()
    {'c': [7, 8, 9], 'a': [1, 2, 3]}

    On a grouped store the grouping keys are always preserved,
    as the store could not be grouped by them anymore otherwise.
    """

    def __init__(self, columns: list[str]) -> None:
        """
        :param columns: The list of column names to select.
        """
        self.columns = list(columns)

    def __str__(self) -> str:
        return f"SelectNode(select={self.columns})"

    def apply(self, store: Relation) -> Relation:
        return store.select(self.columns)


def select(store: Relation, *columns: str) -> Relation:
    """Select columns of the store, see :class:`SelectNode`."""
    return SelectNode(list(columns)).apply(store)
