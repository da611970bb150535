"""Operators that derive new columns from existing ones.

A common request in analyses is to compute new values
out of the existing columns, like the speed of a flight
given its distance and air time.

This module implements the capability of adding
new columns or replacing existing ones based on expressions.
"""

from typing import Any, Mapping

from .base import Operator, as_expression
from .grouping import Relation


class MutateNode(Operator):
    """Add or replace columns computing expressions.

    The expressions are evaluated in the order they are provided,
    so each expression can reference the columns created
    by the previous ones.

    When a column with the same name already exists it is
    replaced in place, otherwise the new column is appended.

    >>> from dataverbs.compute import ColumnStore, col
    >>> store = ColumnStore({"x": [2, 5], "y": [4, 5]})
    >>> MutateNode({
    ...     "size": (col("x") + col("y")) / 2,
    ...     "double_size": col("size") * 2,
    ... }).apply(store).to_pydict()
    {'x': [2, 5], 'y': [4, 5], 'size': [3.0, 5.0], 'double_size': [6.0, 10.0]}

    On a grouped store, aggregations are computed within each group,
    ``col("delay") - Mean("delay")`` computes how much each flight
    was delayed compared to the other flights of its group.
    """

    def __init__(self, expressions: Mapping[str, Any]) -> None:
        """
        :param expressions: The dict {name: Expression} of columns to compute.
        """
        self.expressions = {
            name: as_expression(expr) for name, expr in expressions.items()
        }

    def __str__(self) -> str:
        return f"MutateNode(mutate={self.expressions})"

    def apply(self, store: Relation) -> Relation:
        """Sequentially compute the expressions adding them to the store."""
        for name, expr in self.expressions.items():
            store = store.with_column(name, store.evaluate(expr))
        return store


def mutate(
    store: Relation, expressions: Mapping[str, Any] | None = None, **kwargs: Any
) -> Relation:
    """Add or replace columns, see :class:`MutateNode`.

    Columns can be provided as a mapping, as keyword arguments
    or both, keyword arguments are computed last.
    """
    return MutateNode({**(expressions or {}), **kwargs}).apply(store)
