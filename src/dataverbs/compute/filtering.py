"""Operators that implement filtering of rows.

A common request in analyses is to filter the data to
pick only the rows that respect a specific condition,
like all the flights that departed on the 1st of January.

This module implements the filtering capabilities.
"""

import functools
from typing import Any

import pyarrow as pa

from ..errors import ExpressionTypeError
from .base import Expression, Operator, as_expression
from .grouping import Relation


def as_mask(values: pa.Array) -> pa.Array:
    """Check that the result of a predicate can be used as a mask.

    A predicate that is missing everywhere (like a missing literal)
    is accepted and discards every row.
    """
    if pa.types.is_null(values.type):
        return pa.nulls(len(values), type=pa.bool_())
    if not pa.types.is_boolean(values.type):
        raise ExpressionTypeError(
            f"Filter predicates must be boolean, got values of type {values.type}"
        )
    return values


class FilterNode(Operator):
    """Filter data based on one or more predicate expressions.

    The filter expects expressions that when applied
    to the store being filtered return ``true``, ``false``
    or missing for each row to mark which rows have to be
    preserved and which rows have to be discarded.

    Only rows where the predicate is ``true`` are preserved,
    both ``false`` and missing discard the row.
    When multiple predicates are provided, they are combined
    with three valued AND, so a row is preserved only if
    it satisfies all of them.

    >>> from dataverbs.compute import ColumnStore, col
    >>> store = ColumnStore({"x": [0, 3, 4], "y": [5, 3, 0]})
    >>> predicate = col("x") > 0
    >>> # predicate returns true for values greater than 0
    >>> store.evaluate(predicate).to_pylist()
    [False, True, True]
    >>> FilterNode([predicate, col("y") > 0]).apply(store).to_pydict()
    {'x': [3], 'y': [3]}

    On a grouped store, aggregations in the predicate
    are computed within each group, which allows to
    preserve for example the most delayed flight of each carrier.
    """

    def __init__(self, predicates: list[Any]) -> None:
        """
        :param predicates: The predicate expressions to filter with.
        """
        self.predicates = [as_expression(p) for p in predicates]

    @property
    def predicate(self) -> Expression | None:
        """The single predicate combining all the predicates."""
        if not self.predicates:
            return None
        return functools.reduce(lambda a, b: a & b, self.predicates)

    def __str__(self) -> str:
        return f"FilterNode(filter={self.predicate})"

    def apply(self, store: Relation) -> Relation:
        """Apply the filtering to the store.

        Apply the predicate and get back a mask
        (an array of true/false/missing values).

        Based on the mask, filter the rows of the store
        and return only those matching the filter.
        Rows keep their original order.
        """
        predicate = self.predicate
        if predicate is None:
            return store

        mask = as_mask(store.evaluate(predicate))
        return store.filter(mask)


def filter_rows(store: Relation, *predicates: Any) -> Relation:
    """Keep the rows of the store where all predicates are true.

    >>> from dataverbs.compute import ColumnStore, col
    >>> store = ColumnStore({"x": [0, 3, 4], "y": [5, 3, 0]})
    >>> filter_rows(store, col("x") > 0, col("y") > 0).to_pydict()
    {'x': [3], 'y': [3]}
    """
    return FilterNode(list(predicates)).apply(store)
