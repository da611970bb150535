"""Operators and expressions that compute aggregations.

Frequently when analysing data it's necessary
to compute statistics like the count, mean, median, etc...
of the data stored in datasets.

The summarise operator is in charge of computing
those aggregations and projecting them as new
columns, emitting one row for each group of the data.

For example, given the following data grouped by carrier::

    carrier, flight, delay
    UA, 1545, 10
    UA, 1714, 20
    AA, 1141, 8
    AA, 725, 12
    UA, 461, 30

We could summarise the mean delay of each carrier to get::

    carrier, mean_delay
    UA, 20
    AA, 10

Aggregations are expressions themselves, so they can be combined
with other expressions (``Mean("delay") / 60``) and can be used
in filters and mutations too, where the aggregated value is
repeated for every row of the group.

Missing values
--------------

By default aggregations propagate missing values: if any value
of the group is missing, the result for that group is missing too.
This makes sure that missing data is never silently ignored.
Every aggregation accepts ``exclude_missing=True`` to compute
the result only on the known values instead.
"""

import abc
from typing import Any, Mapping

import pyarrow as pa
import pyarrow.compute as pc

from ..errors import AggregateDomainError, ExpressionTypeError
from .base import Expression, Operator, as_expression, col
from .expressions import call_compute_function
from .grouping import GroupedStore, GroupByNode, Relation
from .store import ColumnStore

__all__ = (
    "SummariseNode",
    "summarise",
    "count",
    "Aggregation",
    "Count",
    "DistinctCount",
    "CountTrue",
    "Sum",
    "Mean",
    "Median",
    "Quantile",
    "Min",
    "Max",
    "StdDev",
    "Variance",
    "First",
    "Last",
)


class Aggregation(Expression):
    """Base class for aggregations.

    An aggregation reduces all the values of its argument
    to a single :class:`pyarrow.Scalar`.

    The base class takes care of handling missing values
    and empty inputs, so that aggregations only have to
    implement :meth:`reduce` for the case where there is at
    least one value and no value is missing.
    """

    is_aggregate = True

    #: If the aggregation has a natural value (zero) for no rows.
    #: Aggregations without one raise :class:`AggregateDomainError` instead.
    empty_is_zero = False

    def __init__(self, expression: Any, exclude_missing: bool = False) -> None:
        """
        :param expression: The column name or expression to aggregate.
        :param exclude_missing: Discard missing values before aggregating
                                instead of propagating them.
        """
        if isinstance(expression, str):
            expression = col(expression)
        self.expression = as_expression(expression)
        self.exclude_missing = exclude_missing

    def children(self) -> tuple[Expression, ...]:
        return (self.expression,)

    def __str__(self) -> str:
        options = ", exclude_missing=True" if self.exclude_missing else ""
        return f"{self.__class__.__name__}({self.expression}{options})"

    @abc.abstractmethod
    def reduce(self, values: pa.Array) -> pa.Scalar:
        """Reduce values, none of which is missing, to a single value."""
        ...

    @abc.abstractmethod
    def output_type(self, input_type: pa.DataType) -> pa.DataType:
        """The type of the result given the type of the values."""
        ...

    def apply(self, store: ColumnStore) -> pa.Scalar:
        values = store.evaluate(self.expression)
        output_type = self.output_type(values.type)

        if self.exclude_missing:
            had_values = len(values) > 0
            values = values.drop_null()
            if had_values and not len(values):
                # All values were missing, the result is unknown
                # unless there is a natural value for no rows.
                return self._zero(output_type) if self.empty_is_zero else pa.scalar(None, output_type)
        elif values.null_count:
            return pa.scalar(None, type=output_type)

        if not len(values):
            if self.empty_is_zero:
                return self._zero(output_type)
            raise AggregateDomainError(f"{self} is undefined on a partition with no rows")

        result = call_compute_function(self.reduce, values, description=str(self))
        return result.cast(output_type)

    def _zero(self, output_type: pa.DataType) -> pa.Scalar:
        return pa.scalar(0, type=output_type)


class Count(Aggregation):
    """Count the rows.

    Without arguments counts the rows of the group,
    which is never missing::

        Count()

    With an argument it counts the values, which
    combined with ``exclude_missing`` counts only the known ones::

        Count("dep_delay", exclude_missing=True)
    """

    empty_is_zero = True

    def __init__(self, expression: Any = None, exclude_missing: bool = False) -> None:
        if expression is None:
            self.expression = None
            self.exclude_missing = exclude_missing
        else:
            super().__init__(expression, exclude_missing)

    def children(self) -> tuple[Expression, ...]:
        return () if self.expression is None else (self.expression,)

    def __str__(self) -> str:
        if self.expression is None:
            return "Count()"
        return super().__str__()

    def apply(self, store: ColumnStore) -> pa.Scalar:
        if self.expression is None:
            return pa.scalar(store.num_rows, type=pa.int64())
        return super().apply(store)

    def reduce(self, values: pa.Array) -> pa.Scalar:
        return pa.scalar(len(values), type=pa.int64())

    def output_type(self, input_type: pa.DataType) -> pa.DataType:
        return pa.int64()


class DistinctCount(Aggregation):
    """Count how many different values there are."""

    empty_is_zero = True

    def reduce(self, values: pa.Array) -> pa.Scalar:
        return pc.count_distinct(values)

    def output_type(self, input_type: pa.DataType) -> pa.DataType:
        return pa.int64()


class CountTrue(Aggregation):
    """Count for how many rows a predicate is true.

    >>> from dataverbs.compute import ColumnStore, col
    >>> store = ColumnStore({"delay": [5, 70, 90]})
    >>> CountTrue(col("delay") > 60).apply(store).as_py()
    2
    """

    empty_is_zero = True

    def reduce(self, values: pa.Array) -> pa.Scalar:
        if not pa.types.is_boolean(values.type):
            raise ExpressionTypeError(f"{self} requires boolean values, got {values.type}")
        return pc.sum(pc.cast(values, pa.int64()))

    def output_type(self, input_type: pa.DataType) -> pa.DataType:
        return pa.int64()


class Sum(Aggregation):
    """Compute the sum of the values, zero when there are no values."""

    empty_is_zero = True

    def reduce(self, values: pa.Array) -> pa.Scalar:
        return pc.sum(values)

    def output_type(self, input_type: pa.DataType) -> pa.DataType:
        if pa.types.is_null(input_type):
            # A column with only missing values has no type of its own.
            return pa.int64()
        elif pa.types.is_unsigned_integer(input_type):
            return pa.uint64()
        elif pa.types.is_integer(input_type) or pa.types.is_boolean(input_type):
            return pa.int64()
        elif pa.types.is_floating(input_type):
            return pa.float64()
        elif pa.types.is_decimal(input_type):
            return input_type
        raise ExpressionTypeError(f"{self} requires numeric values, got {input_type}")


class Mean(Aggregation):
    """Compute the arithmetic mean of the values."""

    def reduce(self, values: pa.Array) -> pa.Scalar:
        return pc.mean(values)

    def output_type(self, input_type: pa.DataType) -> pa.DataType:
        return pa.float64()


class Quantile(Aggregation):
    """Compute the value below which a fraction ``q`` of the values lies.

    Values between two data points are linearly interpolated.
    """

    def __init__(self, expression: Any, q: float, exclude_missing: bool = False) -> None:
        """
        :param expression: The column name or expression to aggregate.
        :param q: The fraction, between 0 and 1.
        :param exclude_missing: Discard missing values before aggregating.
        """
        if not 0 <= q <= 1:
            raise AggregateDomainError(f"Quantile must be between 0 and 1, got {q}")
        super().__init__(expression, exclude_missing)
        self.q = q

    def __str__(self) -> str:
        options = ", exclude_missing=True" if self.exclude_missing else ""
        return f"{self.__class__.__name__}({self.expression}, q={self.q}{options})"

    def reduce(self, values: pa.Array) -> pa.Scalar:
        return pc.quantile(values, q=self.q, interpolation="linear")[0]

    def output_type(self, input_type: pa.DataType) -> pa.DataType:
        return pa.float64()


class Median(Quantile):
    """Compute the median of the values.

    When the number of values is even, it's the
    mean of the two central values.
    """

    def __init__(self, expression: Any, exclude_missing: bool = False) -> None:
        super().__init__(expression, 0.5, exclude_missing)

    def __str__(self) -> str:
        return Aggregation.__str__(self)


def _reduce_categorical(values: pa.DictionaryArray, function: Any) -> pa.Scalar:
    if values.type.ordered:
        # Levels of ordered factors are stored in their order.
        return values.dictionary[function(values.indices).as_py()]
    return function(values.dictionary_decode())


class Min(Aggregation):
    """Compute the smallest value.

    Ordered factors compare by the order of their levels,
    so the smallest ``cut`` among ``["Good", "Ideal", "Fair"]``
    is ``"Fair"`` when the levels are ``Fair < Good < Ideal``.
    Other categorical columns compare by their values.
    """

    function = staticmethod(pc.min)

    def reduce(self, values: pa.Array) -> pa.Scalar:
        if pa.types.is_dictionary(values.type):
            return _reduce_categorical(values, self.function)
        return self.function(values)

    def output_type(self, input_type: pa.DataType) -> pa.DataType:
        if pa.types.is_dictionary(input_type):
            return input_type.value_type
        return input_type


class Max(Min):
    """Compute the largest value."""

    function = staticmethod(pc.max)


class Variance(Aggregation):
    """Compute the sample variance of the values.

    A single value has no sample variance, so the result is missing.
    """

    ddof = 1

    def reduce(self, values: pa.Array) -> pa.Scalar:
        return pc.variance(values, ddof=self.ddof)

    def output_type(self, input_type: pa.DataType) -> pa.DataType:
        return pa.float64()


class StdDev(Variance):
    """Compute the sample standard deviation of the values."""

    def reduce(self, values: pa.Array) -> pa.Scalar:
        return pc.stddev(values, ddof=self.ddof)


class First(Aggregation):
    """Take the first value, following the order of the rows."""

    def reduce(self, values: pa.Array) -> pa.Scalar:
        return values[0]

    def output_type(self, input_type: pa.DataType) -> pa.DataType:
        return input_type


class Last(Aggregation):
    """Take the last value, following the order of the rows."""

    def reduce(self, values: pa.Array) -> pa.Scalar:
        return values[len(values) - 1]

    def output_type(self, input_type: pa.DataType) -> pa.DataType:
        return input_type


class SummariseNode(Operator):
    """Reduce each group to a single row computing aggregations.

    The emitted store has one row for each group, in the same
    order of the groups, with the grouping keys as the first
    columns followed by one column for each aggregation.
    The emitted store is not grouped anymore.

    When the store is not grouped, the whole store is
    considered a single group and a single row is emitted.

    >>> from dataverbs.compute import ColumnStore, group_by
    >>> store = ColumnStore({
    ...    'carrier': ['UA', 'UA', 'AA', 'AA', 'UA'],
    ...    'delay': [10, 20, 8, 12, 30],
    ... })
    >>> summarise = SummariseNode({"mean_delay": Mean("delay"), "flights": Count()})
    >>> summarise.apply(group_by(store, "carrier")).to_pydict()
    {'carrier': ['UA', 'AA'], 'mean_delay': [20.0, 10.0], 'flights': [3, 2]}
    """

    def __init__(self, aggregations: Mapping[str, Any]) -> None:
        """
        :param aggregations: The aggregations to compute in the form of {"new_col_name": Aggregation}.
                             Any expression that reduces to a single value is accepted.
        """
        self.aggregations = {
            name: as_expression(expr) for name, expr in aggregations.items()
        }

    def __str__(self) -> str:
        return f"SummariseNode(aggregations={self.aggregations})"

    def apply(self, store: Relation) -> ColumnStore:
        """Compute the aggregations for each group.

        Each aggregation is applied to the rows of each group,
        and the results are collected as the values of the new column.
        """
        if isinstance(store, GroupedStore):
            partitions = list(store.partitions())
            result = store.store.select(store.keys).take(store.index.first_rows())
        else:
            partitions = [store]
            result = ColumnStore()

        for name, expr in self.aggregations.items():
            expr.validate(store.column_names)
            scalars = [self._reduce(expr, part) for part in partitions]
            result = result.with_column(name, _scalars_to_array(scalars))
        return result

    def _reduce(self, expr: Expression, partition: ColumnStore) -> pa.Scalar:
        value = expr.apply(partition)
        if not isinstance(value, pa.Scalar):
            raise ExpressionTypeError(
                f"Summarised expressions must reduce to a single value, {expr} does not"
            )
        return value


def _scalars_to_array(scalars: list[pa.Scalar]) -> pa.Array:
    value_type = next(
        (s.type for s in scalars if not pa.types.is_null(s.type)), pa.null()
    )
    return pa.array([s.as_py() for s in scalars], type=value_type)


def summarise(
    store: Relation, aggregations: Mapping[str, Any] | None = None, **kwargs: Any
) -> ColumnStore:
    """Compute aggregations for each group, see :class:`SummariseNode`.

    >>> from dataverbs.compute import ColumnStore, group_by
    >>> store = ColumnStore({"c": ["A", "B", "A"], "v": [10, 20, 30]})
    >>> summarise(group_by(store, "c"), mean=Mean("v")).to_pydict()
    {'c': ['A', 'B'], 'mean': [20.0, 20.0]}
    """
    return SummariseNode({**(aggregations or {}), **kwargs}).apply(store)


def count(store: Relation, *keys: str, name: str = "n") -> ColumnStore:
    """Count the rows for each distinct combination of the keys.

    It's a shortcut for grouping and summarising with :class:`Count`,
    when the store is already grouped the keys are added to its groups.

    >>> from dataverbs.compute import ColumnStore
    >>> store = ColumnStore({"carrier": ["UA", "AA", "UA"]})
    >>> count(store, "carrier").to_pydict()
    {'carrier': ['UA', 'AA'], 'n': [2, 1]}
    """
    if keys:
        store = GroupByNode(list(keys), add=True).apply(store)
    return SummariseNode({name: Count()}).apply(store)
