"""The dataverbs Compute Engine

The compute engine defines the in-memory format of the
data, the expressions that compute values from it and
the operators that transform it.

The data is kept in a :class:`ColumnStore`, which is backed by Apache Arrow,
and every operator receives a store and emits a new store.
This allows to easily build pipelines like::

    (ColumnStore)-->Operator1--(ColumnStore)-->Operator2--(ColumnStore)-->...

The operators implement the verbs of data manipulation:

* :class:`FilterNode` keeps the rows matching predicates.
* :class:`MutateNode` adds or replaces columns computed from expressions.
* :class:`GroupByNode` partitions the rows by the values of key columns.
* :class:`SummariseNode` reduces each group to one row of aggregations.
* :class:`SelectNode` and :class:`ArrangeNode` pick and sort columns and rows.

Each operator is also available as a plain function
(``filter_rows``, ``mutate``, ``group_by``, ``summarise``, ...)
and operators can be composed in a :class:`Pipeline`:

>>> from dataverbs.compute import ColumnStore, col, Mean, pipeline
>>> from dataverbs.compute import FilterNode, GroupByNode, SummariseNode
>>> data = ColumnStore({
...    "carrier": ["UA", "AA", "UA", "AA", "DL"],
...    "delay": [10, None, 30, 5, -2],
... })
>>> # Mean delay of the delayed flights of each carrier
>>> result = pipeline(data, [
...     FilterNode([col("delay") > 0]),
...     GroupByNode(["carrier"]),
...     SummariseNode({"mean_delay": Mean("delay")}),
... ])
>>> result.to_pydict()
{'carrier': ['UA', 'AA'], 'mean_delay': [20.0, 5.0]}
"""

from .aggregate import (
    Aggregation,
    Count,
    CountTrue,
    DistinctCount,
    First,
    Last,
    Max,
    Mean,
    Median,
    Min,
    Quantile,
    StdDev,
    Sum,
    SummariseNode,
    Variance,
    count,
    summarise,
)
from .base import ColumnRef, Expression, Literal, Operator, col, lit
from .datasources import from_arrow, read_csv, read_parquet
from .expressions import (
    BinaryExpression,
    FunctionCallExpression,
    IfElseExpression,
    IsInExpression,
    UnaryExpression,
    if_else,
)
from .filtering import FilterNode, filter_rows
from .grouping import (
    GroupByNode,
    GroupedStore,
    GroupingIndex,
    UngroupNode,
    group_by,
    ungroup,
)
from .mutation import MutateNode, mutate
from .pipeline import Pipeline, pipeline
from .selection import SelectNode, select
from .sorting import ArrangeNode, SortKey, arrange, desc
from .store import ColumnStore

__all__ = (
    "ColumnStore",
    "GroupedStore",
    "GroupingIndex",
    "Expression",
    "ColumnRef",
    "Literal",
    "col",
    "lit",
    "BinaryExpression",
    "UnaryExpression",
    "FunctionCallExpression",
    "IsInExpression",
    "IfElseExpression",
    "if_else",
    "Operator",
    "FilterNode",
    "filter_rows",
    "MutateNode",
    "mutate",
    "SelectNode",
    "select",
    "ArrangeNode",
    "SortKey",
    "arrange",
    "desc",
    "GroupByNode",
    "UngroupNode",
    "group_by",
    "ungroup",
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
    "Pipeline",
    "pipeline",
    "read_csv",
    "read_parquet",
    "from_arrow",
)
