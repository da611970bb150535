"""The Dataframe object itself."""
from typing import Any, Mapping, Self

import pyarrow as pa

from ..compute import (
  ArrangeNode,
  ColumnStore,
  Count,
  FilterNode,
  GroupByNode,
  MutateNode,
  Pipeline,
  SelectNode,
  SummariseNode,
  UngroupNode,
  read_csv,
  read_parquet,
)
from ..compute.base import Operator
from ..compute.grouping import GroupedStore, Relation


class Dataframe:
  """Data structure that handles data in rows and columns.

  The Dataframe object allows to represent in-memory data
  and perform transformations over it, chaining the verbs
  one after the other::

    Dataframe.open_csv("flights.csv") \\
      .filter(col("month") == 1) \\
      .group_by("carrier") \\
      .summarise(delay=Mean("dep_delay", exclude_missing=True)) \\
      .collect()

  The dataverbs dataframe object is lazy, which means that
  any transformation or analysis will be applied only when the
  ``.collect()`` method will be invoked. Until then, each
  transformation only adds a step to the pipeline of the dataframe.
  """
  def __init__(self, data: Any, steps: tuple[Operator, ...] = ()) -> None:
    """
    :param data: A :class:`ColumnStore`, a grouped store, a `pyarrow.Table`,
                 a `pyarrow.RecordBatch` or a dict of columns.
    :param steps: The operators to apply to the data when collecting it.
    """
    if isinstance(data, (pa.Table, pa.RecordBatch)):
      data = ColumnStore.from_arrow(data)
    elif isinstance(data, Mapping):
      data = ColumnStore(data)

    if not isinstance(data, (ColumnStore, GroupedStore)):
      raise ValueError("Invalid input, expected a ColumnStore, a PyArrow Table or a dict")

    self.data = data
    self.pipeline = Pipeline(steps)

  @classmethod
  def open_csv(cls, filename: str) -> Self:
    """Open a CSV file and create a Dataframe out of its data.

    :param filename: The path to a local CSV file.
    """
    return cls(read_csv(filename))

  @classmethod
  def open_parquet(cls, filename: str) -> Self:
    """Open a Parquet file and create a Dataframe out of its data.

    :param filename: The path to a local Parquet file.
    """
    return cls(read_parquet(filename))

  def _then(self, operator: Operator) -> Self:
    return self.__class__(self.data, self.pipeline.then(operator).steps)

  def filter(self, *predicates: Any) -> Self:
    """Apply a filter to the data and return a new Dataframe.

    The returned dataframe will only contain the rows where
    all the predicates are true.

    :param predicates: The expressions representing the predicates.
                       for example `col("x") > col("y")`.
    """
    return self._then(FilterNode(list(predicates)))

  def mutate(self, expressions: Mapping[str, Any] | None = None, **kwargs: Any) -> Self:
    """Add or replace columns computed from expressions.

    :param expressions: Mapping of column names to expressions,
                        can also be provided as keyword arguments.
    """
    return self._then(MutateNode({**(expressions or {}), **kwargs}))

  def select(self, *columns: str) -> Self:
    """Keep only the given columns."""
    return self._then(SelectNode(list(columns)))

  def arrange(self, *keys: Any) -> Self:
    """Sort the rows by the given columns or expressions."""
    return self._then(ArrangeNode(list(keys)))

  def group_by(self, *keys: str, add: bool = False) -> Self:
    """Group the rows by the given key columns."""
    return self._then(GroupByNode(list(keys), add=add))

  def ungroup(self) -> Self:
    return self._then(UngroupNode())

  def summarise(self, aggregations: Mapping[str, Any] | None = None, **kwargs: Any) -> Self:
    """Reduce each group to one row of aggregations.

    :param aggregations: Mapping of column names to aggregations,
                         can also be provided as keyword arguments.
    """
    return self._then(SummariseNode({**(aggregations or {}), **kwargs}))

  summarize = summarise

  def count(self, *keys: str, name: str = "n") -> Self:
    """Count the rows for each combination of the keys."""
    df = self.group_by(*keys, add=True) if keys else self
    return df._then(SummariseNode({name: Count()}))

  def collect(self) -> Self:
    """Run all the steps of the dataframe.

    Returns a new Dataframe that has the result
    of the transformations eagerly loaded in memory.
    """
    return self.__class__(self.pipeline.run(self.data))

  def to_store(self) -> Relation:
    """Collect all the data and return the resulting store."""
    return self.pipeline.run(self.data)

  def to_arrow(self) -> pa.Table:
    """Collect all the data and return a pyarrow.Table"""
    return self.to_store().to_arrow()

  def to_pydict(self) -> dict[str, list[Any]]:
    return self.to_store().to_pydict()

  def __str__(self) -> str:
    if self.pipeline.steps:
      return f"Dataframe({self.data!r}, {self.pipeline})"
    return str(self.data)
