"""Compose operators in pipelines.

Analyses are rarely a single operation, they are a sequence
of steps where each step works on the result of the previous one::

    (store)-->filter--(store)-->group_by--(grouped store)-->summarise--(store)

A :class:`Pipeline` threads a store through an ordered list of steps.
Steps can be operators or any function that receives a store and
returns a new one.

Pipelines fail fast: when a step raises an error, the
following steps are not executed and the error is propagated
as it is to the caller.
"""

import logging
from typing import Any, Callable, Iterable, Self

from .. import utils
from .base import Operator
from .grouping import Relation

log = logging.getLogger(__name__)

Step = Operator | Callable[[Relation], Relation]


def describe_step(step: Step) -> str:
    """Human readable name of a pipeline step."""
    if isinstance(step, Operator):
        return str(step)
    return utils.inspect.get_qualname(step)


class Pipeline(Operator):
    """An ordered sequence of steps applied one after the other.

    >>> from dataverbs.compute import ColumnStore, FilterNode, MutateNode, col
    >>> store = ColumnStore({"x": [2, 5, -1], "y": [4, 5, 3]})
    >>> steps = Pipeline([
    ...     FilterNode([col("x") > 0]),
    ...     MutateNode({"size": (col("x") + col("y")) / 2}),
    ... ])
    >>> steps.run(store).to_pydict()
    {'x': [2, 5], 'y': [4, 5], 'size': [3.0, 5.0]}

    As a pipeline is an operator itself, pipelines can be
    used as steps of other pipelines.
    """

    def __init__(self, steps: Iterable[Step] = ()) -> None:
        """
        :param steps: The operators or callables to apply, in order.
        """
        self.steps = tuple(steps)
        for step in self.steps:
            if not callable(step):
                raise TypeError(f"Pipeline steps must be callables, got {step!r}")

    def then(self, step: Step) -> Self:
        """Return a new pipeline with the step appended."""
        return self.__class__(self.steps + (step,))

    def __len__(self) -> int:
        return len(self.steps)

    def __str__(self) -> str:
        return f"Pipeline({' -> '.join(describe_step(s) for s in self.steps)})"

    def apply(self, store: Relation) -> Relation:
        """Run the steps, each one receiving the output of the previous one."""
        for position, step in enumerate(self.steps):
            log.debug(
                "Running step %d/%d %s on %d rows",
                position + 1,
                len(self.steps),
                describe_step(step),
                store.num_rows,
            )
            store = step(store)
        return store

    run = apply


def pipeline(store: Relation, steps: Iterable[Step]) -> Any:
    """Thread the store through the steps, see :class:`Pipeline`."""
    return Pipeline(steps).run(store)
