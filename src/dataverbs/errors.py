"""Errors raised by the dataverbs engine.

All errors are raised synchronously by the operator that detects them
and propagate unchanged through pipelines, so the caller always
receives the original failure.

Each error also inherits from the closest built-in exception,
so code that only knows about Python exceptions can still
handle them::

    DataverbsError
     ├── NameResolutionError   (KeyError)
     ├── ExpressionTypeError   (TypeError)
     ├── ShapeError            (ValueError)
     └── AggregateDomainError  (ValueError)

Missing values are never an error on their own, they are
regular data that flows through the operators.
"""


class DataverbsError(Exception):
    """Base class for all the errors raised by dataverbs."""


class NameResolutionError(DataverbsError, KeyError):
    """A column was referenced that does not exist in the store."""

    def __init__(self, name: str, available: list[str] | None = None) -> None:
        """
        :param name: The column name that could not be resolved.
        :param available: The columns that were available, if known.
        """
        self.name = name
        self.available = available
        message = f"Unknown column: {name!r}"
        if available is not None:
            message += f", available columns are {available!r}"
        super().__init__(message)

    def __str__(self) -> str:
        # KeyError would otherwise quote the whole message.
        return self.args[0]


class ExpressionTypeError(DataverbsError, TypeError):
    """An operation was applied to values of incompatible types.

    For example comparing a text column with a number, or
    computing the mean of a text column.
    """


class ShapeError(DataverbsError, ValueError):
    """Columns of a store do not share the same length."""


class AggregateDomainError(DataverbsError, ValueError):
    """An aggregate was asked for a value it can't define.

    This happens for example when requesting a quantile outside
    of ``[0, 1]`` or the mean of a partition with no rows.
    """
