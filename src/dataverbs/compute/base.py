"""Base classes and interfaces for the Compute Engine

This module defines the base components that are
necessary to describe a computation over a :class:`ColumnStore`:
the expressions that compute values out of columns and
the operators that transform a store into a new store.
"""

import abc
from typing import Any, Iterable, Iterator

import pyarrow as pa

from ..errors import ExpressionTypeError, NameResolutionError
from .store import ColumnStore


class Expression(abc.ABC):
    """Expression to apply to a ColumnStore.

    Expressions are some form of operation that
    has to be applied to the data of a :class:`ColumnStore`
    to create new data.

    Typical example of expressions are: A + B
    which is expected to sum column A of the store
    to column B of the store and return the result.

    As our engine is Column Major, applying an expression
    results in a new column, thus in a :class:`pyarrow.Array`
    that contains the data for that column.
    Literals and aggregations are the exception, as they produce
    a single :class:`pyarrow.Scalar` which is then repeated
    for every row when a column is needed.

    Expressions form a tree: literals and column references
    are the leaves, while operators and function calls have
    other expressions as their children.
    This allows to know which columns an expression needs
    before running it, see :meth:`validate`.

    Expressions can be combined with Python operators,
    ``col("x") > 0`` builds the same expression as
    ``BinaryExpression(">", col("x"), lit(0))``.
    Logical operators are ``&``, ``|`` and ``~``
    as ``and``, ``or`` and ``not`` can't be overloaded.
    """

    @abc.abstractmethod
    def apply(self, store: ColumnStore) -> pa.Array | pa.Scalar:
        """Apply the expression to a ColumnStore.

        Expression classes must implement this method
        to dictate what will happen when an expression
        is applied.

        Suppose want to implement a ``SumExpression`` class
        that might look like::

            class SumExpression(Expression):
                def __init__(self, lcol, rcol):
                    self.lcol = lcol  # left column name
                    self.rcol = rcol  # right column name

                def apply(self, store):
                    return pyarrow.compute.add(
                        store.column(self.lcol),
                        store.column(self.rcol)
                    )
        """
        ...

    @abc.abstractmethod
    def __str__(self) -> str:
        """Human readable representation of the expression."""
        ...

    def __repr__(self) -> str:
        return str(self)

    def children(self) -> tuple["Expression", ...]:
        """The expressions this expression depends on."""
        return ()

    def walk(self) -> Iterator["Expression"]:
        """Iterate over this expression and all its descendants."""
        yield self
        for child in self.children():
            yield from child.walk()

    def columns(self) -> set[str]:
        """Names of all the columns referenced by the expression."""
        return {e.name for e in self.walk() if isinstance(e, ColumnRef)}

    def contains_aggregate(self) -> bool:
        """If the expression reduces values to a single one somewhere."""
        return any(e.is_aggregate for e in self.walk())

    is_aggregate = False

    def validate(self, column_names: Iterable[str]) -> None:
        """Check that every column referenced by the expression exists.

        :param column_names: The columns available in the store
                             the expression will be applied to.
        """
        column_names = list(column_names)
        missing = self.columns() - set(column_names)
        if missing:
            raise NameResolutionError(sorted(missing)[0], column_names)

    def __bool__(self) -> bool:
        raise ExpressionTypeError(
            f"The truth value of {self} is ambiguous, "
            "use & | ~ to combine expressions instead of and/or/not"
        )

    # Arithmetic
    def __add__(self, other: Any) -> "Expression":
        return _binary("+", self, other)

    def __radd__(self, other: Any) -> "Expression":
        return _binary("+", other, self)

    def __sub__(self, other: Any) -> "Expression":
        return _binary("-", self, other)

    def __rsub__(self, other: Any) -> "Expression":
        return _binary("-", other, self)

    def __mul__(self, other: Any) -> "Expression":
        return _binary("*", self, other)

    def __rmul__(self, other: Any) -> "Expression":
        return _binary("*", other, self)

    def __truediv__(self, other: Any) -> "Expression":
        return _binary("/", self, other)

    def __rtruediv__(self, other: Any) -> "Expression":
        return _binary("/", other, self)

    def __floordiv__(self, other: Any) -> "Expression":
        return _binary("//", self, other)

    def __rfloordiv__(self, other: Any) -> "Expression":
        return _binary("//", other, self)

    def __mod__(self, other: Any) -> "Expression":
        return _binary("%", self, other)

    def __rmod__(self, other: Any) -> "Expression":
        return _binary("%", other, self)

    def __pow__(self, other: Any) -> "Expression":
        return _binary("**", self, other)

    def __rpow__(self, other: Any) -> "Expression":
        return _binary("**", other, self)

    def __neg__(self) -> "Expression":
        return _unary("-", self)

    def __abs__(self) -> "Expression":
        return _unary("abs", self)

    # Comparison
    def __eq__(self, other: Any) -> "Expression":  # type: ignore[override]
        return _binary("==", self, other)

    def __ne__(self, other: Any) -> "Expression":  # type: ignore[override]
        return _binary("!=", self, other)

    def __lt__(self, other: Any) -> "Expression":
        return _binary("<", self, other)

    def __le__(self, other: Any) -> "Expression":
        return _binary("<=", self, other)

    def __gt__(self, other: Any) -> "Expression":
        return _binary(">", self, other)

    def __ge__(self, other: Any) -> "Expression":
        return _binary(">=", self, other)

    __hash__ = None

    # Logic
    def __and__(self, other: Any) -> "Expression":
        return _binary("&", self, other)

    def __rand__(self, other: Any) -> "Expression":
        return _binary("&", other, self)

    def __or__(self, other: Any) -> "Expression":
        return _binary("|", self, other)

    def __ror__(self, other: Any) -> "Expression":
        return _binary("|", other, self)

    def __invert__(self) -> "Expression":
        return _unary("~", self)

    def is_in(self, values: Iterable[Any]) -> "Expression":
        """True where the value is one of ``values``."""
        from .expressions import IsInExpression

        return IsInExpression(self, values)

    def is_missing(self) -> "Expression":
        """True where the value is missing, never missing itself."""
        return _unary("is_missing", self)

    def is_not_missing(self) -> "Expression":
        """True where the value is known, never missing itself."""
        return _unary("is_not_missing", self)

    def between(self, lower: Any, upper: Any) -> "Expression":
        """True where ``lower <= value <= upper``."""
        return (self >= lower) & (self <= upper)


class ColumnRef(Expression):
    """References a column in a store.

    When another expression or the engine need
    to operate on a specific column, we will
    need a way to reference that column and its data.

    This expression is aware of the column and when
    applied to a store returns the data for that column.
    """

    def __init__(self, name: str) -> None:
        """
        :param name: The name of the column being referenced.
        """
        self.name = name

    def apply(self, store: ColumnStore) -> pa.Array:
        """Get the data for the column."""
        return store.column(self.name)

    def __str__(self) -> str:
        return f"ColumnRef({self.name})"


class Literal(Expression):
    """A constant value.

    Applying a literal always returns the same
    :class:`pyarrow.Scalar` whatever the store is.
    """

    def __init__(self, value: Any) -> None:
        """
        :param value: A Python value or a :class:`pyarrow.Scalar`.
        """
        if not isinstance(value, pa.Scalar):
            try:
                value = pa.scalar(value)
            except (pa.ArrowInvalid, pa.ArrowTypeError) as e:
                raise ExpressionTypeError(f"Unsupported literal value: {value!r}") from e
        self.value = value

    def apply(self, store: ColumnStore) -> pa.Scalar:
        return self.value

    def __str__(self) -> str:
        return f"Literal({self.value.as_py()!r})"


def as_expression(value: Any) -> Expression:
    """Wrap plain values into a :class:`Literal` when they are not expressions yet."""
    if isinstance(value, Expression):
        return value
    return Literal(value)


def _binary(op: str, left: Any, right: Any) -> Expression:
    from .expressions import BinaryExpression

    return BinaryExpression(op, left, right)


def _unary(op: str, operand: Expression) -> Expression:
    from .expressions import UnaryExpression

    return UnaryExpression(op, operand)


col = ColumnRef
lit = Literal


class Operator(abc.ABC):
    """A step that transforms a store into a new store.

    Operators are the verbs of the engine: filtering,
    mutating, grouping, summarising...
    Each operator receives a store (or a grouped store)
    and returns a new one, never modifying its input.

    Operators are callables, so they can be composed in
    a :class:`dataverbs.compute.Pipeline` together with
    plain functions accepting and returning a store.

    For example a simple operator that forwards the data
    as is after printing it can be implemented as::

        class DebugOperator(Operator):
            def apply(self, store):
                print(store)
                return store

            def __str__(self):
                return "DebugOperator()"
    """

    @abc.abstractmethod
    def apply(self, store: Any) -> Any:
        """Transform the store and return the new one."""
        ...

    @abc.abstractmethod
    def __str__(self) -> str:
        """Human readable representation of the operator."""
        ...

    def __repr__(self) -> str:
        return str(self)

    def __call__(self, store: Any) -> Any:
        return self.apply(store)
