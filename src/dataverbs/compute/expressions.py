"""Expressions executed by compute engine operators.

The Compute Engine will need to filter data and derive new data.
This is performed by operators that need to know how the data
must be filtered or computed.

Filters will need a ``predicate``, so an expression that
returns ``true``, ``false`` or ``missing`` for each row that has to be
filtered.

Mutations will need an expression that computes the values
of the new column, for example ``(x + y) / 2``.

Missing values propagate through all the expressions:
any arithmetic or comparison involving a missing value is missing.
The logical operators follow three valued (Kleene) logic,
where the result is known whenever the known operand is enough
to decide it:

=========  =========  =========  =========
a          b          a & b      a | b
=========  =========  =========  =========
true       missing    missing    true
false      missing    false      missing
missing    missing    missing    missing
=========  =========  =========  =========

The only expressions that never return missing
are the ones explicitly testing for it, ``is_missing``
and ``is_not_missing``.
"""

from typing import Any, Callable, Iterable

import pyarrow as pa
import pyarrow.compute as pc

from .. import utils
from ..errors import ExpressionTypeError
from .base import Expression, as_expression
from .store import ColumnStore

Datum = pa.Array | pa.Scalar


def apply_expression_if_needed(store: ColumnStore, o: Expression | Datum) -> Datum:
    """Invoke Apply on expressions when needed

    If the provided object is an Expression,
    it will be applied to the target store.

    Otherwise it will treat it as if it's
    already the result of an expression
    or a literal value.

    This allows us to apply all arguments
    we receive without having to care if
    they are the data we need or if they
    are the expression resulting in that data.
    """
    if isinstance(o, Expression):
        o = o.apply(store)
    return o


def call_compute_function(func: Callable, *args: Any, description: str) -> Datum:
    """Invoke a compute function translating Arrow type errors.

    Arrow reports operations on incompatible types
    (like comparing text to numbers) with its own exceptions,
    we want the users to receive an :class:`ExpressionTypeError` instead.
    """
    try:
        return func(*args)
    except (pa.ArrowNotImplementedError, pa.ArrowTypeError, pa.ArrowInvalid) as e:
        raise ExpressionTypeError(f"Unable to compute {description}: {e}") from e


def _is_integer(value: Datum) -> bool:
    return pa.types.is_integer(value.type)


def _to_float(value: Datum) -> Datum:
    if _is_integer(value) or pa.types.is_null(value.type):
        # Integers beyond 2**53 are rounded to the closest float.
        return pc.cast(value, pa.float64(), safe=False)
    return value


def true_divide(left: Datum, right: Datum) -> Datum:
    """Divide always producing floating point numbers.

    Arrow divides integers with integer division,
    so ``(2 + 3) / 2`` would be ``2`` while users expect ``2.5``.
    Dividing by zero gives infinity, or NaN for ``0 / 0``.
    """
    return pc.divide(_to_float(left), _to_float(right))


def floor_divide(left: Datum, right: Datum) -> Datum:
    """Divide rounding down to the closest integer.

    Integers divided by zero have no integer result,
    so the result is missing for those rows.
    """
    result = pc.floor(true_divide(left, right))
    if _is_integer(left) and _is_integer(right):
        finite = pc.if_else(pc.is_finite(result), result, pa.scalar(None, pa.float64()))
        result = pc.cast(finite, pa.int64())
    return result


def modulo(left: Datum, right: Datum) -> Datum:
    """Remainder of the floor division, it has the same sign as the divisor."""
    quotient = floor_divide(left, right)
    return pc.subtract(left, pc.multiply(quotient, right))


class FunctionCallExpression(Expression):
    """Call a compute function on its arguments.

    Given a compute function, and a set of arguments
    (other expressions, literals or data), execute
    the function on the provided arguments and return
    the resulting data.

    For example to round the values of a column this would be used as::

        FunctionCallExpression(pyarrow.compute.round, col("price"), 2)

    Any :mod:`pyarrow.compute` function can be used, which provides
    all the vectorised transformations the engine doesn't
    offer as an operator.
    """

    def __init__(self, func: Callable, *args: Any) -> None:
        """
        :param func: The function accepting the arguments.
        :param *args: The arguments for the function. Plain values are
                      passed as they are, so they can be used for
                      function options like the digits of ``pc.round``.
        """
        self.func = func
        self.args = args

    def children(self) -> tuple[Expression, ...]:
        return tuple(arg for arg in self.args if isinstance(arg, Expression))

    def __str__(self) -> str:
        func_qualname = utils.inspect.get_qualname(self.func)
        return f"{func_qualname}({','.join(map(str, self.args))})"

    def apply(self, store: ColumnStore) -> Datum:
        """Invoke the function resolving all arguments on the store.

        When the function arguments are expressions themselves,
        this will apply the expressions on the provided store
        and the resulting data will be used as the arguments for the
        function.
        """
        args = tuple(apply_expression_if_needed(store, arg) for arg in self.args)
        return call_compute_function(self.func, *args, description=str(self))


class BinaryExpression(Expression):
    """An operator with two operands, like ``a + b`` or ``a < b``.

    The supported operators are arithmetic (``+ - * / // % **``),
    comparisons (``== != < <= > >=``) and three valued logic (``& |``).
    """

    OPERATORS: dict[str, Callable[[Datum, Datum], Datum]] = {
        "+": pc.add,
        "-": pc.subtract,
        "*": pc.multiply,
        "/": true_divide,
        "//": floor_divide,
        "%": modulo,
        "**": pc.power,
        "==": pc.equal,
        "!=": pc.not_equal,
        "<": pc.less,
        "<=": pc.less_equal,
        ">": pc.greater,
        ">=": pc.greater_equal,
        "&": pc.and_kleene,
        "|": pc.or_kleene,
    }

    def __init__(self, op: str, left: Any, right: Any) -> None:
        """
        :param op: The operator, one of :attr:`OPERATORS`.
        :param left: The left operand.
        :param right: The right operand.
        """
        if op not in self.OPERATORS:
            raise ValueError(f"Unsupported operator: {op}")
        self.op = op
        self.left = as_expression(left)
        self.right = as_expression(right)

    def children(self) -> tuple[Expression, ...]:
        return (self.left, self.right)

    def __str__(self) -> str:
        return f"({self.left} {self.op} {self.right})"

    def apply(self, store: ColumnStore) -> Datum:
        left = self.left.apply(store)
        right = self.right.apply(store)
        return call_compute_function(
            self.OPERATORS[self.op], left, right, description=str(self)
        )


class UnaryExpression(Expression):
    """An operator with a single operand, like ``-a`` or ``~a``."""

    OPERATORS: dict[str, Callable[[Datum], Datum]] = {
        "-": pc.negate,
        "abs": pc.abs,
        "~": pc.invert,
        "is_missing": pc.is_null,
        "is_not_missing": pc.is_valid,
    }

    def __init__(self, op: str, operand: Any) -> None:
        if op not in self.OPERATORS:
            raise ValueError(f"Unsupported operator: {op}")
        self.op = op
        self.operand = as_expression(operand)

    def children(self) -> tuple[Expression, ...]:
        return (self.operand,)

    def __str__(self) -> str:
        if self.op in ("-", "~"):
            return f"{self.op}{self.operand}"
        return f"{self.op}({self.operand})"

    def apply(self, store: ColumnStore) -> Datum:
        operand = self.operand.apply(store)
        if self.op == "~" and not pa.types.is_boolean(operand.type):
            # pc.invert would happily flip the bits of integers.
            raise ExpressionTypeError(f"Unable to compute {self}: operand is not boolean")
        return call_compute_function(
            self.OPERATORS[self.op], operand, description=str(self)
        )


def _kind(dtype: pa.DataType) -> Any:
    """Types of the same kind can be compared with each other."""
    if pa.types.is_integer(dtype) or pa.types.is_floating(dtype):
        return "number"
    elif pa.types.is_string(dtype) or pa.types.is_large_string(dtype):
        return "text"
    return dtype.id


def _comparable(operand: Datum, values: pa.Array) -> tuple[Datum, pa.Array]:
    """Bring operand and values to a common type without losing information.

    The values are cast to the type of the operand when they all fit it,
    like ``1.0`` for an integer column. When they don't, like ``2.5``,
    numbers are compared as floating point instead of being truncated.
    """
    if pa.types.is_null(values.type) or values.type == operand.type:
        return operand, values.cast(operand.type)
    if _kind(operand.type) != _kind(values.type):
        raise ExpressionTypeError(f"Unable to compare {operand.type} with {values.type}")

    try:
        return operand, values.cast(operand.type)
    except pa.ArrowInvalid:
        if _kind(operand.type) != "number":
            raise
        return (
            pc.cast(operand, pa.float64(), safe=False),
            pc.cast(values, pa.float64(), safe=False),
        )


class IsInExpression(Expression):
    """Set membership, true where the value is one of the given values.

    A missing value is neither in nor out of the set,
    so membership of a missing value is missing.

    Numbers are compared by value whatever their type,
    so ``2`` is in ``[2.0]`` but not in ``[2.5]``.
    """

    def __init__(self, operand: Any, values: Iterable[Any]) -> None:
        self.operand = as_expression(operand)
        self.values = list(values)

    def children(self) -> tuple[Expression, ...]:
        return (self.operand,)

    def __str__(self) -> str:
        return f"is_in({self.operand}, {self.values!r})"

    def apply(self, store: ColumnStore) -> Datum:
        operand = self.operand.apply(store)
        if isinstance(operand, pa.DictionaryArray):
            operand = operand.dictionary_decode()
        if pa.types.is_null(operand.type):
            return operand.cast(pa.bool_())

        try:
            operand, value_set = _comparable(operand, pa.array(self.values))
        except (pa.ArrowInvalid, pa.ArrowTypeError, pa.ArrowNotImplementedError) as e:
            raise ExpressionTypeError(
                f"Unable to compute {self}: values don't match {operand.type}"
            ) from e

        membership = call_compute_function(
            lambda v: pc.is_in(v, value_set=value_set), operand, description=str(self)
        )
        return pc.if_else(pc.is_valid(operand), membership, pa.scalar(None, pa.bool_()))


class IfElseExpression(Expression):
    """Choose between two values based on a condition.

    Where the condition is missing, the result is missing.
    """

    def __init__(self, condition: Any, then: Any, otherwise: Any) -> None:
        self.condition = as_expression(condition)
        self.then = as_expression(then)
        self.otherwise = as_expression(otherwise)

    def children(self) -> tuple[Expression, ...]:
        return (self.condition, self.then, self.otherwise)

    def __str__(self) -> str:
        return f"if_else({self.condition}, {self.then}, {self.otherwise})"

    def apply(self, store: ColumnStore) -> Datum:
        return call_compute_function(
            pc.if_else,
            self.condition.apply(store),
            self.then.apply(store),
            self.otherwise.apply(store),
            description=str(self),
        )


def if_else(condition: Any, then: Any, otherwise: Any) -> IfElseExpression:
    """Build an :class:`IfElseExpression`.

    >>> from dataverbs.compute import ColumnStore, col
    >>> store = ColumnStore({"delay": [-5, 10, None]})
    >>> store.evaluate(if_else(col("delay") > 0, "late", "on time")).to_pylist()
    ['on time', 'late', None]
    """
    return IfElseExpression(condition, then, otherwise)
