"""Expressions executed by compute engine nodes.

The Compute Engine will sometimes need to filter data
or emit new data. This will be performed by nodes that
need to know how the data must be filtered or emitted.

Filters will need a ``predicate``, so an expression that
returns ``true``, ``false`` or ``null`` for each row that has to be
filtered.

Projections will need an expression that computes the rows
for the projection, for example ``A + B``.

Null values follow SQL semantics: a comparison
involving a null is neither true nor false but *unknown*,
which is represented as a null boolean. Boolean operators
combine unknown values according to Kleene logic,
``unknown AND false`` is ``false`` while ``unknown AND true``
remains ``unknown``:

>>> import pyarrow as pa
>>> data = pa.record_batch({"status": ["Gold", None, "Silver"], "seats": [3, 2, None]})
>>> and_(eq(col("status"), "Gold"), gt(col("seats"), 1)).apply(data).to_pylist()
[True, None, False]
>>> or_(eq(col("status"), "Gold"), gt(col("seats"), 1)).apply(data).to_pylist()
[True, True, None]

The functions in this module like :func:`eq`, :func:`between` or :func:`like`
build the most common expressions on top of :class:`FunctionCallExpression`
and the :mod:`pyarrow.compute` functions.
"""

from typing import Any, Callable

import pyarrow as pa
import pyarrow.compute as pc

from .. import utils
from ..errors import ArithmeticOverflowError, DivisionByZeroError, OperandTypeError
from .base import ColumnRef, Expression, Literal, col, lit


def apply_expression_if_needed(
    batch: pa.RecordBatch, o: Expression | pa.Array | Any
) -> pa.Array | Any:
    """Invoke Apply on expressions when needed

    If the provided object is an Expression,
    it will be applied to the target batch.

    Otherwise it will treat it as if it's
    already the result of an expression
    or a literal value.

    This allows us to apply all arguments
    we receive without having to care if
    they are the data we need or if they
    are the expression resulting in that data.
    """
    if isinstance(o, Expression):
        o = o.apply(batch)
    return o


def as_array(value: pa.Array | pa.Scalar, length: int) -> pa.Array:
    """Make sure the result of an expression is a column.

    Expressions that do not depend on any column, like literals,
    return a scalar which has to be repeated for every row
    when a column is required.
    """
    if isinstance(value, pa.Scalar):
        return pa.repeat(value, length)
    elif isinstance(value, pa.ChunkedArray):
        return value.combine_chunks()
    return value


class FunctionCallExpression(Expression):
    """Call a compute function on its arguments.

    Given a compute function, and a set of arguments
    (other expressions, literals or data), execute
    the function on the provided arguments and return
    the resulting data.

    For example to sum two columns this would be used as::

        FunctionCallExpression(pyarrow.compute.add, ColumnRef("A"), ColumnRef("B"))

    Keyword arguments are forwarded to the function as they are,
    which is used for functions that accept options like
    :func:`pyarrow.compute.match_like`.

    Errors raised by the compute functions are converted to
    the engine errors, so that comparing a text with a number fails
    with :class:`relground.errors.OperandTypeError`
    and dividing by zero with :class:`relground.errors.DivisionByZeroError`.
    """

    def __init__(self, func: Callable, *args: Expression | Any, **options: Any) -> None:
        """
        :param func: The function accepting the arguments.
        :param *args: The arguments for the function.
        :param **options: Options for the function.
        """
        self.func = func
        self.args = args
        self.options = options

    def __str__(self) -> str:
        func_qualname = utils.inspect.get_qualname(self.func)
        args = [str(arg) for arg in self.args]
        args.extend(f"{name}={value!r}" for name, value in self.options.items())
        return f"{func_qualname}({','.join(args)})"

    def references(self) -> set[str]:
        refs: set[str] = set()
        for arg in self.args:
            if isinstance(arg, Expression):
                refs |= arg.references()
        return refs

    def apply(self, batch: pa.RecordBatch) -> pa.Array | pa.Scalar:
        """Invoke the function resolving all arguments on the recordbatch.

        When the function arguments are expressions themselves,
        this will apply the expressions on the provided recordbatch
        and the resulting data will be used as the arguments for the
        function.
        """
        args = tuple(apply_expression_if_needed(batch, arg) for arg in self.args)
        try:
            return self.func(*args, **self.options)
        except (pa.ArrowNotImplementedError, pa.ArrowTypeError) as e:
            raise OperandTypeError(f"Invalid operand types for {self}: {e}") from e
        except pa.ArrowInvalid as e:
            message = str(e).lower()
            if "divide by zero" in message:
                raise DivisionByZeroError(f"Division by zero in {self}") from e
            elif "overflow" in message:
                raise ArithmeticOverflowError(f"Integer overflow in {self}") from e
            raise


def _expr(value: Expression | Any) -> Expression:
    """Wrap plain python values into literals."""
    if isinstance(value, Expression):
        return value
    return lit(value)


def eq(left: Expression | Any, right: Expression | Any) -> FunctionCallExpression:
    """``left = right``"""
    return FunctionCallExpression(pc.equal, _expr(left), _expr(right))


def ne(left: Expression | Any, right: Expression | Any) -> FunctionCallExpression:
    """``left <> right``"""
    return FunctionCallExpression(pc.not_equal, _expr(left), _expr(right))


def lt(left: Expression | Any, right: Expression | Any) -> FunctionCallExpression:
    """``left < right``"""
    return FunctionCallExpression(pc.less, _expr(left), _expr(right))


def le(left: Expression | Any, right: Expression | Any) -> FunctionCallExpression:
    """``left <= right``"""
    return FunctionCallExpression(pc.less_equal, _expr(left), _expr(right))


def gt(left: Expression | Any, right: Expression | Any) -> FunctionCallExpression:
    """``left > right``"""
    return FunctionCallExpression(pc.greater, _expr(left), _expr(right))


def ge(left: Expression | Any, right: Expression | Any) -> FunctionCallExpression:
    """``left >= right``"""
    return FunctionCallExpression(pc.greater_equal, _expr(left), _expr(right))


def and_(left: Expression | Any, right: Expression | Any) -> FunctionCallExpression:
    """``left AND right`` with Kleene logic."""
    return FunctionCallExpression(pc.and_kleene, _expr(left), _expr(right))


def or_(left: Expression | Any, right: Expression | Any) -> FunctionCallExpression:
    """``left OR right`` with Kleene logic."""
    return FunctionCallExpression(pc.or_kleene, _expr(left), _expr(right))


def not_(operand: Expression | Any) -> FunctionCallExpression:
    """``NOT operand``, unknown stays unknown."""
    return FunctionCallExpression(pc.invert, _expr(operand))


def is_null(operand: Expression | Any) -> FunctionCallExpression:
    """``operand IS NULL``, this is never unknown."""
    return FunctionCallExpression(pc.is_null, _expr(operand))


def between(
    operand: Expression | Any, low: Expression | Any, high: Expression | Any
) -> FunctionCallExpression:
    """``operand BETWEEN low AND high``, both ends are included.

    >>> import pyarrow as pa
    >>> data = pa.record_batch({"mileage": [135, 4370, 2078, 1765, 531]})
    >>> between(col("mileage"), 300, 2000).apply(data).to_pylist()
    [False, False, False, True, True]
    """
    operand = _expr(operand)
    return and_(ge(operand, low), le(operand, high))


def like(operand: Expression | Any, pattern: str) -> FunctionCallExpression:
    """``operand LIKE pattern``

    In the pattern ``%`` matches any sequence of characters
    and ``_`` matches exactly one character.
    The match is case sensitive.

    There is no escape character, every other character of the
    pattern, backslash included, only matches itself.

    >>> import pyarrow as pa
    >>> data = pa.record_batch({"aircraft": ["Boeing 747", "Airbus A330", "boeing 777"]})
    >>> like(col("aircraft"), "%Boeing%").apply(data).to_pylist()
    [True, False, False]
    """
    # match_like treats backslash as an escape, double it to keep it literal.
    pattern = pattern.replace("\\", "\\\\")
    return FunctionCallExpression(pc.match_like, _expr(operand), pattern=pattern)


def add(left: Expression | Any, right: Expression | Any) -> FunctionCallExpression:
    """``left + right``, fails on integer overflow."""
    return FunctionCallExpression(pc.add_checked, _expr(left), _expr(right))


def sub(left: Expression | Any, right: Expression | Any) -> FunctionCallExpression:
    """``left - right``, fails on integer overflow."""
    return FunctionCallExpression(pc.subtract_checked, _expr(left), _expr(right))


def mul(left: Expression | Any, right: Expression | Any) -> FunctionCallExpression:
    """``left * right``, fails on integer overflow."""
    return FunctionCallExpression(pc.multiply_checked, _expr(left), _expr(right))


def div(left: Expression | Any, right: Expression | Any) -> FunctionCallExpression:
    """``left / right``

    Dividing integers truncates the result, like SQL does.
    Dividing by zero fails with :class:`relground.errors.DivisionByZeroError`.
    """
    return FunctionCallExpression(pc.divide_checked, _expr(left), _expr(right))


__all__ = (
    "ColumnRef",
    "Literal",
    "FunctionCallExpression",
    "col",
    "lit",
    "eq",
    "ne",
    "lt",
    "le",
    "gt",
    "ge",
    "and_",
    "or_",
    "not_",
    "is_null",
    "between",
    "like",
    "add",
    "sub",
    "mul",
    "div",
    "as_array",
)
