"""Errors raised by the relground engine.

All the errors share :class:`QueryError` as their base,
so that callers can catch any failure of a query at once.

Each error also derives from the Python builtin exception
that best describes it, so that a division by zero
can still be caught as a :class:`ZeroDivisionError`
and an unknown table as a :class:`LookupError`:

>>> from relground.errors import DivisionByZeroError
>>> issubclass(DivisionByZeroError, ArithmeticError)
True

Errors are deterministic, they depend on the plan and the data,
so there is never any point in retrying a query that failed.
"""


class QueryError(Exception):
    """Base class for all the errors raised by the engine."""

    pass


class NotFoundError(QueryError, LookupError):
    """A table or column that was requested does not exist."""

    pass


class OperandTypeError(QueryError, TypeError):
    """The operands of an operation have incompatible types.

    For example comparing a text column with an integer.
    """

    pass


class DivisionByZeroError(QueryError, ZeroDivisionError):
    """An arithmetic expression divided by zero."""

    pass


class ArithmeticOverflowError(QueryError, OverflowError):
    """An arithmetic expression overflowed the integer type."""

    pass


class PlanError(QueryError, ValueError):
    """The query plan is malformed.

    Raised when the plan references columns that
    are not available at that stage or misuses aggregations.
    """

    pass


class InvalidArgumentError(QueryError, ValueError):
    """A value provided to the engine is not acceptable.

    For example a negative limit or a row with the wrong number of values.
    """

    pass
