"""The logical plan of a query.

A logical plan describes *what* a query has to compute,
in the same terms a SQL ``SELECT`` statement would,
but as plain Python objects instead of text.

For example the query::

    SELECT aircraft, COUNT(*) AS total_bookings
    FROM Flight JOIN Booking ON Flight.id = Booking.flight_id
    WHERE customer_status = 'Gold'
    GROUP BY aircraft
    ORDER BY total_bookings DESC
    LIMIT 1

is described by::

    LogicalPlan(
        source="Flight",
        joins=[Join("Booking", "id", "flight_id")],
        where=eq(col("customer_status"), "Gold"),
        group_by=["aircraft"],
        aggregates=[Aggregate("COUNT", "*", "total_bookings")],
        order_by=[OrderBy("total_bookings", descending=True)],
        limit=1,
        projections=["aircraft", "total_bookings"],
    )

*How* the query is computed is up to the
:class:`relground.query.QueryPlanner`.
"""

from dataclasses import dataclass, field
from typing import Sequence

from ..compute.base import Expression


def _as_tuple(value: str | Sequence[str]) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    return tuple(value)


@dataclass(frozen=True)
class Join:
    """Inner join of another table on equality of columns.

    ``left_keys`` refer to the columns available before the join
    (the source table and the tables joined so far), ``right_keys``
    to the columns of the joined ``table``.
    A single column can be provided as a plain string.
    """

    table: str
    left_keys: Sequence[str]
    right_keys: Sequence[str]

    def __post_init__(self) -> None:
        object.__setattr__(self, "left_keys", _as_tuple(self.left_keys))
        object.__setattr__(self, "right_keys", _as_tuple(self.right_keys))


@dataclass(frozen=True)
class Aggregate:
    """An aggregation like ``AVG(mileage) AS avg_mileage``.

    :param function: One of ``COUNT``, ``SUM``, ``AVG``, ``MIN``, ``MAX``.
    :param column: The aggregated column, ``"*"`` is allowed only for ``COUNT``.
    :param alias: The name of the resulting column.
    """

    function: str
    column: str
    alias: str


@dataclass(frozen=True)
class OrderBy:
    """A sort key of the ``ORDER BY`` clause."""

    column: str
    descending: bool = False


@dataclass(frozen=True)
class Projection:
    """A computed output column, like ``mileage * 2 AS double_mileage``."""

    expression: Expression
    alias: str


@dataclass
class LogicalPlan:
    """A read-only query over the tables of a store.

    The parts of the plan are applied in a fixed order:
    ``source`` scan, ``joins``, ``where`` filter, ``group_by`` and ``aggregates``,
    ``having`` filter, ``order_by``, ``offset`` and ``limit`` and finally ``projections``.

    When ``group_by`` or ``aggregates`` are provided, the parts
    that follow only see the grouping columns and the aggregates aliases.
    When ``projections`` is ``None`` all the columns are emitted.
    """

    source: str
    joins: list[Join] = field(default_factory=list)
    where: Expression | None = None
    group_by: list[str] = field(default_factory=list)
    aggregates: list[Aggregate] = field(default_factory=list)
    having: Expression | None = None
    order_by: list[OrderBy | str] = field(default_factory=list)
    limit: int | None = None
    offset: int = 0
    projections: list[str | Projection] | None = None

    @property
    def is_aggregate(self) -> bool:
        """If the query groups rows or computes aggregations."""
        return bool(self.group_by or self.aggregates)
