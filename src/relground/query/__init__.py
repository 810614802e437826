"""Support for describing and executing queries.

Queries are not written as SQL text, but described by a
:class:`LogicalPlan`, which is what a SQL parser would produce
out of a ``SELECT`` statement. Parsing SQL text is left to
dedicated libraries.

The query support is constituted by three major components:

1. Logical Plan
2. Planner
3. Executor

To execute a query, you would typically combine them as following::

    store = TableStore([...])
    query = LogicalPlan("Flight", where=between(col("mileage"), 300, 2000))
    result = QueryExecutor(store).execute(query)

The :class:`LogicalPlan` describes the tables the query reads,
the conditions rows must satisfy, how they have to be grouped,
sorted and which columns the result must contain.

The :class:`QueryPlanner` is responsible for taking the logical plan
and generating a query plan for the compute engine to execute
the requested query. This is done by traversing the logical plan and
generating an equivalent tree of :class:`relground.compute.base.QueryPlanNode`
objects. While doing so it verifies that every column referred by the
query exists at the point where it is used, raising
:class:`relground.errors.PlanError` otherwise.

The :class:`QueryExecutor` plans the query against a snapshot of a
:class:`relground.warehouse.TableStore`, runs the resulting nodes
and collects the result into a :class:`pyarrow.Table`.
"""

from .executor import QueryExecutor
from .plan import Aggregate, Join, LogicalPlan, OrderBy, Projection
from .planner import QueryPlanner

__all__ = (
    "Aggregate",
    "Join",
    "LogicalPlan",
    "OrderBy",
    "Projection",
    "QueryPlanner",
    "QueryExecutor",
)
