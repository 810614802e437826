"""Execution of queries against a table store."""

import logging

import pyarrow as pa

from ..compute.base import QueryPlanNode
from ..errors import QueryError
from ..warehouse import TableStore
from .plan import LogicalPlan
from .planner import QueryPlanner

log = logging.getLogger(__name__)


class QueryExecutor:
    """Run logical plans on the tables of a store.

    Each query is planned against a snapshot of the store,
    so tables added or dropped while a query runs do not affect it.
    Queries are executed synchronously and either return
    their whole result or fail, partial results are never returned.

    >>> from relground.warehouse import Column, ColumnType, TableStore
    >>> from relground.query import Aggregate, LogicalPlan
    >>> store = TableStore()
    >>> _ = store.create_table("Flight", [Column("mileage", ColumnType.INTEGER)], [(814,), (1146,), (None,)])
    >>> result = QueryExecutor(store).execute(
    ...     LogicalPlan("Flight", aggregates=[Aggregate("COUNT", "*", "flights"),
    ...                                       Aggregate("AVG", "mileage", "avg_mileage")])
    ... )
    >>> result.to_pydict()
    {'flights': [3], 'avg_mileage': [980.0]}
    """

    def __init__(self, store: TableStore, batch_size: int | None = None) -> None:
        """
        :param store: The store containing the tables the queries can refer to.
        :param batch_size: How many rows table scans should emit in each batch,
                           defaults to :data:`relground.globals.DEFAULT_BATCH_SIZE`.
        """
        self.store = store
        self.batch_size = batch_size

    def plan(self, query: LogicalPlan) -> QueryPlanNode:
        """Build the compute engine plan for a query without running it."""
        return QueryPlanner(query, self.store.snapshot(), self.batch_size).plan()

    def explain(self, query: LogicalPlan) -> str:
        """Describe how a query would be executed."""
        return str(self.plan(query))

    def execute(self, query: LogicalPlan) -> pa.Table:
        """Run a query and return its result.

        :raises relground.errors.QueryError: when the query is invalid
            or fails while processing the data.
        """
        node = self.plan(query)
        try:
            batches = list(node.batches())
        except QueryError:
            log.debug("Query failed: %s", node, exc_info=True)
            raise

        result = pa.Table.from_batches(batches)
        log.info("Query on %s returned %d rows", query.source, result.num_rows)
        return result
