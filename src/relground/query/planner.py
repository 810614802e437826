"""Manages creation of a query plan from a logical plan.

The :class:`QueryPlanner` class is responsible for creating a compute engine
query plan from a :class:`relground.query.LogicalPlan`, verifying
along the way that the logical plan only refers to tables and columns
that exist.

Example:

    >>> from relground.compute import col, gt
    >>> from relground.query import LogicalPlan, QueryPlanner
    >>> from relground.warehouse import Column, ColumnType, Table
    >>> flight = Table("Flight", [Column("id", ColumnType.INTEGER), Column("mileage", ColumnType.INTEGER)])
    >>> logical = LogicalPlan("Flight", where=gt(col("mileage"), 1000), projections=["id"])
    >>> print(QueryPlanner(logical, {"Flight": flight}).plan())
    ProjectNode(projections={'id': ColumnRef(id)}, child=FilterNode(filter=pyarrow.compute.greater(ColumnRef(mileage),Literal(<pyarrow.Int64Scalar: 1000>)), child=TableScanNode(Flight, batch_size=1024)))
"""

import logging
from typing import Mapping

import pyarrow as pa

from ..compute import (
    AggregateNode,
    CountAggregation,
    FilterNode,
    InnerJoinNode,
    MaxAggregation,
    MeanAggregation,
    MinAggregation,
    PaginateNode,
    ProjectNode,
    SortNode,
    SumAggregation,
    TableScanNode,
)
from ..compute.aggregate import Aggregation
from ..compute.base import Expression, QueryPlanNode
from ..errors import NotFoundError, PlanError
from ..warehouse import Table
from .plan import Aggregate, Join, LogicalPlan, OrderBy, Projection

log = logging.getLogger(__name__)

Columns = dict[str, pa.DataType]


class QueryPlanner:
    """Create a compute engine query plan from a logical plan."""

    AGGREGATIONS_MAP = {
        "COUNT": CountAggregation,
        "SUM": SumAggregation,
        "AVG": MeanAggregation,
        "MIN": MinAggregation,
        "MAX": MaxAggregation,
    }

    def __init__(
        self,
        query: LogicalPlan,
        tables: Mapping[str, Table],
        batch_size: int | None = None,
    ) -> None:
        """
        :param query: The logical plan of the query.
        :param tables: The tables the query can refer to by name,
                       usually a :meth:`relground.warehouse.TableStore.snapshot`.
        :param batch_size: How many rows table scans should emit in each batch.
        """
        self.query = query
        self.tables = tables
        self.batch_size = batch_size

    def plan(self) -> QueryPlanNode:
        """Generate a query plan from the logical plan.

        The generated plan has the following structure::

            - ProjectNode
                - PaginateNode
                    - SortNode
                        - FilterNode (having)
                            - AggregateNode
                                - FilterNode (where)
                                    - InnerJoinNode
                                        - TableScanNode
                                        - TableScanNode

        Nodes are omitted when the matching part
        of the logical plan was not provided.

        The structure is based on the fact that:

        - The first thing we want to do is to combine the tables,
          as the filter might refer to columns of any of them.
        - Then we filter the rows based on the ``where`` condition
          as that reduces the amount of data we have to group.
        - Groups and aggregations are computed, and the ``having``
          condition filters them.
        - Then we sort the rows, this has to happen before the pagination,
          as we need to know the order of the rows to paginate them correctly.
        - Finally, we project the columns we want to emit, which might
          refer to aggregations or columns that are not part of the
          output anymore.
        """
        query = self.query
        node, columns = self._plan_from(query.source)
        for join in query.joins:
            node, columns = self._plan_join(join, node, columns)
        node = self._plan_filter(query.where, "where", node, columns)
        if query.is_aggregate:
            node, columns = self._plan_aggregate(
                query.group_by, query.aggregates, node, columns
            )
        elif query.having is not None:
            raise PlanError("HAVING requires GROUP BY or aggregates")
        node = self._plan_filter(query.having, "having", node, columns)
        node = self._plan_order_by(query.order_by, node, columns)
        if query.limit is not None or query.offset:
            node = PaginateNode(query.offset, query.limit, node)
        node = self._plan_projections(query.projections, node, columns)
        log.debug("Planned query: %s", node)
        return node

    def _get_table(self, name: str) -> Table:
        try:
            return self.tables[name]
        except KeyError:
            raise NotFoundError(f"Table {name} does not exist") from None

    def _plan_from(self, source: str) -> tuple[QueryPlanNode, Columns]:
        """Scan the table the query starts from."""
        table = self._get_table(source)
        columns = {field.name: field.type for field in table.schema}
        return TableScanNode(table, self.batch_size), columns

    def _plan_join(
        self, join: Join, child: QueryPlanNode, columns: Columns
    ) -> tuple[QueryPlanNode, Columns]:
        """Join a new table with the rows produced so far.

        The new table is the right side of the join,
        so the rows produced so far are used to probe it.
        """
        table = self._get_table(join.table)
        right_columns = {field.name: field.type for field in table.schema}
        for left_key, right_key in zip(join.left_keys, join.right_keys):
            self._check_reference(left_key, columns, f"join with {join.table}")
            self._check_reference(right_key, right_columns, f"join with {join.table}")

        node = InnerJoinNode(
            join.left_keys,
            join.right_keys,
            child,
            TableScanNode(table, self.batch_size),
            right_name=table.name,
        )
        names = InnerJoinNode.output_names(columns, right_columns, table.name)
        types = list(columns.values()) + list(right_columns.values())
        return node, dict(zip(names, types))

    def _plan_filter(
        self,
        predicate: Expression | None,
        clause: str,
        child: QueryPlanNode,
        columns: Columns,
    ) -> QueryPlanNode:
        if predicate is None:
            return child
        self._check_expression(predicate, columns, clause)
        return FilterNode(predicate, child)

    def _plan_aggregate(
        self,
        group_by: list[str],
        aggregates: list[Aggregate],
        child: QueryPlanNode,
        columns: Columns,
    ) -> tuple[QueryPlanNode, Columns]:
        """Group rows and compute the aggregations.

        After the aggregation only the grouping columns
        and the aggregations are available.
        """
        for key in group_by:
            self._check_reference(key, columns, "group by")

        aggregations: dict[str, Aggregation] = {}
        output_columns = {key: columns[key] for key in group_by}
        for aggregate in aggregates:
            if aggregate.alias in output_columns:
                raise PlanError(f"Aggregate alias {aggregate.alias} is already in use")
            aggregation = self._make_aggregation(aggregate, columns)
            aggregations[aggregate.alias] = aggregation
            input_type = columns.get(aggregation.column)
            output_columns[aggregate.alias] = aggregation.result_type(input_type)

        return AggregateNode(group_by, aggregations, child), output_columns

    def _make_aggregation(self, aggregate: Aggregate, columns: Columns) -> Aggregation:
        function = aggregate.function.upper()
        try:
            aggregation_class = self.AGGREGATIONS_MAP[function]
        except KeyError:
            raise PlanError(f"Unsupported aggregate function: {aggregate.function}") from None

        if aggregate.column == "*":
            if aggregation_class is not CountAggregation:
                raise PlanError(f"{function}(*) is not supported, only COUNT(*) is")
            return CountAggregation("*")

        if aggregate.column not in columns:
            raise PlanError(
                f"Aggregate {function}({aggregate.column}) refers to unknown column "
                f"{aggregate.column}, available columns: {list(columns)}"
            )
        aggregation = aggregation_class(aggregate.column)
        aggregation.check_input_type(columns[aggregate.column])
        return aggregation

    def _plan_order_by(
        self, order_by: list[OrderBy | str], child: QueryPlanNode, columns: Columns
    ) -> QueryPlanNode:
        if not order_by:
            return child
        sort_keys = [OrderBy(o) if isinstance(o, str) else o for o in order_by]
        for sort_key in sort_keys:
            self._check_reference(sort_key.column, columns, "order by")
        return SortNode(
            [s.column for s in sort_keys], [s.descending for s in sort_keys], child
        )

    def _plan_projections(
        self,
        projections: list[str | Projection] | None,
        child: QueryPlanNode,
        columns: Columns,
    ) -> QueryPlanNode:
        """Emit the requested columns and computed expressions."""
        if projections is None:
            projections = list(columns.keys())

        node_projections: list[str | tuple[str, Expression]] = []
        for projection in projections:
            if isinstance(projection, str):
                self._check_reference(projection, columns, "projection")
                node_projections.append(projection)
            else:
                self._check_expression(projection.expression, columns, "projection")
                node_projections.append((projection.alias, projection.expression))
        return ProjectNode(node_projections, child)

    def _check_expression(self, expression: Expression, columns: Columns, clause: str) -> None:
        for name in sorted(expression.references()):
            self._check_reference(name, columns, clause)

    def _check_reference(self, name: str, columns: Columns, clause: str) -> None:
        if name not in columns:
            raise PlanError(
                f"Unknown column {name} in {clause}, available columns: {list(columns)}"
            )
