"""The relground Compute Engine

The compute engine defines the in-memory
format for query plans and the plan nodes
supported.

The compute engine is tightly bound to Apache Arrow,
thus the engine will expect to always deal with
:class:`pyarrow.RecordBatch` and emit a new RecordBatch
as the result of the node execution.

This allows to easily build compute pipelines like::

    (RecordBatch)-->Node1--(RecordBatch)-->Node2--(RecordBatch)-->...

The query plan nodes themselves are in charge of their execution,
this keeps the behavior near to the node and thus makes easy to
know how a Node is actually executed without having to look around too much.

Building a query plan requires to combine the nodes that we want
to be executed starting with one or more ``DataSource`` nodes as the
leafs node of a query:

>>> import pyarrow as pa
>>> data = pa.table({
...    "aircraft": pa.array(["Boeing 747", "Airbus A330", "Boeing 777"]),
...    "mileage": pa.array([4370, 531, 1765])
... })
>>>
>>> from relground.compute import col, like, PyArrowTableDataSource, FilterNode
>>> # SELECT * FROM data WHERE aircraft LIKE '%Boeing%'
>>> query = FilterNode(
...     like(col("aircraft"), "%Boeing%"),
...     child=PyArrowTableDataSource(
...         data
...     )
... )
>>> for data in query.batches():
...     print(data.to_pydict())
{'aircraft': ['Boeing 747', 'Boeing 777'], 'mileage': [4370, 1765]}
"""

from .aggregate import (
    AggregateNode,
    CountAggregation,
    MaxAggregation,
    MeanAggregation,
    MinAggregation,
    SumAggregation,
)
from .base import ColumnRef, Expression, Literal, QueryPlanNode, col, lit
from .datasources import PyArrowTableDataSource, TableScanNode
from .expressions import (
    FunctionCallExpression,
    add,
    and_,
    between,
    div,
    eq,
    ge,
    gt,
    is_null,
    le,
    like,
    lt,
    mul,
    ne,
    not_,
    or_,
    sub,
)
from .filtering import FilterNode
from .join import InnerJoinNode
from .pagination import PaginateNode
from .selection import ProjectNode
from .sorting import SortNode

__all__ = (
    "QueryPlanNode",
    "Expression",
    "TableScanNode",
    "PyArrowTableDataSource",
    "FilterNode",
    "FunctionCallExpression",
    "col",
    "lit",
    "ColumnRef",
    "Literal",
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
    "InnerJoinNode",
    "PaginateNode",
    "SortNode",
    "ProjectNode",
    "AggregateNode",
    "CountAggregation",
    "MaxAggregation",
    "MeanAggregation",
    "MinAggregation",
    "SumAggregation",
)
