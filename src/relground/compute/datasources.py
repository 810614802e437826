"""Query Plan nodes that load data

The datasource nodes are expected to fetch the data from some source,
convert it into the format accepted by the compute engine and forward it
to the next node in the plan.

They are the leaves of every query plan, usually scanning
the tables registered in a :class:`relground.warehouse.TableStore`.
"""

from abc import abstractmethod

import pyarrow as pa

from ..globals import DEFAULT_BATCH_SIZE
from ..utils.batches import empty_batch
from ..warehouse import Table
from .base import QueryPlanNode


class DataSourceNode(QueryPlanNode):
    """Base class for nodes that load data from a source."""

    @abstractmethod
    def poll_schema(self) -> pa.Schema:
        """Poll the schema of the data source without loading its content."""
        ...


class TableScanNode(DataSourceNode):
    """Scan all the rows of a warehouse table.

    The rows are emitted in the order they are stored in the table,
    in batches of at most ``batch_size`` rows.

    >>> from relground.warehouse import Column, ColumnType, Table
    >>> table = Table("Flight", [Column("id", ColumnType.INTEGER)], [(1,), (2,), (3,)])
    >>> [b.num_rows for b in TableScanNode(table, batch_size=2).batches()]
    [2, 1]
    """

    def __init__(self, table: Table, batch_size: int | None = None) -> None:
        """
        :param table: The table to scan.
        :param batch_size: How big to make batches of data,
                           Influences how many batches will be produced
        """
        self.table = table
        self.batch_size = batch_size or DEFAULT_BATCH_SIZE

    @property
    def name(self) -> str:
        """The name of the scanned table."""
        return self.table.name

    def __str__(self) -> str:
        return f"TableScanNode({self.table.name}, batch_size={self.batch_size})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Emit the rows of the table."""
        yield from self.table.batches(self.batch_size)

    def poll_schema(self) -> pa.Schema:
        """The schema of the table."""
        return self.table.schema


class PyArrowTableDataSource(DataSourceNode):
    """Load data from an in-memory pyarrow.Table or pyarrow.RecordBatch.

    Given a :class:`pyarrow.Table` or `pyarrow.RecordBatch` object,
    allow to use its data in a query plan without registering it
    in a warehouse.
    """

    def __init__(self, table: pa.Table | pa.RecordBatch) -> None:
        """
        :param table: The table or recordbatch with the data to read.
        """
        self.table = table
        self.is_recordbatch = isinstance(table, pa.RecordBatch)

    def __str__(self) -> str:
        return f"PyArrowTableDataSource(columns={self.table.column_names}, rows={self.table.num_rows})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Emit the data contained in the Table for consumption by other node."""
        if self.is_recordbatch:
            yield self.table
            return

        batches = self.table.to_batches()
        if not batches:
            yield empty_batch(self.table.schema)
        yield from batches

    def poll_schema(self) -> pa.Schema:
        """Poll the schema of the Table."""
        return self.table.schema
