"""Support limiting or skipping data in a query plan.

Implements nodes whose purpose is to slice the data
emitted by a query plan. Discarding the rows that
are not part of the selected slice of data.
"""

from ..errors import InvalidArgumentError
from ..utils.batches import empty_batch
from .base import QueryPlanNode


class PaginateNode(QueryPlanNode):
    """Emit only one page of the received data.

    Given a starting index and a length, only emit
    length rows after the starting index is reached.
    This is how ``LIMIT`` and ``OFFSET`` are implemented.

    For example if ``offset=1`` and ``length=1``
    only the second row will be emitted::

        0: skip because < offset
        1: emit
        2: skip because > length=1 and one row was already emitted.

    >>> import pyarrow as pa
    >>> from relground.compute import PyArrowTableDataSource
    >>> data = pa.record_batch({"values": [1, 2, 3, 4, 5]})
    >>> next(PaginateNode(1, 2, PyArrowTableDataSource(data)).batches()).to_pydict()
    {'values': [2, 3]}
    """

    def __init__(self, offset: int, length: int | None, child: QueryPlanNode) -> None:
        """
        :param offset: From which row to take data, first row is 0.
        :param length: How many rows to take after offset was reached,
                       ``None`` means all the remaining rows.
        :param child: the node from which to consume the rows.
        """
        if offset < 0:
            raise InvalidArgumentError(f"Offset must not be negative, got {offset}")
        if length is not None and length < 0:
            raise InvalidArgumentError(f"Limit must not be negative, got {length}")

        self.offset = offset
        self.length = length
        self.end = None if length is None else offset + length
        self.child = child

    def __str__(self) -> str:
        end = "" if self.end is None else self.end
        return f"PaginateNode({self.offset}:{end}, {self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Apply the pagination to the child node and emit the rows.

        Consume rows from the child node skipping those until we
        reach offset. Once offset is reached start yielding rows
        until length is reached.

        Subsequent rows are never consumed, so the child might
        not get exhausted. This requires special attention in
        resources management, because any resource open by the
        child might remain unclosed if the child waits for all
        the data to be consumed before closing it.

        When no row falls within the page, an empty batch is emitted
        so that the schema of the data is preserved.
        """
        consumed_rows = 0  # keep track of how many rows we have already seen
        schema = None
        emitted = False

        batches_generator = self.child.batches()
        for batch in batches_generator:
            schema = batch.schema
            batch_size = batch.num_rows

            if self.end is not None and consumed_rows >= self.end:
                break

            # Keep discarding batches until we get to the batch that
            # has the rows _after_ offset.
            if consumed_rows + batch_size <= self.offset:
                consumed_rows += batch_size
                continue

            # As the rows we care about might be further on
            # inside the batch, check if we have to start
            # picking rows at the beginning or if we have to discard
            # some rows of the batch.
            start_in_batch = max(0, self.offset - consumed_rows)

            # Now that we know where to start in the batch,
            # we need to compute where to end.
            # The batch might actually contain fewer rows than
            # length so we might have to keep picking rows
            # from subsequent batches.
            rows_in_this_batch = batch_size - start_in_batch
            if self.end is not None:
                rows_in_this_batch = min(
                    rows_in_this_batch, self.end - consumed_rows - start_in_batch
                )
            if rows_in_this_batch > 0:
                emitted = True
                yield batch.slice(start_in_batch, rows_in_this_batch)
            consumed_rows += batch_size
            if self.end is not None and consumed_rows >= self.end:
                break
        batches_generator.close()

        if not emitted and schema is not None:
            yield empty_batch(schema)
