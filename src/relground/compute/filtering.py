"""Query plan nodes that implement filtering of rows.

A common request in queries is to filter the data to
pick only the rows that respect a specific filter.
An example is the ``WHERE`` and ``HAVING`` conditions in SQL queries.

This module implements the basic filtering capabilities.
"""

import pyarrow as pa

from ..errors import OperandTypeError
from .base import QueryPlanNode
from .expressions import Expression, as_array


class FilterNode(QueryPlanNode):
    """Filter data based on a predicate expression.

    The filter expects an expression that when applied
    to the batch of data being filtered returns ``true``,
    ``false`` or ``null`` (unknown) for each row in the data to mark which
    rows have to be preserved and which rows have to be discarded.

    Only the rows for which the predicate is ``true`` are preserved,
    rows for which the predicate is unknown are discarded like
    the ones for which it is ``false``.

    >>> import pyarrow as pa
    >>> from relground.compute import col, gt, PyArrowTableDataSource
    >>> data = pa.record_batch({"values": [1, 2, None, 4, 5]})
    >>> predicate = gt(col("values"), 3)
    >>> # predicate returns true for values greater than 3
    >>> predicate.apply(data).to_pylist()
    [False, False, None, True, True]
    >>> next(FilterNode(predicate, PyArrowTableDataSource(data)).batches()).to_pydict()
    {'values': [4, 5]}
    """

    def __init__(self, expression: Expression, child: QueryPlanNode) -> None:
        """
        :param expression: The predicate expression to filter with.
        :param child: The node emitting the data to be filtered.
        """
        self.expression = expression
        self.child = child

    def __str__(self) -> str:
        return f"FilterNode(filter={self.expression}, child={self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Apply the filtering to the child node.

        For each recordbatch yielded by the child node,
        apply the expression and get back a mask
        (an array of only true/false/null values).

        Based on the mask filter the rows of the batch
        and return only those matching the filter.
        """
        for batch in self.child.batches():
            mask = as_array(self.expression.apply(batch), batch.num_rows)
            if pa.types.is_null(mask.type):
                # A bare NULL predicate is unknown for every row.
                mask = mask.cast(pa.bool_())
            if not pa.types.is_boolean(mask.type):
                raise OperandTypeError(
                    f"Filter {self.expression} must be a boolean, got {mask.type}"
                )
            yield batch.filter(mask, null_selection_behavior="drop")
