"""Query plan nodes that perform sorting of data.

When computing ranks or looking for most significant
values, it's often necessary to sort the data based
on one or more columns, like the ``ORDER BY`` clause of SQL does.

This module implements the sorting capabilities.
"""

from typing import Sequence

import pyarrow as pa
import pyarrow.compute as pc

from ..errors import NotFoundError, PlanError
from ..utils.batches import concat_batches
from .base import QueryPlanNode


class SortNode(QueryPlanNode):
    """Sort data in-memory based on one or more columns.

    The node expects a list of columns and a list of
    sort directions. The data will be sorted based on
    the columns in the order they are provided.

    The sort directions are used to specify if the
    sorting should be ascending or descending.

    The sort is stable: rows that are equal on all the keys
    keep the order in which they were received.
    Nulls come before all other values when sorting in
    ascending order and after them in descending order.

    >>> import pyarrow as pa
    >>> from relground.compute import PyArrowTableDataSource
    >>> data = pa.record_batch({"values": [1, None, 3, 4, 2]})
    >>> next(SortNode(["values"], [False], PyArrowTableDataSource(data)).batches()).to_pydict()
    {'values': [None, 1, 2, 3, 4]}
    >>> # Sort the data in descending order
    >>> next(SortNode(["values"], [True], PyArrowTableDataSource(data)).batches()).to_pydict()
    {'values': [4, 3, 2, 1, None]}
    """

    def __init__(
        self, keys: Sequence[str], descending: Sequence[bool], child: QueryPlanNode
    ) -> None:
        """
        :param keys: The columns to sort by in the order they should be sorted.
        :param descending: If each columns should be sorted in a descending order.
        :param child: The node emitting the data to be sorted.
        """
        if not keys:
            raise PlanError("At least one sort key is required")
        if len(keys) != len(descending):
            raise PlanError("Keys and descending must have the same length")

        self.sorting = list(
            zip(keys, ("descending" if desc else "ascending" for desc in descending))
        )
        self.child = child

    def __str__(self) -> str:
        return f"SortNode(sorting={self.sorting}, {self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Sort the data of the child node.

        Batches provided by child node are accumulated
        until they are all loaded in memory, then they
        are merged and sorted as an unique batch.
        """
        batches = list(self.child.batches())
        if not batches:
            return
        batch = concat_batches(batches)
        yield batch.take(self.sort_indices(batch))

    def sort_indices(self, batch: pa.RecordBatch) -> pa.Array:
        """Compute the order in which the rows of the batch have to be emitted.

        PyArrow can only place nulls at the start or at the end for all the keys,
        while we want them first for ascending keys and last for descending ones.
        So before each key we sort by a flag that tells if the key is null,
        which moves the nulls where we want them::

            values:  [1, null, 3]      ascending
            flags:   [0, 1,    0]      descending -> nulls first

        The flags and keys are placed in a new table with positional names,
        so that sorting doesn't depend on the names of the original columns.
        """
        sort_data = {}
        sort_keys = []
        for idx, (key, order) in enumerate(self.sorting):
            if key not in batch.schema.names:
                raise NotFoundError(f"Sort column {key} does not exist")
            values = batch.column(key)
            is_null = pc.cast(pc.is_null(values), pa.int8())
            sort_data[f"nulls_{idx}"] = is_null
            sort_data[f"key_{idx}"] = values
            sort_keys.append(
                (f"nulls_{idx}", "ascending" if order == "descending" else "descending")
            )
            sort_keys.append((f"key_{idx}", order))
        return pc.sort_indices(pa.table(sort_data), sort_keys=sort_keys)
