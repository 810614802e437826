"""Query plan nodes that implement join operations.

The join operations are implemented with a hash join algorithm
that builds a hash table from the right side of the join
and then probes it with each row of the left side.

Inner Join
==========

Provided by :class:`InnerJoinNode`, the class provides a complete description
of the steps involved in performing an inner join operation.

>>> import pyarrow as pa
>>> from relground.compute import InnerJoinNode
>>> from relground.compute import PyArrowTableDataSource
>>> left = PyArrowTableDataSource(pa.record_batch({"id": [1, 2, 3], "name": ["Alice", "Bob", "Charlie"]}))
>>> right = PyArrowTableDataSource(pa.record_batch({"user_id": [3, 2], "age": [25, 30]}))
>>> join_node = InnerJoinNode(["id"], ["user_id"], left, right)
>>> next(join_node.batches()).to_pydict()
{'id': [2, 3], 'name': ['Bob', 'Charlie'], 'user_id': [2, 3], 'age': [30, 25]}
"""

import logging
from typing import Any, Sequence

import pyarrow as pa

from ..errors import OperandTypeError, PlanError
from ..globals import QUALIFIER_SEPARATOR
from ..utils.batches import concat_batches
from .base import QueryPlanNode

log = logging.getLogger(__name__)


class InnerJoinNode(QueryPlanNode):
    """Join two data sources using an inner equi-join.

    Rows of the left and right sources are combined when
    all the left key columns are equal to the right key columns.

    Supposing we have two tables::

        left:
        +----+--------+
        | id | name   |
        +----+--------+
        | 1  | Alice  |
        | 2  | Bob    |
        | 3  | Charlie|
        +----+--------+


        right:
        +---------+-----+
        | user_id | age |
        +---------+-----+
        | 3       | 25  |
        | 2       | 30  |
        | 3       | 31  |
        +---------+-----+

    We would perform the following steps:

    1. Load all the rows of the right side, as we have
       to know all of them to be able to tell which rows
       match a left row.

    2. Build a hash table that for each value of the key
       provides the indices of the right rows having that key::

        {(3,): [0, 2], (2,): [1]}

       Keys that contain a null are never added,
       as in SQL ``NULL = NULL`` is not true and thus
       rows with a null key can never match anything.

    3. For each row on the left side, look up its key in the
       hash table and take note of the pair of indices for each
       match. Left rows with no match are just skipped::

        left_indices = [1, 2, 2]
        right_indices = [1, 0, 2]

    4. Take the rows at those indices from both sides
       and combine their columns in a new batch::

        +----+--------+---------+-----+
        | id | name   | user_id | age |
        +----+--------+---------+-----+
        | 2  | Bob    | 2       | 30  |
        | 3  | Charlie| 3       | 25  |
        | 3  | Charlie| 3       | 31  |
        +----+--------+---------+-----+

    Rows are emitted in the order of the left side, and for
    each left row in the order of the matching right rows.

    When a column of the right side has the same name of a column
    of the left side, it gets qualified by the name of the right side,
    so joining on ``id`` a table with a ``Booking`` table will lead
    to ``id`` and ``Booking.id`` columns.
    """

    def __init__(
        self,
        left_keys: Sequence[str],
        right_keys: Sequence[str],
        left_child: QueryPlanNode,
        right_child: QueryPlanNode,
        right_name: str = "right",
    ) -> None:
        """
        :param left_keys: The keys to join on in the left table.
        :param right_keys: The keys to join on in the right table,
                           each one is compared to the left key at the same position.
        :param left_child: The left source of data to join.
        :param right_child: The right source of data to join.
        :param right_name: The name used to qualify right columns whose name is already taken.
        """
        if not left_keys or len(left_keys) != len(right_keys):
            raise PlanError(
                f"Join requires the same number of left and right keys, "
                f"got {list(left_keys)} and {list(right_keys)}"
            )
        self.left_keys = list(left_keys)
        self.right_keys = list(right_keys)
        self.left_child = left_child
        self.right_child = right_child
        self.right_name = right_name

    def __str__(self) -> str:
        return (
            f"InnerJoinNode(left_keys={self.left_keys}, right_keys={self.right_keys}, "
            f"left={self.left_child}, right={self.right_child})"
        )

    @classmethod
    def output_names(
        cls, left_names: Sequence[str], right_names: Sequence[str], right_name: str
    ) -> list[str]:
        """The column names resulting from joining left and right columns.

        >>> InnerJoinNode.output_names(["id", "aircraft"], ["id", "flight_id"], "Booking")
        ['id', 'aircraft', 'Booking.id', 'flight_id']
        """
        names = list(left_names)
        for name in right_names:
            if name in names:
                name = f"{right_name}{QUALIFIER_SEPARATOR}{name}"
                if name in names:
                    raise PlanError(f"Joined column {name} is ambiguous")
            names.append(name)
        return names

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Perform the inner join operation.

        Accumulates all rows of the right child to
        build the hash table, left rows are
        instead processed one batch at the time.
        """
        right_batches = list(self.right_child.batches())
        right_rb = concat_batches(right_batches)
        hashtable = self._build(right_rb)
        log.debug(
            "Join built hash table of %d keys from %d rows",
            len(hashtable),
            right_rb.num_rows,
        )

        output_names = None
        for left_rb in self.left_child.batches():
            if output_names is None:
                self._check_key_types(left_rb.schema, right_rb.schema)
                output_names = self.output_names(
                    left_rb.schema.names, right_rb.schema.names, self.right_name
                )

            left_indices, right_indices = self._probe(left_rb, hashtable)
            left_taken = left_rb.take(pa.array(left_indices, type=pa.int64()))
            right_taken = right_rb.take(pa.array(right_indices, type=pa.int64()))
            yield pa.RecordBatch.from_arrays(
                left_taken.columns + right_taken.columns, names=output_names
            )

    def _build(self, right_rb: pa.RecordBatch) -> dict[tuple[Any, ...], list[int]]:
        """Build the hash table mapping each key to the right rows that have it."""
        hashtable: dict[tuple[Any, ...], list[int]] = {}
        key_columns = [self._key_values(right_rb, k) for k in self.right_keys]
        for row_index, key in enumerate(zip(*key_columns)):
            if None in key:
                continue
            hashtable.setdefault(key, []).append(row_index)
        return hashtable

    def _probe(
        self, left_rb: pa.RecordBatch, hashtable: dict[tuple[Any, ...], list[int]]
    ) -> tuple[list[int], list[int]]:
        """Find the pairs of left and right rows that match."""
        left_indices: list[int] = []
        right_indices: list[int] = []
        key_columns = [self._key_values(left_rb, k) for k in self.left_keys]
        for row_index, key in enumerate(zip(*key_columns)):
            if None in key:
                continue
            for match in hashtable.get(key, ()):
                left_indices.append(row_index)
                right_indices.append(match)
        return left_indices, right_indices

    def _key_values(self, batch: pa.RecordBatch, key: str) -> list[Any]:
        if key not in batch.schema.names:
            raise PlanError(f"Join key {key} does not exist")
        return batch.column(key).to_pylist()

    def _check_key_types(self, left_schema: pa.Schema, right_schema: pa.Schema) -> None:
        """Keys can only be compared when they are of compatible types."""
        for left_key, right_key in zip(self.left_keys, self.right_keys):
            if left_key not in left_schema.names:
                raise PlanError(f"Join key {left_key} does not exist")
            if right_key not in right_schema.names:
                raise PlanError(f"Join key {right_key} does not exist")
            left_type = left_schema.field(left_key).type
            right_type = right_schema.field(right_key).type
            if left_type == right_type:
                continue
            if _is_numeric(left_type) and _is_numeric(right_type):
                continue
            if _is_text(left_type) and _is_text(right_type):
                continue
            raise OperandTypeError(
                f"Cannot join {left_key} ({left_type}) with {right_key} ({right_type})"
            )


def _is_numeric(datatype: pa.DataType) -> bool:
    return pa.types.is_integer(datatype) or pa.types.is_floating(datatype)


def _is_text(datatype: pa.DataType) -> bool:
    return pa.types.is_string(datatype) or pa.types.is_large_string(datatype)
