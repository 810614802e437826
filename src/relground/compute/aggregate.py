"""Query plan nodes that compute aggregations.

Frequently when analysing data is necessary
to compute statistics like the min, max, average, etc...
of the data stored in datasets.

The aggregate node is in charge of computing
those aggregations and projecting them as new
columns in a query pipeline.

Typically the aggregate node will group the data
by a set of columns and then compute the aggregations

For example, given the following data::

    aircraft, customer_status, seats
    Boeing 747, Gold, 2
    Airbus A330, Silver, 1
    Boeing 747, Gold, 3
    Airbus A330, Gold, 1

We could group by aircraft and compute the sum of the seats
to get::

    aircraft, total_seats
    Boeing 747, 5
    Airbus A330, 2

Null values are ignored by all aggregations except
``COUNT(*)``, which counts rows whatever their content is.
When a group has no values to aggregate, the result is null,
except for counts which are zero.
"""

import abc
import logging
from typing import Any, Mapping, Sequence

import pyarrow as pa
import pyarrow.compute as pc

from ..errors import ArithmeticOverflowError, NotFoundError, OperandTypeError, PlanError
from .base import QueryPlanNode

__all__ = (
    "AggregateNode",
    "CountAggregation",
    "SumAggregation",
    "MinAggregation",
    "MaxAggregation",
    "MeanAggregation",
)

log = logging.getLogger(__name__)

GroupKey = tuple[Any, ...]

INT64_RANGE = range(-(2**63), 2**63)


class NullGroupKey:
    """Key of a group started by a row whose grouping key contains a null.

    As null is never equal to null, each of those rows is a group
    on its own. Instances only compare equal to themselves.
    """

    def __init__(self, values: GroupKey) -> None:
        self.values = values

    def __repr__(self) -> str:
        return f"NullGroupKey({self.values!r})"


GroupId = GroupKey | NullGroupKey


class AggregateNode(QueryPlanNode):
    """Group data and compute aggregations.

    >>> import pyarrow as pa
    >>> from relground.compute import SumAggregation, PyArrowTableDataSource
    >>> data = pa.record_batch({
    ...    'aircraft': pa.array(['Boeing 747', 'Airbus A330', 'Boeing 747', 'Airbus A330']),
    ...    'seats': pa.array([2, 1, 3, 1])
    ... })
    >>> aggregate = AggregateNode(["aircraft"], {"total_seats": SumAggregation("seats")}, PyArrowTableDataSource(data))
    >>> next(aggregate.batches()).to_pydict()
    {'aircraft': ['Boeing 747', 'Airbus A330'], 'total_seats': [5, 2]}

    When no keys are provided, all rows belong to a single group.
    That group exists even when there are no rows at all,
    like for ``SELECT COUNT(*) FROM table``.
    """

    def __init__(
        self,
        keys: Sequence[str],
        aggregations: Mapping[str, "Aggregation"],
        child: QueryPlanNode,
    ) -> None:
        """
        :param keys: The columns to group by.
        :param aggregations: The aggregations to compute in the form of {"new_col_name": Aggregation}.
        :param child: The child node that will provide the data to aggregate.
        """
        names = list(keys) + list(aggregations.keys())
        if len(set(names)) != len(names):
            raise PlanError(f"Aggregation output has duplicated columns: {names}")

        self.keys = list(keys)
        self.aggregations = dict(aggregations)
        self.child = child

    def __str__(self) -> str:
        return f"AggregateNode(keys={self.keys}, aggregations={self.aggregations}, {self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Group the rows and compute the aggregations.

        Rows are grouped by hashing their key, each time
        a new key is found a new group is started and the
        aggregations for that group begin accumulating
        the partial results for each batch of data:

            chunks_data = {key: {aggr_name: [chunk1_result, chunk2_result, ...]}}

        Once the child is exhausted, the partial results
        are reduced to the final value of each group.

        Groups are emitted in the order their key was first seen.
        A null is never equal to another null, so each row
        with a null in its key forms a group of its own.
        """
        schema = None
        chunks_data: dict[GroupId, dict[str, list[Any]]] = {}
        for batch in self.child.batches():
            schema = batch.schema
            self._check_columns(schema)
            for groupid, indices in self._group_rows(batch).items():
                group_batch = batch.take(pa.array(indices, type=pa.int64()))
                # Accumulators are created lazily when a key is first seen.
                accumulators = chunks_data.setdefault(
                    groupid, {name: [] for name in self.aggregations}
                )
                for name, aggregation in self.aggregations.items():
                    accumulators[name].append(aggregation.compute_chunk(group_batch))

        if schema is None:
            raise PlanError(f"{self.child} emitted no data to aggregate")

        if not self.keys and not chunks_data:
            # The implicit group of all rows exists even when there are no rows.
            chunks_data[()] = {name: [] for name in self.aggregations}

        log.debug("Aggregated %d groups for keys %s", len(chunks_data), self.keys)
        yield self.reduce_aggregations(schema, chunks_data)

    def _group_rows(self, batch: pa.RecordBatch) -> dict[GroupId, list[int]]:
        """Find the indices of the rows that belong to each group."""
        key_columns = [batch.column(k).to_pylist() for k in self.keys]
        if not key_columns:
            return {(): list(range(batch.num_rows))} if batch.num_rows else {}

        groups: dict[GroupId, list[int]] = {}
        for row_index, keyvalue in enumerate(zip(*key_columns)):
            if None in keyvalue:
                groups[NullGroupKey(keyvalue)] = [row_index]
                continue
            groups.setdefault(keyvalue, []).append(row_index)
        return groups

    def _check_columns(self, schema: pa.Schema) -> None:
        for key in self.keys:
            if key not in schema.names:
                raise NotFoundError(f"Grouping column {key} does not exist")
        for aggregation in self.aggregations.values():
            if aggregation.column is None:
                continue
            if aggregation.column not in schema.names:
                raise NotFoundError(f"Aggregated column {aggregation.column} does not exist")
            aggregation.check_input_type(schema.field(aggregation.column).type)

    def reduce_aggregations(
        self, schema: pa.Schema, chunks_data: dict[GroupId, dict[str, list[Any]]]
    ) -> pa.RecordBatch:
        """Reduce the partial aggregation results to the final aggregation results.

        The aggregations are computed for each chunk separately,
        this method will reduce the partial aggregation
        results to the final aggregation results.

        For example if we had 3 chunks and the chunks_data is::

            {("Boeing 747",): {"total_seats": [10, 20, 30]}}

        The result will be::

            {"aircraft": ["Boeing 747"], "total_seats": [60]}
        """
        result_batch_data: dict[str, list[Any]] = {
            **{k: [] for k in self.keys},
            **{k: [] for k in self.aggregations.keys()},
        }
        for groupid, aggregated_values in chunks_data.items():
            keyvalue = groupid.values if isinstance(groupid, NullGroupKey) else groupid
            for i, key in enumerate(self.keys):
                result_batch_data[key].append(keyvalue[i])
            for aggrname, aggregation in self.aggregations.items():
                result_batch_data[aggrname].append(
                    aggregation.reduce(aggregated_values[aggrname])
                )

        fields = [schema.field(k).with_nullable(True) for k in self.keys]
        for aggrname, aggregation in self.aggregations.items():
            input_type = None
            if aggregation.column is not None:
                input_type = schema.field(aggregation.column).type
            fields.append(pa.field(aggrname, aggregation.result_type(input_type)))

        output_schema = pa.schema(fields)
        return pa.RecordBatch.from_arrays(
            [
                pa.array(result_batch_data[field.name], type=field.type)
                for field in output_schema
            ],
            schema=output_schema,
        )


class Aggregation(abc.ABC):
    """Base class for aggregations.

    Every aggregation is expected to implement
    a method to compute any needed intermediate results
    on a single chunk of data and then provide a reduce method
    to combine the intermediate results into a final result.

    The list of intermediate results of a group is the
    accumulator of the aggregation for that group.
    """

    numeric_only = False

    def __init__(self, column: str) -> None:
        self.column = column

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.column})"

    __repr__ = __str__

    @abc.abstractmethod
    def compute_chunk(self, batch: pa.RecordBatch) -> Any: ...

    @abc.abstractmethod
    def reduce(self, chunks: list[Any]) -> Any: ...

    def result_type(self, input_type: pa.DataType | None) -> pa.DataType:
        """The type of the aggregated values given the type of the input column."""
        return input_type

    def check_input_type(self, input_type: pa.DataType) -> None:
        """Verify that the aggregation can be computed on the input column."""
        if self.numeric_only and not (
            pa.types.is_integer(input_type) or pa.types.is_floating(input_type)
        ):
            raise OperandTypeError(f"{self} requires a numeric column, got {input_type}")


class SimpleAggregation(Aggregation):
    """Provide a base implementation for simple aggregations like min,max,sum.

    Simple aggregations are those where the function applied to compute
    intermediate results for a single chunk of data is the same as the function
    applied to combine the intermediate results into the final.

    For example ``sum([1, 2, 3])`` is the same as ``sum([sum([1, 2]), 3])``.

    Chunks with no values produce a null intermediate result,
    the final result is null only if all the chunks were null.
    """

    @abc.abstractmethod
    def _aggregate(self, data: pa.Array) -> pa.Scalar: ...

    def compute_chunk(self, batch: pa.RecordBatch) -> Any:
        return self._aggregate(batch.column(self.column)).as_py()

    def reduce(self, chunks: list[Any]) -> Any:
        values = [value for value in chunks if value is not None]
        if not values:
            return None
        return self._aggregate(pa.array(values)).as_py()


class SumAggregation(SimpleAggregation):
    """Compute the sum of an aggregated column.

    Integers are summed as Python integers, which never overflow,
    and the total is then verified to fit the 64 bit column.
    """

    numeric_only = True

    def _aggregate(self, data: pa.Array) -> pa.Scalar:
        return pc.sum(data)

    def compute_chunk(self, batch: pa.RecordBatch) -> Any:
        data = batch.column(self.column)
        if not pa.types.is_integer(data.type):
            return super().compute_chunk(batch)
        values = [value for value in data.to_pylist() if value is not None]
        return sum(values) if values else None

    def reduce(self, chunks: list[Any]) -> Any:
        values = [value for value in chunks if value is not None]
        if not values:
            return None
        total = sum(values)
        if isinstance(total, int) and total not in INT64_RANGE:
            raise ArithmeticOverflowError(f"Integer overflow in {self}")
        return total


class MinAggregation(SimpleAggregation):
    """Compute the min of an aggregated column."""

    def _aggregate(self, data: pa.Array) -> pa.Scalar:
        return pc.min(data)


class MaxAggregation(SimpleAggregation):
    """Compute the max of an aggregated column."""

    def _aggregate(self, data: pa.Array) -> pa.Scalar:
        return pc.max(data)


class CountAggregation(Aggregation):
    """Compute the count of an aggregated column.

    When the column is ``"*"`` (or ``None``), all rows are counted,
    otherwise only the rows where the column is not null.

    This is based on computing the counts for each intermediate batch
    and then sum them to compute the final result.
    """

    def __init__(self, column: str | None = "*") -> None:
        super().__init__(None if column == "*" else column)

    def __str__(self) -> str:
        return f"CountAggregation({self.column or '*'})"

    __repr__ = __str__

    def compute_chunk(self, batch: pa.RecordBatch) -> int:
        """Compute the count of the column in a single batch."""
        if self.column is None:
            return batch.num_rows
        return pc.count(batch.column(self.column), mode="only_valid").as_py()

    def reduce(self, chunks: list[int]) -> int:
        """Sum the counts of all intermediate results to the final count."""
        return sum(chunks)

    def result_type(self, input_type: pa.DataType | None) -> pa.DataType:
        return pa.int64()


class MeanAggregation(Aggregation):
    """Compute the mean (``AVG``) of an aggregated column.

    This is based by computing count and sum of the column
    for each intermediate batch and then dividing
    the sum of all intermediate results by the count
    of all intermediate results.

    The mean is always a floating point number, even
    for integer columns, and is null when there are no
    values to average.
    """

    numeric_only = True

    def compute_chunk(self, batch: pa.RecordBatch) -> tuple[int, Any]:
        """Compute the count and sum of the column in a single batch."""
        values = [v for v in batch.column(self.column).to_pylist() if v is not None]
        return (len(values), sum(values))

    def reduce(self, chunks: list[tuple[int, Any]]) -> float | None:
        """Compute the mean of the column from the intermediate sums and counts."""
        count = sum(chunk[0] for chunk in chunks)
        if count == 0:
            return None
        total = sum(chunk[1] for chunk in chunks)
        return total / count

    def result_type(self, input_type: pa.DataType | None) -> pa.DataType:
        return pa.float64()
