"""Helpers to build and combine record batches.

PyArrow has no easy way to concatenate multiple batches
into a single one, and converting an empty table to batches
returns no batch at all, which would lose the schema.

These helpers make sure that we always end up with
exactly one :class:`pyarrow.RecordBatch`:

>>> import pyarrow as pa
>>> b1 = pa.record_batch({"values": [1, 2]})
>>> b2 = pa.record_batch({"values": [3]})
>>> concat_batches([b1, b2], b1.schema).to_pydict()
{'values': [1, 2, 3]}
>>> concat_batches([], b1.schema).num_rows
0
"""

from typing import Iterable

import pyarrow as pa


def empty_batch(schema: pa.Schema) -> pa.RecordBatch:
    """Create a RecordBatch with no rows for the given schema."""
    return pa.RecordBatch.from_arrays(
        [pa.array([], type=field.type) for field in schema], schema=schema
    )


def concat_batches(
    batches: Iterable[pa.RecordBatch], schema: pa.Schema | None = None
) -> pa.RecordBatch:
    """Combine multiple batches in a single one.

    :param batches: The batches to combine, they must share the same schema.
    :param schema: The schema of the batches, required when there might be no batches.
    """
    batches = list(batches)
    if schema is None:
        if not batches:
            raise ValueError("Cannot concatenate zero batches without a schema")
        schema = batches[0].schema
    if len(batches) == 1:
        return batches[0]

    table = pa.Table.from_batches(batches, schema=schema)
    return pa.RecordBatch.from_arrays(
        [column.combine_chunks() for column in table.columns], schema=schema
    )
