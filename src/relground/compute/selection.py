"""Query plan nodes that implement projection of columns.

A common request in queries is to select specific columns
and project new columns based on expressions.
An example is the ``SELECT`` clause in SQL queries.

This module implements the basic projection capabilities.
"""

from typing import Sequence

import pyarrow as pa

from ..errors import PlanError
from .base import ColumnRef, QueryPlanNode
from .expressions import Expression, as_array

Projection = str | tuple[str, Expression]


class ProjectNode(QueryPlanNode):
    """Project data by selecting columns and computing expressions.

    The projection expects an ordered list where each entry
    is either the name of a column to select or a ``(name, expression)``
    pair that computes a new column named ``name``.
    The output columns are in the same order as the list.

    >>> import pyarrow as pa
    >>> from relground.compute import col, add, PyArrowTableDataSource
    >>> data = pa.record_batch({"a": [1, 2, 3], "b": [4, 5, 6]})
    >>> next(ProjectNode([("ab_sum", add(col("a"), col("b"))), "a"],
    ...                  PyArrowTableDataSource(data)).batches()).to_pydict()
    {'ab_sum': [5, 7, 9], 'a': [1, 2, 3]}
    """

    def __init__(
        self,
        projections: Sequence[Projection] | None,
        child: QueryPlanNode,
    ) -> None:
        """
        :param projections: The columns to emit, ``None`` means all columns.
        :param child: The node emitting the data to be projected.
        """
        self.child = child
        self.projections: list[tuple[str, Expression]] | None = None
        if projections is not None:
            self.projections = [
                (p, ColumnRef(p)) if isinstance(p, str) else (p[0], p[1])
                for p in projections
            ]
            names = [name for name, _ in self.projections]
            if len(set(names)) != len(names):
                raise PlanError(f"Projection has duplicated columns: {names}")

    def __str__(self) -> str:
        if self.projections is None:
            projections = "*"
        else:
            projections = "{%s}" % ", ".join(
                f"{name!r}: {expr}" for name, expr in self.projections
            )
        return f"ProjectNode(projections={projections}, child={self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Apply the projection to the child node.

        For each recordbatch yielded by the child node,
        apply the expressions in order and build a new
        batch out of the resulting columns.
        """
        for batch in self.child.batches():
            if self.projections is None:
                yield batch
                continue

            arrays = [
                as_array(expr.apply(batch), batch.num_rows)
                for _, expr in self.projections
            ]
            yield pa.RecordBatch.from_arrays(
                arrays, names=[name for name, _ in self.projections]
            )
