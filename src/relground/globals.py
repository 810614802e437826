"""Constants globally visible to the entire engine."""

from typing import Final

DEFAULT_BATCH_SIZE: Final[int] = 1024
"""Maximum number of rows in each batch emitted by a table scan.

Can be overridden through :class:`relground.query.QueryExecutor`.
"""

QUALIFIER_SEPARATOR: Final[str] = "."
"""Separator between table name and column name when a join
has to qualify a column because its name is already taken.
"""
