"""The Warehouse, where the tables queried by the engine live.

The warehouse provides a catalog of named, in-memory tables.
Each :class:`Table` has an ordered list of typed columns
and stores its rows in a :class:`pyarrow.Table`, which is
immutable, so tables can be shared by concurrent queries
without any locking.

>>> from relground.warehouse import Column, ColumnType, TableStore
>>> store = TableStore()
>>> flights = store.create_table(
...     "Flight",
...     [Column("id", ColumnType.INTEGER, nullable=False),
...      Column("aircraft", ColumnType.TEXT)],
...     [(1, "Boeing 747"), (2, None)],
... )
>>> store.get_table("Flight").to_pylist()
[{'id': 1, 'aircraft': 'Boeing 747'}, {'id': 2, 'aircraft': None}]

Loading data from files or databases is not a concern of
the warehouse, callers build the tables and register them.
"""

from .store import TableStore
from .tables import Column, ColumnType, Table

__all__ = ("Column", "ColumnType", "Table", "TableStore")
