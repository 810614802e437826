"""The catalog of tables available to queries.

Tables are registered in a :class:`TableStore` and looked up
by name when a query is planned. Tables are immutable, so the only
state that can change is the catalog itself, when tables are
added or dropped.

Changes to the catalog happen under a single writer lock
and never modify the mapping that readers might be looking at:
a new mapping is created and swapped in place (copy-on-write).
A query takes a :meth:`TableStore.snapshot` when it starts and
resolves all its tables from it, so it will never see
a catalog that is half way through a change.
"""

import logging
import threading
import types
from typing import Any, Mapping, Sequence

from ..errors import InvalidArgumentError, NotFoundError
from .tables import Column, Table

log = logging.getLogger(__name__)


class TableStore:
    """Holds named in-memory tables.

    >>> from relground.warehouse import Column, ColumnType
    >>> store = TableStore()
    >>> _ = store.create_table("Article", [Column("id", ColumnType.INTEGER)], [(1,), (2,)])
    >>> "Article" in store
    True
    >>> store.get_table("Article").num_rows
    2
    >>> store.get_table("Missing")
    Traceback (most recent call last):
        ...
    relground.errors.NotFoundError: Table Missing does not exist
    """

    def __init__(self, tables: Sequence[Table] = ()) -> None:
        """
        :param tables: Tables to register in the store at creation.
        """
        self._write_lock = threading.Lock()
        self._tables: Mapping[str, Table] = types.MappingProxyType({})
        for table in tables:
            self.add_table(table)

    def __str__(self) -> str:
        return f"TableStore(tables={self.table_names()})"

    def __contains__(self, name: str) -> bool:
        return name in self._tables

    def __len__(self) -> int:
        return len(self._tables)

    def table_names(self) -> list[str]:
        """Names of the registered tables, in registration order."""
        return list(self._tables.keys())

    def get_table(self, name: str) -> Table:
        """Get a table by name.

        :raises NotFoundError: if no table with that name exists.
        """
        try:
            return self._tables[name]
        except KeyError:
            raise NotFoundError(f"Table {name} does not exist") from None

    def snapshot(self) -> Mapping[str, Table]:
        """A read-only view of the catalog as it is now.

        Later changes to the store are not visible in the snapshot.
        """
        return self._tables

    def add_table(self, table: Table, replace: bool = False) -> Table:
        """Register a table in the store.

        :param table: The table to register, its name is the one used for lookups.
        :param replace: Replace a table with the same name instead of failing.
        """
        with self._write_lock:
            if table.name in self._tables and not replace:
                raise InvalidArgumentError(f"Table {table.name} already exists")
            tables = dict(self._tables)
            tables[table.name] = table
            self._tables = types.MappingProxyType(tables)
        log.info("Registered %s", table)
        return table

    def create_table(
        self,
        name: str,
        columns: Sequence[Column],
        rows: Sequence[Sequence[Any] | Mapping[str, Any]] = (),
        replace: bool = False,
    ) -> Table:
        """Create a new table and register it in the store.

        See :class:`relground.warehouse.Table` for the accepted rows.
        """
        return self.add_table(Table(name, columns, rows), replace=replace)

    def drop_table(self, name: str) -> None:
        """Remove a table from the store.

        Queries that already started keep seeing the table.
        """
        with self._write_lock:
            if name not in self._tables:
                raise NotFoundError(f"Table {name} does not exist")
            tables = dict(self._tables)
            del tables[name]
            self._tables = types.MappingProxyType(tables)
        log.info("Dropped table %s", name)
