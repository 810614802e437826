"""Tables and the columns they are made of."""

import enum
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Sequence

import pyarrow as pa

from ..errors import InvalidArgumentError, NotFoundError, OperandTypeError
from ..globals import DEFAULT_BATCH_SIZE
from ..utils.batches import empty_batch


class ColumnType(enum.Enum):
    """The types of values that a column can hold."""

    INTEGER = "integer"
    TEXT = "text"

    @property
    def arrow_type(self) -> pa.DataType:
        """The Arrow type used to store the values of the column."""
        if self is ColumnType.INTEGER:
            return pa.int64()
        return pa.string()

    @classmethod
    def from_arrow(cls, arrow_type: pa.DataType) -> "ColumnType":
        """Detect the column type from an Arrow type.

        Any integer type is accepted as an integer column
        and any string type as a text column.
        """
        if pa.types.is_integer(arrow_type):
            return cls.INTEGER
        elif pa.types.is_string(arrow_type) or pa.types.is_large_string(arrow_type):
            return cls.TEXT
        raise OperandTypeError(f"Unsupported column type: {arrow_type}")

    def accepts(self, value: Any) -> bool:
        """If a non-null python value can be stored in this column type."""
        if self is ColumnType.INTEGER:
            return isinstance(value, int) and not isinstance(value, bool)
        return isinstance(value, str)


@dataclass(frozen=True)
class Column:
    """A column of a table.

    :param name: The name of the column.
    :param type: What kind of values the column contains.
    :param nullable: If the column can contain nulls.
    """

    name: str
    type: ColumnType
    nullable: bool = True

    @property
    def field(self) -> pa.Field:
        return pa.field(self.name, self.type.arrow_type, nullable=self.nullable)


class Table:
    """A named relation made of typed columns and rows.

    Rows can be provided as sequences, with one value for
    each column in the same order as the columns,
    or as mappings from column names to values.

    Every row must have exactly one value for each column,
    and the value must match the type of the column or be ``None``
    when the column is nullable.

    >>> t = Table("Author", [Column("id", ColumnType.INTEGER), Column("name", ColumnType.TEXT)],
    ...           [(1, "Ada"), {"id": 2, "name": "Grace"}])
    >>> t.column_names
    ['id', 'name']
    >>> t.num_rows
    2
    """

    def __init__(
        self,
        name: str,
        columns: Sequence[Column],
        rows: Sequence[Sequence[Any] | Mapping[str, Any]] = (),
    ) -> None:
        """
        :param name: The name of the table.
        :param columns: The columns of the table in order.
        :param rows: The rows of the table.
        """
        self.name = name
        self.columns = tuple(columns)
        self._check_columns()

        values: list[list[Any]] = [[] for _ in self.columns]
        for rowidx, row in enumerate(rows):
            for colidx, value in enumerate(self._row_values(rowidx, row)):
                self._check_value(rowidx, self.columns[colidx], value)
                values[colidx].append(value)

        self.data = pa.Table.from_arrays(
            [
                pa.array(colvalues, type=column.type.arrow_type)
                for colvalues, column in zip(values, self.columns)
            ],
            schema=self.schema,
        )

    @classmethod
    def from_arrow(
        cls, name: str, data: pa.Table | pa.RecordBatch
    ) -> "Table":
        """Create a table from data that is already in Arrow format.

        Columns are nullable unless the Arrow field is flagged
        as non nullable. The rows are validated like for any other table.
        """
        if isinstance(data, pa.RecordBatch):
            data = pa.Table.from_batches([data])

        columns = [
            Column(field.name, ColumnType.from_arrow(field.type), field.nullable)
            for field in data.schema
        ]
        return cls(name, columns, data.to_pylist())

    def __str__(self) -> str:
        return f"Table({self.name}, columns={self.column_names}, rows={self.num_rows})"

    __repr__ = __str__

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]

    @property
    def schema(self) -> pa.Schema:
        """The Arrow schema of the table data."""
        return pa.schema([column.field for column in self.columns])

    @property
    def num_rows(self) -> int:
        return self.data.num_rows

    def column(self, name: str) -> Column:
        """Get the definition of a column by name."""
        for column in self.columns:
            if column.name == name:
                return column
        raise NotFoundError(f"Table {self.name} has no column {name}")

    def batches(self, batch_size: int | None = None) -> Iterator[pa.RecordBatch]:
        """Emit the rows of the table in batches.

        At least one batch is always emitted, even when the table
        is empty, so that consumers always know the schema of the data.

        :param batch_size: Maximum number of rows in each batch.
        """
        batches = self.data.to_batches(max_chunksize=batch_size or DEFAULT_BATCH_SIZE)
        if not batches:
            yield empty_batch(self.schema)
            return
        yield from batches

    def to_pylist(self) -> list[dict[str, Any]]:
        """Get the rows of the table as python dictionaries."""
        return self.data.to_pylist()

    def _check_columns(self) -> None:
        if not self.columns:
            raise InvalidArgumentError(f"Table {self.name} must have at least one column")
        names = self.column_names
        if len(set(names)) != len(names):
            raise InvalidArgumentError(f"Table {self.name} has duplicated column names: {names}")

    def _row_values(
        self, rowidx: int, row: Sequence[Any] | Mapping[str, Any]
    ) -> Sequence[Any]:
        """Get the values of a row in the same order as the columns."""
        if isinstance(row, Mapping):
            if set(row.keys()) != set(self.column_names):
                raise InvalidArgumentError(
                    f"Row {rowidx} of {self.name} has columns {sorted(row.keys())}, "
                    f"expected {self.column_names}"
                )
            return [row[name] for name in self.column_names]

        if len(row) != len(self.columns):
            raise InvalidArgumentError(
                f"Row {rowidx} of {self.name} has {len(row)} values, "
                f"expected {len(self.columns)}"
            )
        return row

    def _check_value(self, rowidx: int, column: Column, value: Any) -> None:
        if value is None:
            if not column.nullable:
                raise InvalidArgumentError(
                    f"Row {rowidx} of {self.name}: column {column.name} is not nullable"
                )
        elif not column.type.accepts(value):
            raise OperandTypeError(
                f"Row {rowidx} of {self.name}: column {column.name} expects "
                f"{column.type.value}, got {type(value).__name__}"
            )
