import pyarrow as pa
import pytest

from relground.compute.datasources import PyArrowTableDataSource, TableScanNode
from relground.warehouse import Column, ColumnType, Table

MOCK_PYARROW_TABLE = pa.table({"col1": [1, 4, 7], "col2": [2, 5, 8], "col3": [3, 6, 9]})

MOCK_TABLE = Table.from_arrow("Mock", MOCK_PYARROW_TABLE)


@pytest.mark.parametrize(
    "data_source,expected_str",
    [
        (
            PyArrowTableDataSource(MOCK_PYARROW_TABLE),
            "PyArrowTableDataSource(columns=['col1', 'col2', 'col3'], rows=3)",
        ),
        (
            TableScanNode(MOCK_TABLE),
            "TableScanNode(Mock, batch_size=1024)",
        ),
        (
            TableScanNode(MOCK_TABLE, batch_size=2),
            "TableScanNode(Mock, batch_size=2)",
        ),
    ],
)
def test_data_source_str(data_source, expected_str):
    assert str(data_source) == expected_str


@pytest.mark.parametrize(
    "data_source",
    [
        PyArrowTableDataSource(MOCK_PYARROW_TABLE),
        PyArrowTableDataSource(MOCK_PYARROW_TABLE.to_batches()[0]),
        TableScanNode(MOCK_TABLE),
    ],
)
def test_data_source_batches(data_source):
    batches = list(data_source.batches())
    table = pa.Table.from_batches(batches)
    assert table.to_pydict() == MOCK_PYARROW_TABLE.to_pydict()


@pytest.mark.parametrize(
    "data_source",
    [PyArrowTableDataSource(MOCK_PYARROW_TABLE), TableScanNode(MOCK_TABLE)],
)
def test_data_source_poll_schema(data_source):
    assert data_source.poll_schema().names == ["col1", "col2", "col3"]


def test_table_scan_batch_size():
    node = TableScanNode(MOCK_TABLE, batch_size=2)
    assert node.name == "Mock"
    assert [b.num_rows for b in node.batches()] == [2, 1]


def test_empty_sources_emit_schema():
    empty = pa.table({"col1": pa.array([], type=pa.int64())})
    batches = list(PyArrowTableDataSource(empty).batches())
    assert len(batches) == 1
    assert batches[0].schema.names == ["col1"]

    table = Table("Empty", [Column("col1", ColumnType.INTEGER)])
    batches = list(TableScanNode(table).batches())
    assert len(batches) == 1
    assert batches[0].num_rows == 0
