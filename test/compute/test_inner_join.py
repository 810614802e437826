import pyarrow as pa
import pytest

from relground.compute import InnerJoinNode, PyArrowTableDataSource, TableScanNode
from relground.errors import OperandTypeError, PlanError
from relground.warehouse import Column, ColumnType, Table

# Sample data for testing
LEFT_TEST_DATA = pa.record_batch(
    {
        "id": pa.array([1, 2, 3, 4]),
        "name": pa.array(["Alice", "Bob", "Charlie", "David"]),
    }
)

RIGHT_TEST_DATA = pa.record_batch(
    {
        "user_id": pa.array([3, 4, 5, 6]),
        "age": pa.array([25, 30, 35, 40]),
    }
)


@pytest.fixture
def left_data_source():
    return PyArrowTableDataSource(LEFT_TEST_DATA)


@pytest.fixture
def right_data_source():
    return PyArrowTableDataSource(RIGHT_TEST_DATA)


def test_inner_join_node(left_data_source, right_data_source):
    join_node = InnerJoinNode(["id"], ["user_id"], left_data_source, right_data_source)
    result_batches = list(join_node.batches())

    assert len(result_batches) == 1
    assert result_batches[0].to_pydict() == {
        "id": [3, 4],
        "name": ["Charlie", "David"],
        "user_id": [3, 4],
        "age": [25, 30],
    }


def test_inner_join_node_str(left_data_source, right_data_source):
    join_node = InnerJoinNode(["id"], ["user_id"], left_data_source, right_data_source)
    assert str(join_node) == (
        "InnerJoinNode(left_keys=['id'], right_keys=['user_id'], "
        "left=PyArrowTableDataSource(columns=['id', 'name'], rows=4), "
        "right=PyArrowTableDataSource(columns=['user_id', 'age'], rows=4))"
    )


def test_inner_join_node_conflicting_names():
    left_data_source = PyArrowTableDataSource(
        pa.record_batch(
            {
                "id": pa.array([1, 2, 3, 4]),
                "conflict": pa.array(["A", "B", "C", "D"]),
            }
        )
    )
    right_data_source = PyArrowTableDataSource(
        pa.record_batch(
            {
                "id": pa.array([3, 4, 5, 6]),
                "conflict": pa.array(["X", "Y", "Z", "W"]),
            }
        )
    )

    join_node = InnerJoinNode(
        ["id"], ["id"], left_data_source, right_data_source, right_name="Booking"
    )
    result_batch = next(join_node.batches())

    assert result_batch.schema.names == ["id", "conflict", "Booking.id", "Booking.conflict"]
    assert result_batch.column("conflict").to_pylist() == ["C", "D"]
    assert result_batch.column("Booking.conflict").to_pylist() == ["X", "Y"]


def test_inner_join_node_ambiguous_names():
    with pytest.raises(PlanError, match="ambiguous"):
        InnerJoinNode.output_names(["id", "right.id"], ["id"], "right")


def test_inner_join_node_with_null_values():
    left_data_source = PyArrowTableDataSource(
        pa.record_batch({"id": pa.array([1, None, 3]), "name": ["a", "b", "c"]})
    )
    right_data_source = PyArrowTableDataSource(
        pa.record_batch({"user_id": pa.array([None, 1, 3]), "age": [10, 20, 30]})
    )

    join_node = InnerJoinNode(["id"], ["user_id"], left_data_source, right_data_source)
    result_batch = next(join_node.batches())

    # null never matches null
    assert result_batch.to_pydict() == {
        "id": [1, 3],
        "name": ["a", "c"],
        "user_id": [1, 3],
        "age": [20, 30],
    }


def test_inner_join_node_multiple_matches():
    left_data_source = PyArrowTableDataSource(
        pa.record_batch({"id": [1, 2], "aircraft": ["Boeing 747", "Airbus A330"]})
    )
    right_data_source = PyArrowTableDataSource(
        pa.record_batch({"flight_id": [2, 1, 2, 1], "passenger": ["p1", "p2", "p3", "p4"]})
    )

    join_node = InnerJoinNode(["id"], ["flight_id"], left_data_source, right_data_source)
    result_batch = next(join_node.batches())

    # left order first, then right order for each left row.
    assert result_batch.column("passenger").to_pylist() == ["p2", "p4", "p1", "p3"]
    assert result_batch.column("aircraft").to_pylist() == [
        "Boeing 747",
        "Boeing 747",
        "Airbus A330",
        "Airbus A330",
    ]


def test_inner_join_node_multiple_keys():
    left_data_source = PyArrowTableDataSource(
        pa.record_batch({"origin": ["JFK", "JFK", "SFO"], "dest": ["LHR", "SFO", "JFK"]})
    )
    right_data_source = PyArrowTableDataSource(
        pa.record_batch({"from": ["JFK", "SFO", "JFK"], "to": ["SFO", "LAX", "LHR"], "km": [1, 2, 3]})
    )

    join_node = InnerJoinNode(
        ["origin", "dest"], ["from", "to"], left_data_source, right_data_source
    )
    result_batch = next(join_node.batches())

    assert result_batch.column("km").to_pylist() == [3, 1]


def test_inner_join_node_multiple_left_batches():
    left = pa.Table.from_batches([LEFT_TEST_DATA, LEFT_TEST_DATA])
    join_node = InnerJoinNode(
        ["id"], ["user_id"], PyArrowTableDataSource(left), PyArrowTableDataSource(RIGHT_TEST_DATA)
    )
    batches = list(join_node.batches())
    assert [b.num_rows for b in batches] == [2, 2]


def test_inner_join_node_no_matches_keeps_schema(left_data_source):
    right = PyArrowTableDataSource(pa.record_batch({"user_id": [9], "age": [1]}))
    result_batch = next(InnerJoinNode(["id"], ["user_id"], left_data_source, right).batches())
    assert result_batch.num_rows == 0
    assert result_batch.schema.names == ["id", "name", "user_id", "age"]


def test_self_join_on_primary_key_returns_every_row():
    table = Table(
        "Flight",
        [Column("id", ColumnType.INTEGER, nullable=False), Column("aircraft", ColumnType.TEXT)],
        [(i, f"aircraft {i}") for i in range(7)],
    )
    join_node = InnerJoinNode(
        ["id"], ["id"], TableScanNode(table, batch_size=3), TableScanNode(table), right_name="Flight"
    )
    total_rows = sum(b.num_rows for b in join_node.batches())
    assert total_rows == table.num_rows


def test_inner_join_node_key_type_mismatch(left_data_source):
    right = PyArrowTableDataSource(pa.record_batch({"user_id": ["3"], "age": [1]}))
    with pytest.raises(OperandTypeError, match="Cannot join id"):
        next(InnerJoinNode(["id"], ["user_id"], left_data_source, right).batches())


def test_inner_join_node_invalid_keys(left_data_source, right_data_source):
    with pytest.raises(PlanError):
        InnerJoinNode([], [], left_data_source, right_data_source)

    with pytest.raises(PlanError):
        InnerJoinNode(["id"], ["user_id", "age"], left_data_source, right_data_source)

    with pytest.raises(PlanError, match="Join key missing does not exist"):
        next(InnerJoinNode(["id"], ["missing"], left_data_source, right_data_source).batches())
