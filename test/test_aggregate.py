import pyarrow as pa
import pytest

from relground.compute import PyArrowTableDataSource
from relground.compute.aggregate import (
    AggregateNode,
    CountAggregation,
    MaxAggregation,
    MeanAggregation,
    MinAggregation,
    SumAggregation,
)
from relground.errors import ArithmeticOverflowError, NotFoundError, OperandTypeError, PlanError

TEST_DATA = pa.record_batch(
    {
        "aircraft": pa.array(
            ["Boeing 747", "Boeing 747", "Airbus A330", "Airbus A330", "Boeing 747"]
        ),
        "status": pa.array(["Gold", "Silver", "Gold", "Gold2", "Silver"]),
        "price": pa.array([10, 15, 8, 12, 20]),
    }
)

NULLS_DATA = pa.record_batch(
    {
        "aircraft": pa.array(["Boeing 747", None, "Boeing 747", None, "Boeing 777"]),
        "price": pa.array([814, 100, 1146, None, None], type=pa.int64()),
    }
)


def _aggregate(keys, aggregations, data=TEST_DATA):
    node = AggregateNode(keys, aggregations, PyArrowTableDataSource(data))
    batches = list(node.batches())
    assert len(batches) == 1
    return batches[0]


@pytest.mark.parametrize("keys", [["aircraft"], ["aircraft", "status"]])
def test_basic_aggregation(keys):
    result = _aggregate(keys, {"total_price": SumAggregation("price")})

    if keys == ["aircraft"]:
        assert result.column_names == ["aircraft", "total_price"]
        assert result.column(0).to_pylist() == ["Boeing 747", "Airbus A330"]
        assert result.column(1).to_pylist() == [45, 20]
    else:
        assert result.column_names == ["aircraft", "status", "total_price"]
        assert result.column(0).to_pylist() == [
            "Boeing 747",
            "Boeing 747",
            "Airbus A330",
            "Airbus A330",
        ]
        assert result.column(1).to_pylist() == ["Gold", "Silver", "Gold", "Gold2"]
        assert result.column(2).to_pylist() == [10, 35, 8, 12]


@pytest.mark.parametrize("keys", [["aircraft"], ["aircraft", "status"]])
def test_aggregate_node_str(keys):
    aggregate = AggregateNode(
        keys,
        {"total_price": SumAggregation("price")},
        PyArrowTableDataSource(TEST_DATA),
    )
    assert str(aggregate) == (
        "AggregateNode(keys=%r, aggregations={'total_price': SumAggregation(price)}, "
        "PyArrowTableDataSource(columns=['aircraft', 'status', 'price'], rows=5))"
        % (keys,)
    )


def test_min_aggregation():
    result = _aggregate(["aircraft"], {"min_price": MinAggregation("price")})
    assert result.to_pydict() == {
        "aircraft": ["Boeing 747", "Airbus A330"],
        "min_price": [10, 8],
    }


def test_max_aggregation():
    result = _aggregate(["aircraft"], {"max_price": MaxAggregation("price")})
    assert result.to_pydict() == {
        "aircraft": ["Boeing 747", "Airbus A330"],
        "max_price": [20, 12],
    }


def test_min_max_on_text():
    result = _aggregate(
        [], {"first": MinAggregation("status"), "last": MaxAggregation("status")}
    )
    assert result.to_pydict() == {"first": ["Gold"], "last": ["Silver"]}


def test_count_aggregation():
    result = _aggregate(["aircraft"], {"bookings": CountAggregation("price")})
    assert result.to_pydict() == {
        "aircraft": ["Boeing 747", "Airbus A330"],
        "bookings": [3, 2],
    }


def test_mean_aggregation():
    result = _aggregate(["aircraft"], {"mean_price": MeanAggregation("price")})
    assert result.to_pydict() == {
        "aircraft": ["Boeing 747", "Airbus A330"],
        "mean_price": [15.0, 10.0],
    }
    assert result.schema.field("mean_price").type == pa.float64()


def test_mean_is_not_truncated():
    data = pa.record_batch({"price": [814, 1146]})
    result = _aggregate([], {"avg": MeanAggregation("price")}, data)
    assert result.column("avg").to_pylist() == [980.0]


def test_aggregations_ignore_nulls():
    result = _aggregate(
        ["aircraft"],
        {
            "rows": CountAggregation("*"),
            "prices": CountAggregation("price"),
            "total": SumAggregation("price"),
            "avg": MeanAggregation("price"),
            "max": MaxAggregation("price"),
        },
        NULLS_DATA,
    )
    # Each row with a null key is a group on its own.
    assert result.to_pydict() == {
        "aircraft": ["Boeing 747", None, None, "Boeing 777"],
        "rows": [2, 1, 1, 1],
        "prices": [2, 1, 0, 0],
        "total": [1960, 100, None, None],
        "avg": [980.0, 100.0, None, None],
        "max": [1146, 100, None, None],
    }


def test_count_star_counts_null_rows():
    data = pa.record_batch({"price": pa.array([None, None, 3], type=pa.int64())})
    result = _aggregate([], {"rows": CountAggregation("*"), "prices": CountAggregation("price")}, data)
    assert result.to_pydict() == {"rows": [3], "prices": [1]}


def test_null_keys_are_never_grouped_together():
    data = pa.record_batch({"k": pa.array([None, None, "a"], type=pa.string())})
    result = _aggregate(["k"], {"n": CountAggregation("*")}, data)
    assert result.to_pydict() == {"k": [None, None, "a"], "n": [1, 1, 1]}


def test_partially_null_keys_are_singleton_groups():
    data = pa.record_batch(
        {
            "aircraft": ["Boeing 747", "Boeing 747", "Boeing 747", "Boeing 747"],
            "status": pa.array(["Gold", None, "Gold", None]),
        }
    )
    result = _aggregate(["aircraft", "status"], {"n": CountAggregation()}, data)
    assert result.to_pydict() == {
        "aircraft": ["Boeing 747", "Boeing 747", "Boeing 747"],
        "status": ["Gold", None, None],
        "n": [2, 1, 1],
    }


def test_null_groups_across_batches():
    data = pa.table({"k": pa.array([None, "a", None, "a"], type=pa.string()), "v": [1, 2, 3, 4]})
    node = AggregateNode(
        ["k"], {"total": SumAggregation("v")}, PyArrowTableDataSource(data.slice(0, 2))
    )
    assert next(node.batches()).to_pydict() == {"k": [None, "a"], "total": [1, 2]}

    batched = pa.Table.from_batches(data.to_batches(max_chunksize=1))
    node = AggregateNode(["k"], {"total": SumAggregation("v")}, PyArrowTableDataSource(batched))
    assert next(node.batches()).to_pydict() == {"k": [None, "a", None], "total": [1, 6, 3]}


def test_sum_overflow_fails():
    data = pa.record_batch({"s": pa.array([2**62, 2**62], type=pa.int64())})
    with pytest.raises(ArithmeticOverflowError):
        _aggregate([], {"total": SumAggregation("s")}, data)


def test_sum_overflow_across_batches_fails():
    data = pa.table({"s": pa.array([2**62, 2**62, 1], type=pa.int64())})
    node = AggregateNode(
        [],
        {"total": SumAggregation("s")},
        PyArrowTableDataSource(pa.Table.from_batches(data.to_batches(max_chunksize=1))),
    )
    with pytest.raises(ArithmeticOverflowError):
        next(node.batches())


def test_sum_and_mean_of_large_integers():
    data = pa.record_batch({"s": pa.array([2**62, 2**62, -(2**62)], type=pa.int64())})
    result = _aggregate(
        [], {"total": SumAggregation("s"), "avg": MeanAggregation("s")}, data
    )
    assert result.to_pydict() == {"total": [2**62], "avg": [2**62 / 3]}


def test_no_keys_on_empty_input():
    data = pa.record_batch({"price": pa.array([], type=pa.int64())})
    result = _aggregate(
        [],
        {"rows": CountAggregation(), "avg": MeanAggregation("price"), "max": MaxAggregation("price")},
        data,
    )
    assert result.to_pydict() == {"rows": [0], "avg": [None], "max": [None]}
    assert result.schema.field("max").type == pa.int64()


def test_keys_on_empty_input():
    data = pa.record_batch(
        {"aircraft": pa.array([], type=pa.string()), "price": pa.array([], type=pa.int64())}
    )
    result = _aggregate(["aircraft"], {"rows": CountAggregation()}, data)
    assert result.num_rows == 0
    assert result.schema.names == ["aircraft", "rows"]


@pytest.mark.parametrize("keys", [["aircraft"], ["aircraft", "status"]])
def test_aggregation_across_batches(keys):
    data = pa.Table.from_batches([TEST_DATA, TEST_DATA, TEST_DATA])
    node = AggregateNode(
        keys,
        {"bookings": CountAggregation(), "avg": MeanAggregation("price")},
        PyArrowTableDataSource(data),
    )
    result = next(node.batches())
    if keys == ["aircraft"]:
        assert result.column("bookings").to_pylist() == [9, 6]
        assert result.column("avg").to_pylist() == [15.0, 10.0]
    else:
        assert result.column("bookings").to_pylist() == [3, 6, 3, 3]


def test_count_aggregation_50_rows():
    result = _aggregate(["aircraft", "status"], {"bookings": CountAggregation()}, _generate_50rows_test_data())
    expected_aircrafts = ["Aircraft" + str(i) for i in range(5) for _ in range(10)]
    expected_statuses = ["Status" + str(i) for _ in range(5) for i in range(10)]
    assert result.column(0).to_pylist() == expected_aircrafts
    assert result.column(1).to_pylist() == expected_statuses
    assert result.column(2).to_pylist() == [2] * 50


def test_sum_on_text_fails():
    with pytest.raises(OperandTypeError, match="requires a numeric column"):
        _aggregate(["aircraft"], {"total": SumAggregation("status")})


def test_unknown_columns():
    with pytest.raises(NotFoundError):
        _aggregate(["model"], {"total": SumAggregation("price")})

    with pytest.raises(NotFoundError):
        _aggregate(["aircraft"], {"total": SumAggregation("cost")})


def test_duplicated_output_names():
    with pytest.raises(PlanError):
        AggregateNode(["price"], {"price": SumAggregation("price")}, PyArrowTableDataSource(TEST_DATA))


def test_aggregation_str():
    assert str(CountAggregation()) == "CountAggregation(*)"
    assert repr(CountAggregation("price")) == "CountAggregation(price)"
    assert str(MeanAggregation("price")) == "MeanAggregation(price)"


def _generate_50rows_test_data():
    aircrafts = ["Aircraft" + str(i) for i in range(5)]
    statuses = ["Status" + str(i) for i in range(10)]
    data = {"aircraft": [], "status": [], "price": []}
    for aircraft in aircrafts:
        for status in statuses:
            for _ in range(2):  # Ensure each combination appears at least twice
                data["aircraft"].append(aircraft)
                data["status"].append(status)
                data["price"].append(10)
    return pa.record_batch(data)
