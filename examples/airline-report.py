import logging
import sys

from relground.compute import between, col, eq
from relground.query import Aggregate, Join, LogicalPlan, OrderBy, QueryExecutor
from relground.warehouse import Column, ColumnType, TableStore

logging.basicConfig(level=logging.DEBUG if "-v" in sys.argv else logging.INFO)

store = TableStore()
store.create_table(
    "Flight",
    [
        Column("id", ColumnType.INTEGER, nullable=False),
        Column("aircraft", ColumnType.TEXT),
        Column("mileage", ColumnType.INTEGER),
    ],
    [
        (1, "Boeing 747", 531),
        (2, "Airbus A330", 4370),
        (3, "Boeing 777", 1765),
        (4, "Boeing 747", 2078),
        (5, "Airbus A330", 135),
    ],
)
store.create_table(
    "Booking",
    [
        Column("id", ColumnType.INTEGER, nullable=False),
        Column("flight_id", ColumnType.INTEGER),
        Column("customer_status", ColumnType.TEXT),
        Column("price", ColumnType.INTEGER),
    ],
    [
        (1, 1, "Gold", 814),
        (2, 1, "Silver", 1146),
        (3, 2, "Gold", 900),
        (4, 4, "Gold", 610),
        (5, 3, None, 300),
        (6, None, "Gold", 200),
    ],
)

executor = QueryExecutor(store, batch_size=2)

queries = {
    "Most booked aircraft by Gold customers": LogicalPlan(
        "Flight",
        joins=[Join("Booking", "id", "flight_id")],
        where=eq(col("customer_status"), "Gold"),
        group_by=["aircraft"],
        aggregates=[Aggregate("COUNT", "*", "total_bookings")],
        order_by=[OrderBy("total_bookings", descending=True)],
        limit=1,
    ),
    "Medium range flights": LogicalPlan(
        "Flight",
        where=between(col("mileage"), 300, 2000),
        order_by=["mileage"],
    ),
    "Average price per flight": LogicalPlan(
        "Booking",
        group_by=["flight_id"],
        aggregates=[Aggregate("AVG", "price", "avg_price")],
        order_by=["flight_id"],
    ),
}

for title, query in queries.items():
    print("---", title)
    print(executor.explain(query))
    print(executor.execute(query).to_pydict())
