from relground.compute import FilterNode, PyArrowTableDataSource, col, like
from relground.warehouse import Column, ColumnType, Table

flights = Table(
    "Flight",
    [Column("id", ColumnType.INTEGER), Column("aircraft", ColumnType.TEXT)],
    [(1, "Boeing 747"), (2, "Airbus A330"), (3, "Boeing 777")],
)

query = FilterNode(
    like(col("aircraft"), "Boeing%"),
    PyArrowTableDataSource(flights.data),
)
for batch in query.batches():
    print("---")
    print(batch)
