import pytest

from relground.warehouse import Column, ColumnType, TableStore

FLIGHT_COLUMNS = [
    Column("id", ColumnType.INTEGER, nullable=False),
    Column("aircraft", ColumnType.TEXT),
    Column("origin", ColumnType.TEXT),
    Column("destination", ColumnType.TEXT),
    Column("mileage", ColumnType.INTEGER),
]

FLIGHT_ROWS = [
    (1, "Boeing 747", "SFO", "LAX", 531),
    (2, "Airbus A330", "JFK", "LHR", 4370),
    (3, "Boeing 777", "ORD", "LAX", 1765),
    (4, "Boeing 747", "JFK", "SFO", 2078),
    (5, "Airbus A330", "BOS", "LGA", 135),
]

BOOKING_COLUMNS = [
    Column("id", ColumnType.INTEGER, nullable=False),
    Column("flight_id", ColumnType.INTEGER),
    Column("customer_name", ColumnType.TEXT),
    Column("customer_status", ColumnType.TEXT),
    Column("price", ColumnType.INTEGER),
]

BOOKING_ROWS = [
    (1, 1, "Ann", "Gold", 814),
    (2, 1, "Ben", "Silver", 1146),
    (3, 2, "Cid", "Gold", 900),
    (4, 2, "Dee", "Gold", 1200),
    (5, 3, "Eve", "Gold", 300),
    (6, 4, "Fay", None, 450),
    (7, 4, "Gus", "Gold", 610),
    (8, 5, "Hal", "Silver", None),
    (9, None, "Ivy", "Gold", 200),
    (10, 3, "Jon", "Bronze", 250),
    (11, 4, "Kim", "Gold", 700),
]

AUTHOR_COLUMNS = [
    Column("id", ColumnType.INTEGER, nullable=False),
    Column("name", ColumnType.TEXT),
]

AUTHOR_ROWS = [
    (1, "Ada"),
    (2, "Grace"),
    (3, "Linus"),
]

ARTICLE_COLUMNS = [
    Column("id", ColumnType.INTEGER, nullable=False),
    Column("author_id", ColumnType.INTEGER),
    Column("title", ColumnType.TEXT),
    Column("views", ColumnType.INTEGER),
]

ARTICLE_ROWS = [
    (1, 1, "Notes on the Analytical Engine", 1200),
    (2, 2, "Compilers for everyone", 800),
    (3, 1, "Bernoulli numbers", None),
    (4, 2, "Debugging moths", 300),
    (5, 2, "COBOL in practice", None),
]


@pytest.fixture
def airline_store():
    store = TableStore()
    store.create_table("Flight", FLIGHT_COLUMNS, FLIGHT_ROWS)
    store.create_table("Booking", BOOKING_COLUMNS, BOOKING_ROWS)
    return store


@pytest.fixture
def blog_store():
    store = TableStore()
    store.create_table("Author", AUTHOR_COLUMNS, AUTHOR_ROWS)
    store.create_table("Article", ARTICLE_COLUMNS, ARTICLE_ROWS)
    return store
