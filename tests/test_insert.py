from sqlalchemy import select

from sqlworkshop import do_inserts, sqlraw, to_inserts
from sqlworkshop.model import cities, states
from sqlworkshop.seed import STATES, City, Sale, State

from .helpers import sub


def test_basic_insert(conn):
    state = State(name="Oregon", abbreviation="OR", population=4_233_358, cities=[])
    querys = to_inserts(state)
    expected = """
INSERT INTO states (name, abbreviation, population)
VALUES ('Oregon', 'OR', 4233358)
RETURNING states.id
"""
    first = next(querys)
    assert sub(sqlraw(first.query)) == sub(expected)
    assert [r["id"] for r in first(conn)] == [1]
    assert list(querys) == []


def test_children_receive_parent_ids(conn):
    querys = to_inserts(
        [
            State(name="Oregon", abbreviation="OR", population=None, cities=[]),
            State(
                name="Ohio",
                abbreviation="OH",
                population=None,
                cities=[City(name="Columbus"), City(name="Dayton")],
            ),
        ]
    )
    first = next(querys)
    assert [r["id"] for r in first(conn)] == [1, 2]

    expected = """
INSERT INTO cities (state_id, name)
VALUES (2, 'Columbus'), (2, 'Dayton')
"""
    second = next(querys)
    assert sub(sqlraw(second.query)) == sub(expected)
    second(conn)


def test_insert_without_returning():
    sales = [Sale(customer_id=1, item_id=3), Sale(customer_id=2, item_id=1)]
    querys = to_inserts(sales)
    expected = """
INSERT INTO sales (customer_id, item_id)
VALUES (1, 3), (2, 1)
"""
    assert sub(sqlraw(next(querys).query)) == sub(expected)


def test_helpers(conn):
    state_ids = [r["id"] for r in do_inserts(conn, STATES)]
    assert state_ids == [1, 2, 3, 4]

    rows = conn.execute(
        select(states.c.abbreviation, cities.c.name)
        .select_from(cities.join(states))
        .order_by(cities.c.id)
    ).all()
    assert [tuple(r) for r in rows] == [
        ("NY", "New York City"),
        ("NY", "Buffalo"),
        ("NY", "Albany"),
        ("CA", "Los Angeles"),
        ("CA", "San Francisco"),
        ("TX", "Houston"),
        ("TX", "Austin"),
    ]


def test_no_inserts(conn):
    assert do_inserts(conn, []) == []
