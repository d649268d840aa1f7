import pytest

from sqlworkshop import do_select, fetch_all, from_row, select, sqlraw, to_select
from sqlworkshop.queries import CityState, CustomerPurchase, ItemPurchases
from sqlworkshop.seed import seed_sales
from sqlworkshop.types import is_aggregate

from .data.results import CustomerRow, ItemSpend
from .helpers import sub


def test_basic_query():
    query = to_select(CustomerRow)
    expected = """
SELECT customers.id, customers.name, customers.loyalty_member
FROM customers
    """
    assert sub(sqlraw(query)) == sub(expected)


def test_aliased_join_with_labels():
    query = to_select(CityState, order_by=[CityState.state, CityState.city])
    expected = """
SELECT c.name AS city, s.name AS state, s.abbreviation
FROM cities AS c JOIN states AS s ON c.state_id = s.id
ORDER BY state ASC, city ASC
    """
    assert sub(sqlraw(query)) == sub(expected)


def test_aggregate_groups_by_the_other_fields():
    query = to_select(ItemPurchases, order_by=[ItemPurchases.id])
    expected = """
SELECT items.id, items.name, count(sales.id) AS purchases
FROM items LEFT OUTER JOIN sales ON items.id = sales.item_id
GROUP BY items.id, items.name
ORDER BY items.id ASC
    """
    assert sub(sqlraw(query)) == sub(expected)


def test_join_is_inferred_from_foreign_keys():
    raw = sqlraw(to_select(CustomerPurchase))
    assert "FROM sales JOIN customers ON" in raw
    assert "JOIN items ON" in raw
    assert "GROUP BY" not in raw


def test_aggregate_filter_goes_to_having():
    query = to_select(
        ItemPurchases,
        filters=[ItemPurchases.purchases > 3, ItemPurchases.name != "Rain jacket"],
    )
    raw = " ".join(sub(sqlraw(query)))
    assert "WHERE items.name != 'Rain jacket'" in raw
    assert "HAVING count(sales.id) > 3" in raw


def test_is_aggregate():
    assert ItemPurchases.purchases.is_aggregate
    assert not ItemPurchases.name.is_aggregate
    assert is_aggregate(ItemSpend.buyers.column)


def test_from_row_uses_field_names(conn):
    seed_sales(conn)
    row = conn.execute(to_select(CustomerRow, filters=[CustomerRow.id == 2])).one()
    expected = CustomerRow(id=2, name="Ben", loyalty_member=0)
    assert from_row(CustomerRow, row) == expected


def test_basic_filter(conn):
    seed_sales(conn)
    loyal = [CustomerRow.loyalty_member == 1]
    actual = list(do_select(conn, CustomerRow, filters=loyal))
    assert actual == [CustomerRow(id=1, name="Ana", loyalty_member=1)]


def test_having_filter(conn):
    seed_sales(conn)
    popular = [ItemPurchases.purchases > 3]
    actual = list(do_select(conn, ItemPurchases, filters=popular))
    assert actual == [ItemPurchases(id=3, name="Water bottle", purchases=4)]


def test_ordering_by_aggregate(conn):
    seed_sales(conn)
    query = to_select(ItemSpend, order_by=[ItemSpend.spent.desc()])
    assert fetch_all(conn, ItemSpend, query) == [
        ItemSpend(item="Hiking boots", spent=10500, buyers=2),
        ItemSpend(item="Rain jacket", spent=6600, buyers=2),
        ItemSpend(item="Water bottle", spent=5200, buyers=2),
    ]


def test_fields_must_be_columns():
    with pytest.raises(RuntimeError):

        @select
        class Broken:
            name: str = "not a column"
