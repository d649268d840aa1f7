from datetime import date
from typing import List, Optional

from sqlalchemy.engine import Connection

from .insert import do_inserts
from .log import get_logger
from .model import cities, customers, items, sales, states
from .types import C, InsertUsing, insert

logger = get_logger(__name__)


@insert
class City:
    name: str = C(cities.c.name)


@insert
class State:
    class Returning:
        id: int = C(states.c.id)

    name: str = C(states.c.name)
    abbreviation: str = C(states.c.abbreviation)
    population: Optional[int] = C(states.c.population)
    cities: List[City] = InsertUsing(Returning.id, into=cities.c.state_id)


@insert
class Customer:
    class Returning:
        id: int = C(customers.c.id)

    name: str = C(customers.c.name)
    loyalty_member: int = C(customers.c.loyalty_member)
    postal_code: Optional[str] = C(customers.c.postal_code)
    date_of_birth: Optional[date] = C(customers.c.date_of_birth)


@insert
class Item:
    class Returning:
        id: int = C(items.c.id)

    name: str = C(items.c.name)
    price: int = C(items.c.price)


@insert
class Sale:
    customer_id: int = C(sales.c.customer_id)
    item_id: int = C(sales.c.item_id)


def _cities(*names: str) -> List[City]:
    return [City(name=name) for name in names]


STATES = [
    State(
        name="New York",
        abbreviation="NY",
        population=19_571_216,
        cities=_cities("New York City", "Buffalo", "Albany"),
    ),
    State(
        name="California",
        abbreviation="CA",
        population=38_965_193,
        cities=_cities("Los Angeles", "San Francisco"),
    ),
    State(
        name="Texas",
        abbreviation="TX",
        population=30_503_301,
        cities=_cities("Houston", "Austin"),
    ),
    State(name="Wyoming", abbreviation="WY", population=584_057, cities=[]),
]

CUSTOMERS = [
    Customer(
        name="Ana",
        loyalty_member=1,
        postal_code="10001",
        date_of_birth=date(1990, 1, 20),
    ),
    Customer(
        name="Ben",
        loyalty_member=0,
        postal_code="94103",
        date_of_birth=date(1985, 7, 3),
    ),
    Customer(name="Chloe", loyalty_member=0, postal_code=None, date_of_birth=None),
]

# prices are in cents
ITEMS = [
    Item(name="Hiking boots", price=3500),
    Item(name="Rain jacket", price=2200),
    Item(name="Water bottle", price=1300),
]

# (customer_id, item_id), one row per purchase
SALES = [(1, 1), (2, 2), (1, 1), (2, 2), (3, 2), (3, 3), (1, 3), (2, 1), (3, 3), (3, 3)]


def seed_states(conn: Connection) -> List[int]:
    ids = [r["id"] for r in do_inserts(conn, STATES)]
    logger.info(f"Seeded {len(ids)} states")
    return ids


def seed_sales(conn: Connection) -> None:
    """Insert customers 1-3, items 1-3 and the example sales.

    Expects fresh tables, the sales refer to customers and items by id.
    """
    do_inserts(conn, CUSTOMERS)
    do_inserts(conn, ITEMS)
    do_inserts(conn, [Sale(customer_id=c, item_id=i) for c, i in SALES])
    logger.info(
        f"Seeded {len(CUSTOMERS)} customers, {len(ITEMS)} items, {len(SALES)} sales"
    )
