"""
Workshop steps as ordered statements.

A lesson either runs against a connection or renders as a SQL script to
paste into a web console. Lessons expect a database without the
workshop tables.
"""
from dataclasses import dataclass
from typing import List

from sqlalchemy import (
    DDL,
    Column,
    Integer,
    MetaData,
    String,
    Table,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Connection
from sqlalchemy.schema import CreateTable
from sqlalchemy.sql import Executable

from .errors import translate_errors
from .helpers import sqlraw, sqlscript
from .log import get_logger
from .model import (
    COLLISIONS_SCHEMA,
    STATES_SCHEMA,
    cities,
    customers,
    items,
    sales,
    states,
)
from .queries import VIEWS
from .seed import CUSTOMERS, ITEMS, SALES, STATES

logger = get_logger(__name__)


@dataclass
class Lesson:
    title: str
    statements: List[Executable]

    def script(self) -> str:
        return f"-- {self.title}\n\n{sqlscript(self.statements)}"

    def run(self, conn: Connection) -> None:
        logger.info(f"Lesson: {self.title}")
        for statement in self.statements:
            logger.info(sqlraw(statement).splitlines()[0])
            with translate_errors():
                conn.execute(statement)


# items as first created, before prices are introduced
items_without_price = Table(
    "items",
    MetaData(),
    Column("id", Integer, primary_key=True),
    Column("name", String, nullable=False),
)


def _state_id(abbreviation: str):
    query = select(states.c.id).where(states.c.abbreviation == abbreviation)
    return query.scalar_subquery()


ONE_TO_MANY = Lesson(
    "One-to-many: states and their cities",
    [
        *[CreateTable(t) for t in STATES_SCHEMA],
        insert(states).values(
            [
                {
                    "name": s.name,
                    "abbreviation": s.abbreviation,
                    "population": s.population,
                }
                for s in STATES
            ]
        ),
        insert(cities).values(
            [
                {"state_id": _state_id(s.abbreviation), "name": c.name}
                for s in STATES
                for c in s.cities
            ]
        ),
    ],
)

MANY_TO_MANY = Lesson(
    "Many-to-many: customers buy items through sales",
    [
        CreateTable(customers),
        CreateTable(items_without_price),
        CreateTable(sales),
        insert(customers).values(
            [
                {
                    "name": c.name,
                    "loyalty_member": c.loyalty_member,
                    "postal_code": c.postal_code,
                    "date_of_birth": c.date_of_birth,
                }
                for c in CUSTOMERS
            ]
        ),
        insert(items_without_price).values([{"name": i.name} for i in ITEMS]),
        insert(sales).values([{"customer_id": c, "item_id": i} for c, i in SALES]),
        # price in cents
        DDL("ALTER TABLE items ADD COLUMN price INTEGER"),
        *[
            update(items).where(items.c.id == id_).values(price=item.price)
            for id_, item in enumerate(ITEMS, start=1)
        ],
        DDL("ALTER TABLE items ALTER COLUMN price SET NOT NULL"),
        DDL(
            "ALTER TABLE items ADD CONSTRAINT items_price_non_negative "
            "CHECK (price >= 0)"
        ),
    ],
)

COLLISIONS = Lesson(
    "Many-to-many: vehicles involved in collisions",
    [CreateTable(t) for t in COLLISIONS_SCHEMA],
)

VIEWS_LESSON = Lesson(
    "Views: naming the joins",
    [view.create() for view in VIEWS],
)

LESSONS = [ONE_TO_MANY, MANY_TO_MANY, COLLISIONS, VIEWS_LESSON]
