from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    Date,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Time,
    text,
)

metadata = MetaData()

# one-to-many

states = Table(
    "states",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String, nullable=False, unique=True),
    Column("abbreviation", String, nullable=False, unique=True),
    Column("population", Integer),
)
cities = Table(
    "cities",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("state_id", Integer, ForeignKey(states.c.id), nullable=False),
    Column("name", String, nullable=False),
)

# many-to-many

customers = Table(
    "customers",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String, nullable=False),
    Column("loyalty_member", Integer, nullable=False, server_default=text("0")),
    Column("postal_code", String),
    Column("date_of_birth", Date),
)
# price is in cents
items = Table(
    "items",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String, nullable=False),
    Column("price", Integer, nullable=False),
    CheckConstraint("price >= 0", name="items_price_non_negative"),
)
sales = Table(
    "sales",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("customer_id", Integer, ForeignKey(customers.c.id), nullable=False),
    Column("item_id", Integer, ForeignKey(items.c.id), nullable=False),
)

# collisions, ids come from the source dataset

collisions = Table(
    "collisions",
    metadata,
    Column("id", BigInteger, primary_key=True, autoincrement=False),
    Column("date", Date),
    Column("time", Time),
    Column("borough", String),
    Column("zip_code", String),
    Column("latitude", Float),
    Column("longitude", Float),
    Column("on_street_name", String),
    Column("cross_street_name", String),
    Column("off_street_name", String),
)
vehicles = Table(
    "vehicles",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("vehicle", String, nullable=False, unique=True),
)
vehicle_collisions = Table(
    "vehicle_collisions",
    metadata,
    Column("id", Integer, primary_key=True),
    Column(
        "collision_id", BigInteger, ForeignKey(collisions.c.id), nullable=False
    ),
    Column("vehicle_id", Integer, ForeignKey(vehicles.c.id), nullable=False),
)

STATES_SCHEMA = (states, cities)
SALES_SCHEMA = (customers, items, sales)
COLLISIONS_SCHEMA = (collisions, vehicles, vehicle_collisions)
