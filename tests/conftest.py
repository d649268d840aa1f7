import pytest
import testing.postgresql
from sqlalchemy.engine import make_url

from sqlworkshop import config
from sqlworkshop.db import create_schema, drop_schema, get_engine


@pytest.fixture(scope="session")
def engine():
    if config.TEST_DATABASE_URL:
        yield get_engine(config.TEST_DATABASE_URL)
        return
    try:
        postgresql = testing.postgresql.Postgresql()
    except RuntimeError as exc:
        pytest.skip(f"no PostgreSQL server to test against: {exc}")
    with postgresql:
        # the url has no driver, SQLAlchemy 2.1 would pick psycopg 3
        yield get_engine(make_url(postgresql.url()).set(drivername="postgresql+psycopg2"))


@pytest.fixture
def bare_conn(engine):
    """A connection to a database without the workshop tables."""
    with engine.connect() as conn:
        yield conn
        # nothing is ever committed, this also drops the tables
        conn.rollback()
        drop_schema(conn)
        conn.commit()


@pytest.fixture
def conn(bare_conn):
    create_schema(bare_conn)
    return bare_conn
