from typing import Iterable, Optional

from sqlalchemy import Table, create_engine, text
from sqlalchemy.engine import Connection, CursorResult, Engine
from sqlalchemy.sql import Executable

from . import config
from .errors import translate_errors
from .log import get_logger
from .model import metadata
from .queries import VIEWS
from .views import drop_views

logger = get_logger(__name__)


def get_engine(url: Optional[str] = None) -> Engine:
    engine = create_engine(url or config.DATABASE_URL, echo=config.SQL_ECHO)
    logger.info(f"Using database {engine.url.render_as_string(hide_password=True)}")
    return engine


def execute(conn: Connection, statement: Executable) -> CursorResult:
    with translate_errors():
        return conn.execute(statement)


def create_schema(conn: Connection, tables: Optional[Iterable[Table]] = None) -> None:
    tables = list(tables) if tables is not None else None
    metadata.create_all(conn, tables=tables)
    names = [t.name for t in tables] if tables else list(metadata.tables)
    logger.info(f"Created tables {', '.join(names)}")


def drop_schema(conn: Connection) -> None:
    # views depend on the tables
    drop_views(conn, VIEWS)
    metadata.drop_all(conn)
    logger.info("Dropped all workshop views and tables")


def clean_tables(conn: Connection) -> None:
    """Delete every row and restart the id sequences from 1."""
    for table in reversed(metadata.sorted_tables):
        conn.execute(table.delete())
    sql = text(
        "SELECT sequencename FROM pg_sequences "
        "WHERE schemaname IN (SELECT current_schema())"
    )
    for [sequence] in conn.execute(sql).all():
        conn.execute(text(f'ALTER SEQUENCE "{sequence}" RESTART WITH 1'))
