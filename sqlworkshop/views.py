"""Plain (non-materialized) views.

SQLAlchemy has no view construct, so CREATE/DROP VIEW are custom DDL
elements. Selecting from a view always re-runs its query against the
current contents of the underlying tables.
"""
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import column, table
from sqlalchemy.engine import Connection
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql import TableClause
from sqlalchemy.sql.ddl import ExecutableDDLElement
from sqlalchemy.sql.selectable import Select

from .errors import translate_errors
from .log import get_logger

logger = get_logger(__name__)


class CreateView(ExecutableDDLElement):
    inherit_cache = False

    def __init__(self, name: str, selectable: Select, or_replace: bool = False):
        self.name = name
        self.selectable = selectable
        self.or_replace = or_replace


class DropView(ExecutableDDLElement):
    inherit_cache = False

    def __init__(self, name: str, if_exists: bool = True):
        self.name = name
        self.if_exists = if_exists


@compiles(CreateView)
def _create_view(element, compiler, **kw):
    replace = "OR REPLACE " if element.or_replace else ""
    body = compiler.sql_compiler.process(element.selectable, literal_binds=True)
    return f"CREATE {replace}VIEW {compiler.preparer.quote(element.name)} AS {body}"


@compiles(DropView)
def _drop_view(element, compiler, **kw):
    if_exists = "IF EXISTS " if element.if_exists else ""
    return f"DROP VIEW {if_exists}{compiler.preparer.quote(element.name)}"


@dataclass
class View:
    name: str
    query: Select

    @property
    def table(self) -> TableClause:
        return table(self.name, *[column(c.name) for c in self.query.selected_columns])

    def create(self, or_replace: bool = True) -> CreateView:
        return CreateView(self.name, self.query, or_replace=or_replace)

    def drop(self) -> DropView:
        return DropView(self.name)


def create_views(conn: Connection, views: Iterable[View]) -> None:
    for view in views:
        with translate_errors():
            conn.execute(view.create())
        logger.info(f"Created view {view.name}")


def drop_views(conn: Connection, views: Iterable[View]) -> None:
    for view in views:
        with translate_errors():
            conn.execute(view.drop())
