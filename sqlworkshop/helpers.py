from datetime import date, datetime, time
from decimal import Decimal
from typing import Iterable
from uuid import UUID

import sqlparse
from sqlalchemy.dialects import postgresql
from sqlalchemy.dialects.postgresql.base import PGCompiler
from sqlalchemy.sql import ClauseElement
from sqlalchemy.sql.ddl import ExecutableDDLElement
from sqlalchemy.sql.dml import Insert


# following class allows in-place pretty printing datetimes etc.
# see https://stackoverflow.com/a/9898141/4865874
class LiteralCompiler(PGCompiler):
    def render_literal_value(self, value, type_):
        if isinstance(value, str):
            value = value.replace("'", "''")
            return f"'{value}'"
        elif isinstance(value, UUID):
            return f"'{value}'"
        elif value is None:
            return "NULL"
        elif isinstance(value, bool):
            return "true" if value else "false"
        elif isinstance(value, Decimal):
            return str(value)
        elif isinstance(value, (float, int)):
            return repr(value)
        elif isinstance(value, (date, datetime, time)):
            return f"'{value.isoformat()}'"
        raise NotImplementedError(f"Don't know how to literal-quote value {value!r}")


def sqlraw(qry: ClauseElement) -> str:
    dialect = postgresql.dialect()
    if isinstance(qry, ExecutableDDLElement):
        return str(qry.compile(dialect=dialect)).strip()
    if isinstance(qry, Insert):
        # no implicit RETURNING of the primary key, explicit returning() stays
        qry = qry.inline()
    compiler = LiteralCompiler(dialect, qry, compile_kwargs={"literal_binds": True})
    return compiler.string


def sqlformat(qry: ClauseElement) -> str:
    raw_sql = sqlraw(qry)
    return sqlparse.format(
        raw_sql,
        reindent=True,
        keyword_case="upper",
        indent_width=4,
        indent_tabs=False,
        wrap_after=40,
    )


def sqlprint(qry: ClauseElement) -> None:
    print(sqlformat(qry))


def sqlscript(qrys: Iterable[ClauseElement]) -> str:
    """Render statements as one script, ready to paste into a SQL console."""
    return "\n\n".join(f"{sqlformat(qry)};" for qry in qrys) + "\n"
