from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Sequence, Union

from sqlalchemy.dialects.postgresql import insert as sa_insert
from sqlalchemy.engine import Connection
from sqlalchemy.sql import ClauseElement

from .errors import translate_errors
from .types import Insert


@dataclass
class Query:
    query: ClauseElement
    _query_function: Callable[[Connection], List[Any]]

    def __call__(self, conn: Connection):
        return self._query_function(conn)


def to_inserts(inserts: Union[List[Insert], Insert]) -> Iterator[Query]:
    """Yield one INSERT per level, parents first.

    Child queries only exist once their parent has been executed, as they
    need the values from its RETURNING clause.
    """
    if not isinstance(inserts, list):
        inserts = [inserts]

    querys: List[Query] = []

    def add_query(inserts: Sequence[Insert], parent_returnings: Sequence[Dict]):
        if not inserts:
            return
        first = inserts[0]
        fields = first.__sqlworkshop_meta__.column_fields
        table = first.__sqlworkshop_meta__.table
        returning = first.__sqlworkshop_meta__.returning_selects
        relationships = first.__sqlworkshop_meta__.relationships
        values = [
            {field.default.column.name: getattr(i, field.name) for field in fields}
            for i in inserts
        ]
        for value, parent_returning in zip(values, parent_returnings):
            value.update(parent_returning)

        query = sa_insert(table).values(values)
        if returning:
            query = query.returning(*returning)

        def f(conn: Connection):
            if not returning:
                if relationships:
                    raise RuntimeError(
                        f"{type(first)} has child inserts, but no RETURNING values"
                    )
                with translate_errors():
                    return conn.execute(query)

            with translate_errors():
                returnings = [r._mapping for r in conn.execute(query)]
            for relationship in relationships:
                parent_returnings = [
                    {
                        into.name: r[using.name]
                        for using, into in zip(relationship.using, relationship.into)
                    }
                    for r in returnings
                ]
                all_child_inserts = [getattr(i, relationship.name) for i in inserts]
                if not relationship.is_many:
                    all_child_inserts = [
                        [] if c is None else [c] for c in all_child_inserts
                    ]
                all_child_inserts_flat = [
                    (child_insert, returning)
                    for child_inserts, returning in zip(
                        all_child_inserts, parent_returnings
                    )
                    for child_insert in child_inserts
                ]
                if not all_child_inserts_flat:
                    continue
                child_inserts, parent_returnings_flat = zip(*all_child_inserts_flat)
                add_query(child_inserts, parent_returnings_flat)

            return returnings

        querys.append(Query(query, f))

    def iter_querys():
        while querys:
            yield querys.pop()

    add_query(inserts, [{}] * len(inserts))
    return iter_querys()


def do_inserts(conn: Connection, inserts: Union[List[Insert], Insert]) -> List[Any]:
    if not isinstance(inserts, list):
        inserts = [inserts]
    if not inserts:
        return []
    querys = to_inserts(inserts)
    returning = next(querys)(conn)
    for query in querys:
        query(conn)
    return returning
