from dataclasses import fields
from typing import Any, Iterator, List, Optional, Tuple, Type, Union

from sqlalchemy.engine import Connection
from sqlalchemy.sql import ColumnElement
from sqlalchemy.sql import and_ as sa_and
from sqlalchemy.sql import select as sa_select
from sqlalchemy.sql.selectable import Select as SaSelect

from .errors import translate_errors
from .types import BinOperation, C, OrderBy, R, is_aggregate, label_of

Filter = Union[BinOperation, ColumnElement]
Ordering = Union[OrderBy, C, ColumnElement]


def _resolve_column(value: Any) -> Any:
    if not isinstance(value, C):
        return value
    return value.column


def _resolve_operation(operation: Filter) -> ColumnElement:
    if isinstance(operation, BinOperation):
        left = _resolve_column(operation.left)
        right = _resolve_column(operation.right)
        return getattr(left, operation.attr)(right)
    return operation


def _resolve_order_by(ordering: Ordering) -> ColumnElement:
    if isinstance(ordering, C):
        ordering = ordering.asc()
    if isinstance(ordering, OrderBy):
        label = label_of(ordering.column)
        return label.desc() if ordering.descending else label.asc()
    return ordering


def _split_filters(
    filters: List[Filter],
) -> Tuple[List[ColumnElement], List[ColumnElement]]:
    where, having = [], []
    for operation in filters:
        resolved = _resolve_operation(operation)
        (having if is_aggregate(resolved) else where).append(resolved)
    return where, having


def to_select(
    select_type: Type[R],
    filters: Optional[List[Filter]] = None,
    order_by: Optional[List[Ordering]] = None,
) -> SaSelect:
    meta = select_type.__sqlworkshop_meta__
    query = sa_select(*meta.selects).select_from(meta.from_)
    where, having = _split_filters(filters or [])
    if where:
        query = query.where(sa_and(*where))
    if meta.group_by:
        query = query.group_by(*meta.group_by)
    if having:
        query = query.having(sa_and(*having))
    if order_by:
        query = query.order_by(*[_resolve_order_by(o) for o in order_by])
    return query


def from_row(select_type: Type[R], row: Any) -> R:
    return select_type(
        **{field.name: getattr(row, field.name) for field in fields(select_type)}
    )


def do_select(
    conn: Connection,
    select_type: Type[R],
    filters: Optional[List[Filter]] = None,
    order_by: Optional[List[Ordering]] = None,
) -> Iterator[R]:
    query = to_select(select_type, filters=filters, order_by=order_by)
    with translate_errors():
        rows = conn.execute(query)
    return (from_row(select_type, row) for row in rows)


def fetch_all(conn: Connection, select_type: Type[R], query: SaSelect) -> List[R]:
    """Run a query built from ``select_type`` (eg. with extra ordering)."""
    with translate_errors():
        rows = conn.execute(query)
    return [from_row(select_type, row) for row in rows]
