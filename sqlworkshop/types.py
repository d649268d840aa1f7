from __future__ import annotations

from dataclasses import Field, dataclass, fields
from typing import Any, Iterator, List, Optional, Tuple, Type, TypeVar, Union

from sqlalchemy import Column, Table
from sqlalchemy.sql import ColumnElement, FromClause
from sqlalchemy.sql.elements import ColumnClause, Label
from sqlalchemy.sql.functions import FunctionElement
from sqlalchemy.sql.visitors import iterate

AGGREGATES = {"count", "sum", "avg", "min", "max", "array_agg", "string_agg"}


class Operation:
    pass


@dataclass(eq=False)
class BinOperation(Operation):
    left: C
    right: Any
    attr: str


@dataclass(eq=False)
class OrderBy:
    column: C
    descending: bool = False


class Select:
    __sqlworkshop_meta__: SelectMeta = None


class Insert:
    __sqlworkshop_meta__: InsertMeta = None


R = TypeVar("R", Select, Insert)


@dataclass
class InsertBundle:
    name: str
    type: Type[Insert]
    is_many: bool
    using: List[C]
    into: List[Column]


@dataclass
class SelectMeta:
    from_: FromClause
    column_fields: List[Field]
    selects: List[ColumnElement]
    group_by: List[ColumnElement]


@dataclass
class InsertMeta:
    table: Table
    column_fields: List[Field]
    returning_selects: List[ColumnElement]
    relationships: List[InsertBundle]


@dataclass(eq=False)
class C:
    column: ColumnElement
    # these get written by the select|insert decorator
    select_type: Type[R] = None
    name: str = None

    # comparisons build filters rather than comparing markers
    __hash__ = object.__hash__

    def __eq__(self, other: Any):
        return BinOperation(self, other, "__eq__")

    def __ne__(self, other: Any):
        return BinOperation(self, other, "__ne__")

    def __lt__(self, other: Any):
        return BinOperation(self, other, "__lt__")

    def __le__(self, other: Any):
        return BinOperation(self, other, "__le__")

    def __gt__(self, other: Any):
        return BinOperation(self, other, "__gt__")

    def __ge__(self, other: Any):
        return BinOperation(self, other, "__ge__")

    def asc(self) -> OrderBy:
        return OrderBy(self)

    def desc(self) -> OrderBy:
        return OrderBy(self, descending=True)

    @property
    def is_aggregate(self) -> bool:
        return is_aggregate(self.column)


@dataclass(eq=False)
class InsertUsing:
    args: List[C]
    # child columns receiving the parent's returned values, defaults to
    # the columns with the same names
    into: Optional[List[Column]] = None
    # these get written by the insert decorator
    select_type: Type[Insert] = None
    name: str = None

    def __post_init__(self):
        if not isinstance(self.args, list):
            self.args = [self.args]
        if self.into is not None and not isinstance(self.into, list):
            self.into = [self.into]


def is_aggregate(expression: ColumnElement) -> bool:
    return any(
        isinstance(element, FunctionElement)
        and getattr(element, "name", "").lower() in AGGREGATES
        for element in iterate(expression)
    )


def select(cls) -> Type[Select]:
    cls = dataclass(cls)

    column_fields = list(_yield_column_fields(cls))
    selects = list(_yield_selects(cls))
    group_by = []
    if any(field.default.is_aggregate for field in column_fields):
        group_by = [
            field.default.column
            for field in column_fields
            if not field.default.is_aggregate
        ]

    meta = SelectMeta(
        from_=_get_from(cls),
        column_fields=column_fields,
        selects=selects,
        group_by=group_by,
    )

    cls.__sqlworkshop_meta__ = meta
    return cls


def insert(cls) -> Type[Insert]:
    cls = dataclass(cls)

    meta = InsertMeta(
        table=_get_table(cls),
        column_fields=list(_yield_column_fields(cls)),
        returning_selects=list(_yield_returning_selects(cls)),
        relationships=list(_yield_insert_relationships(cls)),
    )

    cls.__sqlworkshop_meta__ = meta
    return cls


def to_is_many_and_type(type_: Union[Type[R], List[Type[R]]]) -> Tuple[bool, R]:
    if not hasattr(type_, "__origin__"):
        return False, type_
    if (type_.__origin__ is not list) or (len(type_.__args__) != 1):
        raise RuntimeError("make sure to type child inserts like List[R] or R")
    return True, type_.__args__[0]


def _yield_column_fields(select_type: Type[R]) -> Iterator[Field]:
    for field in fields(select_type):
        if not isinstance(field.default, (C, InsertUsing)):
            raise RuntimeError(
                "fields must have C|InsertUsing values as their defaults"
            )
        field.default.select_type = select_type
        field.default.name = field.name
        if isinstance(field.default, C):
            yield field


def _yield_insert_relationships(select_type: Type[Insert]) -> Iterator[InsertBundle]:
    for field in fields(select_type):
        if isinstance(field.default, InsertUsing):
            is_many, relationship_type = to_is_many_and_type(field.type)
            into = field.default.into or [
                relationship_type.__sqlworkshop_meta__.table.c[c.column.name]
                for c in field.default.args
            ]
            if len(into) != len(field.default.args):
                raise RuntimeError(
                    f"{field.name}: InsertUsing needs one child column per value"
                )
            yield InsertBundle(
                name=field.name,
                type=relationship_type,
                is_many=is_many,
                using=field.default.args,
                into=into,
            )


def _yield_selects(select_type: Type[R]) -> Iterator[ColumnElement]:
    for column_field in _yield_column_fields(select_type):
        column = column_field.default.column
        if isinstance(column, ColumnClause) and column_field.name == column.name:
            yield column
        else:
            yield column.label(column_field.name)


def _yield_tables(select_type: Type[R]) -> Iterator[FromClause]:
    seen = []
    for field in _yield_column_fields(select_type):
        for element in iterate(field.default.column):
            if isinstance(element, ColumnClause) and element.table is not None:
                if element.table not in seen:
                    seen.append(element.table)
                    yield element.table


def _get_from(select_type: Type[Select]) -> FromClause:
    explicit = getattr(select_type, "__from__", None)
    if explicit is not None:
        return explicit
    tables = list(_yield_tables(select_type))
    if not tables:
        raise RuntimeError(f"{select_type.__name__} does not refer to any table")
    joined = tables[0]
    # join conditions come from the foreign keys
    for table in tables[1:]:
        joined = joined.join(table)
    return joined


def _get_table(select_type: Type[Insert]) -> Table:
    tables = set(_yield_tables(select_type))
    if len(tables) != 1:
        raise RuntimeError("can only refer to one table per class")
    return tables.pop()


def _yield_returning_selects(select_type: Type[Insert]) -> Iterator[ColumnElement]:
    returning_cls = getattr(select_type, "Returning", type("Returning", (), {}))
    returning_cls = dataclass(returning_cls)
    for column in _yield_selects(returning_cls):
        yield column


def label_of(c: C) -> Union[Label, ColumnElement]:
    for column in c.select_type.__sqlworkshop_meta__.selects:
        if column.name == c.name:
            return column
    raise RuntimeError(f"{c.name} is not selected by {c.select_type.__name__}")
