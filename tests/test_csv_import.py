from datetime import date, time
from io import StringIO

import pytest
from sqlalchemy import func, select

from sqlworkshop import DataValidationError, ForeignKeyViolation, InvalidValueError
from sqlworkshop.csv_import import (
    FieldMapping,
    ImportReport,
    import_csv,
    read_rows,
    to_date,
    to_int,
    to_time,
)
from sqlworkshop.model import customers, sales, states
from sqlworkshop.seed import seed_sales

CUSTOMER_FIELDS = [
    FieldMapping("name", customers.c.name, critical=True),
    FieldMapping("member", customers.c.loyalty_member, to_int, critical=True),
    FieldMapping("postcode", customers.c.postal_code),
    FieldMapping("born", customers.c.date_of_birth, to_date),
]

SALE_FIELDS = [
    FieldMapping("customer", sales.c.customer_id, to_int, critical=True),
    FieldMapping("item", sales.c.item_id, to_int, critical=True),
]

STATE_FIELDS = [
    FieldMapping("name", states.c.name, critical=True),
    FieldMapping("abbreviation", states.c.abbreviation, critical=True),
    FieldMapping("population", states.c.population, to_int),
]


def _read(text, mappings):
    report = ImportReport(table="test")
    rows = list(read_rows(StringIO(text), mappings, report))
    return rows, report


def test_coercers():
    assert to_date("09/11/2021") == date(2021, 9, 11)
    assert to_date("2021-09-11") == date(2021, 9, 11)
    assert to_time("2:39") == time(2, 39)
    assert to_time("14:05:30") == time(14, 5, 30)
    with pytest.raises(ValueError):
        to_date("yesterday")


def test_non_critical_errors_become_null():
    rows, report = _read(
        "name,member,postcode,born\nAna,1,10001,not a date\nBen,0,,1985-07-03\n",
        CUSTOMER_FIELDS,
    )
    assert rows == [
        (
            2,
            {
                "name": "Ana",
                "loyalty_member": 1,
                "postal_code": "10001",
                "date_of_birth": None,
            },
        ),
        (
            3,
            {
                "name": "Ben",
                "loyalty_member": 0,
                "postal_code": None,
                "date_of_birth": date(1985, 7, 3),
            },
        ),
    ]
    [issue] = report.coerced
    assert (issue.line, issue.header, issue.value) == (2, "born", "not a date")
    assert report.rejected == []


def test_critical_errors_reject_the_row():
    rows, report = _read(
        "name,member,postcode,born\nAna,yes,,\n,0,,\nChloe,0,,\n", CUSTOMER_FIELDS
    )
    assert [line for line, _ in rows] == [4]
    assert [r.line for r in report.rejected] == [2, 3]
    assert "member" in report.rejected[0].reason
    assert report.rejected[1].reason == "name is empty"


def test_missing_headers():
    with pytest.raises(DataValidationError, match="born"):
        _read("name,member,postcode\nAna,1,\n", CUSTOMER_FIELDS)


def test_import(conn):
    source = StringIO("name,member,postcode,born\nAna,1,10001,bad\nBen,0,,\n")
    report = import_csv(conn, customers, source, CUSTOMER_FIELDS, batch_size=1)
    assert report.inserted == 2
    assert len(report.coerced) == 1
    names = conn.execute(select(customers.c.name).order_by(customers.c.id)).scalars()
    assert list(names) == ["Ana", "Ben"]


def test_strict_import_stops_on_bad_critical_value(conn):
    source = StringIO("name,member,postcode,born\nAna,1,,\nBen,maybe,,\n")
    with pytest.raises(DataValidationError, match="line 3"):
        import_csv(conn, customers, source, CUSTOMER_FIELDS)


def test_unknown_foreign_key_is_rejected(conn):
    seed_sales(conn)
    source = StringIO("customer,item\n1,2\n99,1\n")
    with pytest.raises(ForeignKeyViolation):
        with conn.begin_nested():
            import_csv(conn, sales, source, SALE_FIELDS)
    assert conn.execute(select(func.count()).select_from(sales)).scalar_one() == 10


def test_lenient_import_records_rejected_rows(conn):
    seed_sales(conn)
    source = StringIO("customer,item\n1,2\n99,1\n2,x\n3,1\n")
    report = import_csv(conn, sales, source, SALE_FIELDS, strict=False)
    assert report.inserted == 2
    assert [r.line for r in report.rejected] == [4, 3]
    assert "sales_customer_id_fkey" in report.rejected[1].reason
    assert conn.execute(select(func.count()).select_from(sales)).scalar_one() == 12


def test_lenient_import_rejects_values_out_of_range(conn):
    source = StringIO(
        "name,abbreviation,population\n"
        "Oregon,OR,4233358\n"
        "Atlantis,AT,3000000000\n"
        "Ohio,OH,11785935\n"
    )
    report = import_csv(conn, states, source, STATE_FIELDS, strict=False)
    assert report.inserted == 2
    [rejected] = report.rejected
    assert rejected.line == 3
    assert "out of range" in rejected.reason
    names = conn.execute(select(states.c.name).order_by(states.c.name)).scalars()
    assert list(names) == ["Ohio", "Oregon"]


def test_strict_import_stops_on_value_out_of_range(conn):
    source = StringIO("name,abbreviation,population\nAtlantis,AT,3000000000\n")
    with pytest.raises(InvalidValueError):
        with conn.begin_nested():
            import_csv(conn, states, source, STATE_FIELDS)
