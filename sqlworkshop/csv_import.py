"""
Load CSV files into tables through an explicit header-to-column mapping.

Values are coerced in Python before insertion. A value that cannot be
coerced for a non-critical field is loaded as NULL and reported; the same
failure on a critical field (ids, foreign keys) rejects the row. Foreign
keys are checked by PostgreSQL itself.
"""
import csv
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import IO, Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

from sqlalchemy import Column, Table, insert
from sqlalchemy.engine import Connection

from . import config
from .errors import (
    DataValidationError,
    IntegrityViolation,
    InvalidValueError,
    translate_errors,
)
from .log import get_logger

logger = get_logger(__name__)

# failures that reject one row in lenient mode
ROW_ERRORS = (IntegrityViolation, InvalidValueError)

DATE_FORMATS = ("%m/%d/%Y", "%Y-%m-%d")
TIME_FORMATS = ("%H:%M", "%H:%M:%S")


def to_str(raw: str) -> str:
    return raw.strip()


def to_int(raw: str) -> int:
    return int(raw.strip())


def to_float(raw: str) -> float:
    return float(raw.strip())


def to_date(raw: str) -> date:
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(raw.strip(), fmt).date()
        except ValueError:
            continue
    raise ValueError(f"unrecognised date {raw!r}")


def to_time(raw: str) -> time:
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(raw.strip(), fmt).time()
        except ValueError:
            continue
    raise ValueError(f"unrecognised time {raw!r}")


@dataclass
class FieldMapping:
    header: str
    column: Column
    coerce: Callable[[str], Any] = to_str
    critical: bool = False


@dataclass
class CoercionIssue:
    line: int
    header: str
    value: str
    error: str


@dataclass
class RejectedRow:
    line: int
    reason: str


@dataclass
class ImportReport:
    table: str
    inserted: int = 0
    coerced: List[CoercionIssue] = field(default_factory=list)
    rejected: List[RejectedRow] = field(default_factory=list)


def open_csv(source: Union[str, Path, IO[str]]) -> IO[str]:
    if isinstance(source, (str, Path)):
        return open(source, newline="", encoding=config.CSV_ENCODING)
    return source


def read_rows(
    fileobj: IO[str], mappings: List[FieldMapping], report: ImportReport
) -> Iterator[Tuple[int, Dict[str, Any]]]:
    """Yield ``(line, values)`` for every row that can be loaded."""
    reader = csv.DictReader(fileobj)
    headers = reader.fieldnames or []
    missing = [m.header for m in mappings if m.header not in headers]
    if missing:
        raise DataValidationError(f"missing CSV columns: {', '.join(missing)}")

    for row in reader:
        line = reader.line_num
        values = {}
        rejected = None
        for mapping in mappings:
            raw = row[mapping.header]
            if raw is None or raw.strip() == "":
                if mapping.critical:
                    rejected = f"{mapping.header} is empty"
                    break
                values[mapping.column.name] = None
                continue
            try:
                values[mapping.column.name] = mapping.coerce(raw)
            except ValueError as exc:
                if mapping.critical:
                    rejected = f"{mapping.header}: {exc}"
                    break
                logger.warning(
                    f"line {line}: loading {mapping.header}={raw!r} as NULL ({exc})"
                )
                report.coerced.append(
                    CoercionIssue(line, mapping.header, raw, str(exc))
                )
                values[mapping.column.name] = None
        if rejected is not None:
            report.rejected.append(RejectedRow(line, rejected))
            continue
        yield line, values


def _batches(rows: Iterator[Tuple[int, Dict]], size: int) -> Iterator[List]:
    batch = []
    for row in rows:
        batch.append(row)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch


def _insert_row_by_row(
    conn: Connection, table: Table, batch: List, report: ImportReport
) -> None:
    for line, values in batch:
        try:
            with conn.begin_nested(), translate_errors():
                conn.execute(insert(table), [values])
        except ROW_ERRORS as exc:
            report.rejected.append(RejectedRow(line, str(exc)))
        else:
            report.inserted += 1


def load_rows(
    conn: Connection,
    table: Table,
    rows: Iterator[Tuple[int, Dict[str, Any]]],
    report: ImportReport,
    strict: bool = True,
    batch_size: Optional[int] = None,
) -> ImportReport:
    for batch in _batches(rows, batch_size or config.IMPORT_BATCH_SIZE):
        if strict:
            with translate_errors():
                conn.execute(insert(table), [values for _, values in batch])
            report.inserted += len(batch)
            continue
        try:
            with conn.begin_nested(), translate_errors():
                conn.execute(insert(table), [values for _, values in batch])
        except ROW_ERRORS:
            _insert_row_by_row(conn, table, batch, report)
        else:
            report.inserted += len(batch)

    logger.info(
        f"Imported {report.inserted} rows into {table.name} "
        f"({len(report.coerced)} values nulled, {len(report.rejected)} rows rejected)"
    )
    return report


def import_csv(
    conn: Connection,
    table: Table,
    source: Union[str, Path, IO[str]],
    mappings: List[FieldMapping],
    strict: bool = True,
    batch_size: Optional[int] = None,
) -> ImportReport:
    """
    Insert the rows of a CSV file into ``table``, the caller owns the
    transaction. Strict mode raises on the first bad row, otherwise bad rows
    are recorded in the returned report.
    """
    report = ImportReport(table=table.name)
    fileobj = open_csv(source)
    try:
        rows = read_rows(fileobj, mappings, report)
        if strict:
            rows = _raise_on_reject(rows, report)
        return load_rows(
            conn, table, rows, report, strict=strict, batch_size=batch_size
        )
    finally:
        if fileobj is not source:
            fileobj.close()


def _raise_on_reject(
    rows: Iterator[Tuple[int, Dict[str, Any]]], report: ImportReport
) -> Iterator[Tuple[int, Dict[str, Any]]]:
    for row in rows:
        if report.rejected:
            break
        yield row
    if report.rejected:
        first = report.rejected[0]
        raise DataValidationError(f"line {first.line}: {first.reason}")
