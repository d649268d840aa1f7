"""
Loaders for the motor vehicle collisions dataset.

Two files fill three tables: the collision records go to ``collisions``
as they are, the association file (one line per vehicle involved in a
collision) is normalised into ``vehicles`` and ``vehicle_collisions``.
"""
import csv
from collections import Counter
from pathlib import Path
from typing import IO, Dict, List, Union

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.engine import Connection

from .csv_import import (
    FieldMapping,
    ImportReport,
    import_csv,
    load_rows,
    open_csv,
    read_rows,
    to_date,
    to_float,
    to_int,
    to_str,
    to_time,
)
from .errors import DataValidationError, translate_errors
from .log import get_logger
from .model import collisions, vehicle_collisions, vehicles

logger = get_logger(__name__)

CollisionSource = Union[str, Path, IO[str]]

COLLISION_ID = "COLLISION_ID"
VEHICLE_TYPE = "VEHICLE TYPE"

COLLISION_FIELDS = [
    FieldMapping(COLLISION_ID, collisions.c.id, to_int, critical=True),
    FieldMapping("CRASH DATE", collisions.c.date, to_date),
    FieldMapping("CRASH TIME", collisions.c.time, to_time),
    FieldMapping("BOROUGH", collisions.c.borough),
    FieldMapping("ZIP CODE", collisions.c.zip_code),
    FieldMapping("LATITUDE", collisions.c.latitude, to_float),
    FieldMapping("LONGITUDE", collisions.c.longitude, to_float),
    FieldMapping("ON STREET NAME", collisions.c.on_street_name),
    FieldMapping("CROSS STREET NAME", collisions.c.cross_street_name),
    FieldMapping("OFF STREET NAME", collisions.c.off_street_name),
]

VEHICLE_COLLISION_FIELDS = [
    FieldMapping(
        COLLISION_ID, vehicle_collisions.c.collision_id, to_int, critical=True
    ),
    # replaced by vehicle_id once the label has a row in vehicles
    FieldMapping(VEHICLE_TYPE, vehicles.c.vehicle, to_str, critical=True),
]


def verify_collision_ids(source: CollisionSource) -> int:
    """Check ids are present, integral and unique, return the record count."""
    fileobj = open_csv(source)
    try:
        reader = csv.DictReader(fileobj)
        if COLLISION_ID not in (reader.fieldnames or []):
            raise DataValidationError(f"missing CSV column: {COLLISION_ID}")
        counts: Counter = Counter()
        invalid = []
        for row in reader:
            raw = (row[COLLISION_ID] or "").strip()
            try:
                counts[int(raw)] += 1
            except ValueError:
                invalid.append(f"line {reader.line_num}: {raw!r}")
    finally:
        if fileobj is not source:
            fileobj.close()

    duplicates = sorted(i for i, n in counts.items() if n > 1)
    problems = []
    if invalid:
        problems.append(f"missing or invalid ids ({', '.join(invalid)})")
    if duplicates:
        problems.append(f"duplicate ids ({', '.join(map(str, duplicates))})")
    if problems:
        raise DataValidationError("; ".join(problems))
    return sum(counts.values())


def load_collisions(
    conn: Connection, source: CollisionSource, strict: bool = True
) -> ImportReport:
    if isinstance(source, (str, Path)):
        verify_collision_ids(source)
    else:
        # verification consumes the file
        position = source.tell()
        verify_collision_ids(source)
        source.seek(position)
    return import_csv(conn, collisions, source, COLLISION_FIELDS, strict=strict)


def ensure_vehicles(conn: Connection, labels: List[str]) -> Dict[str, int]:
    """Insert missing vehicle labels, return the id of every label."""
    labels = sorted(set(labels))
    if not labels:
        return {}
    query = (
        pg_insert(vehicles)
        .values([{"vehicle": label} for label in labels])
        .on_conflict_do_nothing(index_elements=[vehicles.c.vehicle])
    )
    with translate_errors():
        conn.execute(query)
        rows = conn.execute(
            select(vehicles.c.vehicle, vehicles.c.id).where(
                vehicles.c.vehicle.in_(labels)
            )
        )
    return {vehicle: id_ for vehicle, id_ in rows}


def load_vehicle_collisions(
    conn: Connection, source: CollisionSource, strict: bool = True
) -> ImportReport:
    report = ImportReport(table=vehicle_collisions.name)
    fileobj = open_csv(source)
    try:
        rows = list(read_rows(fileobj, VEHICLE_COLLISION_FIELDS, report))
    finally:
        if fileobj is not source:
            fileobj.close()
    if strict and report.rejected:
        first = report.rejected[0]
        raise DataValidationError(f"line {first.line}: {first.reason}")

    vehicle_ids = ensure_vehicles(conn, [values["vehicle"] for _, values in rows])
    logger.info(f"{len(vehicle_ids)} distinct vehicle types")
    junction_rows = (
        (
            line,
            {
                "collision_id": values["collision_id"],
                "vehicle_id": vehicle_ids[values["vehicle"]],
            },
        )
        for line, values in rows
    )
    return load_rows(conn, vehicle_collisions, junction_rows, report, strict=strict)
