from contextlib import contextmanager
from typing import Iterator, Optional

from psycopg2 import errorcodes
from sqlalchemy.exc import DBAPIError

from .log import get_logger

logger = get_logger(__name__)


class WorkshopError(Exception):
    pass


class DataValidationError(WorkshopError):
    """Input data failed a check before reaching the database."""


class AmbiguousColumnError(WorkshopError):
    """A column name matched more than one table in a join, add aliases."""


class InvalidValueError(WorkshopError):
    """PostgreSQL refused a value for its column type, e.g. integer out of range."""


class IntegrityViolation(WorkshopError):
    def __init__(
        self,
        message: str,
        constraint: Optional[str] = None,
        table: Optional[str] = None,
        detail: Optional[str] = None,
    ):
        super().__init__(message)
        self.constraint = constraint
        self.table = table
        self.detail = detail


class UniqueViolation(IntegrityViolation):
    pass


class ForeignKeyViolation(IntegrityViolation):
    pass


class NotNullViolation(IntegrityViolation):
    pass


class CheckViolation(IntegrityViolation):
    pass


_INTEGRITY_ERRORS = {
    errorcodes.UNIQUE_VIOLATION: UniqueViolation,
    errorcodes.FOREIGN_KEY_VIOLATION: ForeignKeyViolation,
    errorcodes.NOT_NULL_VIOLATION: NotNullViolation,
    errorcodes.CHECK_VIOLATION: CheckViolation,
}


def to_workshop_error(exc: DBAPIError) -> Optional[WorkshopError]:
    pgcode = getattr(exc.orig, "pgcode", None)
    diag = getattr(exc.orig, "diag", None)
    message = str(exc.orig).strip()
    if pgcode == errorcodes.AMBIGUOUS_COLUMN:
        return AmbiguousColumnError(message)
    if pgcode and pgcode[:2] == errorcodes.CLASS_DATA_EXCEPTION:
        return InvalidValueError(message)
    if pgcode in _INTEGRITY_ERRORS:
        return _INTEGRITY_ERRORS[pgcode](
            message,
            constraint=getattr(diag, "constraint_name", None),
            table=getattr(diag, "table_name", None),
            detail=getattr(diag, "message_detail", None),
        )
    return None


@contextmanager
def translate_errors() -> Iterator[None]:
    """Re-raise known PostgreSQL errors as ``WorkshopError`` subclasses."""
    try:
        yield
    except DBAPIError as exc:
        error = to_workshop_error(exc)
        if error is None:
            raise
        logger.error(f"{type(error).__name__}: {error}")
        raise error from exc
