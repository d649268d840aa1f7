from .errors import (
    AmbiguousColumnError,
    CheckViolation,
    DataValidationError,
    ForeignKeyViolation,
    IntegrityViolation,
    InvalidValueError,
    NotNullViolation,
    UniqueViolation,
    WorkshopError,
    translate_errors,
)
from .helpers import sqlformat, sqlprint, sqlraw, sqlscript
from .insert import do_inserts, to_inserts
from .select import do_select, fetch_all, from_row, to_select
from .types import C, InsertUsing, insert, select
from .views import View, create_views, drop_views
