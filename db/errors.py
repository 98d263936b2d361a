"""
db/errors.py
------------
Helpers for interpreting errors raised by psycopg2.

Repositories let store errors propagate untouched; callers that need to
tell a duplicate key from a broken foreign key use these helpers on the
caught exception.
"""

import enum
from typing import Optional

import psycopg2
from psycopg2 import errorcodes, errors


class ConstraintKind(str, enum.Enum):
    """Category of a declared constraint that rejected a write."""
    UNIQUE = "unique"
    FOREIGN_KEY = "foreign_key"
    CHECK = "check"
    NOT_NULL = "not_null"
    LENGTH = "length"


_KIND_BY_CLASS = (
    (errors.UniqueViolation, ConstraintKind.UNIQUE),
    (errors.ForeignKeyViolation, ConstraintKind.FOREIGN_KEY),
    (errors.CheckViolation, ConstraintKind.CHECK),
    (errors.NotNullViolation, ConstraintKind.NOT_NULL),
    (errors.StringDataRightTruncation, ConstraintKind.LENGTH),
)

_KIND_BY_CODE = {
    errorcodes.UNIQUE_VIOLATION: ConstraintKind.UNIQUE,
    errorcodes.FOREIGN_KEY_VIOLATION: ConstraintKind.FOREIGN_KEY,
    errorcodes.CHECK_VIOLATION: ConstraintKind.CHECK,
    errorcodes.NOT_NULL_VIOLATION: ConstraintKind.NOT_NULL,
    errorcodes.STRING_DATA_RIGHT_TRUNCATION: ConstraintKind.LENGTH,
}


def constraint_kind(exc: BaseException) -> Optional[ConstraintKind]:
    """
    Classify a store error by the kind of constraint it violated.

    Returns:
        The ConstraintKind, or None if the error is not a constraint violation.
    """
    for cls, kind in _KIND_BY_CLASS:
        if isinstance(exc, cls):
            return kind
    if isinstance(exc, psycopg2.Error):
        return _KIND_BY_CODE.get(exc.pgcode)
    return None


def constraint_name(exc: BaseException) -> Optional[str]:
    """Name of the violated constraint, when the server reported one."""
    if not isinstance(exc, psycopg2.Error) or exc.diag is None:
        return None
    return exc.diag.constraint_name


def is_store_unavailable(exc: BaseException) -> bool:
    """True for connectivity/transport failures rather than rejected writes."""
    return isinstance(exc, (psycopg2.OperationalError, psycopg2.InterfaceError))
