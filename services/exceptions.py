"""
services/exceptions.py
----------------------
Business-level failures raised by the service layer.

Store errors (psycopg2) are never wrapped in these; they pass through.
"""


class LibraryError(Exception):
    """Base exception for library business errors."""


class InvalidArgumentError(LibraryError, ValueError):
    """Caller-supplied data fails a precondition checkable without the store."""


# ── Not found ─────────────────────────────────────────────

class NotFoundError(LibraryError):
    """A referenced record does not exist."""


class UserNotFoundError(NotFoundError):
    pass


class BookNotFoundError(NotFoundError):
    pass


class BorrowingNotFoundError(NotFoundError):
    pass


# ── State conflicts ───────────────────────────────────────

class StateConflictError(LibraryError):
    """A business rule is violated given the current persisted state."""


class UserNotActiveError(StateConflictError):
    """The account is inactive or suspended."""


class NoCopiesAvailableError(StateConflictError):
    """No copy is on the shelf, including losing the race for the last one."""


class BorrowingLimitReachedError(StateConflictError):
    """The user already holds the maximum number of active borrowings."""


class AlreadyReturnedError(StateConflictError):
    """The borrowing has already been closed."""


class BorrowingLostError(StateConflictError):
    """The borrowing was closed as lost; it cannot be returned."""


class FineNotPayableError(StateConflictError):
    """Nothing is owed, or the fine was already settled."""


class InventoryConsistencyError(StateConflictError):
    """The copy counter disagrees with the borrowing records."""
