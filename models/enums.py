"""
models/enums.py
---------------
Closed value sets for the role/status columns.
The database CHECK constraints accept exactly these values.
"""

import enum


class UserRole(str, enum.Enum):
    MEMBER = "member"
    LIBRARIAN = "librarian"
    ADMIN = "admin"


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class BookStatus(str, enum.Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    MAINTENANCE = "maintenance"


class BorrowingStatus(str, enum.Enum):
    """
    Lifecycle of a borrowing.

    Flow:
        BORROWED -> RETURNED
        BORROWED -> OVERDUE -> RETURNED
        BORROWED/OVERDUE -> LOST (explicit status update only)
    """
    BORROWED = "borrowed"
    RETURNED = "returned"
    OVERDUE = "overdue"
    LOST = "lost"
