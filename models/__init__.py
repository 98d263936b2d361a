"""
models/ - Domain Models
=======================
Plain dataclasses mapped 1:1 to rows of the users, books and borrowings tables.
"""

from models.book import Book
from models.borrowing import Borrowing
from models.enums import BookStatus, BorrowingStatus, UserRole, UserStatus
from models.user import User

__all__ = [
    "Book",
    "Borrowing",
    "BookStatus",
    "BorrowingStatus",
    "User",
    "UserRole",
    "UserStatus",
]
