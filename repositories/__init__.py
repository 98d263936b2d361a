"""
repositories/ - Data Access Layer
==================================
Each repository encapsulates all SQL queries for a specific domain entity.
Repositories receive raw data from the database and return domain model objects.
They never call each other; store errors propagate to the caller unchanged.
"""

from repositories.book_repo import BookRepository
from repositories.borrowing_repo import BorrowingRepository
from repositories.user_repo import UserRepository

__all__ = ["BookRepository", "BorrowingRepository", "UserRepository"]
