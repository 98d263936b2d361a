"""
models/book.py
--------------
Domain model for catalogue books and their copy counters.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from models.enums import BookStatus


@dataclass
class Book:
    """
    Represents a book title held by the library.

    Attributes:
        book_id: Database primary key (None for new records).
        isbn: Unique ISBN.
        title: Book title.
        author_id: Required reference to the authors table.
        publisher_id: Optional reference to the publishers table.
        category_id: Optional reference to the categories table.
        publication_year: Must be >= 1000 when given.
        pages: Page count.
        language: Language of the edition.
        description: Free-text blurb.
        total_copies: Copies owned by the library.
        available_copies: Copies currently on the shelf. Defaults to total_copies.
        price: Replacement price.
        location: Shelf location code.
        status: available, unavailable or maintenance.
        created_at: Set by the database on insert.
        updated_at: Refreshed by a trigger on every update.
    """
    isbn: str
    title: str
    author_id: int
    total_copies: int = 1
    available_copies: Optional[int] = None
    publisher_id: Optional[int] = None
    category_id: Optional[int] = None
    publication_year: Optional[int] = None
    pages: Optional[int] = None
    language: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    location: Optional[str] = None
    status: BookStatus = BookStatus.AVAILABLE
    book_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.available_copies is None:
            self.available_copies = self.total_copies
        self.status = BookStatus(self.status)

    def has_available_copy(self) -> bool:
        """Returns True if at least one copy is on the shelf."""
        return self.available_copies > 0

    def __str__(self) -> str:
        return f"#{self.book_id} {self.title} [{self.isbn}] {self.available_copies}/{self.total_copies}"
