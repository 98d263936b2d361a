"""
models/borrowing.py
-------------------
Domain model for a single loan of a book to a user.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from models.enums import BorrowingStatus


@dataclass
class Borrowing:
    """
    Represents one borrowing record.

    Attributes:
        borrowing_id: Database primary key (None for new records).
        user_id: Borrower (cascade-deleted with the user).
        book_id: Borrowed book (the book cannot be deleted while referenced).
        due_date: Must be strictly after borrow_date.
        borrow_date: Defaults to the insert time when None.
        return_date: None until the book comes back.
        status: borrowed, returned, overdue or lost.
        fine_amount: Accumulated fine.
        fine_paid: Whether the fine has been settled.
        notes: Free-text note.
        created_at: Set by the database on insert.
        updated_at: Refreshed by a trigger on every update.
    """
    user_id: int
    book_id: int
    due_date: datetime
    borrow_date: Optional[datetime] = None
    return_date: Optional[datetime] = None
    status: BorrowingStatus = BorrowingStatus.BORROWED
    fine_amount: float = 0.0
    fine_paid: bool = False
    notes: Optional[str] = None
    borrowing_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        self.status = BorrowingStatus(self.status)

    def is_active(self) -> bool:
        """Returns True while the book has not been returned."""
        return self.return_date is None

    def is_past_due(self, now: datetime) -> bool:
        return self.is_active() and self.due_date < now

    def __str__(self) -> str:
        return (
            f"#{self.borrowing_id} user {self.user_id} -> book {self.book_id} "
            f"| {self.status.value} | due {self.due_date:%Y-%m-%d}"
        )
