"""
services/borrowing_service.py
------------------------------
Business logic for lending books: borrow, return, overdue tracking and fines.
Orchestrates the user, book and borrowing repositories.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import psycopg2

from config import DEFAULT_BORROW_DAYS, FINE_PER_DAY, MAX_ACTIVE_BORROWINGS
from db.connection import Database
from db.errors import is_store_unavailable
from models.borrowing import Borrowing
from models.enums import BorrowingStatus
from repositories.book_repo import BookRepository
from repositories.borrowing_repo import BorrowingRepository
from repositories.user_repo import UserRepository
from services.exceptions import (
    AlreadyReturnedError,
    BookNotFoundError,
    BorrowingLimitReachedError,
    BorrowingLostError,
    BorrowingNotFoundError,
    FineNotPayableError,
    InvalidArgumentError,
    InventoryConsistencyError,
    NoCopiesAvailableError,
    UserNotActiveError,
    UserNotFoundError,
)
from utils.logger import get_logger

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class OverdueUpdateResult:
    """Outcome of one update_overdue_status() run."""
    updated: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.updated) + len(self.failed)


class BorrowingService:
    """
    Handles the borrowing lifecycle.

    Workflow:
        1. Validate arguments that need no database access.
        2. Check the user, the book and the user's borrowing limit.
        3. Apply the guarded copy-counter update; it alone decides who wins
           when several callers compete for the last copy.
        4. Persist the borrowing change in the same transaction.

    Collaborators are injected so tests can substitute in-memory repositories.
    """

    def __init__(
        self,
        db: Database,
        user_repo: Optional[UserRepository] = None,
        book_repo: Optional[BookRepository] = None,
        borrowing_repo: Optional[BorrowingRepository] = None,
        max_active_borrowings: int = MAX_ACTIVE_BORROWINGS,
        fine_per_day: float = FINE_PER_DAY,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.db = db
        self.user_repo = user_repo or UserRepository(db)
        self.book_repo = book_repo or BookRepository(db)
        self.borrowing_repo = borrowing_repo or BorrowingRepository(db)
        self.max_active_borrowings = max_active_borrowings
        self.fine_per_day = fine_per_day
        self.clock = clock

    # ── BORROW / RETURN ───────────────────────────────────

    def borrow_book(
        self, user_id: Optional[int], book_id: Optional[int], borrow_days: int = DEFAULT_BORROW_DAYS
    ) -> Borrowing:
        """
        Lend one copy of a book to a user.

        Args:
            user_id: Borrower ID.
            book_id: Book ID.
            borrow_days: Loan period in days, must be positive.

        Returns:
            The created Borrowing with its database-generated fields.

        Raises:
            InvalidArgumentError: Missing IDs or a non-positive loan period.
            UserNotFoundError / BookNotFoundError: Unknown user or book.
            UserNotActiveError: Inactive or suspended account.
            NoCopiesAvailableError: No copy left, including a lost race.
            BorrowingLimitReachedError: The user holds too many books already.
        """
        if user_id is None or book_id is None:
            raise InvalidArgumentError("user_id and book_id are required")
        if borrow_days <= 0:
            raise InvalidArgumentError(f"borrow_days must be positive, got {borrow_days}")

        logger.info(f"Processing borrow request - user {user_id}, book {book_id}")

        user = self.user_repo.find_by_id(user_id)
        if user is None:
            logger.warning(f"User not found: {user_id}")
            raise UserNotFoundError(f"User not found with ID: {user_id}")
        if not user.is_active():
            logger.warning(f"User #{user_id} account not active: {user.status.value}")
            raise UserNotActiveError(f"User account not active. Status: {user.status.value}")

        book = self.book_repo.find_by_id(book_id)
        if book is None:
            logger.warning(f"Book not found: {book_id}")
            raise BookNotFoundError(f"Book not found with ID: {book_id}")
        if not book.has_available_copy():
            logger.warning(f"No copies available for book #{book_id}")
            raise NoCopiesAvailableError(f"No copies available for book #{book_id}")

        active = self.borrowing_repo.count_active_borrowings_by_user(user_id)
        if active >= self.max_active_borrowings:
            logger.warning(f"User #{user_id} reached borrowing limit: {active} books")
            raise BorrowingLimitReachedError(
                f"Borrowing limit reached: {active} of {self.max_active_borrowings} books"
            )

        due_date = self.clock() + timedelta(days=borrow_days)
        with self.db.transaction():
            if not self.book_repo.decrease_available_copies(book_id):
                logger.warning(f"Lost the race for the last copy of book #{book_id}")
                raise NoCopiesAvailableError(f"No copies available for book #{book_id}")

            borrowing = self.borrowing_repo.create(Borrowing(
                user_id=user_id,
                book_id=book_id,
                due_date=due_date,
                status=BorrowingStatus.BORROWED,
                notes=f"Borrowed via BorrowingService - {borrow_days} days",
            ))

        logger.info(f"Borrow succeeded - borrowing #{borrowing.borrowing_id}")
        return borrowing

    def return_book(self, borrowing_id: int) -> bool:
        """
        Close a borrowing and put the copy back on the shelf.

        Both writes share one transaction; if the copy counter cannot be
        increased the return is rolled back as well.

        Raises:
            BorrowingNotFoundError: Unknown borrowing.
            AlreadyReturnedError: The borrowing was returned before (or concurrently).
            BorrowingLostError: The borrowing was closed as lost.
            InventoryConsistencyError: Every copy of the book was already on the shelf.
        """
        logger.info(f"Processing return - borrowing #{borrowing_id}")
        borrowing = self._get_borrowing(borrowing_id)

        if borrowing.status == BorrowingStatus.LOST:
            logger.warning(f"Borrowing #{borrowing_id} is marked lost, refusing return")
            raise BorrowingLostError(f"Borrowing #{borrowing_id} is marked lost")
        if not borrowing.is_active():
            logger.warning(f"Borrowing #{borrowing_id} already returned")
            raise AlreadyReturnedError(f"Borrowing #{borrowing_id} already returned")

        with self.db.transaction():
            if not self.borrowing_repo.return_book(borrowing_id, self.clock()):
                logger.warning(f"Borrowing #{borrowing_id} was closed concurrently")
                raise AlreadyReturnedError(f"Borrowing #{borrowing_id} already returned")

            if not self.book_repo.increase_available_copies(borrowing.book_id):
                logger.error(
                    f"Failed to increase available copies for book #{borrowing.book_id} "
                    f"while returning borrowing #{borrowing_id}"
                )
                raise InventoryConsistencyError(
                    f"Book #{borrowing.book_id} already has all copies available"
                )

        logger.info(f"Return succeeded - book #{borrowing.book_id}")
        return True

    def can_user_borrow_book(self, user_id: Optional[int], book_id: Optional[int]) -> bool:
        """
        Non-raising check of the borrow preconditions. Writes nothing.

        Returns:
            False if any precondition fails, including unknown records.
        """
        if user_id is None or book_id is None:
            return False

        user = self.user_repo.find_by_id(user_id)
        if user is None or not user.is_active():
            return False

        book = self.book_repo.find_by_id(book_id)
        if book is None or not book.has_available_copy():
            return False

        active = self.borrowing_repo.count_active_borrowings_by_user(user_id)
        return active < self.max_active_borrowings

    # ── FINES & OVERDUE ───────────────────────────────────

    def calculate_fine(self, borrowing_id: int) -> float:
        """
        Fine owed for a borrowing right now.

        Returned borrowings and paid fines report the stored amount. Open
        ones accrue `fine_per_day` for every whole day past the due date.

        Raises:
            BorrowingNotFoundError: Unknown borrowing.
        """
        borrowing = self._get_borrowing(borrowing_id)
        fine = self._fine_for(borrowing, self.clock())
        if fine:
            logger.info(f"Fine calculated - borrowing #{borrowing_id}: {fine:.2f}")
        return fine

    def update_overdue_status(self) -> OverdueUpdateResult:
        """
        Mark past-due borrowings as overdue and persist their current fine.
        Intended to run periodically (see `main.py update-overdue`).

        Each borrowing is updated in its own transaction. A store error on
        one row is logged and recorded in `failed`, and the batch moves on;
        losing the connection aborts the run. A fine that has been paid is
        settled and is not raised again.
        """
        logger.info("Updating overdue borrowings...")
        now = self.clock()
        result = OverdueUpdateResult()

        for borrowing in self.borrowing_repo.find_overdue_borrowings(now):
            if borrowing.status == BorrowingStatus.LOST:
                continue
            try:
                with self.db.transaction():
                    if borrowing.status != BorrowingStatus.OVERDUE:
                        self.borrowing_repo.update_status(
                            borrowing.borrowing_id, BorrowingStatus.OVERDUE
                        )
                    fine = self._fine_for(borrowing, now)
                    if not borrowing.fine_paid:
                        self.borrowing_repo.update_fine_amount(borrowing.borrowing_id, fine)
            except psycopg2.Error as e:
                if is_store_unavailable(e):
                    raise
                logger.error(f"Failed to update overdue borrowing #{borrowing.borrowing_id}: {e}")
                result.failed.append(borrowing.borrowing_id)
                continue

            result.updated.append(borrowing.borrowing_id)
            logger.info(f"Borrowing #{borrowing.borrowing_id} overdue, fine {fine:.2f}")

        logger.info(
            f"Overdue update completed - updated: {len(result.updated)}, failed: {len(result.failed)}"
        )
        return result

    def pay_fine(self, borrowing_id: int) -> float:
        """
        Settle the stored fine of a borrowing.

        Returns:
            The amount that was paid.

        Raises:
            BorrowingNotFoundError: Unknown borrowing.
            FineNotPayableError: No fine recorded, or it was already paid.
        """
        borrowing = self._get_borrowing(borrowing_id)
        if borrowing.fine_paid:
            raise FineNotPayableError(f"Fine of borrowing #{borrowing_id} already paid")
        if borrowing.fine_amount <= 0:
            raise FineNotPayableError(f"Borrowing #{borrowing_id} has no fine")

        if not self.borrowing_repo.mark_fine_paid(borrowing_id):
            raise FineNotPayableError(f"Fine of borrowing #{borrowing_id} already paid")

        logger.info(f"Fine paid - borrowing #{borrowing_id}: {borrowing.fine_amount:.2f}")
        return borrowing.fine_amount

    def mark_lost(self, borrowing_id: int) -> bool:
        """
        Close an open borrowing as lost. The copy stays off the shelf.

        Raises:
            BorrowingNotFoundError: Unknown borrowing.
            AlreadyReturnedError: The book came back already.
            BorrowingLostError: The borrowing is already marked lost.
        """
        borrowing = self._get_borrowing(borrowing_id)
        if borrowing.status == BorrowingStatus.LOST:
            raise BorrowingLostError(f"Borrowing #{borrowing_id} is already marked lost")
        if not borrowing.is_active():
            raise AlreadyReturnedError(f"Borrowing #{borrowing_id} already returned")

        updated = self.borrowing_repo.update_status(borrowing_id, BorrowingStatus.LOST)
        if updated:
            logger.info(f"Borrowing #{borrowing_id} marked lost")
        return updated

    # ── QUERIES ───────────────────────────────────────────

    def get_user_active_borrowings(self, user_id: int) -> list[Borrowing]:
        """Borrowings the user has not returned yet, most recent first."""
        return [b for b in self.borrowing_repo.find_by_user_id(user_id) if b.is_active()]

    def get_user_borrowing_history(self, user_id: int) -> list[Borrowing]:
        """Every borrowing of the user, most recent first."""
        return self.borrowing_repo.find_by_user_id(user_id)

    # ── HELPERS ───────────────────────────────────────────

    def _get_borrowing(self, borrowing_id: int) -> Borrowing:
        borrowing = self.borrowing_repo.find_by_id(borrowing_id)
        if borrowing is None:
            logger.warning(f"Borrowing not found: {borrowing_id}")
            raise BorrowingNotFoundError(f"Borrowing not found with ID: {borrowing_id}")
        return borrowing

    def _fine_for(self, borrowing: Borrowing, now: datetime) -> float:
        if not borrowing.is_active() or borrowing.fine_paid:
            return float(borrowing.fine_amount or 0.0)
        if not borrowing.is_past_due(now):
            return 0.0
        # timedelta.days truncates to whole days for positive spans.
        overdue_days = (now - borrowing.due_date).days
        return float(overdue_days * self.fine_per_day)
