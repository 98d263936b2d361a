"""
repositories/borrowing_repo.py
-------------------------------
Data access layer for borrowing records.
All SQL queries related to the `borrowings` table live here.
"""

from datetime import datetime
from typing import Optional

from db.connection import Database
from models.borrowing import Borrowing
from models.enums import BorrowingStatus
from utils.logger import get_logger

logger = get_logger(__name__)

_COLUMNS = (
    "borrowing_id, user_id, book_id, borrow_date, due_date, return_date, status, "
    "fine_amount, fine_paid, notes, created_at, updated_at"
)


class BorrowingRepository:
    """Repository for CRUD operations on the borrowings table."""

    def __init__(self, db: Database):
        self.db = db

    # ── CREATE ────────────────────────────────────────────

    def create(self, borrowing: Borrowing) -> Borrowing:
        """
        Insert a new borrowing record.

        A None `borrow_date` lets the database stamp the insert time.

        Args:
            borrowing: The Borrowing domain object to persist.

        Returns:
            The same Borrowing with `borrowing_id`, `borrow_date`, `created_at`
            and `updated_at` populated.

        Raises:
            psycopg2.IntegrityError: On an unknown user/book or a due_date that
                is not after borrow_date.
        """
        sql = """
            INSERT INTO borrowings (user_id, book_id, borrow_date, due_date, status, notes)
            VALUES (%s, %s, COALESCE(%s, CURRENT_TIMESTAMP), %s, %s, %s)
            RETURNING borrowing_id, borrow_date, created_at, updated_at;
        """
        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (
                        borrowing.user_id, borrowing.book_id, borrowing.borrow_date,
                        borrowing.due_date, borrowing.status.value, borrowing.notes,
                    ))
                    row = cur.fetchone()
            borrowing.borrowing_id = row[0]
            borrowing.borrow_date = row[1]
            borrowing.created_at = row[2]
            borrowing.updated_at = row[3]
            logger.info(
                f"Created borrowing #{borrowing.borrowing_id} "
                f"(user {borrowing.user_id}, book {borrowing.book_id})"
            )
            return borrowing
        except Exception as e:
            logger.error(
                f"Failed to create borrowing for user {borrowing.user_id}, "
                f"book {borrowing.book_id}: {e}"
            )
            raise

    # ── READ ──────────────────────────────────────────────

    def find_by_id(self, borrowing_id: int) -> Optional[Borrowing]:
        """Fetch a single borrowing by primary key, or None if absent."""
        sql = f"SELECT {_COLUMNS} FROM borrowings WHERE borrowing_id = %s;"
        with self.db.transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, (borrowing_id,))
                row = cur.fetchone()
                return self._row_to_borrowing(row) if row else None

    def find_all(self) -> list[Borrowing]:
        """Get every borrowing ordered by ID."""
        return self._find_many(f"SELECT {_COLUMNS} FROM borrowings ORDER BY borrowing_id;")

    def find_by_user_id(self, user_id: int) -> list[Borrowing]:
        """All borrowings of a user, most recent first."""
        sql = f"SELECT {_COLUMNS} FROM borrowings WHERE user_id = %s ORDER BY borrow_date DESC, borrowing_id DESC;"
        return self._find_many(sql, (user_id,))

    def find_by_book_id(self, book_id: int) -> list[Borrowing]:
        """All borrowings of a book, most recent first."""
        sql = f"SELECT {_COLUMNS} FROM borrowings WHERE book_id = %s ORDER BY borrow_date DESC, borrowing_id DESC;"
        return self._find_many(sql, (book_id,))

    def find_active_borrowings(self) -> list[Borrowing]:
        """Borrowings whose book has not been returned yet, most recent first."""
        sql = f"SELECT {_COLUMNS} FROM borrowings WHERE return_date IS NULL ORDER BY borrow_date DESC, borrowing_id DESC;"
        return self._find_many(sql)

    def find_overdue_borrowings(self, now: Optional[datetime] = None) -> list[Borrowing]:
        """
        Active borrowings whose due date has passed.

        Args:
            now: Reference time; the database clock is used when None.

        Returns:
            Borrowings ordered by due date, oldest first.
        """
        sql = f"""
            SELECT {_COLUMNS} FROM borrowings
            WHERE return_date IS NULL AND due_date < COALESCE(%s, CURRENT_TIMESTAMP)
            ORDER BY due_date ASC, borrowing_id ASC;
        """
        return self._find_many(sql, (now,))

    def count_all(self) -> int:
        """Total number of borrowings."""
        with self.db.transaction() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT COUNT(*) FROM borrowings;")
                return cur.fetchone()[0]

    def count_active_borrowings_by_user(self, user_id: int) -> int:
        """Number of borrowings the user has not returned yet."""
        sql = "SELECT COUNT(*) FROM borrowings WHERE user_id = %s AND return_date IS NULL;"
        with self.db.transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, (user_id,))
                return cur.fetchone()[0]

    # ── UPDATE ────────────────────────────────────────────

    def return_book(self, borrowing_id: int, return_date: datetime) -> bool:
        """
        Mark a borrowing as returned, guarded by `return_date IS NULL` and
        a status other than lost.

        Returns:
            False if the borrowing does not exist, was already returned or is lost.
        """
        sql = """
            UPDATE borrowings SET return_date = %s, status = %s
            WHERE borrowing_id = %s AND return_date IS NULL AND status <> %s;
        """
        return self._execute_update(
            sql, (return_date, BorrowingStatus.RETURNED.value, borrowing_id, BorrowingStatus.LOST.value),
            f"mark borrowing #{borrowing_id} returned",
        )

    def update_status(self, borrowing_id: int, status: BorrowingStatus) -> bool:
        """Set the lifecycle status of a borrowing."""
        sql = "UPDATE borrowings SET status = %s WHERE borrowing_id = %s;"
        return self._execute_update(
            sql, (BorrowingStatus(status).value, borrowing_id),
            f"update status of borrowing #{borrowing_id}",
        )

    def update_fine_amount(self, borrowing_id: int, fine_amount: float) -> bool:
        """
        Persist a recalculated fine. A paid fine is settled and left as is.

        Returns:
            False if the borrowing does not exist or its fine was already paid.
        """
        sql = "UPDATE borrowings SET fine_amount = %s WHERE borrowing_id = %s AND fine_paid = FALSE;"
        return self._execute_update(
            sql, (fine_amount, borrowing_id),
            f"update fine of borrowing #{borrowing_id}",
        )

    def mark_fine_paid(self, borrowing_id: int) -> bool:
        """
        Record the fine as settled, guarded by `fine_paid = FALSE`.

        Returns:
            False if the borrowing does not exist or was already paid.
        """
        sql = "UPDATE borrowings SET fine_paid = TRUE WHERE borrowing_id = %s AND fine_paid = FALSE;"
        return self._execute_update(
            sql, (borrowing_id,), f"mark fine of borrowing #{borrowing_id} paid",
        )

    # ── DELETE ────────────────────────────────────────────

    def delete(self, borrowing_id: int) -> bool:
        """
        Delete a borrowing by ID.

        Returns:
            True if a row was deleted, False otherwise.
        """
        sql = "DELETE FROM borrowings WHERE borrowing_id = %s;"
        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (borrowing_id,))
                    deleted = cur.rowcount > 0
            if deleted:
                logger.info(f"Deleted borrowing #{borrowing_id}")
            return deleted
        except Exception as e:
            logger.error(f"Failed to delete borrowing #{borrowing_id}: {e}")
            raise

    # ── HELPERS ───────────────────────────────────────────

    def _execute_update(self, sql: str, params: tuple, action: str) -> bool:
        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, params)
                    updated = cur.rowcount > 0
            return updated
        except Exception as e:
            logger.error(f"Failed to {action}: {e}")
            raise

    def _find_many(self, sql: str, params: tuple = ()) -> list[Borrowing]:
        with self.db.transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                return [self._row_to_borrowing(r) for r in cur.fetchall()]

    @staticmethod
    def _row_to_borrowing(row: tuple) -> Borrowing:
        """Convert a database row tuple to a Borrowing domain object."""
        return Borrowing(
            borrowing_id=row[0],
            user_id=row[1],
            book_id=row[2],
            borrow_date=row[3],
            due_date=row[4],
            return_date=row[5],
            status=row[6],
            fine_amount=float(row[7]) if row[7] is not None else 0.0,
            fine_paid=bool(row[8]),
            notes=row[9],
            created_at=row[10],
            updated_at=row[11],
        )
