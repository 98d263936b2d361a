"""
repositories/book_repo.py
--------------------------
Data access layer for catalogue books.
All SQL queries related to the `books` table live here, including the
guarded copy-counter updates used by the borrowing workflow.
"""

from typing import Optional

from db.connection import Database
from models.book import Book
from utils.logger import get_logger

logger = get_logger(__name__)

_COLUMNS = (
    "book_id, isbn, title, author_id, publisher_id, category_id, publication_year, "
    "pages, language, description, total_copies, available_copies, price, location, "
    "status, created_at, updated_at"
)


class BookRepository:
    """Repository for CRUD operations on the books table."""

    def __init__(self, db: Database):
        self.db = db

    # ── CREATE ────────────────────────────────────────────

    def create(self, book: Book) -> Book:
        """
        Insert a new book.

        Args:
            book: The Book domain object to persist.

        Returns:
            The same Book with `book_id`, `created_at` and `updated_at` populated.

        Raises:
            psycopg2.IntegrityError: On duplicate ISBN, unknown author/publisher/
                category, or copy counters violating their CHECK constraints.
        """
        sql = """
            INSERT INTO books
                (isbn, title, author_id, publisher_id, category_id, publication_year, pages,
                 language, description, total_copies, available_copies, price, location, status)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING book_id, created_at, updated_at;
        """
        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (
                        book.isbn, book.title, book.author_id, book.publisher_id,
                        book.category_id, book.publication_year, book.pages,
                        book.language, book.description, book.total_copies,
                        book.available_copies, book.price, book.location,
                        book.status.value,
                    ))
                    row = cur.fetchone()
            book.book_id = row[0]
            book.created_at = row[1]
            book.updated_at = row[2]
            logger.info(f"Created book '{book.title}' #{book.book_id}")
            return book
        except Exception as e:
            logger.error(f"Failed to create book '{book.isbn}': {e}")
            raise

    # ── READ ──────────────────────────────────────────────

    def find_by_id(self, book_id: int) -> Optional[Book]:
        """Fetch a single book by primary key, or None if absent."""
        return self._find_one(f"SELECT {_COLUMNS} FROM books WHERE book_id = %s;", book_id)

    def find_by_isbn(self, isbn: str) -> Optional[Book]:
        """Fetch a single book by ISBN, or None if absent."""
        return self._find_one(f"SELECT {_COLUMNS} FROM books WHERE isbn = %s;", isbn)

    def find_all(self) -> list[Book]:
        """Get every book ordered by ID."""
        return self._find_many(f"SELECT {_COLUMNS} FROM books ORDER BY book_id;")

    def search_by_title(self, keyword: str) -> list[Book]:
        """Case-insensitive substring search on the title, ordered by title."""
        sql = f"SELECT {_COLUMNS} FROM books WHERE LOWER(title) LIKE LOWER(%s) ORDER BY title;"
        return self._find_many(sql, (f"%{keyword}%",))

    def find_available_books(self) -> list[Book]:
        """Books with at least one copy on the shelf, ordered by title."""
        sql = f"SELECT {_COLUMNS} FROM books WHERE available_copies > 0 ORDER BY title;"
        return self._find_many(sql)

    def count_all(self) -> int:
        """Total number of books."""
        return self._count("SELECT COUNT(*) FROM books;")

    def count_available_books(self) -> int:
        """Number of books with at least one copy on the shelf."""
        return self._count("SELECT COUNT(*) FROM books WHERE available_copies > 0;")

    # ── UPDATE ────────────────────────────────────────────

    def update(self, book: Book) -> bool:
        """
        Update every mutable column of an existing book.

        Returns:
            True if a row was updated, False otherwise.
        """
        sql = """
            UPDATE books
            SET isbn = %s, title = %s, author_id = %s, publisher_id = %s, category_id = %s,
                publication_year = %s, pages = %s, language = %s, description = %s,
                total_copies = %s, available_copies = %s, price = %s, location = %s, status = %s
            WHERE book_id = %s;
        """
        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (
                        book.isbn, book.title, book.author_id, book.publisher_id,
                        book.category_id, book.publication_year, book.pages,
                        book.language, book.description, book.total_copies,
                        book.available_copies, book.price, book.location,
                        book.status.value, book.book_id,
                    ))
                    updated = cur.rowcount > 0
            return updated
        except Exception as e:
            logger.error(f"Failed to update book #{book.book_id}: {e}")
            raise

    def update_available_copies(self, book_id: int, available_copies: int) -> bool:
        """
        Overwrite the available copy count (administrative correction).
        The CHECK constraint still bounds it to [0, total_copies].
        """
        sql = "UPDATE books SET available_copies = %s WHERE book_id = %s;"
        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (available_copies, book_id))
                    updated = cur.rowcount > 0
            return updated
        except Exception as e:
            logger.error(f"Failed to set available copies of book #{book_id}: {e}")
            raise

    def decrease_available_copies(self, book_id: int) -> bool:
        """
        Take one copy off the shelf in a single guarded statement.

        Returns:
            False when no copy was left (or the book does not exist).
        """
        sql = """
            UPDATE books SET available_copies = available_copies - 1
            WHERE book_id = %s AND available_copies > 0;
        """
        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (book_id,))
                    updated = cur.rowcount > 0
            return updated
        except Exception as e:
            logger.error(f"Failed to decrease copies of book #{book_id}: {e}")
            raise

    def increase_available_copies(self, book_id: int) -> bool:
        """
        Put one copy back on the shelf in a single guarded statement.

        Returns:
            False when every copy was already on the shelf (or the book does not exist).
        """
        sql = """
            UPDATE books SET available_copies = available_copies + 1
            WHERE book_id = %s AND available_copies < total_copies;
        """
        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (book_id,))
                    updated = cur.rowcount > 0
            return updated
        except Exception as e:
            logger.error(f"Failed to increase copies of book #{book_id}: {e}")
            raise

    # ── DELETE ────────────────────────────────────────────

    def delete(self, book_id: int) -> bool:
        """
        Delete a book by ID.

        Raises:
            psycopg2.errors.ForeignKeyViolation: While any borrowing references it.
        """
        sql = "DELETE FROM books WHERE book_id = %s;"
        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (book_id,))
                    deleted = cur.rowcount > 0
            if deleted:
                logger.info(f"Deleted book #{book_id}")
            return deleted
        except Exception as e:
            logger.error(f"Failed to delete book #{book_id}: {e}")
            raise

    # ── HELPERS ───────────────────────────────────────────

    def _find_one(self, sql: str, value) -> Optional[Book]:
        with self.db.transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, (value,))
                row = cur.fetchone()
                return self._row_to_book(row) if row else None

    def _find_many(self, sql: str, params: tuple = ()) -> list[Book]:
        with self.db.transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                return [self._row_to_book(r) for r in cur.fetchall()]

    def _count(self, sql: str) -> int:
        with self.db.transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(sql)
                return cur.fetchone()[0]

    @staticmethod
    def _row_to_book(row: tuple) -> Book:
        """Convert a database row tuple to a Book domain object."""
        return Book(
            book_id=row[0],
            isbn=row[1],
            title=row[2],
            author_id=row[3],
            publisher_id=row[4],
            category_id=row[5],
            publication_year=row[6],
            pages=row[7],
            language=row[8],
            description=row[9],
            total_copies=row[10],
            available_copies=row[11],
            price=float(row[12]) if row[12] is not None else None,
            location=row[13],
            status=row[14],
            created_at=row[15],
            updated_at=row[16],
        )
