"""
repositories/user_repo.py
--------------------------
Data access layer for user records.
All SQL queries related to the `users` table live here.
"""

from typing import Optional

from db.connection import Database
from models.enums import UserStatus
from models.user import User
from utils.logger import get_logger

logger = get_logger(__name__)

_COLUMNS = (
    "user_id, username, email, full_name, phone, role, status, "
    "registration_date, last_login, created_at, updated_at"
)


class UserRepository:
    """Repository for CRUD operations on the users table."""

    def __init__(self, db: Database):
        self.db = db

    # ── CREATE ────────────────────────────────────────────

    def create(self, user: User) -> User:
        """
        Insert a new user.

        Args:
            user: The User domain object to persist.

        Returns:
            The same User with `user_id`, `registration_date`, `created_at`
            and `updated_at` populated.

        Raises:
            psycopg2.IntegrityError: On duplicate username/email or a failed CHECK.
        """
        sql = """
            INSERT INTO users (username, email, full_name, phone, role, status)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING user_id, registration_date, created_at, updated_at;
        """
        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (
                        user.username, user.email, user.full_name,
                        user.phone, user.role.value, user.status.value,
                    ))
                    row = cur.fetchone()
            user.user_id = row[0]
            user.registration_date = row[1]
            user.created_at = row[2]
            user.updated_at = row[3]
            logger.info(f"Created user '{user.username}' #{user.user_id}")
            return user
        except Exception as e:
            logger.error(f"Failed to create user '{user.username}': {e}")
            raise

    # ── READ ──────────────────────────────────────────────

    def find_by_id(self, user_id: int) -> Optional[User]:
        """Fetch a single user by primary key, or None if absent."""
        return self._find_one(f"SELECT {_COLUMNS} FROM users WHERE user_id = %s;", user_id)

    def find_by_username(self, username: str) -> Optional[User]:
        """Fetch a single user by username, or None if absent."""
        return self._find_one(f"SELECT {_COLUMNS} FROM users WHERE username = %s;", username)

    def find_by_email(self, email: str) -> Optional[User]:
        """Fetch a single user by e-mail, or None if absent."""
        return self._find_one(f"SELECT {_COLUMNS} FROM users WHERE email = %s;", email)

    def find_all(self) -> list[User]:
        """Get every user ordered by ID."""
        sql = f"SELECT {_COLUMNS} FROM users ORDER BY user_id;"
        with self.db.transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(sql)
                return [self._row_to_user(r) for r in cur.fetchall()]

    def search_by_name(self, keyword: str) -> list[User]:
        """
        Case-insensitive substring search on full_name.

        Args:
            keyword: Text to look for anywhere in the name.

        Returns:
            Matching users ordered by ID.
        """
        sql = f"SELECT {_COLUMNS} FROM users WHERE full_name ILIKE %s ORDER BY user_id;"
        with self.db.transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, (f"%{keyword}%",))
                return [self._row_to_user(r) for r in cur.fetchall()]

    def count_all(self) -> int:
        """Total number of users."""
        with self.db.transaction() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT COUNT(*) FROM users;")
                return cur.fetchone()[0]

    # ── UPDATE ────────────────────────────────────────────

    def update(self, user: User) -> bool:
        """
        Update the mutable profile fields of an existing user.
        The username is immutable once registered.

        Args:
            user: User with updated fields (must have user_id set).

        Returns:
            True if a row was updated, False otherwise.
        """
        sql = """
            UPDATE users
            SET email = %s, full_name = %s, phone = %s, role = %s, status = %s, last_login = %s
            WHERE user_id = %s;
        """
        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (
                        user.email, user.full_name, user.phone,
                        user.role.value, user.status.value, user.last_login,
                        user.user_id,
                    ))
                    updated = cur.rowcount > 0
            return updated
        except Exception as e:
            logger.error(f"Failed to update user #{user.user_id}: {e}")
            raise

    def update_status(self, user_id: int, status: UserStatus) -> bool:
        """Change the account status (e.g. suspend a member)."""
        sql = "UPDATE users SET status = %s WHERE user_id = %s;"
        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (UserStatus(status).value, user_id))
                    updated = cur.rowcount > 0
            if updated:
                logger.info(f"User #{user_id} status set to {UserStatus(status).value}")
            return updated
        except Exception as e:
            logger.error(f"Failed to update status of user #{user_id}: {e}")
            raise

    def update_last_login(self, user_id: int) -> bool:
        """Stamp last_login with the current database time."""
        sql = "UPDATE users SET last_login = CURRENT_TIMESTAMP WHERE user_id = %s;"
        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (user_id,))
                    updated = cur.rowcount > 0
            return updated
        except Exception as e:
            logger.error(f"Failed to record login for user #{user_id}: {e}")
            raise

    # ── DELETE ────────────────────────────────────────────

    def delete(self, user_id: int) -> bool:
        """
        Delete a user by ID. Their borrowings are removed by ON DELETE CASCADE.

        Returns:
            True if a row was deleted, False otherwise.
        """
        sql = "DELETE FROM users WHERE user_id = %s;"
        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (user_id,))
                    deleted = cur.rowcount > 0
            if deleted:
                logger.info(f"Deleted user #{user_id}")
            return deleted
        except Exception as e:
            logger.error(f"Failed to delete user #{user_id}: {e}")
            raise

    # ── HELPERS ───────────────────────────────────────────

    def _find_one(self, sql: str, value) -> Optional[User]:
        with self.db.transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, (value,))
                row = cur.fetchone()
                return self._row_to_user(row) if row else None

    @staticmethod
    def _row_to_user(row: tuple) -> User:
        """Convert a database row tuple to a User domain object."""
        return User(
            user_id=row[0],
            username=row[1],
            email=row[2],
            full_name=row[3],
            phone=row[4],
            role=row[5],
            status=row[6],
            registration_date=row[7],
            last_login=row[8],
            created_at=row[9],
            updated_at=row[10],
        )
