"""
db/connection.py
----------------
Manages the PostgreSQL connection pool and transaction scope.
Uses psycopg2's ThreadedConnectionPool so that concurrent callers
(e.g. two borrowers racing for the last copy) each get their own connection.
"""

import threading
from contextlib import contextmanager
from typing import Iterator, Optional

import psycopg2
from psycopg2 import pool

from config import DATABASE_URL, DB_POOL_MAX, DB_POOL_MIN
from utils.logger import get_logger

logger = get_logger(__name__)


class Database:
    """
    Connection pool plus a per-thread transaction scope.

    Repositories and services receive a Database instance instead of
    reaching for a global pool. A ``transaction()`` block opened while
    another one is active on the same thread joins it, so a service can
    group several repository calls into one commit.
    """

    def __init__(
        self,
        dsn: str = DATABASE_URL,
        min_conn: int = DB_POOL_MIN,
        max_conn: int = DB_POOL_MAX,
    ):
        self.dsn = dsn
        self.min_conn = min_conn
        self.max_conn = max_conn
        self._pool: Optional[pool.ThreadedConnectionPool] = None
        self._local = threading.local()

    # ── POOL ──────────────────────────────────────────────

    def init_pool(self) -> None:
        """
        Initialize the database connection pool.

        Raises:
            psycopg2.OperationalError: If the database is unreachable.
        """
        if self._pool is not None:
            return
        try:
            self._pool = pool.ThreadedConnectionPool(self.min_conn, self.max_conn, self.dsn)
            logger.info("Database connection pool initialized successfully.")
        except psycopg2.OperationalError as e:
            logger.error(f"Failed to initialize database pool: {e}")
            raise

    def get_connection(self):
        """
        Get a connection from the pool.

        Raises:
            RuntimeError: If the pool has not been initialized.
        """
        if self._pool is None:
            raise RuntimeError("Database pool not initialized. Call init_pool() first.")
        return self._pool.getconn()

    def release_connection(self, conn) -> None:
        """Return a connection back to the pool."""
        if self._pool is not None:
            self._pool.putconn(conn)

    def close_pool(self) -> None:
        """Close all connections in the pool."""
        if self._pool is not None:
            self._pool.closeall()
            self._pool = None
            logger.info("Database connection pool closed.")

    # ── TRANSACTIONS ──────────────────────────────────────

    @property
    def in_transaction(self) -> bool:
        return getattr(self._local, "conn", None) is not None

    @contextmanager
    def transaction(self) -> Iterator:
        """
        Yield a connection whose work is committed when the block exits.

        Any exception rolls the transaction back and is re-raised unchanged.
        Nested blocks on the same thread reuse the outer connection and
        leave commit/rollback to the outermost block.
        """
        outer = getattr(self._local, "conn", None)
        if outer is not None:
            yield outer
            return

        conn = self.get_connection()
        self._local.conn = conn
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._local.conn = None
            self.release_connection(conn)

    # ── DIAGNOSTICS ───────────────────────────────────────

    def test_connection(self) -> bool:
        """Return True if a trivial query succeeds against the store."""
        try:
            with self.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT 1;")
                    ok = cur.fetchone()[0] == 1
        except (psycopg2.Error, RuntimeError) as e:
            logger.error(f"Database connection test failed: {e}")
            return False
        logger.info("Database connection test succeeded.")
        return ok

    def database_info(self) -> dict:
        """
        Describe the server this pool is connected to.

        Returns:
            Dict with keys 'version', 'database', 'user'.
        """
        with self.transaction() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT version(), current_database(), current_user;")
                row = cur.fetchone()
        return {"version": row[0], "database": row[1], "user": row[2]}
