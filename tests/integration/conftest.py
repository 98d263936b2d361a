"""
Fixtures for tests that run against a real PostgreSQL server.

Set TEST_DATABASE_URL to a disposable database; every table is truncated
before each test and the schema is dropped when the session ends. Without
it (or when the server is unreachable) the whole integration suite is
skipped.
"""

import uuid

import psycopg2
import pytest

from config import TEST_DATABASE_URL
from db.connection import Database
from db.init_db import create_tables, drop_tables, seed_reference_data
from models import Book, User
from repositories import BookRepository, BorrowingRepository, UserRepository


# =============================================================================
# Database
# =============================================================================

@pytest.fixture(scope="session")
def database():
    """Connection pool shared by the whole integration session."""
    if not TEST_DATABASE_URL:
        pytest.skip("TEST_DATABASE_URL is not set")

    db = Database(dsn=TEST_DATABASE_URL, min_conn=1, max_conn=20)
    try:
        db.init_pool()
    except psycopg2.OperationalError as e:
        pytest.skip(f"Test database unreachable: {e}")

    create_tables(db)
    yield db
    drop_tables(db)
    db.close_pool()


@pytest.fixture(autouse=True)
def clean_tables(database):
    with database.transaction() as conn:
        with conn.cursor() as cur:
            cur.execute(
                "TRUNCATE borrowings, books, users, categories, publishers, authors "
                "RESTART IDENTITY CASCADE;"
            )
    yield


# =============================================================================
# Repositories
# =============================================================================

@pytest.fixture
def user_repo(database):
    return UserRepository(database)


@pytest.fixture
def book_repo(database):
    return BookRepository(database)


@pytest.fixture
def borrowing_repo(database):
    return BorrowingRepository(database)


# =============================================================================
# Sample data
# =============================================================================

@pytest.fixture
def reference_ids(database):
    return seed_reference_data(database)


@pytest.fixture
def author_id(reference_ids):
    return reference_ids["author_id"]


@pytest.fixture
def make_user(user_repo):
    """Factory creating users with unique username/email."""
    def _make(**overrides):
        suffix = uuid.uuid4().hex[:8]
        fields = {
            "username": f"user_{suffix}",
            "email": f"user_{suffix}@example.com",
            "full_name": f"Test User {suffix}",
        }
        fields.update(overrides)
        return user_repo.create(User(**fields))
    return _make


@pytest.fixture
def make_book(book_repo, author_id):
    """Factory creating books with a unique ISBN."""
    def _make(**overrides):
        suffix = uuid.uuid4().hex[:10]
        fields = {
            "isbn": f"978-{suffix}",
            "title": f"Test Book {suffix}",
            "author_id": author_id,
        }
        fields.update(overrides)
        return book_repo.create(Book(**fields))
    return _make
