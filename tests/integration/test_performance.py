"""
Coarse timing checks for bulk inserts and common queries.
The thresholds are generous; they catch pathological slowdowns only.
"""

import time

import pytest

from utils.logger import get_logger

pytestmark = [pytest.mark.integration, pytest.mark.slow]

logger = get_logger(__name__)

BULK_THRESHOLD_SECONDS = 30.0
QUERY_THRESHOLD_SECONDS = 5.0
SINGLE_QUERY_THRESHOLD_SECONDS = 0.5


def _timed(fn):
    start = time.perf_counter()
    result = fn()
    return result, time.perf_counter() - start


class TestPerformance:
    def test_bulk_insert_users(self, user_repo, make_user):
        _, duration = _timed(lambda: [make_user() for _ in range(100)])

        logger.info(f"Inserted 100 users in {duration:.3f}s")
        assert duration < BULK_THRESHOLD_SECONDS
        assert user_repo.count_all() == 100

    def test_bulk_insert_books(self, book_repo, make_book):
        _, duration = _timed(lambda: [make_book(total_copies=3) for _ in range(100)])

        logger.info(f"Inserted 100 books in {duration:.3f}s")
        assert duration < BULK_THRESHOLD_SECONDS
        assert book_repo.count_all() == 100

    def test_find_all(self, user_repo, book_repo, make_user, make_book):
        for _ in range(50):
            make_user()
            make_book()

        users, user_time = _timed(user_repo.find_all)
        books, book_time = _timed(book_repo.find_all)

        assert len(users) == 50 and len(books) == 50
        assert user_time < QUERY_THRESHOLD_SECONDS
        assert book_time < QUERY_THRESHOLD_SECONDS

    def test_lookup_by_id(self, user_repo, book_repo, make_user, make_book):
        users = [make_user() for _ in range(20)]
        books = [make_book() for _ in range(20)]

        _, user_time = _timed(lambda: [user_repo.find_by_id(u.user_id) for u in users])
        _, book_time = _timed(lambda: [book_repo.find_by_id(b.book_id) for b in books])

        assert user_time / len(users) < SINGLE_QUERY_THRESHOLD_SECONDS
        assert book_time / len(books) < SINGLE_QUERY_THRESHOLD_SECONDS

    def test_counter_updates_and_search(self, book_repo, make_book):
        books = [make_book(title=f"Performance Volume {i}", total_copies=5) for i in range(50)]

        _, update_time = _timed(lambda: [book_repo.decrease_available_copies(b.book_id) for b in books])
        found, search_time = _timed(lambda: book_repo.search_by_title("performance"))

        assert update_time < BULK_THRESHOLD_SECONDS
        assert search_time < QUERY_THRESHOLD_SECONDS
        assert len(found) == 50
        assert all(b.available_copies == 4 for b in found)
