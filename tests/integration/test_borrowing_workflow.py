"""
End-to-end borrowing workflow through BorrowingService and PostgreSQL.
"""

from datetime import datetime, timedelta, timezone

import pytest
from psycopg2 import errors

from models import Borrowing, BorrowingStatus, UserStatus
from services.borrowing_service import BorrowingService
from services.exceptions import (
    AlreadyReturnedError,
    BorrowingLimitReachedError,
    BorrowingLostError,
    NoCopiesAvailableError,
    UserNotActiveError,
)

pytestmark = pytest.mark.integration


@pytest.fixture
def service(database):
    return BorrowingService(database)


def _now():
    return datetime.now(timezone.utc)


def _active_count(borrowing_repo, book_id):
    return sum(1 for b in borrowing_repo.find_by_book_id(book_id) if b.is_active())


class TestBorrowingWorkflow:
    def test_last_copy_lifecycle(self, service, book_repo, borrowing_repo, make_user, make_book):
        first_user = make_user()
        second_user = make_user()
        book = make_book(total_copies=1)

        borrowing = service.borrow_book(first_user.user_id, book.book_id, 14)
        assert book_repo.find_by_id(book.book_id).available_copies == 0
        assert borrowing.borrow_date is not None
        assert borrowing.due_date - borrowing.borrow_date > timedelta(days=13)

        with pytest.raises(NoCopiesAvailableError):
            service.borrow_book(second_user.user_id, book.book_id, 14)

        assert service.return_book(borrowing.borrowing_id) is True
        assert book_repo.find_by_id(book.book_id).available_copies == 1

        stored = borrowing_repo.find_by_id(borrowing.borrowing_id)
        assert stored.status is BorrowingStatus.RETURNED
        assert stored.return_date is not None

        with pytest.raises(AlreadyReturnedError):
            service.return_book(borrowing.borrowing_id)
        assert book_repo.find_by_id(book.book_id).available_copies == 1

    def test_counter_matches_open_borrowings(self, service, book_repo, borrowing_repo, make_user, make_book):
        book = make_book(total_copies=4)
        users = [make_user() for _ in range(3)]
        borrowings = [service.borrow_book(u.user_id, book.book_id, 7) for u in users]
        service.return_book(borrowings[1].borrowing_id)

        stored = book_repo.find_by_id(book.book_id)
        assert stored.available_copies + _active_count(borrowing_repo, book.book_id) == stored.total_copies

    def test_borrowing_limit(self, service, make_user, make_book):
        user = make_user()
        books = [make_book() for _ in range(6)]

        for book in books[:5]:
            service.borrow_book(user.user_id, book.book_id, 14)

        assert service.can_user_borrow_book(user.user_id, books[5].book_id) is False
        with pytest.raises(BorrowingLimitReachedError):
            service.borrow_book(user.user_id, books[5].book_id, 14)

    def test_suspended_user(self, service, user_repo, book_repo, make_user, make_book):
        user = make_user()
        book = make_book()
        user_repo.update_status(user.user_id, UserStatus.SUSPENDED)

        with pytest.raises(UserNotActiveError):
            service.borrow_book(user.user_id, book.book_id, 14)
        assert book_repo.find_by_id(book.book_id).available_copies == 1

    def test_failed_insert_rolls_back_copy_counter(self, database, book_repo, make_user, make_book):
        user = make_user()
        book = make_book(total_copies=2)
        service = BorrowingService(database, clock=lambda: _now() - timedelta(days=30))

        # A borrow period ending before the database's insert time breaks chk_borrowings_due_date.
        with pytest.raises(errors.CheckViolation):
            service.borrow_book(user.user_id, book.book_id, 1)

        assert book_repo.find_by_id(book.book_id).available_copies == 2


class TestFinesAndOverdue:
    def _late_borrowing(self, borrowing_repo, user, book, days_late, hours=1):
        due = _now() - timedelta(days=days_late, hours=hours)
        return borrowing_repo.create(Borrowing(
            user_id=user.user_id, book_id=book.book_id,
            borrow_date=due - timedelta(days=14), due_date=due,
        ))

    def test_calculate_fine(self, service, borrowing_repo, make_user, make_book):
        user = make_user()
        book = make_book()
        borrowing = self._late_borrowing(borrowing_repo, user, book, days_late=3)

        assert service.calculate_fine(borrowing.borrowing_id) == 15000.0

    def test_update_overdue_status(self, service, borrowing_repo, make_user, make_book):
        user = make_user()
        book = make_book(total_copies=3)
        late = self._late_borrowing(borrowing_repo, user, book, days_late=2)
        on_time = borrowing_repo.create(Borrowing(
            user_id=user.user_id, book_id=book.book_id, due_date=_now() + timedelta(days=5),
        ))

        result = service.update_overdue_status()

        assert result.updated == [late.borrowing_id]
        assert result.failed == []
        stored = borrowing_repo.find_by_id(late.borrowing_id)
        assert stored.status is BorrowingStatus.OVERDUE
        assert stored.fine_amount == 10000.0
        assert borrowing_repo.find_by_id(on_time.borrowing_id).status is BorrowingStatus.BORROWED

    def test_pay_fine_after_overdue_run(self, service, borrowing_repo, make_user, make_book):
        user = make_user()
        book = make_book()
        late = self._late_borrowing(borrowing_repo, user, book, days_late=1)
        service.update_overdue_status()

        assert service.pay_fine(late.borrowing_id) == 5000.0
        assert borrowing_repo.find_by_id(late.borrowing_id).fine_paid is True

    def test_paid_fine_stays_settled(self, database, borrowing_repo, make_user, make_book):
        user = make_user()
        book = make_book()
        late = self._late_borrowing(borrowing_repo, user, book, days_late=2)
        BorrowingService(database).update_overdue_status()
        assert BorrowingService(database).pay_fine(late.borrowing_id) == 10000.0

        later = BorrowingService(database, clock=lambda: _now() + timedelta(days=3))
        later.update_overdue_status()

        stored = borrowing_repo.find_by_id(late.borrowing_id)
        assert stored.fine_amount == 10000.0
        assert stored.fine_paid is True
        assert borrowing_repo.update_fine_amount(late.borrowing_id, 25000.0) is False


class TestLostBorrowings:
    def test_lost_copy_never_returns_to_shelf(self, service, book_repo, borrowing_repo, make_user, make_book):
        book = make_book(total_copies=2)
        borrowing = service.borrow_book(make_user().user_id, book.book_id, 14)
        service.mark_lost(borrowing.borrowing_id)

        with pytest.raises(BorrowingLostError):
            service.return_book(borrowing.borrowing_id)
        assert borrowing_repo.return_book(borrowing.borrowing_id, _now()) is False

        stored = borrowing_repo.find_by_id(borrowing.borrowing_id)
        assert stored.status is BorrowingStatus.LOST
        assert stored.return_date is None
        assert book_repo.find_by_id(book.book_id).available_copies == 1
