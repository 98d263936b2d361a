from datetime import datetime, timedelta, timezone

import pytest

from models import Borrowing, BorrowingStatus

pytestmark = pytest.mark.integration


def _now():
    return datetime.now(timezone.utc)


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def book(make_book):
    return make_book(total_copies=5)


@pytest.fixture
def make_borrowing(borrowing_repo, user, book):
    def _make(due_in_days=14, borrowed_days_ago=0, **overrides):
        borrow_date = _now() - timedelta(days=borrowed_days_ago)
        fields = {
            "user_id": user.user_id,
            "book_id": book.book_id,
            "borrow_date": borrow_date,
            "due_date": borrow_date + timedelta(days=borrowed_days_ago + due_in_days),
        }
        fields.update(overrides)
        return borrowing_repo.create(Borrowing(**fields))
    return _make


class TestBorrowingRepository:
    def test_create_defaults(self, borrowing_repo, user, book):
        created = borrowing_repo.create(Borrowing(
            user_id=user.user_id, book_id=book.book_id, due_date=_now() + timedelta(days=7),
        ))

        found = borrowing_repo.find_by_id(created.borrowing_id)
        assert found.borrow_date is not None
        assert found.borrow_date.tzinfo is not None
        assert found.status is BorrowingStatus.BORROWED
        assert found.fine_amount == 0.0
        assert found.fine_paid is False
        assert found.return_date is None

    def test_queries_by_user_and_book(self, borrowing_repo, make_borrowing, user, book):
        older = make_borrowing(borrowed_days_ago=3)
        newer = make_borrowing()

        assert [b.borrowing_id for b in borrowing_repo.find_by_user_id(user.user_id)] == [
            newer.borrowing_id, older.borrowing_id,
        ]
        assert len(borrowing_repo.find_by_book_id(book.book_id)) == 2
        assert borrowing_repo.find_by_user_id(999999) == []
        assert borrowing_repo.count_all() == 2

    def test_active_and_overdue(self, borrowing_repo, make_borrowing, user):
        late = make_borrowing(borrowed_days_ago=20, due_in_days=-6)
        later = make_borrowing(borrowed_days_ago=20, due_in_days=-2)
        on_time = make_borrowing()
        returned = make_borrowing(borrowed_days_ago=30, due_in_days=-16)
        borrowing_repo.return_book(returned.borrowing_id, _now())

        overdue = borrowing_repo.find_overdue_borrowings()
        assert [b.borrowing_id for b in overdue] == [late.borrowing_id, later.borrowing_id]

        active_ids = {b.borrowing_id for b in borrowing_repo.find_active_borrowings()}
        assert active_ids == {late.borrowing_id, later.borrowing_id, on_time.borrowing_id}
        assert borrowing_repo.count_active_borrowings_by_user(user.user_id) == 3

    def test_overdue_with_explicit_reference_time(self, borrowing_repo, make_borrowing):
        due_soon = make_borrowing(due_in_days=2)

        assert borrowing_repo.find_overdue_borrowings(_now()) == []
        later = borrowing_repo.find_overdue_borrowings(_now() + timedelta(days=3))
        assert [b.borrowing_id for b in later] == [due_soon.borrowing_id]

    def test_return_is_one_shot(self, borrowing_repo, make_borrowing):
        borrowing = make_borrowing()

        assert borrowing_repo.return_book(borrowing.borrowing_id, _now()) is True
        assert borrowing_repo.return_book(borrowing.borrowing_id, _now()) is False

        found = borrowing_repo.find_by_id(borrowing.borrowing_id)
        assert found.status is BorrowingStatus.RETURNED
        assert found.return_date is not None

    def test_fine_updates(self, borrowing_repo, make_borrowing):
        borrowing = make_borrowing(borrowed_days_ago=20, due_in_days=-3)

        assert borrowing_repo.update_status(borrowing.borrowing_id, BorrowingStatus.OVERDUE) is True
        assert borrowing_repo.update_fine_amount(borrowing.borrowing_id, 15000.0) is True
        assert borrowing_repo.mark_fine_paid(borrowing.borrowing_id) is True
        assert borrowing_repo.mark_fine_paid(borrowing.borrowing_id) is False

        found = borrowing_repo.find_by_id(borrowing.borrowing_id)
        assert found.status is BorrowingStatus.OVERDUE
        assert found.fine_amount == 15000.0
        assert found.fine_paid is True

    def test_delete(self, borrowing_repo, make_borrowing):
        borrowing = make_borrowing()

        assert borrowing_repo.delete(borrowing.borrowing_id) is True
        assert borrowing_repo.find_by_id(borrowing.borrowing_id) is None
