from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from lending.core.errors import InternalError, NotFoundError
from lending.db.models import Book, Loan, Member
from lending.services.member_service import as_utc


def _reload(db_session, model, **filters):
    db_session.expire_all()
    return db_session.query(model).filter_by(**filters).one()


# ======================================================
# Penalización
# ======================================================

def test_penalize_closes_loan_restocks_and_stamps_penalty(
    db_session, member_service, make_member, make_book, make_loan
):
    make_member("M001", books_rent=1)
    make_book("X1", stock=0)
    loan = make_loan("M001", "X1", age_days=10)

    before = datetime.now(timezone.utc)
    member = member_service.penalize_member("M001")

    assert member.penalty is not None
    assert as_utc(member.penalty) >= before - timedelta(seconds=1)
    assert member.books_rent == 0

    assert _reload(db_session, Loan, id=loan.id).returned is True
    assert _reload(db_session, Book, code="X1").stock == 1


def test_penalize_restocks_each_closed_loan(
    db_session, member_service, make_member, make_book, make_loan
):
    make_member("M001", books_rent=2)
    make_book("X1", stock=0)
    make_book("X2", stock=4)
    make_loan("M001", "X1", age_days=9)
    make_loan("M001", "X2", age_days=8)
    make_loan("M001", "X2", age_days=20, returned=True)

    member_service.penalize_member("M001")

    assert _reload(db_session, Book, code="X1").stock == 1
    assert _reload(db_session, Book, code="X2").stock == 5
    open_loans = db_session.query(Loan).filter(Loan.returned.is_(False)).count()
    assert open_loans == 0


def test_penalize_without_open_loans_raises_not_found(
    db_session, member_service, make_member, make_book, make_loan
):
    make_member("M001")
    make_book("X1")
    make_loan("M001", "X1", age_days=3, returned=True)

    with pytest.raises(NotFoundError):
        member_service.penalize_member("M001")

    assert _reload(db_session, Member, code="M001").penalty is None


def test_penalize_unknown_member_raises_not_found(member_service):
    with pytest.raises(NotFoundError):
        member_service.penalize_member("M404")


def test_penalize_store_failure_is_wrapped_as_internal(
    db_session, member_service, make_member, make_book, make_loan, monkeypatch, caplog
):
    make_member("M001", books_rent=1)
    make_book("X1", stock=0)
    make_loan("M001", "X1")

    def broken_commit():
        raise OperationalError("UPDATE books_on_user", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "commit", broken_commit)

    with pytest.raises(InternalError) as exc_info:
        member_service.penalize_member("M001")

    assert exc_info.value.status_code == 500
    assert "locked" not in exc_info.value.detail
    assert any(r.getMessage() == "member_penalize_failed" for r in caplog.records)


# ======================================================
# Devoluciones
# ======================================================

def test_change_member_books_returns_matching_loans(
    db_session, member_service, make_member, make_book, make_loan
):
    make_member("M001", books_rent=3)
    for code in ("B1", "B2", "B3"):
        make_book(code, stock=0)
    loan1 = make_loan("M001", "B1", age_days=3)
    loan2 = make_loan("M001", "B2", age_days=2)
    loan3 = make_loan("M001", "B3", age_days=1)

    member = member_service.change_member_books("M001", ["B1", "B2"])

    assert member.books_rent == 1
    assert _reload(db_session, Loan, id=loan1.id).returned is True
    assert _reload(db_session, Loan, id=loan2.id).returned is True
    assert _reload(db_session, Loan, id=loan3.id).returned is False
    assert _reload(db_session, Book, code="B1").stock == 1
    assert _reload(db_session, Book, code="B3").stock == 0


def test_change_member_books_ignores_books_not_held(
    db_session, member_service, make_member, make_book, make_loan
):
    make_member("M001", books_rent=1)
    make_book("B1", stock=0)
    make_book("B2", stock=2)
    make_loan("M001", "B1")

    member = member_service.change_member_books("M001", ["B2"])

    assert member.books_rent == 1
    assert _reload(db_session, Book, code="B2").stock == 2


def test_books_rent_never_goes_negative(
    db_session, member_service, make_member, make_book, make_loan
):
    # contador ya desfasado a 0 con un préstamo abierto
    make_member("M001", books_rent=0)
    make_book("B1", stock=0)
    make_loan("M001", "B1")

    member = member_service.change_member_books("M001", ["B1"])
    assert member.books_rent == 0


def test_change_member_books_unknown_member(member_service):
    with pytest.raises(NotFoundError):
        member_service.change_member_books("M404", ["B1"])
