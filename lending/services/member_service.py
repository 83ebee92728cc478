import math
from collections import Counter
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from lending.core.errors import CodeCollisionError, ForbiddenError, NotFoundError
from lending.db.models import Book, Loan, Member
from lending.schemas.book import BookSummary
from lending.schemas.member import MemberListItem
from lending.services.base import BaseService, page_bounds

MAX_BOOKS_RENT = 2      # libros simultáneos permitidos
PENALTY_DAYS = 3        # días desde la penalización
OVERDUE_DAYS = 7        # antigüedad del último préstamo abierto

SECONDS_PER_DAY = 60 * 60 * 24


def as_utc(value: datetime) -> datetime:
    # SQLite devuelve fechas naive; las guardamos siempre en UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_since(value: datetime, now: Optional[datetime] = None) -> int:
    """Días transcurridos, redondeando hacia arriba (un día parcial cuenta entero)."""
    if now is None:
        now = datetime.now(timezone.utc)
    elapsed = (now - as_utc(value)).total_seconds()
    return math.ceil(elapsed / SECONDS_PER_DAY)


def member_code_for(number: int) -> str:
    return f"M{number:03d}"


class MemberService(BaseService):

    # ---- helpers ----

    def _get_member(self, code: str) -> Member:
        member = self.db.query(Member).filter(Member.code == code).first()
        if not member:
            raise NotFoundError(f"Member {code} not found")
        return member

    def _open_loans(self, code: str):
        return self.db.query(Loan).filter(Loan.user_code == code, Loan.returned.is_(False))

    def _restock(self, loans: Iterable[Loan]) -> None:
        # Incremento atómico en la BD: +1 por cada préstamo cerrado
        for book_code, amount in Counter(loan.book_code for loan in loans).items():
            self.db.query(Book).filter(Book.code == book_code).update(
                {Book.stock: Book.stock + amount},
                synchronize_session=False,
            )

    # ---- alta ----

    def create_member(self, name: str) -> Member:
        """
        Asigna el siguiente código secuencial (M001, M002, ...) a partir del
        total de miembros. Si dos altas concurrentes calculan el mismo código,
        la restricción única lo detecta y el cliente debe reintentar.
        """
        with self._store_errors("member_create", "Failed to create member"):
            try:
                total = self.db.query(func.count(Member.id)).scalar() or 0
                member = Member(code=member_code_for(total + 1), name=name, books_rent=0)
                self.db.add(member)
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                self.logger.warning(
                    "member_code_collision",
                    extra={"operation": "member_create", "resource": "member"},
                )
                raise CodeCollisionError()

            self.db.refresh(member)

        self.logger.info(
            "Member created",
            extra={"operation": "member_create", "resource": "member", "member_code": member.code},
        )
        return member

    # ---- elegibilidad ----

    def get_eligibility(self, code: str) -> bool:
        """
        Un miembro puede pedir otro libro si se cumple CUALQUIERA de:
        1. Tiene menos de MAX_BOOKS_RENT libros y, o no tiene penalización,
           o han pasado menos de PENALTY_DAYS días desde ella.
        2. No tiene préstamos abiertos, o el más reciente tiene más de
           OVERDUE_DAYS días.
        """
        member = self._get_member(code)
        now = datetime.now(timezone.utc)

        if member.books_rent < MAX_BOOKS_RENT and (
            member.penalty is None or days_since(member.penalty, now) < PENALTY_DAYS
        ):
            return True

        latest = self._open_loans(code).order_by(Loan.created_at.desc()).first()
        return latest is None or days_since(latest.created_at, now) > OVERDUE_DAYS

    # ---- penalización ----

    def penalize_member(self, code: str) -> Member:
        """
        Cierra todos los préstamos abiertos del miembro, devuelve los libros
        al stock y registra la fecha de penalización. Todo en una transacción.
        """
        member = self._get_member(code)

        with self._store_errors("member_penalize", "Failed to penalize member", member_code=code):
            open_loans = self._open_loans(code).all()
            if not open_loans:
                raise NotFoundError(f"No open loans found for member {code}")

            for loan in open_loans:
                loan.returned = True
            self._restock(open_loans)

            member.books_rent = max(member.books_rent - len(open_loans), 0)
            member.penalty = datetime.now(timezone.utc)
            self.db.commit()
            self.db.refresh(member)

        self.logger.info(
            "Member penalized",
            extra={
                "operation": "member_penalize",
                "resource": "member",
                "member_code": code,
                "closed_loans": len(open_loans),
            },
        )
        return member

    # ---- devoluciones ----

    def change_member_books(self, code: str, books: List[str]) -> Member:
        """Marca como devueltos los préstamos abiertos de `books` y ajusta books_rent."""
        member = self._get_member(code)

        with self._store_errors("member_return_books", "Failed to return books", member_code=code):
            loans = self._open_loans(code).filter(Loan.book_code.in_(books)).all()
            returned_codes = [loan.book_code for loan in loans]
            for loan in loans:
                loan.returned = True
            self._restock(loans)

            member.books_rent = max(member.books_rent - len(loans), 0)
            self.db.commit()
            self.db.refresh(member)

        self.logger.info(
            "Member books returned",
            extra={
                "operation": "member_return_books",
                "resource": "member",
                "member_code": code,
                "book_codes": returned_codes,
            },
        )
        return member

    # ---- préstamo ----

    def borrow_book(self, code: str, book_code: str) -> Loan:
        member = self._get_member(code)
        book = self.db.query(Book).filter(Book.code == book_code).first()
        if not book:
            raise NotFoundError(f"Book {book_code} not found")

        if not self.get_eligibility(code):
            raise ForbiddenError(f"Member {code} is not eligible to borrow books")
        if book.stock < 1:
            raise ForbiddenError(f"Book {book_code} is out of stock")

        with self._store_errors("loan_create", "Failed to borrow book", member_code=code, book_code=book_code):
            loan = Loan(user_code=code, book_code=book_code, returned=False)
            self.db.add(loan)
            book.stock -= 1
            member.books_rent += 1
            self.db.commit()
            self.db.refresh(loan)

        self.logger.info(
            "Book borrowed",
            extra={
                "operation": "loan_create",
                "resource": "loan",
                "loan_id": loan.id,
                "member_code": code,
                "book_code": book_code,
            },
        )
        return loan

    # ---- consultas ----

    def list_members(
        self,
        page_number: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> List[MemberListItem]:
        skip, take = page_bounds(page_number, page_size)

        with self._store_errors("member_list", "Failed to get members"):
            query = (
                self.db.query(Member)
                .options(selectinload(Member.loans).selectinload(Loan.book))
                .order_by(Member.id)
            )
            if take is not None:
                query = query.offset(skip).limit(take)
            members = query.all()

        return [
            MemberListItem(
                code=member.code,
                name=member.name,
                books_rent=member.books_rent,
                penalty=member.penalty,
                books=[BookSummary.model_validate(loan.book) for loan in member.loans],
            )
            for member in members
        ]

    def get_member_detail(self, code: str) -> Member:
        member = (
            self.db.query(Member)
            .options(selectinload(Member.loans).selectinload(Loan.book))
            .filter(Member.code == code)
            .first()
        )
        if not member:
            raise NotFoundError(f"Member {code} not found")
        return member
