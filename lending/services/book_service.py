from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from lending.core.errors import ForbiddenError, NotFoundError
from lending.db.models import Book
from lending.schemas.book import BookCreate, BookHistoryEntry, BookWithHistoryRead
from lending.services.base import BaseService, page_bounds


def book_with_history(book: Book) -> BookWithHistoryRead:
    return BookWithHistoryRead(
        code=book.code,
        title=book.title,
        author=book.author,
        stock=book.stock,
        history=[
            BookHistoryEntry(user=loan.user_code, is_returned=loan.returned, date=loan.updated_at)
            for loan in book.loans
        ],
    )


class BookService(BaseService):

    def list_books(
        self,
        page_size: Optional[int] = None,
        page_number: Optional[int] = None,
    ) -> List[BookWithHistoryRead]:
        skip, take = page_bounds(page_number, page_size)

        with self._store_errors("book_list", "Failed to get books"):
            query = self.db.query(Book).options(selectinload(Book.loans)).order_by(Book.id)
            if take is not None:
                query = query.offset(skip).limit(take)
            books = query.all()

        if not books:
            raise NotFoundError("No books found")

        return [book_with_history(book) for book in books]

    def get_book(self, code: str) -> BookWithHistoryRead:
        book = (
            self.db.query(Book)
            .options(selectinload(Book.loans))
            .filter(Book.code == code)
            .first()
        )
        if not book:
            raise NotFoundError(f"Book {code} not found")
        return book_with_history(book)

    def create_book(self, payload: BookCreate) -> Book:
        book = Book(
            code=payload.code,
            title=payload.title,
            author=payload.author,
            stock=payload.stock,
        )

        with self._store_errors("book_create", "Failed to create book", book_code=payload.code):
            self.db.add(book)
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                self.logger.warning(
                    "book_code_duplicate",
                    extra={"operation": "book_create", "resource": "book", "book_code": payload.code},
                )
                raise ForbiddenError(f"Book with code {payload.code} already exists")
            self.db.refresh(book)

        self.logger.info(
            "Book created",
            extra={
                "operation": "book_create",
                "resource": "book",
                "book_code": book.code,
                "stock": book.stock,
            },
        )
        return book
