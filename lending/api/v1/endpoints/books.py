from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from lending.api.v1.dependencies import get_book_service
from lending.schemas.book import BookCreate, BookRead, BookWithHistoryRead
from lending.services.book_service import BookService

router = APIRouter(
    prefix="/book",
    tags=["books"],
)


@router.get("", response_model=List[BookWithHistoryRead])
def list_books(
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1),
    page_number: Optional[int] = Query(None, alias="pageNumber", ge=1),
    service: BookService = Depends(get_book_service),
):
    return service.list_books(page_size=page_size, page_number=page_number)


@router.post(
    "",
    response_model=BookRead,
    status_code=status.HTTP_201_CREATED,
)
def create_book(
    payload: BookCreate,
    service: BookService = Depends(get_book_service),
):
    return service.create_book(payload)


@router.get("/{code}", response_model=BookWithHistoryRead)
def get_book(
    code: str,
    service: BookService = Depends(get_book_service),
):
    return service.get_book(code)
