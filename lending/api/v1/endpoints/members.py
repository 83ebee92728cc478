from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from lending.api.v1.dependencies import get_member_service
from lending.schemas.loan import LoanCreate, LoanRead, LoanReturn
from lending.schemas.member import (
    MemberCreate,
    MemberDetailRead,
    MemberEligibility,
    MemberListItem,
    MemberRead,
)
from lending.services.member_service import MemberService

router = APIRouter(
    prefix="/user",
    tags=["members"],
)


@router.get("", response_model=List[MemberListItem])
def list_members(
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1),
    page_number: Optional[int] = Query(None, alias="pageNumber", ge=1),
    service: MemberService = Depends(get_member_service),
):
    return service.list_members(page_number=page_number, page_size=page_size)


@router.post("", response_model=MemberRead, status_code=status.HTTP_201_CREATED)
def create_member(
    payload: MemberCreate,
    service: MemberService = Depends(get_member_service),
):
    return service.create_member(payload.name)


# ---- Penalizar (importante: va antes de las rutas con {code}) ----
@router.patch("/penalize/{code}", response_model=MemberRead)
def penalize_member(
    code: str,
    service: MemberService = Depends(get_member_service),
):
    return service.penalize_member(code)


@router.get("/{code}", response_model=MemberDetailRead)
def get_member(
    code: str,
    service: MemberService = Depends(get_member_service),
):
    return service.get_member_detail(code)


@router.get("/{code}/eligibility", response_model=MemberEligibility)
def get_member_eligibility(
    code: str,
    service: MemberService = Depends(get_member_service),
):
    return {"code": code, "eligible": service.get_eligibility(code)}


@router.post("/{code}/borrow", response_model=LoanRead, status_code=status.HTTP_201_CREATED)
def borrow_book(
    code: str,
    payload: LoanCreate,
    service: MemberService = Depends(get_member_service),
):
    return service.borrow_book(code, payload.book_code)


@router.patch("/{code}/return", response_model=MemberRead)
def return_books(
    code: str,
    payload: LoanReturn,
    service: MemberService = Depends(get_member_service),
):
    return service.change_member_books(code, payload.books)
