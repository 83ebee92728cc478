from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, StrictStr

from lending.schemas.book import BookSummary
from lending.schemas.loan import LoanWithBookRead


class MemberCreate(BaseModel):
    name: StrictStr = Field(..., min_length=1, max_length=255)


class MemberRead(BaseModel):
    code: str
    name: str
    books_rent: int
    penalty: Optional[datetime] = None

    class Config:
        from_attributes = True


class MemberListItem(MemberRead):
    # Libros ligados al historial de préstamos (solo code/title/author)
    books: List[BookSummary] = []


class MemberDetailRead(MemberRead):
    created_at: datetime
    updated_at: datetime
    loans: List[LoanWithBookRead] = []


class MemberEligibility(BaseModel):
    code: str
    eligible: bool
