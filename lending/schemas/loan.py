from datetime import datetime
from typing import List

from pydantic import BaseModel, Field, StrictStr

from lending.schemas.book import BookSummary


class LoanCreate(BaseModel):
    book_code: StrictStr = Field(..., min_length=1)


class LoanReturn(BaseModel):
    books: List[StrictStr] = Field(..., min_length=1)


class LoanRead(BaseModel):
    id: int
    user_code: str
    book_code: str
    returned: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LoanWithBookRead(LoanRead):
    book: BookSummary
