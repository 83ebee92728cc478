from datetime import datetime
from typing import List

from pydantic import BaseModel, Field, StrictInt, StrictStr


class BookCreate(BaseModel):
    code: StrictStr = Field(..., min_length=1, max_length=50, pattern=r"^[A-Za-z0-9]+$")
    title: StrictStr = Field(..., min_length=1, max_length=255)
    author: StrictStr = Field(..., min_length=1, max_length=255)
    stock: StrictInt = Field(..., ge=0)


class BookSummary(BaseModel):
    code: str
    title: str
    author: str

    class Config:
        from_attributes = True


class BookHistoryEntry(BaseModel):
    user: str           # código del miembro que tuvo el libro
    is_returned: bool
    date: datetime      # última actualización del préstamo


class BookRead(BaseModel):
    code: str
    title: str
    author: str
    stock: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BookWithHistoryRead(BaseModel):
    code: str
    title: str
    author: str
    stock: int
    history: List[BookHistoryEntry] = []
