from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from lending.core.logging import get_logger
from lending.db.session import SessionLocal
from lending.services.book_service import BookService
from lending.services.member_service import MemberService


def get_db() -> Generator[Session, None, None]:
    """
    Dependencia para obtener una sesión de base de datos por request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_member_service(db: Session = Depends(get_db)) -> MemberService:
    return MemberService(db=db, logger=get_logger("services.members"))


def get_book_service(db: Session = Depends(get_db)) -> BookService:
    return BookService(db=db, logger=get_logger("services.books"))
