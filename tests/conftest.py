#configuracion de los test
import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

# ======================================================
# Ajuste del sys.path para que 'lending/' sea importable
# ======================================================
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# Base de datos SQLite temporal; debe fijarse antes de importar la app
TEST_DB_PATH = Path(tempfile.gettempdir()) / "lending_api_test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"

# ======================================================
# Imports de la aplicación
# ======================================================
from lending.main import app
from lending.core.logging import get_logger
from lending.db.session import Base, SessionLocal, engine
from lending.db.models import Book, Loan, Member
from lending.services.book_service import BookService
from lending.services.member_service import MemberService


# ======================================================
# ESQUEMA LIMPIO POR TEST
# ======================================================
@pytest.fixture(autouse=True)
def reset_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


# ======================================================
# DB SESSION FIXTURE
# ======================================================
@pytest.fixture
def db_session() -> Generator:
    """
    Provee una sesión de DB para cada test.
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


# ======================================================
# CLIENT FIXTURE
# ======================================================
@pytest.fixture(scope="session")
def client():
    """
    TestClient de FastAPI (con contexto, ejecuta el startup).
    """
    with TestClient(app) as c:
        yield c


# ======================================================
# SERVICIOS
# ======================================================
@pytest.fixture
def member_service(db_session) -> MemberService:
    return MemberService(db=db_session, logger=get_logger("services.members"))


@pytest.fixture
def book_service(db_session) -> BookService:
    return BookService(db=db_session, logger=get_logger("services.books"))


# ======================================================
# HELPERS DE DATOS
# ======================================================
def days_ago(days: float) -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=days)


@pytest.fixture
def make_member(db_session):
    """Inserta un miembro directamente en la BD."""
    def _make(code: str, name: str = "Member Test", books_rent: int = 0, penalty=None) -> Member:
        member = Member(code=code, name=name, books_rent=books_rent, penalty=penalty)
        db_session.add(member)
        db_session.commit()
        db_session.refresh(member)
        return member

    return _make


@pytest.fixture
def make_book(db_session):
    """Inserta un libro directamente en la BD."""
    def _make(code: str, stock: int = 1, title: str = "Libro Test", author: str = "Autor Test") -> Book:
        book = Book(code=code, title=title, author=author, stock=stock)
        db_session.add(book)
        db_session.commit()
        db_session.refresh(book)
        return book

    return _make


@pytest.fixture
def make_loan(db_session):
    """
    Inserta un préstamo con fecha de creación controlada
    (para probar elegibilidad y penalizaciones).
    """
    def _make(user_code: str, book_code: str, age_days: float = 0, returned: bool = False) -> Loan:
        created = days_ago(age_days)
        loan = Loan(
            user_code=user_code,
            book_code=book_code,
            returned=returned,
            created_at=created,
            updated_at=created,
        )
        db_session.add(loan)
        db_session.commit()
        db_session.refresh(loan)
        return loan

    return _make
