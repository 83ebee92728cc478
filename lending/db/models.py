from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from lending.db.session import Base
from sqlalchemy.sql import func


# ======================
# Member
# ======================

class Member(Base):
    __tablename__ = "members"
    __table_args__ = (
        CheckConstraint("books_rent >= 0", name="ck_members_books_rent_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    # Código secuencial M001, M002, ... (único, nunca se reasigna)
    code: Mapped[str] = mapped_column(String(10), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    books_rent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    penalty: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    loans: Mapped[list["Loan"]] = relationship("Loan", back_populates="member")


# ======================
# Book
# ======================

class Book(Base):
    __tablename__ = "books"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_books_stock_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    author: Mapped[str] = mapped_column(String(255), nullable=False)

    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    loans: Mapped[list["Loan"]] = relationship("Loan", back_populates="book")


# ======================
# Loan (libro en manos de un miembro)
# ======================

class Loan(Base):
    __tablename__ = "books_on_user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    user_code: Mapped[str] = mapped_column(
        String(10),
        ForeignKey("members.code", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    book_code: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("books.code", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    returned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    member: Mapped["Member"] = relationship("Member", back_populates="loans")
    book: Mapped["Book"] = relationship("Book", back_populates="loans")
