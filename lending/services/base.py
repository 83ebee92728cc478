from contextlib import contextmanager
from logging import Logger
from typing import Iterator, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lending.core.errors import InternalError


def page_bounds(page_number: Optional[int], page_size: Optional[int]) -> Tuple[Optional[int], Optional[int]]:
    """
    Traduce pageNumber/pageSize a (skip, take).
    Sin pageSize no se pagina: se devuelve todo.
    """
    if page_size is None:
        return None, None
    page_number = page_number or 1
    return (page_number - 1) * page_size, page_size


class BaseService:
    """
    Dependencias explícitas de cada servicio: la sesión de BD
    y el logger con el que reporta sus operaciones.
    """

    def __init__(self, db: Session, logger: Logger):
        self.db = db
        self.logger = logger

    @contextmanager
    def _store_errors(self, operation: str, message: str, **extra) -> Iterator[None]:
        # Fallos de la BD: rollback, log completo y error opaco para el cliente
        try:
            yield
        except SQLAlchemyError:
            self.db.rollback()
            self.logger.exception(
                f"{operation}_failed",
                extra={"operation": operation, **extra},
            )
            raise InternalError(message)
