from sqlalchemy.engine import Engine

from lending.db.session import Base
from lending.db import models  # noqa: F401  registra las tablas en Base.metadata


def ensure_schema(engine: Engine) -> None:
    # Crea las tablas que falten; no migra columnas existentes
    Base.metadata.create_all(bind=engine, checkfirst=True)
