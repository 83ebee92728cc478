from fastapi import FastAPI, Depends, Request
from fastapi.responses import Response
import time
import uuid
import logging

from sqlalchemy import text
from sqlalchemy.orm import Session

from lending.api.v1.dependencies import get_db
from lending.api.v1.endpoints import books, members
from lending.db.session import engine
from lending.services.init_db import ensure_schema
from lending.core.config import settings
from lending.core.logging import configure_logging, get_logger, request_id_ctx


# Configurar logging global al arrancar el módulo
configure_logging()
request_logger = get_logger("api.request")

app = FastAPI(
    title="Library Lending API",
    version="1.0.0",
)

# Routers de la API
app.include_router(books.router)
app.include_router(members.router)


@app.on_event("startup")
def startup_event():
    configure_logging()
    ensure_schema(engine)


@app.middleware("http")
async def add_request_id_and_log(request: Request, call_next):
    """
    Middleware que:
    - Asigna un request_id (si no viene en cabecera).
    - Mide el tiempo de respuesta.
    - Loguea la petición y marca WARNING si es lenta.
    """
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    start = time.perf_counter()

    request.state.request_id = request_id
    request_id_ctx.set(request_id)

    try:
        response: Response = await call_next(request)
    except Exception:
        # Log de error con stacktrace
        process_time_ms = (time.perf_counter() - start) * 1000
        request_logger.error(
            "unhandled_exception",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": 500,
                "duration_ms": round(process_time_ms, 2),
                "client_host": request.client.host if request.client else None,
            },
            exc_info=True,
        )
        raise

    process_time_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = request_id

    # Elegir nivel según si es lenta
    level = logging.INFO
    if process_time_ms > settings.SLOW_REQUEST_THRESHOLD_MS:
        level = logging.WARNING

    request_logger.log(
        level,
        "request_completed",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(process_time_ms, 2),
            "client_host": request.client.host if request.client else None,
        },
    )

    return response


@app.get("/")
def root():
    return {"message": "Library Lending API running"}


@app.get("/health/db")
def health_db(db: Session = Depends(get_db)):
    db.execute(text("SELECT 1"))
    return {"status": "ok"}
