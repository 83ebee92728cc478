# lending/core/logging.py
import json
import logging
from logging import Logger
from typing import Any, Dict, Optional
from contextvars import ContextVar
from .config import settings


# Contexto por request, lo fija el middleware HTTP
request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class JsonFormatter(logging.Formatter):
    """
    Formatea los logs como JSON estructurado.

    Respeta los campos extra que pases en `logger.info(..., extra={...})`:
    - operation
    - resource
    - member_code, book_code, etc.
    """

    skip = {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
    }

    def format(self, record: logging.LogRecord) -> str:
        log: Dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in self.skip and key not in log:
                log[key] = value

        # Inyectar request_id desde el contexto, si existe
        req_id = request_id_ctx.get()
        if req_id is not None and "request_id" not in log:
            log["request_id"] = req_id

        if record.exc_info:
            log["exc_info"] = self.formatException(record.exc_info)

        # default=str: fechas y códigos vienen tal cual en `extra`
        return json.dumps(log, ensure_ascii=False, default=str)


def configure_logging() -> None:
    """
    Configura el logging global de la app para usar JSON estructurado.

    Se llama una vez al inicio de la aplicación.
    """
    root = logging.getLogger()
    root.setLevel(settings.LOG_LEVEL.upper())

    # Solo reemplazamos nuestros propios handlers (pytest/caplog añade los suyos)
    for h in list(root.handlers):
        if isinstance(h.formatter, JsonFormatter):
            root.removeHandler(h)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)


def get_logger(name: str) -> Logger:
    """
    Helper para obtener loggers con el prefijo de la app.
    Ejemplo:
        logger = get_logger("services.members")
    """
    return logging.getLogger(f"lending.{name}")
