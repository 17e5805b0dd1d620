"""
Logging estructurado en JSON.

Cada registro incluye el ID de la solicitud y la sucursal (branch) del
usuario autenticado cuando están disponibles en el contexto.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
branch_id_ctx: ContextVar[Optional[str]] = ContextVar("branch_id", default=None)


class JSONFormatter(logging.Formatter):
    """Serializa cada registro como una línea JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "func": record.funcName,
            "line": record.lineno,
            "service": "grimorio-backend",
        }

        rid = request_id_ctx.get()
        if rid:
            log_data["request_id"] = rid

        bid = branch_id_ctx.get()
        if bid:
            log_data["branch_id"] = bid

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(level: str = "INFO"):
    """Configura el logger raíz con formato JSON hacia stdout."""
    logger = logging.getLogger()
    logger.setLevel(level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)

    # Silenciar librerías ruidosas
    logging.getLogger("uvicorn.access").disabled = True
    logging.getLogger("sqlalchemy.engine").setLevel("WARNING")
    logging.getLogger("passlib").setLevel("ERROR")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
