# grimorio/core/middleware.py

import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from grimorio.core.logging import branch_id_ctx, get_logger, request_id_ctx

logger = get_logger(__name__)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Asigna un ID a cada solicitud (o reutiliza el del header X-Request-ID),
    lo deja en el contexto de logging y lo devuelve en la respuesta.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request_id_ctx.set(request_id)
        branch_id_ctx.set(None)

        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                f"Solicitud fallida: {request.method} {request.url.path}",
                extra={
                    "extra_data": {
                        "method": request.method,
                        "path": request.url.path,
                        "duration_ms": round((time.time() - start_time) * 1000, 2),
                    }
                },
                exc_info=True,
            )
            raise

        logger.info(
            f"{request.method} {request.url.path}",
            extra={
                "extra_data": {
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": round((time.time() - start_time) * 1000, 2),
                }
            },
        )
        response.headers["X-Request-ID"] = request_id
        return response
