"""Request tracing middleware for FastAPI.

Binds an X-Request-ID to the logging context, times each request and logs
its outcome.

Usage:
    from libs.common.middleware import add_observability_middleware

    app = FastAPI()
    add_observability_middleware(app)
"""

import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from libs.common.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)

logger = get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_context(request.headers.get("X-Request-ID"))
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "%s %s failed after %.2fms",
                request.method,
                request.url.path,
                (time.perf_counter() - start_time) * 1000,
            )
            clear_request_context()
            raise

        if request.url.path != "/health":
            log = logger.warning if response.status_code >= 400 else logger.info
            log(
                "%s %s -> %s (%.2fms)",
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - start_time) * 1000,
                extra={
                    "extra_fields": {
                        "status_code": response.status_code,
                        "path": request.url.path,
                    }
                },
            )

        response.headers["X-Request-ID"] = request_id
        clear_request_context()
        return response


def add_observability_middleware(app: FastAPI) -> None:
    """
    Configure logging and add request context middleware to a FastAPI app.
    """
    configure_logging()
    app.add_middleware(RequestContextMiddleware)
