"""Request logging middleware.

Logs one line per request with a PII-safe context and echoes X-Request-ID.
"""

import logging
import time
import uuid

from fastapi import Request

from freelance_os.core.structured_logging import build_log_context

logger = logging.getLogger("freelance_os.requests")

REQUEST_ID_HEADER = "X-Request-ID"


def _route_template(request: Request) -> str:
    # Path template keeps IDs out of the logs
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


async def log_requests(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    request.state.request_id = request_id
    started = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            "request_failed",
            extra=build_log_context(
                user_id=getattr(request.state, "user_id", None),
                request_id=request_id,
                route=_route_template(request),
                method=request.method,
                duration_ms=(time.perf_counter() - started) * 1000,
            ),
        )
        raise

    response.headers[REQUEST_ID_HEADER] = request_id
    logger.info(
        "%s %s %s",
        request.method,
        _route_template(request),
        response.status_code,
        extra=build_log_context(
            user_id=getattr(request.state, "user_id", None),
            request_id=request_id,
            route=_route_template(request),
            method=request.method,
            status_code=response.status_code,
            duration_ms=(time.perf_counter() - started) * 1000,
        ),
    )
    return response
