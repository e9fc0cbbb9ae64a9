import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("thrower.access")


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        owner = request.headers.get("x-owner-id") or None
        start = time.perf_counter()
        request.state.request_id = request_id

        base = {
            "category": "http",
            "request_id": request_id,
            "owner": owner,
            "method": request.method,
            "path": request.url.path,
        }
        logger.info("request.start", extra={**base, "event": "request.start", "query": str(request.url.query)})

        try:
            response: Response = await call_next(request)
        except Exception:
            logger.exception(
                "request.error",
                extra={**base, "event": "request.error", "duration_ms": _since(start)},
            )
            raise

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request.end",
            extra={**base, "event": "request.end", "status_code": response.status_code, "duration_ms": _since(start)},
        )
        return response


def _since(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)
