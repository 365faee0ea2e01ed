import time
import logging
from uuid import uuid4
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from .logging_config import request_id_ctx

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
PROCESS_TIME_HEADER = "X-Process-Time-Ms"

class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get(REQUEST_ID_HEADER.lower()) or uuid4().hex
        token = request_id_ctx.set(rid)
        request.state.request_id = rid
        start = time.perf_counter()
        try:
            response: Response = await call_next(request)
            dur_ms = int((time.perf_counter() - start) * 1000)
            response.headers[REQUEST_ID_HEADER] = rid
            response.headers[PROCESS_TIME_HEADER] = str(dur_ms)
            logger.info("%s %s -> %s (%d ms)", request.method, request.url.path, response.status_code, dur_ms)
            return response
        except Exception:
            logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
            raise
        finally:
            request_id_ctx.reset(token)
