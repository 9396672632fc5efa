"""Request middleware: binds log context and times each request."""

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.core.logging import bind_context, get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "x-request-id"
USER_ID_HEADER = "x-user-id"


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Binds request_id and the caller's user_id for structured logging.

    The request id is echoed back so clients can quote it in bug reports.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        bind_context(
            request_id=request_id,
            user_id=request.headers.get(USER_ID_HEADER),
            chat_id=None,
        )

        started = time.monotonic()
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id

        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        return response
