"""Magister API application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.api.v1.router import api_router
from app.config import get_settings
from app.core.exceptions import (
    MagisterError,
    NotFoundError,
    UnauthorizedError,
    UpstreamAuthError,
    UpstreamConfigError,
    UpstreamError,
    UpstreamProtocolError,
    UpstreamRateLimitedError,
    UpstreamServerError,
    ValidationError,
)
from app.core.logging import get_logger, setup_logging
from app.core.middleware import ObservabilityMiddleware
from app.database import engine

settings = get_settings()
logger = get_logger(__name__)

# Most specific class first
ERROR_STATUS: list[tuple[type[MagisterError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (UnauthorizedError, status.HTTP_403_FORBIDDEN),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (UpstreamConfigError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (UpstreamAuthError, status.HTTP_502_BAD_GATEWAY),
    (UpstreamRateLimitedError, status.HTTP_429_TOO_MANY_REQUESTS),
    (UpstreamServerError, status.HTTP_502_BAD_GATEWAY),
    (UpstreamProtocolError, status.HTTP_502_BAD_GATEWAY),
    (UpstreamError, status.HTTP_502_BAD_GATEWAY),
]


def status_for(exc: MagisterError) -> int:
    for cls, code in ERROR_STATUS:
        if isinstance(exc, cls):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def magister_error_handler(request: Request, exc: MagisterError) -> JSONResponse:
    status_code = status_for(exc)
    log = logger.warning if status_code >= 500 else logger.info
    log(
        "request_failed",
        path=request.url.path,
        code=exc.code,
        status_code=status_code,
        error=exc.message,
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.user_message, "code": exc.code},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("app_started", debug=settings.debug)
    yield
    await engine.dispose()
    logger.info("app_stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Magister API",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(ObservabilityMiddleware)
    app.add_exception_handler(MagisterError, magister_error_handler)
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
