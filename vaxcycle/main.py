"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from secure import Secure

from vaxcycle.api import api_router
from vaxcycle.core.clock import SystemClock
from vaxcycle.core.config import get_settings
from vaxcycle.core.errors import ConcurrencyConflict
from vaxcycle.core.logging import configure_logging
from vaxcycle.db.protocol_store import ProtocolStore
from vaxcycle.db.session import dispose_engine, get_sessionmaker
from vaxcycle.services.overdue_sweep import OverdueSweepScheduler

logger = logging.getLogger(__name__)

settings = get_settings()

_ALLOWED_ORIGINS = [origin for origin in settings.cors_allowlist if origin]
if not _ALLOWED_ORIGINS:
    _ALLOWED_ORIGINS = ["http://localhost:5173"]


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging(settings.log_level)
    scheduler = None
    if settings.overdue_sweep_enabled:
        scheduler = OverdueSweepScheduler(
            ProtocolStore(get_sessionmaker()),
            SystemClock(settings.timezone),
            run_at=settings.overdue_sweep_time,
        )
        scheduler.start()
    try:
        yield
    finally:
        if scheduler is not None:
            await scheduler.stop()
        await dispose_engine()


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(CorrelationIdMiddleware, header_name="X-Request-ID")

_secure_headers = Secure.with_default_headers()


@app.middleware("http")
async def _apply_security_headers(request, call_next):
    response = await call_next(request)
    _secure_headers.set_headers(response)
    return response


@app.exception_handler(ConcurrencyConflict)
async def _conflict_handler(request: Request, exc: ConcurrencyConflict) -> JSONResponse:
    logger.warning(
        "Request %s %s hit a concurrent update: %s",
        request.method,
        request.url.path,
        exc.message,
    )
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT, content={"detail": exc.message}
    )


@app.exception_handler(TimeoutError)
async def _timeout_handler(request: Request, exc: TimeoutError) -> JSONResponse:
    logger.warning("Request %s %s timed out", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_504_GATEWAY_TIMEOUT,
        content={"detail": "The operation timed out"},
    )


app.include_router(api_router)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    """Return a simple welcome message."""
    return {"message": settings.app_name}
