"""FastAPI application for the Daily Tips API."""

from contextlib import asynccontextmanager

import fastapi
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from core import get_logger
from core.config import get_settings
from core.logger import configure_logging
from core.middleware import RequestContextMiddleware, SecurityHeadersMiddleware
from core.ratelimit import limiter, rate_limit_exceeded_handler
from core.store import StoreUnavailableError, close_store, create_store
from routes import (
    frame_router,
    health_router,
    payments_router,
    progress_router,
    tips_router,
    users_router,
)
from services.frame_service import FrameActionError
from services.payments_service import PaymentFailedError, PaymentGateway
from services.tips_service import TipNotFoundError
from services.users_service import UserNotFoundError

configure_logging()
logger = get_logger(__name__)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler for unhandled exceptions."""
    logger.exception(
        "unhandled.exception",
        exc_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred. Please try again."},
    )


async def validation_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handler for request validation errors."""
    if not isinstance(exc, RequestValidationError):
        return JSONResponse(status_code=500, content={"detail": "Unexpected error"})

    logger.warning(
        "request.validation_error",
        path=request.url.path,
        method=request.method,
        error_count=len(exc.errors()),
    )
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # ctx may hold the raw exception raised by a validator
    return [
        {key: value for key, value in error.items() if key != "ctx"}
        for error in exc.errors()
    ]


async def store_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "store.unavailable.response",
        path=request.url.path,
        operation=getattr(exc, "operation", None),
    )
    return JSONResponse(
        status_code=503,
        content={"detail": "Storage is temporarily unavailable. Please retry."},
    )


async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def payment_failed_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.info("payment.declined", path=request.url.path)
    return JSONResponse(status_code=402, content={"detail": str(exc)})


async def frame_action_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


@asynccontextmanager
async def lifespan(app: fastapi.FastAPI):
    """Create the store client and payment gateway at startup, close on shutdown."""
    app.state.store = create_store()
    app.state.payment_gateway = PaymentGateway()
    logger.info("init.complete")

    try:
        yield
    finally:
        await close_store(app.state.store)


_settings = get_settings()

app = fastapi.FastAPI(
    title="Daily Tips API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if _settings.enable_docs or _settings.debug else None,
    redoc_url="/redoc" if _settings.enable_docs or _settings.debug else None,
    openapi_url=("/openapi.json" if _settings.enable_docs or _settings.debug else None),
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StoreUnavailableError, store_unavailable_handler)
app.add_exception_handler(UserNotFoundError, not_found_handler)
app.add_exception_handler(TipNotFoundError, not_found_handler)
app.add_exception_handler(PaymentFailedError, payment_failed_handler)
app.add_exception_handler(FrameActionError, frame_action_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.add_middleware(GZipMiddleware, minimum_size=500)
app.add_middleware(SecurityHeadersMiddleware)
# Outermost, so the request log line sees the final status code
app.add_middleware(RequestContextMiddleware)

app.include_router(health_router)
app.include_router(users_router)
app.include_router(tips_router)
app.include_router(progress_router)
app.include_router(payments_router)
app.include_router(frame_router)
