from __future__ import annotations

import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import get_settings
from core.logging import get_logger
from core.persistence import DocumentNotFound, DocumentStore, DuplicateKeyError
from monitoring.prometheus_exporter import API_ERRORS_TOTAL
from notifications.otp import OtpStore

from api.routes.health import router as health_router
from api.routes.categories import router as categories_router
from api.routes.products import router as products_router
from api.routes.users import router as users_router
from api.routes.cart import router as cart_router
from api.routes.client_logs import router as client_logs_router
from api.routes.metrics import router as metrics_router

logger = get_logger("api.app")


def _error_response(status_code: int, message: str, errors=None, headers=None) -> JSONResponse:
    API_ERRORS_TOTAL.labels(status=str(status_code)).inc()
    body = {"message": message}
    if errors is not None:
        body["errors"] = errors
    return JSONResponse(body, status_code=status_code, headers=headers)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            return _error_response(404, f"Not found - {request.url.path}")
        return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return _error_response(400, "Validation failed", jsonable_encoder(exc.errors()))

    @app.exception_handler(DuplicateKeyError)
    async def handle_duplicate(request: Request, exc: DuplicateKeyError):
        return _error_response(400, f"Duplicate value for {exc.field}")

    @app.exception_handler(DocumentNotFound)
    async def handle_not_found(request: Request, exc: DocumentNotFound):
        return _error_response(404, "Resource not found")

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.error("Unhandled application error on %s", request.url.path, exc_info=exc)
        return _error_response(500, "An unexpected error occurred")


def create_app(store: Optional[DocumentStore] = None, otp_store: Optional[OtpStore] = None) -> FastAPI:
    app = FastAPI(title="Radeo Shop API", version="0.1.0")
    settings = get_settings()

    app.state.store = store or DocumentStore(settings.data_dir)
    if otp_store is None:
        otp_store = OtpStore(ttl_seconds=settings.otp_expiration_seconds)
    app.state.otp_store = otp_store
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_error_handlers(app)

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "%s %s -> %s",
            request.method,
            request.url.path,
            response.status_code,
            extra={
                "request": {
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                }
            },
        )
        return response

    app.include_router(health_router)
    app.include_router(categories_router)
    app.include_router(products_router)
    app.include_router(users_router)
    app.include_router(cart_router)
    app.include_router(client_logs_router)
    app.include_router(metrics_router)
    logger.info("API app created (data_dir=%s)", app.state.store.data_dir)
    return app
