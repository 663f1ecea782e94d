"""
Consolidated middleware for the Calo API
"""

import time
import logging
from uuid import uuid4
from decimal import Decimal

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.clock import utcnow
from app.exceptions import (
    CaloError,
    ConflictError,
    LimitExceededError,
    NotFoundError,
    ServiceValidationError,
)

logger = logging.getLogger("calo.middleware")


# ============================================================================
# Helper Functions
# ============================================================================


def make_serializable(obj):
    """Convert objects to JSON-serializable format"""
    if isinstance(obj, Decimal):
        return float(obj)
    elif isinstance(obj, dict):
        return {k: make_serializable(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [make_serializable(item) for item in obj]
    elif isinstance(obj, Exception):
        return str(obj)
    return obj


def error_body(code: str, message: str, details=None, reason=None) -> dict:
    error = {"code": code, "message": message}
    if reason:
        error["reason"] = reason
    if details:
        error["details"] = make_serializable(details)
    return {"success": False, "error": error, "timestamp": utcnow().isoformat()}


# ============================================================================
# Request Logging Middleware
# ============================================================================


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all HTTP requests and responses"""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid4())
        request.state.request_id = request_id

        logger.info(
            "Request started",
            extra={
                "request_id": request_id,
                "method": request.method,
                "url": str(request.url),
                "client": request.client.host if request.client else None,
            },
        )

        start_time = time.time()

        try:
            response: Response = await call_next(request)
            process_time = time.time() - start_time

            logger.info(
                "Request completed",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "url": str(request.url),
                    "status_code": response.status_code,
                    "process_time": f"{process_time:.4f}s",
                },
            )

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time"] = f"{process_time:.4f}"

            return response

        except Exception as exc:
            process_time = time.time() - start_time
            logger.error(
                "Request failed",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "url": str(request.url),
                    "error": str(exc),
                    "process_time": f"{process_time:.4f}s",
                },
                exc_info=True,
            )
            raise


# ============================================================================
# Error Handlers
# ============================================================================


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors"""
    logger.warning(f"Validation error on {request.url}: {exc.errors()}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
        content=error_body("VALIDATION_ERROR", "Request validation failed", exc.errors()),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions"""
    logger.warning(f"HTTP {exc.status_code} on {request.url}: {exc.detail}")

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(f"HTTP_{exc.status_code}", exc.detail),
    )


def _domain_handler(code: str, level: int = logging.WARNING):
    async def handler(request: Request, exc: CaloError):
        logger.log(level, f"{exc.__class__.__name__} on {request.url}: {exc}")
        return JSONResponse(
            status_code=exc.http_status,
            content=error_body(code, exc.message, exc.details, exc.code),
        )

    return handler


service_validation_exception_handler = _domain_handler("SERVICE_VALIDATION_ERROR")
not_found_exception_handler = _domain_handler("NOT_FOUND")
conflict_exception_handler = _domain_handler("CONFLICT")
limit_exceeded_exception_handler = _domain_handler("LIMIT_EXCEEDED", logging.INFO)


async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors"""
    logger.exception(f"Unexpected error on {request.url}: {str(exc)}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("INTERNAL_SERVER_ERROR", "An unexpected error occurred"),
    )


EXCEPTION_HANDLERS = {
    RequestValidationError: validation_exception_handler,
    StarletteHTTPException: http_exception_handler,
    ServiceValidationError: service_validation_exception_handler,
    NotFoundError: not_found_exception_handler,
    ConflictError: conflict_exception_handler,
    LimitExceededError: limit_exceeded_exception_handler,
    Exception: general_exception_handler,
}
