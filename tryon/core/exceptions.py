"""
Global Exception Handling

Error taxonomy for the try-on pipeline and the FastAPI handlers that turn
it into structured JSON responses.
"""

import traceback
from typing import Optional, Dict, Any
from datetime import datetime
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tryon.core.config import settings
from tryon.core.logging import get_logger, request_id_var

logger = get_logger(__name__)


# =============================================================================
# Custom Exceptions
# =============================================================================

class TryOnBaseException(Exception):
    """Base exception for the try-on service."""

    def __init__(
        self,
        message: str,
        code: int = 500,
        stage: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.stage = stage
        self.details = details or {}
        super().__init__(self.message)


class InputValidationError(TryOnBaseException):
    """Raised before any I/O when request input is unusable."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, code=400, **kwargs)


class StorageError(TryOnBaseException):
    """Raised when staging a file to storage fails."""

    def __init__(self, message: str, backend: Optional[str] = None, **kwargs):
        super().__init__(message, code=500, **kwargs)
        if backend:
            self.details["backend"] = backend


class RemoteJobError(TryOnBaseException):
    """Raised when the inference provider rejects or fails a job."""

    def __init__(
        self,
        message: str,
        service: str = "replicate",
        job_id: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, code=502, **kwargs)
        self.details["service"] = service
        if job_id:
            self.details["job_id"] = job_id


# =============================================================================
# Exception Handlers
# =============================================================================

def _timestamp() -> str:
    return datetime.utcnow().isoformat() + "Z"


def build_error_response(
    status_code: int,
    error: str,
    details: Optional[Any] = None,
    stage: Optional[str] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {
        "success": False,
        "error": error,
        "code": status_code,
        "request_id": request_id_var.get(),
        "timestamp": _timestamp(),
    }
    if stage:
        content["stage"] = stage
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI):
    """Register custom exception handlers with FastAPI app."""

    @app.exception_handler(TryOnBaseException)
    async def tryon_exception_handler(request: Request, exc: TryOnBaseException):
        logger.error(
            "tryon_exception",
            error=exc.message,
            error_type=type(exc).__name__,
            code=exc.code,
            stage=exc.stage,
            details=exc.details,
            path=str(request.url.path),
        )

        # Client errors always explain themselves; server-side detail stays
        # internal in production.
        if exc.code < 500 or not settings.is_production:
            details = exc.details or None
            message = exc.message
        else:
            details = None
            message = "Service temporarily unavailable" if isinstance(exc, RemoteJobError) else "Internal server error"

        return build_error_response(exc.code, message, details=details, stage=exc.stage)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning("request_validation_failed", errors=exc.errors(), path=str(request.url.path))
        return build_error_response(400, "Validation error", details=jsonable_errors(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            return build_error_response(
                404,
                "Route not found",
                details={"path": str(request.url.path), "method": request.method},
            )
        return build_error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.error(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=str(request.url.path),
            traceback=traceback.format_exc()
        )

        details = None
        if not settings.is_production:
            details = {"message": str(exc), "stack": traceback.format_exc()}

        return build_error_response(500, "Internal server error", details=details)


def jsonable_errors(exc: RequestValidationError) -> list:
    """Strip non-serializable context from pydantic error entries."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
