"""
Application errors and FastAPI exception handlers
"""

from typing import Any, Optional

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from detection_context.core.logging import get_logger

logger = get_logger(__name__)


class AppError(Exception):
    """Base class for errors surfaced by this service"""

    code = "app_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.details = details or {}


class ValidationError(AppError):
    code = "validation_error"
    status_code = 422


class HostApiError(AppError):
    """Falcon API request failed"""

    code = "host_api_error"
    status_code = status.HTTP_502_BAD_GATEWAY


class StoreUnavailableError(AppError):
    """Context collection could not be read or written"""

    code = "store_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class WorkflowError(AppError):
    code = "workflow_error"
    status_code = status.HTTP_502_BAD_GATEWAY


class WorkflowTriggerError(WorkflowError):
    """The workflow rejected the execution request"""

    code = "workflow_trigger_error"


class WorkflowRemoteError(WorkflowError):
    """The workflow execution reported an error while polling"""

    code = "workflow_remote_error"


class WorkflowTimeoutError(WorkflowError):
    """
    Polling ran out of attempts before the execution reached a terminal status.

    Kept apart from the other workflow errors: the execution may still have
    stored its result, so callers refresh instead of reporting a failure.
    """

    code = "workflow_timeout"
    status_code = status.HTTP_504_GATEWAY_TIMEOUT

    def __init__(self, attempts: Optional[int] = None):
        super().__init__(
            "Max polling attempts for workflow completion",
            details={"attempts": attempts} if attempts is not None else None,
        )
        self.attempts = attempts


def _error_body(code: str, message: str, details: Any = None) -> dict:
    return {"error": {"code": code, "message": message, "details": details or {}}}


async def app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.warning(f"{exc.code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.code, exc.message, exc.details),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("http_error", str(exc.detail)),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=_error_body("validation_error", "Request validation failed", {"errors": jsonable_encoder(exc.errors())}),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("internal_error", "Internal server error"),
    )
