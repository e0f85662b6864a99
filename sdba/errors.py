import logging
from typing import Optional

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from sdba import config

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    """An HTTP error carrying a stable, machine readable ``code``."""

    def __init__(self, status_code: int, message: str, code: Optional[str] = None):
        super().__init__(status_code=status_code, detail=message)
        self.code = code

    @property
    def message(self) -> str:
        return str(self.detail)


def forbidden(message: str = "Forbidden") -> ApiError:
    return ApiError(403, message, "FORBIDDEN")


def not_found(message: str = "Resource not found") -> ApiError:
    return ApiError(404, message, "NOT_FOUND")


def conflict(message: str = "Conflict", code: str = "CONFLICT") -> ApiError:
    return ApiError(409, message, code)


def bad_request(message: str = "Bad request") -> ApiError:
    return ApiError(400, message, "BAD_REQUEST")


def internal_server_error(message: str = "Internal server error") -> ApiError:
    # Backend messages are only passed through outside production.
    if config.IS_PRODUCTION:
        message = "Internal server error"
    return ApiError(500, message, "INTERNAL_ERROR")


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.message, "code": exc.code},
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"ok": False, "error": "Invalid input", "detail": jsonable_encoder(exc.errors())},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = "Internal server error" if config.IS_PRODUCTION else str(exc) or "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"ok": False, "error": message, "code": "INTERNAL_ERROR"},
    )
