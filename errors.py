"""
Error taxonomy and the uniform response envelope.

Every response leaves the API as
    {"statusCode": ..., "data": ..., "message": ..., "success": ...}
and failures additionally carry an "errors" list.
"""

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException


class ApiResponse(BaseModel):
    """Standard API response wrapper."""

    statusCode: int
    data: Any = None
    message: str = "Success"
    success: bool = True

    @classmethod
    def success_response(cls, data: Any = None, message: str = "Success", status_code: int = status.HTTP_200_OK) -> "ApiResponse":
        return cls(statusCode=status_code, data=data, message=message)

    @classmethod
    def error_response(cls, status_code: int, message: str, errors: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        return {
            "statusCode": status_code,
            "data": None,
            "message": message,
            "success": False,
            "errors": errors or [],
        }


class ApiError(Exception):
    """Base class for errors that map onto an HTTP status and the error envelope."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, Any]]] = None):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)


class ValidationError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized request"


class ForbiddenError(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You are not allowed to modify this resource"


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(ApiError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class UploadError(ApiError):
    default_message = "File upload failed"


class InternalError(ApiError):
    default_message = "Internal server error"


def _error_json(status_code: int, message: str, errors: Optional[List[Dict[str, Any]]] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse.error_response(status_code, message, errors),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Route every failure through the error envelope."""

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return _error_json(exc.status_code, exc.message, exc.errors)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        return _error_json(status.HTTP_400_BAD_REQUEST, "Invalid request", errors)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_json(exc.status_code, str(exc.detail))

    @app.exception_handler(DuplicateKeyError)
    async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
        return _error_json(status.HTTP_409_CONFLICT, ConflictError.default_message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.opt(exception=exc).error(f"Unhandled exception on {request.method} {request.url.path}")
        return _error_json(status.HTTP_500_INTERNAL_SERVER_ERROR, InternalError.default_message)
