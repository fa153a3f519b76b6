"""
Uniform JSON response envelope and the error translation layer.

Every response leaves the app in one of two shapes:

    {"success": true,  "code": 200, "message": ..., "path": ..., "timestamp": ..., "data": ...}
    {"success": false, "code": 401, "message": ..., "path": ..., "timestamp": ..., "detail": ...}

``data`` is passed through ``jsonable_encoder``; response schemas use
``UTCDatetime`` so timestamps leave with a 'Z' suffix.
"""

from datetime import datetime
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from authbase.core.errors import AppError
from authbase.core.logging import get_logger

logger = get_logger(__name__)


def _timestamp() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def success_response(
    request: Request,
    message: str,
    data: Any = None,
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    """Build a success envelope."""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": True,
            "code": status_code,
            "message": message,
            "path": request.url.path,
            "timestamp": _timestamp(),
            "data": jsonable_encoder(data),
        },
    )


def error_response(
    request: Request,
    message: str,
    status_code: int,
    detail: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build an error envelope."""
    return JSONResponse(
        status_code=status_code,
        headers=headers,
        content={
            "success": False,
            "code": status_code,
            "message": message,
            "path": request.url.path,
            "timestamp": _timestamp(),
            "detail": jsonable_encoder(detail),
        },
    )


def register_exception_handlers(app: FastAPI, *, expose_errors: bool = True) -> None:
    """
    Map every exception type that can escape a route to the error envelope.

    Args:
        app: Application to install handlers on
        expose_errors: Include the exception text of unhandled errors in
            ``detail`` (disabled in production)
    """

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "app_error",
                error=exc.message,
                error_type=type(exc).__name__,
                path=request.url.path,
                method=request.method,
            )
        return error_response(request, exc.message, exc.status_code, exc.detail, exc.headers)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [
            {"field": ".".join(str(part) for part in err["loc"][1:]), "message": err["msg"]}
            for err in exc.errors()
        ]
        return error_response(
            request, "Incomplete data", status.HTTP_400_BAD_REQUEST, detail=errors
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            message = f"Route {request.method} {request.url.path} not found"
        else:
            message = str(exc.detail)
        # 401s never advertise an auth scheme
        headers = {
            k: v for k, v in (exc.headers or {}).items() if k.lower() != "www-authenticate"
        }
        return error_response(request, message, exc.status_code, headers=headers or None)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "unhandled_exception",
            error=str(exc),
            path=request.url.path,
            method=request.method,
            exc_info=exc,
        )
        return error_response(
            request,
            "Internal server error",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc) if expose_errors else None,
        )
