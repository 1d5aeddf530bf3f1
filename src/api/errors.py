"""Centralized JSON error responder for the API."""

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models.responses import ErrorResponse
from core.errors import ApiError, ErrorCodes
from core.event_store import InvalidArgument

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Not Found - The requested resource does not exist"


def _render(
    request: Request,
    status_code: int,
    message: str,
    code: str,
    data: dict | None = None,
    exc: BaseException | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    production = request.app.state.production

    if status_code >= 500:
        logger.error(
            message,
            exc_info=exc if exc is not None and not production else None,
            extra={"status_code": status_code, "path": request.url.path},
        )
        if production and status_code == 500:
            message = "Internal Server Error"
    else:
        logger.warning(message, extra={"status_code": status_code, "path": request.url.path})

    stack = None
    if exc is not None and not production:
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    body = ErrorResponse(error=message, code=code, data=data or None, stack=stack)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return _render(
        request, exc.status_code, exc.message, exc.code, exc.data, exc, exc.headers
    )


async def invalid_argument_handler(request: Request, exc: InvalidArgument) -> JSONResponse:
    return _render(request, 400, str(exc), ErrorCodes.INVALID_REQUEST, exc=exc)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        details.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return _render(
        request,
        400,
        "Invalid request",
        ErrorCodes.INVALID_REQUEST,
        data={"details": details},
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if exc.status_code == 404:
        message = NOT_FOUND_MESSAGE
        code = ErrorCodes.NOT_FOUND
    else:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        code = ErrorCodes.INVALID_REQUEST if exc.status_code < 500 else ErrorCodes.INTERNAL_ERROR
    return _render(request, exc.status_code, message, code, headers=exc.headers)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return _render(
        request,
        500,
        str(exc) or "Internal Server Error",
        ErrorCodes.INTERNAL_ERROR,
        exc=exc,
    )


def install_error_handlers(app: FastAPI) -> None:
    """Register the JSON error responder for every error class."""
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(InvalidArgument, invalid_argument_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
