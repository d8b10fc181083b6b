from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.exception_handlers import http_exception_handler as default_http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class NotFoundError(ValueError):
    """Missing resource, or one the caller does not own."""


class GraphValidationError(ValueError):
    """A story-graph rule rejected the write."""


def error_body(error: str, message: str | None = None, **extra: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": error}
    if message is not None:
        body["message"] = message
    body.update(extra)
    return body


def api_error(status_code: int, error: str, message: str | None = None, **extra: Any) -> HTTPException:
    return HTTPException(status_code=status_code, detail=error_body(error, message, **extra))


def first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    msg = str(first.get("msg") or "Invalid request")
    return msg.removeprefix("Value error, ")


async def _http_exception_handler(request: Request, exc: HTTPException):
    if isinstance(exc.detail, dict) and exc.detail.get("success") is False:
        return JSONResponse(status_code=exc.status_code, content=exc.detail, headers=exc.headers)
    return await default_http_exception_handler(request, exc)


async def _validation_exception_handler(_request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content=error_body("VALIDATION_ERROR", first_validation_message(exc)),
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
