"""JSON error envelope for the HTTP API.

Every failure answers ``{success: false, error, code, message}``.
"""

from __future__ import annotations

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.core.errors import AppError, ValidationError

logger = logging.getLogger(__name__)


def error_body(status_code: int, code: str, message: str) -> dict:
    return {
        "success": False,
        "error": HTTPStatus(status_code).phrase,
        "code": code,
        "message": message,
    }


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_body(status_code, code, message))


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.code)
    body = error_body(exc.status_code, exc.code, exc.message)
    if isinstance(exc, ValidationError):
        body["details"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=body)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()]
    body = error_body(400, ValidationError.code, "Invalid request")
    body["details"] = details
    return JSONResponse(status_code=400, content=body)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
