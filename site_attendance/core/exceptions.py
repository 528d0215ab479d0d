"""
Application errors and global exception handlers.

Every failure leaves the API as ``{"success": false, "code", "detail", "hint"}``
so the UI can render a retry affordance; stack traces never reach clients.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base error carrying a stable code and an HTTP status."""

    code = "APP-500-UNEXPECTED"
    status_code = 500
    hint: str | None = None

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        if hint is not None:
            self.hint = hint


class InvalidParamsError(AppError):
    code = "INVALID_PARAMS"
    status_code = 400


class InvalidMonthError(InvalidParamsError):
    code = "INVALID_MONTH"

    def __init__(self, message: str = "month must be YYYY-MM format") -> None:
        super().__init__(message)


class SiteNotFoundError(AppError):
    code = "SITE_NOT_FOUND"
    status_code = 404

    def __init__(self, site_id: str) -> None:
        super().__init__("siteId not found")
        self.site_id = site_id


def _error_body(code: str, detail: object, hint: str | None = None) -> dict:
    return {"success": False, "code": code, "detail": detail, "hint": hint}


async def _app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Application error %s: %s", exc.code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.code, exc.message, exc.hint),
    )


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(f"HTTP_{exc.status_code}", exc.detail),
    )


async def _validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=_error_body("VALIDATION_ERROR", jsonable_encoder(exc.errors())),
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Upstream store error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content=_error_body("UPSTREAM_ERROR", "Failed to read attendance data", "Retry later"),
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content=_error_body("APP-500-UNEXPECTED", "Internal server error", "Retry later"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(AppError, _app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
