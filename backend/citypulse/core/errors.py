"""
Error taxonomy and the JSON error envelope.

Every failure leaves the API as ``{"success": false, "error": "<message>"}``:
validation problems are 400, session and role problems 401/403, unknown rows
404 and anything the store rejects 500. Page routes never see the envelope
for auth failures; they are answered with a redirect instead.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A write or read against the record store failed."""

    def __init__(self, message: str = "Request failed, please try again") -> None:
        super().__init__(message)
        self.message = message


class ExternalServiceError(Exception):
    """A third-party lookup (reverse geocoding) failed."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PageRedirect(Exception):
    """Raised by page dependencies when the caller must be sent elsewhere."""

    def __init__(self, location: str) -> None:
        super().__init__(location)
        self.location = location


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _validation_message(exc: RequestValidationError) -> str:
    missing: list[str] = []
    other: list[str] = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "form")]
        field = ".".join(loc) or "body"
        if err.get("type") == "missing":
            missing.append(field)
        else:
            other.append(f"{field}: {err.get('msg', 'invalid value')}")
    if missing:
        return f"Missing required field(s): {', '.join(missing)}"
    return "Invalid request: " + "; ".join(other)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    response = error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(status.HTTP_400_BAD_REQUEST, _validation_message(exc))


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message)


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Unhandled store error on %s", request.url.path, exc_info=exc)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Request failed, please try again")


async def external_service_error_handler(request: Request, exc: ExternalServiceError) -> JSONResponse:
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message)


async def page_redirect_handler(request: Request, exc: PageRedirect) -> RedirectResponse:
    return RedirectResponse(url=exc.location, status_code=status.HTTP_303_SEE_OTHER)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)
    app.add_exception_handler(ExternalServiceError, external_service_error_handler)
    app.add_exception_handler(PageRedirect, page_redirect_handler)
