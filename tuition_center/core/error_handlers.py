from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException
import logging

from .exceptions import StoreError

logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    message = str(first.get("msg", "Invalid request"))
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    if field and first.get("type") in ("missing", "uuid_parsing", "datetime_parsing", "date_from_datetime_parsing"):
        return f"{field}: {message}"
    return message


async def http_exception_handler(request: Request, exc: HTTPException):
    """Shape every HTTPException (our own included) as {"error": ...}"""
    if exc.status_code >= 500:
        logger.error(f"{exc.detail} - Path: {request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": _validation_message(exc)})


async def store_exception_handler(request: Request, exc: SQLAlchemyError):
    """Database failures surface as a generic error, never with driver details"""
    logger.error(f"Store error: {exc} - Path: {request.url.path}")
    error = StoreError()
    return JSONResponse(
        status_code=error.status_code,
        content={"error": error.detail, "type": "StoreError"}
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.exception(f"Unexpected error: {str(exc)} - Path: {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "type": "InternalError"}
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, store_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
