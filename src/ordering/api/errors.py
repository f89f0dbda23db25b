"""Mapping of domain errors to HTTP responses.

Bodies follow {"status": "fail" | "error", "message": ..., "errors": ...}:
"fail" for problems with the request, "error" for problems on our side.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from ordering.errors import InsufficientStockError

logger = structlog.get_logger(__name__)


def _first_message(messages) -> str:
    if isinstance(messages, dict):
        for value in messages.values():
            if isinstance(value, list | tuple) and value:
                return str(value[0])
            if value:
                return str(value)
    return str(messages)


def _fail(status_code: int, message: str, errors=None) -> JSONResponse:
    content = {"status": "fail", "message": message}
    if errors is not None:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content)


async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    message = exc.args[0] if exc.args else "Not found"
    return _fail(404, _first_message(message) if not isinstance(message, str) else message)


async def out_of_stock_handler(request: Request, exc: InsufficientStockError) -> JSONResponse:
    return _fail(409, _first_message(exc.messages), errors=exc.messages)


async def validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _fail(400, _first_message(exc.messages), errors=exc.messages)


async def unhandled_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, method=request.method)
    return JSONResponse(status_code=500, content={"status": "error", "message": "Something went wrong"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
    app.add_exception_handler(InsufficientStockError, out_of_stock_handler)
    app.add_exception_handler(ValidationError, validation_handler)
    app.add_exception_handler(Exception, unhandled_handler)
