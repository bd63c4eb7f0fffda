"""Errors raised by the API and the handlers that turn them into JSON."""

from contextlib import contextmanager

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from logger_config import logger


class ApiError(Exception):
    body_key = "message"

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ValidationError(ApiError):
    def __init__(self, message: str):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class NotFoundError(ApiError):
    def __init__(self, message: str):
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class StoreError(ApiError):
    """Failure reported by the database or by a document constraint."""

    body_key = "error"


@contextmanager
def store_errors(status_code: int):
    """Re-raise driver errors inside the block as StoreError with the given status."""
    try:
        yield
    except PyMongoError as exc:
        raise StoreError(str(exc), status_code) from exc


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={exc.body_key: exc.message})


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Invalid request body"
    logger.warning(f"{request.method} {request.url.path} rejected: {errors}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": message})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": str(exc)},
    )


EXCEPTION_HANDLERS = {
    ApiError: api_error_handler,
    RequestValidationError: request_validation_error_handler,
    Exception: unhandled_error_handler,
}


def register_exception_handlers(app):
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
