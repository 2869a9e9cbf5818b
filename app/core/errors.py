# app/core/errors.py
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import Settings


class TicketError(Exception):
    """Base class for errors reported to the client as-is."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    detail: str = "Bad request"

    def __init__(self, detail: str | None = None) -> None:
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class TicketValidationError(TicketError):
    detail = "Invalid request"


class TicketNotFound(TicketError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Ticket not found"


class PayloadTooLarge(TicketError):
    detail = "File too large"


class UnsupportedMediaType(TicketError):
    detail = "Only image files are allowed"


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(TicketError)
    async def ticket_error_handler(request: Request, exc: TicketError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning("Rejected {} {}: {}", request.method, request.url.path, exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(StarletteHTTPException)
    async def unmatched_route_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return JSONResponse(status_code=exc.status_code, content={"detail": "Endpoint not found"})
        return await http_exception_handler(request, exc)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.opt(exception=exc).error("Unhandled error on {} {}", request.method, request.url.path)
        message = str(exc) if settings.is_development else "Something went wrong"
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error", "message": message},
        )


__all__ = [
    "TicketError",
    "TicketValidationError",
    "TicketNotFound",
    "PayloadTooLarge",
    "UnsupportedMediaType",
    "register_exception_handlers",
]
