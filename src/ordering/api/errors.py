"""Maps the ordering error taxonomy onto HTTP responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers

from ordering.exceptions import (
    AlreadyPaidError,
    EmptyCartError,
    GatewayError,
    InvalidTransitionError,
    NotFoundError,
)

logger = structlog.get_logger(__name__)

_CLIENT_ERRORS = {
    ValidationError: 400,
    ObjectNotFoundError: 404,
    NotFoundError: 404,
    EmptyCartError: 409,
    AlreadyPaidError: 409,
    InvalidTransitionError: 409,
}


def _messages(exc: Exception):
    return getattr(exc, "messages", None) or str(exc)


def _client_error_handler(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"error": _messages(exc)})

    return handler


async def _gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    logger.warning("Upstream dependency failed", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=502, content={"error": "Upstream service unavailable, please retry"})


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def register_error_handlers(app: FastAPI) -> None:
    """Install handlers for Protean's exceptions and the ordering error taxonomy."""
    register_exception_handlers(app)

    for exc_cls, status_code in _CLIENT_ERRORS.items():
        app.add_exception_handler(exc_cls, _client_error_handler(status_code))
    app.add_exception_handler(GatewayError, _gateway_error_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)
