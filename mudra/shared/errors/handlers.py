"""
Centralized error handlers for FastAPI.

Maps domain-specific errors to HTTP responses.
No stack traces or internal details are exposed to clients.
All error responses use the ErrorResponse envelope:
``{success: false, message, error?, data?}``.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mudra.domain.paper_trading.errors import (
    AuthenticationError,
    BusinessRuleError,
    ConcurrencyConflictError,
    EntityNotFoundError,
    InsufficientFundsError,
    InsufficientHoldingsError,
    InsufficientInventoryError,
    InvalidInputError,
    PaperTradingError,
)

logger = logging.getLogger(__name__)

HTTP_400 = 400
HTTP_401 = 401
HTTP_404 = 404
HTTP_500 = 500

INTERNAL_ERROR_MESSAGE = "Internal server error"


def _error_response(
    status_code: int,
    message: str,
    error: Optional[str] = None,
    data: Optional[dict[str, Any]] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    """Build a consistent JSON error envelope."""
    body: dict[str, Any] = {"success": False, "message": message}
    if error:
        body["error"] = error
    if data is not None:
        body["data"] = data
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def _business_rule_data(exc: BusinessRuleError) -> Optional[dict[str, Any]]:
    """The actionable quantities carried by a business-rule rejection."""
    if isinstance(exc, InsufficientFundsError):
        return {
            "required": float(exc.required),
            "available": float(exc.available),
            "shortfall": float(exc.shortfall),
        }
    if isinstance(exc, InsufficientInventoryError):
        return {"available": exc.available, "requested": exc.requested}
    if isinstance(exc, InsufficientHoldingsError):
        return {"held": exc.held, "requested": exc.requested}
    return None


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return "; ".join(parts)


def register_error_handlers(app: FastAPI) -> None:
    """Register all domain error handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(InvalidInputError)
    async def handle_invalid_input(
        _request: Request, exc: InvalidInputError
    ) -> JSONResponse:
        """Handle malformed or out-of-range request values."""
        logger.warning("Invalid input (field=%s): %s", exc.field, exc.message)
        return _error_response(HTTP_400, exc.message)

    @app.exception_handler(EntityNotFoundError)
    async def handle_not_found(
        _request: Request, exc: EntityNotFoundError
    ) -> JSONResponse:
        """Handle missing users, bonds and transactions."""
        logger.warning("%s not found: %s", exc.entity, exc.entity_id)
        return _error_response(HTTP_404, exc.message)

    @app.exception_handler(BusinessRuleError)
    async def handle_business_rule(
        _request: Request, exc: BusinessRuleError
    ) -> JSONResponse:
        """Handle well-formed requests the ledger refuses."""
        logger.warning("Rejected by ledger: %s", exc.message)
        return _error_response(HTTP_400, exc.message, data=_business_rule_data(exc))

    @app.exception_handler(AuthenticationError)
    async def handle_authentication(
        _request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        """Handle missing or unknown bearer tokens."""
        return _error_response(
            HTTP_401, exc.message, headers={"WWW-Authenticate": "Bearer"}
        )

    @app.exception_handler(ConcurrencyConflictError)
    async def handle_conflict(
        _request: Request, exc: ConcurrencyConflictError
    ) -> JSONResponse:
        """Handle a trade that kept losing races after every retry."""
        logger.error("Unresolved concurrency conflict: %s", exc.message)
        return _error_response(HTTP_500, INTERNAL_ERROR_MESSAGE)

    @app.exception_handler(PaperTradingError)
    async def handle_paper_trading(
        _request: Request, exc: PaperTradingError
    ) -> JSONResponse:
        """Catch-all for unhandled paper trading domain errors."""
        logger.error("Unhandled paper trading error: %s", exc.message)
        return _error_response(HTTP_500, INTERNAL_ERROR_MESSAGE)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle request bodies and query strings that fail schema validation."""
        detail = _describe_validation(exc)
        logger.warning("Request validation failed: %s", detail)
        return _error_response(HTTP_400, "Invalid request parameters", error=detail)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        _request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Wrap framework-raised HTTP errors (unknown route, wrong method) in the envelope."""
        return _error_response(exc.status_code, str(exc.detail), headers=exc.headers)

    @app.exception_handler(Exception)
    async def handle_unexpected(
        _request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        logger.exception("Unexpected error: %s", type(exc).__name__)
        return _error_response(HTTP_500, INTERNAL_ERROR_MESSAGE)
