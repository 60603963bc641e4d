"""
Exception handlers for dazzle-wire endpoints.

Maps the wire error hierarchy onto HTTP responses:
- ValidationError: 422 Unprocessable Entity
- CorruptSnapshotError: 419 (page expired, client should reload)
- NotFoundError: 404
- ConfigurationError: 500 (a component declaration is broken)
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from dazzle_wire.errors import (
    ConfigurationError,
    CorruptSnapshotError,
    NotFoundError,
    ValidationError,
    WireError,
)

logger = logging.getLogger(__name__)


def _error_body(exc: WireError, error_type: str) -> dict[str, Any]:
    body: dict[str, Any] = {"detail": exc.message, "type": error_type}
    if exc.component:
        body["component"] = exc.component
    if exc.field:
        body["field"] = exc.field
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register wire exception handlers on a FastAPI application.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(CorruptSnapshotError)
    async def corrupt_snapshot_handler(request: Request, exc: CorruptSnapshotError) -> JSONResponse:
        return JSONResponse(status_code=419, content=_error_body(exc, "corrupt_snapshot"))

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        """Rejected inbound value; component state was not changed."""
        return JSONResponse(status_code=422, content=_error_body(exc, "validation_error"))

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content=_error_body(exc, "not_found"))

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        logger.error(f"Component configuration error: {exc}")
        return JSONResponse(status_code=500, content=_error_body(exc, "configuration_error"))
