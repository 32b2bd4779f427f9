"""
Response Envelope
=================

Every endpoint answers ``{"success": true, "data": ..., "metadata"?: ...}``
or ``{"success": false, "error": "...", "data"?: ...}``.
"""

from typing import Any, Dict, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from finvisor.config.logging import get_logger

logger = get_logger(__name__)


def ok(
    data: Any,
    metadata: Optional[Dict[str, Any]] = None,
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    """Build a success envelope."""
    content: Dict[str, Any] = {"success": True, "data": data}
    if metadata is not None:
        content["metadata"] = metadata
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content, by_alias=True))


def fail(error: str, status_code: int, data: Optional[Dict[str, Any]] = None) -> JSONResponse:
    """Build a failure envelope."""
    content: Dict[str, Any] = {"success": False, "error": error}
    if data is not None:
        content["data"] = data
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content, by_alias=True))


def provider_failure(
    error: Exception, operation: str, message: Optional[str] = None
) -> JSONResponse:
    """
    Log a failed provider call and build the 500 envelope.

    Args:
        error: Exception raised by the provider client
        operation: Short name of the failing operation, used in the log
        message: Fixed message for the client; defaults to the error text
    """
    logger.error(f"{operation} failed", error=str(error), error_type=type(error).__name__)
    return fail(message or str(error), status.HTTP_500_INTERNAL_SERVER_ERROR)
