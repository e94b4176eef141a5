# Overview: JSON response envelope shared by every blueprint.

from __future__ import annotations

from typing import Any

from .exceptions import InventoryError, PersistenceError

INTERNAL_ERROR_MESSAGE = "Internal server error"


def success(data: Any = None, message: str = "OK", status: int = 200):
    body = {"status": "success", "message": message}
    if data is not None:
        body["data"] = data
    return body, status


def error_response(exc: InventoryError):
    """
    Envelope for an expected failure.

    Persistence failures only ever expose the generic message.
    """
    if isinstance(exc, PersistenceError):
        return internal_error()
    return {"status": "error", "message": exc.message, "error": type(exc).__name__}, exc.status_code


def internal_error():
    return {"status": "error", "message": INTERNAL_ERROR_MESSAGE}, 500
