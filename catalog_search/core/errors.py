"""
Error types raised by the catalog, ranking and search layers.

The transport layer maps ``code`` to an HTTP status; the core never does.
"""
from typing import Any, Optional


class CatalogSearchError(Exception):
    """Base class for caller-visible errors."""

    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(CatalogSearchError):
    """Malformed or out-of-range product or query fields. Always caller-correctable."""

    code = "VALIDATION_ERROR"


class NotFoundError(CatalogSearchError):
    """An operation referenced a product id that is not in the catalog."""

    code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource", details: Optional[Any] = None):
        super().__init__(f"{resource} not found", details)
        self.resource = resource
