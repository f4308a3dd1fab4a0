"""
Domain error taxonomy.

Services raise these; the API layer renders them as
``{"error": message, "errorCode": code}`` with the matching HTTP status.
"""
from typing import Optional

from fastapi import status


class StorefrontError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.error_code:
            body["errorCode"] = self.error_code
        return body


class UnauthorizedError(StorefrontError):
    """No valid session."""
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(StorefrontError):
    """Authenticated, but wrong owner or role."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(StorefrontError):
    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(StorefrontError):
    """Bad enum value, bad shape or a business rule violation."""
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(StorefrontError):
    """Duplicate unique key."""
    status_code = status.HTTP_409_CONFLICT


class ExternalServiceError(StorefrontError):
    """Payment, storage or email provider failure on a critical path."""
    status_code = status.HTTP_502_BAD_GATEWAY


# Machine-readable codes callers branch on
FEATURED_LIMIT_EXCEEDED = "FEATURED_LIMIT_EXCEEDED"
HAS_PRODUCTS = "HAS_PRODUCTS"
HAS_ORDERS = "HAS_ORDERS"
PRODUCT_SOLD = "PRODUCT_SOLD"
INVALID_STATUS = "INVALID_STATUS"
ALREADY_IN_WISHLIST = "ALREADY_IN_WISHLIST"
SLUG_EXISTS = "SLUG_EXISTS"
