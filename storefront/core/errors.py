"""Error taxonomy for order placement and fulfillment.

Every failure raised by the stores and services derives from
``StorefrontError``. The HTTP layer maps each class to a status code; nothing
below the routes knows about transport.
"""
from __future__ import annotations


class StorefrontError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StorefrontError):
    """Malformed input, rejected before any collaborator is consulted."""

    status_code = 422


class NotFoundError(StorefrontError):
    status_code = 404


class BusinessRuleError(StorefrontError):
    """Inactive product, insufficient stock, illegal status change."""

    status_code = 409


class PermissionDeniedError(StorefrontError):
    status_code = 403


class StorageError(StorefrontError):
    """Transaction failure or constraint violation. Nothing was committed."""

    status_code = 500
