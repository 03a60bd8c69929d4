# Overview: Maps domain exceptions to JSON error responses.

from flask import jsonify

from .services.inventory_service import InsufficientStockError
from .services.user_service import PermissionDenied
from .validation import ConflictError, NotFoundError, ValidationError

# Exceptions a route may turn into a 4xx; anything else is a 500
DOMAIN_ERRORS = (
    ValidationError,
    NotFoundError,
    ConflictError,
    InsufficientStockError,
    PermissionDenied,
)


def error_response(exc: Exception):
    """
    400 ValidationError, 403 PermissionDenied, 404 NotFoundError,
    409 ConflictError / InsufficientStockError.
    """
    if isinstance(exc, InsufficientStockError):
        return jsonify({"error": str(exc), "details": exc.details}), 409
    if isinstance(exc, ConflictError):
        return jsonify({"error": str(exc)}), 409
    if isinstance(exc, NotFoundError):
        return jsonify({"error": str(exc)}), 404
    if isinstance(exc, PermissionDenied):
        return jsonify({"error": "Permission denied", "message": str(exc)}), 403
    return jsonify({"error": str(exc)}), 400


def internal_error():
    return jsonify({"error": "Internal server error"}), 500
