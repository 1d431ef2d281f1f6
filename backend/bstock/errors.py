# Overview: Domain error taxonomy shared by services and routes.

"""
Domain errors.

Every error raised by the service layer is a BStockError. Each carries the
HTTP status it maps to and a JSON body (`to_dict`), so routes can surface
it unchanged:

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code

Only unexpected store-layer failures are wrapped (PersistenceFailure);
everything else propagates as raised.
"""

from __future__ import annotations


class BStockError(Exception):
    """Base class for errors surfaced to API callers."""
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message}
        body.update(self.details)
        return body


class ValidationError(BStockError, ValueError):
    """400-level input problem. Raised before any transaction is opened."""
    status_code = 400


class ConflictError(BStockError, ValueError):
    """409-level business rule conflict (e.g., duplicate organization name)."""
    status_code = 409


class NotFound(BStockError, LookupError):
    """Entity absent or outside the caller's organization."""
    status_code = 404


class InsufficientStock(BStockError):
    """Requested quantity exceeds what the variant has on hand."""
    status_code = 400

    def __init__(self, variant_id: str, available: int, requested: int):
        super().__init__(
            "Insufficient stock",
            details={
                "variant_id": variant_id,
                "available": available,
                "requested": requested,
            },
        )
        self.variant_id = variant_id
        self.available = available
        self.requested = requested


class NegativeStock(BStockError):
    """Manual adjustment would drive quantity below zero."""
    status_code = 400

    def __init__(self, variant_id: str, current: int, adjustment: int):
        super().__init__(
            "Stock cannot be negative",
            details={
                "variant_id": variant_id,
                "current": current,
                "adjustment": adjustment,
            },
        )
        self.variant_id = variant_id
        self.current = current
        self.adjustment = adjustment


class LimitReached(BStockError):
    """Plan capacity exceeded for a resource kind."""
    status_code = 403

    def __init__(self, resource: str, limit: int, current_count: int):
        super().__init__(
            f"{resource.capitalize()} limit reached for your current plan",
            details={
                "limit": limit,
                "current_count": current_count,
                "upgrade_required": True,
            },
        )
        self.resource = resource
        self.limit = limit
        self.current_count = current_count


class NoActiveSubscription(BStockError):
    """Organization has no resolvable plan. Every organization must have one."""
    status_code = 500


class PersistenceFailure(BStockError):
    """Underlying store error; the enclosing transaction was rolled back."""
    status_code = 500


class AuthenticationError(BStockError):
    status_code = 401
