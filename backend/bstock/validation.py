from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

from .errors import ValidationError


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

# Upper bound for a single line / adjustment quantity
MAX_QUANTITY = 1_000_000

PAYMENT_METHOD_MAX_LENGTH = 32


def require_int(
    value: Any,
    field: str,
    *,
    minimum: int | None = None,
    maximum: int | None = None,
    nonzero: bool = False,
) -> int:
    """
    Strict integer coercion.

    Accepts ints (not bools) and plain digit strings with an optional leading
    minus. Rejects floats, decimals and scientific notation.
    """
    if value is None:
        raise ValidationError(f"{field} is required")

    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")

    if isinstance(value, int):
        result = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            result = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    elif isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    else:
        raise ValidationError(f"{field} must be an integer")

    if nonzero and result == 0:
        raise ValidationError(f"{field} must be nonzero")
    if minimum is not None and result < minimum:
        raise ValidationError(f"{field} must be >= {minimum}")
    if maximum is not None and result > maximum:
        raise ValidationError(f"{field} must be <= {maximum}")
    return result


def require_price_cents(value: Any, field: str, *, positive: bool = False) -> int:
    return require_int(
        value,
        field,
        minimum=1 if positive else 0,
        maximum=MAX_PRICE_CENTS,
    )


def require_uuid(value: Any, field: str) -> str:
    """Validate a UUID string and return its canonical lowercase form."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    try:
        return str(uuid.UUID(value.strip()))
    except ValueError:
        raise ValidationError(f"Invalid {field}: {value}")


def require_str(value: Any, field: str, *, max_length: int = 255) -> str:
    if value is None:
        raise ValidationError(f"{field} is required")
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    stripped = value.strip()
    if not stripped:
        raise ValidationError(f"{field} is required")
    if len(stripped) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return stripped


def optional_str(value: Any, field: str, *, max_length: int = 255) -> str | None:
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return require_str(value, field, max_length=max_length)


def require_json_object(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


@dataclass(frozen=True)
class SaleLineRequest:
    """One requested line: position is its index in the caller's item list."""
    position: int
    variant_id: str
    quantity: int


def parse_sale_lines(items: Any) -> list[SaleLineRequest]:
    """
    Validate the shape of a sale's item list.

    Needs at least one item; every item needs a UUID variant_id and a
    positive integer quantity.
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    lines: list[SaleLineRequest] = []
    for position, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{position}] must be an object")
        variant_id = require_uuid(item.get("variant_id"), "variant ID")
        quantity = require_int(
            item.get("quantity"),
            f"items[{position}].quantity",
            minimum=1,
            maximum=MAX_QUANTITY,
        )
        lines.append(SaleLineRequest(position=position, variant_id=variant_id, quantity=quantity))
    return lines


def parse_payment_method(value: Any) -> str:
    return require_str(value, "payment_method", max_length=PAYMENT_METHOD_MAX_LENGTH)


def parse_attributes(value: Any) -> dict[str, str]:
    """Variant attributes: free-form string key/value map."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError("attributes must be an object")
    result = {}
    for key, val in value.items():
        if not isinstance(key, str) or not isinstance(val, (str, int, float)) or isinstance(val, bool):
            raise ValidationError("attributes must map strings to strings")
        result[key] = str(val)
    return result
