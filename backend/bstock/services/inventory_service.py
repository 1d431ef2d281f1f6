# Overview: Service-layer operations for variant stock; the only writer of Variant.quantity.

"""
Inventory invariants (authoritative)

- Variant.quantity is stored on the variant row and is never negative.
  Every mutating path checks before writing; the DB CHECK constraint is a
  backstop, not the enforcement point.
- After catalog creation, quantity changes only through this module:
    reserve_and_decrement  - sale path, runs inside the caller's transaction
    adjust_stock           - manual correction, owns its own transaction
- Variants are tenant-scoped through their product. A variant that exists
  in another organization is reported as not found, never as forbidden.

Locking:
- Both write paths lock the variant row (SELECT ... FOR UPDATE OF variants)
  before reading quantity, so check-then-decrement is race-free for the
  lifetime of the enclosing transaction.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session, contains_eager

from ..errors import InsufficientStock, NegativeStock, NotFound, ValidationError
from ..models import Product, Variant
from .concurrency import lock_for_update, transaction_scope


logger = logging.getLogger(__name__)


def _scoped_variant_query(session: Session, org_id: str):
    return (
        session.query(Variant)
        .join(Product, Product.id == Variant.product_id)
        .filter(Product.org_id == org_id)
    )


def get_variant(session: Session, variant_id: str, org_id: str, *, lock: bool = False) -> Variant:
    """
    Resolve a variant within the organization.

    With lock=True the row stays locked until the caller's transaction ends.
    Raises NotFound if the variant does not exist or belongs to another org.
    """
    query = _scoped_variant_query(session, org_id).filter(Variant.id == variant_id)
    if lock:
        query = lock_for_update(query, of=Variant)
        # Re-read quantity under the lock rather than trusting the identity map
        query = query.populate_existing()
    variant = query.first()
    if variant is None:
        raise NotFound(f"Variant not found: {variant_id}", details={"variant_id": variant_id})
    return variant


def reserve_and_decrement(
    session: Session,
    variant_id: str,
    requested_qty: int,
    org_id: str,
) -> Variant:
    """
    Lock the variant, verify availability and decrement.

    Must run inside the caller's transaction (see sales_service.process_sale);
    nothing is committed here. Raises InsufficientStock without writing when
    requested_qty exceeds the locked quantity. Returns the variant carrying
    its new quantity and the prices read under the lock.
    """
    if requested_qty <= 0:
        raise ValidationError("quantity must be positive")

    variant = get_variant(session, variant_id, org_id, lock=True)

    if requested_qty > variant.quantity:
        raise InsufficientStock(
            variant_id=variant.id,
            available=variant.quantity,
            requested=requested_qty,
        )

    variant.quantity = variant.quantity - requested_qty
    session.flush()
    return variant


def adjust_stock(
    session: Session,
    variant_id: str,
    delta: int,
    org_id: str,
    *,
    reason: str | None = None,
    actor_user_id: str | None = None,
) -> Variant:
    """
    Manual stock correction (positive or negative).

    Runs as its own short transaction around a single locked row. Raises
    NegativeStock if the result would drop below zero; nothing is written in
    that case.
    """
    if delta == 0:
        raise ValidationError("adjustment must be nonzero")

    with transaction_scope(session):
        variant = get_variant(session, variant_id, org_id, lock=True)
        current = variant.quantity
        new_quantity = current + delta
        if new_quantity < 0:
            raise NegativeStock(variant_id=variant.id, current=current, adjustment=delta)
        variant.quantity = new_quantity

    logger.info(
        "stock adjusted variant=%s org=%s %d -> %d (delta=%+d) by=%s reason=%r",
        variant_id, org_id, current, new_quantity, delta, actor_user_id, reason,
    )
    return variant


def list_low_stock(session: Session, org_id: str) -> list[Variant]:
    """All variants of the organization at or below their minimum stock level."""
    return (
        _scoped_variant_query(session, org_id)
        .filter(Variant.quantity <= Variant.min_stock_level)
        .options(contains_eager(Variant.product))
        .order_by(Variant.quantity.asc(), Variant.sku.asc())
        .all()
    )
