"""
Sales Service - atomic sale processing

A sale is created in one step: every line's stock is reserved, totals are
computed from the locked variant prices, and the Sale with its items is
persisted, all in one transaction. Either the whole sale commits or nothing
does; there is no draft state and no partial decrement to compensate.

Lock ordering: lines are processed in ascending variant_id order, so two
sales sharing variants always lock them in the same sequence and cannot
wait on each other in a cycle.
"""

from __future__ import annotations

import logging
from datetime import datetime, time

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..errors import BStockError, ConflictError, NotFound, PersistenceFailure, ValidationError
from ..models import Sale, SaleItem
from ..time_utils import parse_day
from ..validation import (
    SaleLineRequest,
    parse_payment_method,
    parse_sale_lines,
    require_int,
    require_str,
)
from .concurrency import lock_for_update, transaction_scope
from .inventory_service import reserve_and_decrement


logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


def _post_sale_locked(
    session: Session,
    org_id: str,
    user_id: str,
    payment_method: str,
    lines: list[SaleLineRequest],
) -> Sale:
    snapshots: dict[int, SaleItem] = {}
    total_amount_cents = 0
    total_profit_cents = 0

    # sorted() is stable: repeated lines of one variant keep request order
    for line in sorted(lines, key=lambda l: l.variant_id):
        variant = reserve_and_decrement(session, line.variant_id, line.quantity, org_id)

        price = variant.sale_price_cents
        cost = variant.purchase_price_cents
        total_amount_cents += line.quantity * price
        total_profit_cents += line.quantity * (price - cost)

        snapshots[line.position] = SaleItem(
            variant_id=variant.id,
            line_number=line.position + 1,
            quantity=line.quantity,
            price_at_sale_cents=price,
            purchase_price_at_sale_cents=cost,
        )

    sale = Sale(
        org_id=org_id,
        user_id=user_id,
        total_amount_cents=total_amount_cents,
        total_profit_cents=total_profit_cents,
        payment_method=payment_method,
    )
    session.add(sale)
    session.flush()

    for position in sorted(snapshots):
        item = snapshots[position]
        item.sale_id = sale.id
        session.add(item)
    session.flush()

    return sale


def process_sale(
    session: Session,
    org_id: str,
    user_id: str,
    payment_method,
    items,
) -> Sale:
    """
    Process a multi-line sale as a single unit.

    Raises ValidationError (before any transaction), NotFound or
    InsufficientStock (after rolling back every decrement made so far), or
    PersistenceFailure when the store fails. Never retries; resubmitting the
    same request is safe because a failed sale leaves no trace.
    """
    payment_method = parse_payment_method(payment_method)
    lines = parse_sale_lines(items)

    try:
        with transaction_scope(session):
            sale = _post_sale_locked(session, org_id, user_id, payment_method, lines)
            sale_id = sale.id
    except BStockError as exc:
        logger.info("sale rejected org=%s user=%s: %s", org_id, user_id, exc.message)
        raise
    except SQLAlchemyError as exc:
        logger.exception("sale persistence failed org=%s user=%s", org_id, user_id)
        raise PersistenceFailure("Failed to complete sale") from exc

    logger.info(
        "sale %s committed org=%s lines=%d",
        sale_id, org_id, len(lines),
    )
    return get_sale(session, org_id, sale_id)


def get_sale(session: Session, org_id: str, sale_id: str) -> Sale:
    sale = (
        session.query(Sale)
        .options(selectinload(Sale.items).joinedload(SaleItem.variant))
        .filter(Sale.id == sale_id, Sale.org_id == org_id)
        .first()
    )
    if sale is None:
        raise NotFound("Sale not found")
    return sale


def list_sales(
    session: Session,
    org_id: str,
    *,
    page=None,
    limit=None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> dict:
    """Paginated sales history, newest first. Dates are inclusive 'YYYY-MM-DD' days."""
    page = require_int(page, "page", minimum=1) if page is not None else 1
    limit = (
        require_int(limit, "limit", minimum=1, maximum=MAX_PAGE_SIZE)
        if limit is not None
        else DEFAULT_PAGE_SIZE
    )

    try:
        start_day = parse_day(start_date)
        end_day = parse_day(end_date)
    except ValueError:
        raise ValidationError("start_date and end_date must be YYYY-MM-DD")

    query = session.query(Sale).filter(Sale.org_id == org_id)
    if start_day is not None:
        query = query.filter(Sale.created_at >= datetime.combine(start_day, time.min))
    if end_day is not None:
        query = query.filter(Sale.created_at <= datetime.combine(end_day, time.max))

    total = query.count()
    sales = (
        query.options(selectinload(Sale.items).joinedload(SaleItem.variant))
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
        .all()
    )

    return {
        "sales": sales,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": (total + limit - 1) // limit,
    }


def attach_payment_proof(session: Session, org_id: str, sale_id: str, reference) -> Sale:
    """
    Record where the proof of payment for a sale is stored.

    The file itself is stored elsewhere; only the reference is kept. It can be
    set once: a sale is otherwise immutable.
    """
    reference = require_str(reference, "reference", max_length=512)

    with transaction_scope(session):
        sale = lock_for_update(
            session.query(Sale).filter(Sale.id == sale_id, Sale.org_id == org_id)
        ).first()
        if sale is None:
            raise NotFound("Sale not found")
        if sale.payment_proof_url:
            raise ConflictError("Payment proof already recorded for this sale")
        sale.payment_proof_url = reference

    logger.info("payment proof recorded for sale %s", sale_id)
    return get_sale(session, org_id, sale_id)
