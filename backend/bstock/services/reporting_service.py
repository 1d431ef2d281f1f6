# Overview: Read-only analytics over committed sales; no locking, no writes.

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import BigInteger, cast, func
from sqlalchemy.orm import Session

from ..errors import ValidationError
from ..models import Product, Sale, SaleItem, Variant
from ..time_utils import day_range
from ..validation import require_int


TOP_PRODUCTS_DEFAULT_LIMIT = 10
TOP_PRODUCTS_MAX_LIMIT = 100
TOP_PRODUCTS_SORTS = ("quantity", "profit")


def _parse_range(start_date: str | None, end_date: str | None) -> tuple[datetime, datetime]:
    try:
        start_dt, end_dt = day_range(start_date, end_date)
    except ValueError:
        raise ValidationError("start_date and end_date must be YYYY-MM-DD")
    if start_dt > end_dt:
        raise ValidationError("start_date must not be after end_date")
    return start_dt, end_dt


def _window(start_dt: datetime, end_dt: datetime) -> dict:
    return {
        "start_date": start_dt.date().isoformat(),
        "end_date": end_dt.date().isoformat(),
    }


def sales_summary(
    session: Session,
    org_id: str,
    *,
    start_date: str | None = None,
    end_date: str | None = None,
) -> dict:
    """Revenue, cost, profit, transaction count and items sold in the window."""
    start_dt, end_dt = _parse_range(start_date, end_date)

    totals = session.query(
        func.coalesce(func.sum(Sale.total_amount_cents), 0).label("revenue"),
        func.coalesce(func.sum(Sale.total_profit_cents), 0).label("profit"),
        func.count(Sale.id).label("transactions"),
    ).filter(
        Sale.org_id == org_id,
        Sale.created_at >= start_dt,
        Sale.created_at <= end_dt,
    ).one()

    items_sold = session.query(
        func.coalesce(func.sum(SaleItem.quantity), 0)
    ).join(Sale, Sale.id == SaleItem.sale_id).filter(
        Sale.org_id == org_id,
        Sale.created_at >= start_dt,
        Sale.created_at <= end_dt,
    ).scalar()

    revenue = int(totals.revenue or 0)
    profit = int(totals.profit or 0)
    return {
        "summary": {
            "total_revenue_cents": revenue,
            "total_cost_cents": revenue - profit,
            "gross_profit_cents": profit,
            "transaction_count": int(totals.transactions or 0),
            "items_sold": int(items_sold or 0),
        },
        **_window(start_dt, end_dt),
    }


def top_products(
    session: Session,
    org_id: str,
    *,
    start_date: str | None = None,
    end_date: str | None = None,
    sort_by: str = "quantity",
    limit=None,
) -> dict:
    """
    Variants ranked by units sold or by profit.

    Revenue and profit come from the sale item snapshots, so later price
    edits on a variant do not rewrite history.
    """
    if sort_by not in TOP_PRODUCTS_SORTS:
        raise ValidationError("sort_by must be quantity or profit")
    limit = (
        require_int(limit, "limit", minimum=1, maximum=TOP_PRODUCTS_MAX_LIMIT)
        if limit is not None
        else TOP_PRODUCTS_DEFAULT_LIMIT
    )
    start_dt, end_dt = _parse_range(start_date, end_date)

    # 64-bit products: quantity * price can exceed a 32-bit INTEGER
    quantity = cast(SaleItem.quantity, BigInteger)
    total_quantity = func.sum(quantity).label("total_quantity")
    total_revenue = func.sum(quantity * SaleItem.price_at_sale_cents).label("total_revenue")
    total_profit = func.sum(
        quantity * (SaleItem.price_at_sale_cents - SaleItem.purchase_price_at_sale_cents)
    ).label("total_profit")

    order_col = total_quantity if sort_by == "quantity" else total_profit

    rows = (
        session.query(
            Product.id.label("product_id"),
            Product.name.label("product_name"),
            Variant.id.label("variant_id"),
            Variant.sku.label("sku"),
            total_quantity,
            total_revenue,
            total_profit,
        )
        .select_from(SaleItem)
        .join(Sale, Sale.id == SaleItem.sale_id)
        .join(Variant, Variant.id == SaleItem.variant_id)
        .join(Product, Product.id == Variant.product_id)
        .filter(
            Sale.org_id == org_id,
            Sale.created_at >= start_dt,
            Sale.created_at <= end_dt,
        )
        .group_by(Product.id, Product.name, Variant.id, Variant.sku)
        .order_by(order_col.desc(), Variant.sku.asc())
        .limit(limit)
        .all()
    )

    return {
        "products": [
            {
                "product_id": row.product_id,
                "product_name": row.product_name,
                "variant_id": row.variant_id,
                "sku": row.sku,
                "total_quantity": int(row.total_quantity or 0),
                "total_revenue_cents": int(row.total_revenue or 0),
                "total_profit_cents": int(row.total_profit or 0),
            }
            for row in rows
        ],
        "sort_by": sort_by,
        "limit": limit,
        **_window(start_dt, end_dt),
    }


def _day_key(value) -> str:
    # SQLite returns 'YYYY-MM-DD' strings, PostgreSQL returns date objects
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    return str(value)


def daily_sales(
    session: Session,
    org_id: str,
    *,
    start_date: str | None = None,
    end_date: str | None = None,
) -> dict:
    """Per-day revenue, profit and transaction count, oldest day first. Days without sales are omitted."""
    start_dt, end_dt = _parse_range(start_date, end_date)

    day = func.date(Sale.created_at)
    rows = (
        session.query(
            day.label("day"),
            func.coalesce(func.sum(Sale.total_amount_cents), 0).label("revenue"),
            func.coalesce(func.sum(Sale.total_profit_cents), 0).label("profit"),
            func.count(Sale.id).label("transactions"),
        )
        .filter(
            Sale.org_id == org_id,
            Sale.created_at >= start_dt,
            Sale.created_at <= end_dt,
        )
        .group_by(day)
        .order_by(day.asc())
        .all()
    )

    return {
        "days": [
            {
                "date": _day_key(row.day),
                "revenue_cents": int(row.revenue or 0),
                "profit_cents": int(row.profit or 0),
                "transactions": int(row.transactions or 0),
            }
            for row in rows
        ],
        **_window(start_dt, end_dt),
    }
