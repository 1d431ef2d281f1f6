# Overview: Service-layer operations for products, variants and vendors.

from __future__ import annotations

import logging

from sqlalchemy.orm import Session, selectinload

from ..errors import ConflictError, NotFound, ValidationError
from ..models import Product, SaleItem, Variant, Vendor
from ..validation import (
    MAX_QUANTITY,
    optional_str,
    parse_attributes,
    require_int,
    require_price_cents,
    require_str,
    require_uuid,
)
from .concurrency import transaction_scope
from .inventory_service import get_variant
from .plan_service import ResourceKind, check_limit


logger = logging.getLogger(__name__)

PRODUCT_TEXT_FIELDS = {
    "name": 255,
    "description": 10_000,
    "category": 128,
    "image_url": 512,
}


def _resolve_vendor_id(session: Session, org_id: str, vendor_id) -> str | None:
    if vendor_id is None or vendor_id == "":
        return None
    vendor_id = require_uuid(vendor_id, "vendor ID")
    vendor = session.query(Vendor).filter_by(id=vendor_id, org_id=org_id).first()
    if vendor is None:
        raise NotFound("Vendor not found")
    return vendor.id


def _parse_new_variant(index: int, data) -> dict:
    if not isinstance(data, dict):
        raise ValidationError(f"variants[{index}] must be an object")
    prefix = f"variants[{index}]"
    return {
        "attributes": parse_attributes(data.get("attributes")),
        "sku": require_str(data.get("sku"), f"{prefix}.sku", max_length=64),
        "purchase_price_cents": require_price_cents(
            data.get("purchase_price_cents", 0), f"{prefix}.purchase_price_cents"
        ),
        "sale_price_cents": require_price_cents(
            data.get("sale_price_cents"), f"{prefix}.sale_price_cents", positive=True
        ),
        "quantity": require_int(
            data.get("quantity", 0), f"{prefix}.quantity", minimum=0, maximum=MAX_QUANTITY
        ),
        "min_stock_level": require_int(
            data.get("min_stock_level", 0), f"{prefix}.min_stock_level", minimum=0, maximum=MAX_QUANTITY
        ),
        "unit_type": optional_str(data.get("unit_type"), f"{prefix}.unit_type", max_length=16) or "pcs",
    }


def create_product(session: Session, org_id: str, payload: dict) -> Product:
    """
    Create a product with at least one variant.

    The plan's product limit is re-checked under the organization row lock
    in the same transaction as the insert, so concurrent creators cannot
    overshoot it.
    """
    name = require_str(payload.get("name"), "name")
    variants_data = payload.get("variants")
    if not isinstance(variants_data, list) or not variants_data:
        raise ValidationError("variants must be a non-empty list")
    variants = [_parse_new_variant(i, v) for i, v in enumerate(variants_data)]

    with transaction_scope(session):
        check_limit(session, org_id, ResourceKind.PRODUCT, lock=True)

        product = Product(
            org_id=org_id,
            vendor_id=_resolve_vendor_id(session, org_id, payload.get("vendor_id")),
            name=name,
            description=optional_str(payload.get("description"), "description", max_length=10_000),
            category=optional_str(payload.get("category"), "category", max_length=128),
            image_url=optional_str(payload.get("image_url"), "image_url", max_length=512),
        )
        product.variants = [Variant(**fields) for fields in variants]
        session.add(product)
        session.flush()
        product_id = product.id

    logger.info("product %s created org=%s variants=%d", product_id, org_id, len(variants))
    return get_product(session, org_id, product_id)


def list_products(
    session: Session,
    org_id: str,
    *,
    category: str | None = None,
    search: str | None = None,
    low_stock: bool = False,
) -> list[Product]:
    query = (
        session.query(Product)
        .options(selectinload(Product.variants), selectinload(Product.vendor))
        .filter(Product.org_id == org_id)
    )
    if category:
        query = query.filter(Product.category == category)
    if search:
        query = query.filter(Product.name.ilike(f"%{search}%"))
    if low_stock:
        query = query.filter(
            Product.variants.any(Variant.quantity <= Variant.min_stock_level)
        )
    return query.order_by(Product.name.asc()).all()


def get_product(session: Session, org_id: str, product_id: str) -> Product:
    product = (
        session.query(Product)
        .options(selectinload(Product.variants), selectinload(Product.vendor))
        .filter(Product.id == product_id, Product.org_id == org_id)
        .first()
    )
    if product is None:
        raise NotFound("Product not found")
    return product


def update_product(session: Session, org_id: str, product_id: str, payload: dict) -> Product:
    """Update product details. Variants are edited through update_variant."""
    with transaction_scope(session):
        product = session.query(Product).filter_by(id=product_id, org_id=org_id).first()
        if product is None:
            raise NotFound("Product not found")

        for field, max_length in PRODUCT_TEXT_FIELDS.items():
            if field not in payload:
                continue
            if field == "name":
                product.name = require_str(payload["name"], "name", max_length=max_length)
            else:
                setattr(product, field, optional_str(payload[field], field, max_length=max_length))

        if "vendor_id" in payload:
            product.vendor_id = _resolve_vendor_id(session, org_id, payload["vendor_id"])

    return get_product(session, org_id, product_id)


def delete_product(session: Session, org_id: str, product_id: str) -> None:
    """Delete a product and its variants. Products with sales history cannot be deleted."""
    with transaction_scope(session):
        product = session.query(Product).filter_by(id=product_id, org_id=org_id).first()
        if product is None:
            raise NotFound("Product not found")

        sold = (
            session.query(SaleItem.id)
            .join(Variant, Variant.id == SaleItem.variant_id)
            .filter(Variant.product_id == product.id)
            .first()
        )
        if sold is not None:
            raise ConflictError("Product has sales history and cannot be deleted")

        session.delete(product)
    logger.info("product %s deleted org=%s", product_id, org_id)


def update_variant(session: Session, org_id: str, variant_id: str, payload: dict) -> Variant:
    """
    Update prices, SKU, minimum stock level or unit.

    quantity is not writable here; stock changes go through
    inventory_service.adjust_stock.
    """
    if "quantity" in payload:
        raise ValidationError("quantity cannot be set directly; use adjust-stock")

    with transaction_scope(session):
        variant = get_variant(session, variant_id, org_id, lock=True)

        if "purchase_price_cents" in payload:
            variant.purchase_price_cents = require_price_cents(
                payload["purchase_price_cents"], "purchase_price_cents"
            )
        if "sale_price_cents" in payload:
            variant.sale_price_cents = require_price_cents(
                payload["sale_price_cents"], "sale_price_cents", positive=True
            )
        if "min_stock_level" in payload:
            variant.min_stock_level = require_int(
                payload["min_stock_level"], "min_stock_level", minimum=0, maximum=MAX_QUANTITY
            )
        if "sku" in payload:
            variant.sku = require_str(payload["sku"], "sku", max_length=64)
        if "unit_type" in payload:
            variant.unit_type = require_str(payload["unit_type"], "unit_type", max_length=16)
        if "attributes" in payload:
            variant.attributes = parse_attributes(payload["attributes"])

    return get_variant(session, variant_id, org_id)


def list_vendors(session: Session, org_id: str) -> list[Vendor]:
    return session.query(Vendor).filter_by(org_id=org_id).order_by(Vendor.name.asc()).all()


def create_vendor(session: Session, org_id: str, payload: dict) -> Vendor:
    vendor = Vendor(
        org_id=org_id,
        name=require_str(payload.get("name"), "name"),
        contact_info=optional_str(payload.get("contact_info"), "contact_info"),
    )
    session.add(vendor)
    session.commit()
    return vendor


def delete_vendor(session: Session, org_id: str, vendor_id: str) -> None:
    """Products keep existing; their vendor reference is cleared."""
    with transaction_scope(session):
        vendor = session.query(Vendor).filter_by(id=vendor_id, org_id=org_id).first()
        if vendor is None:
            raise NotFound("Vendor not found")
        session.query(Product).filter_by(org_id=org_id, vendor_id=vendor.id).update(
            {Product.vendor_id: None}, synchronize_session="fetch"
        )
        session.delete(vendor)
