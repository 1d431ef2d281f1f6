from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from .base import new_id


class Vendor(db.Model):
    """Supplier a product may be sourced from."""
    __tablename__ = "vendors"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    org_id = db.Column(db.String(36), db.ForeignKey("organizations.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    contact_info = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "name": self.name,
            "contact_info": self.contact_info,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Product master data.

    MULTI-TENANT: Products carry org_id directly; variants are scoped
    through their product. Products of an organization are counted against
    the plan's product_limit.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_org_name", "org_id", "name"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    org_id = db.Column(db.String(36), db.ForeignKey("organizations.id"), nullable=False, index=True)
    vendor_id = db.Column(db.String(36), db.ForeignKey("vendors.id", ondelete="SET NULL"), nullable=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(128), nullable=True, index=True)
    image_url = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    vendor = db.relationship("Vendor")
    variants = db.relationship(
        "Variant",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="Variant.sku",
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} org_id={self.org_id}>"

    def to_dict(self, include_variants: bool = True) -> dict:
        data = {
            "id": self.id,
            "org_id": self.org_id,
            "vendor_id": self.vendor_id,
            "vendor": self.vendor.to_dict() if self.vendor else None,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "image_url": self.image_url,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_variants:
            data["variants"] = [v.to_dict() for v in self.variants]
        return data


class Variant(db.Model):
    """
    Sellable unit of a product and the unit of stock.

    quantity is mutated only by inventory_service (reserve/adjust) after
    creation. The CHECK constraint is a backstop; the service layer rejects
    negative results before writing.
    """
    __tablename__ = "variants"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_variants_quantity_nonnegative"),
        db.Index("ix_variants_product_sku", "product_id", "sku"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    product_id = db.Column(
        db.String(36), db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # e.g. {"Size": "L", "Color": "Red"}
    attributes = db.Column(db.JSON, nullable=False, default=dict)
    sku = db.Column(db.String(64), nullable=False)

    # Authoritative storage in cents
    purchase_price_cents = db.Column(db.Integer, nullable=False, default=0)
    sale_price_cents = db.Column(db.Integer, nullable=False)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    min_stock_level = db.Column(db.Integer, nullable=False, default=0)
    unit_type = db.Column(db.String(16), nullable=False, default="pcs")

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    product = db.relationship("Product", back_populates="variants")

    def __repr__(self) -> str:
        return f"<Variant id={self.id} sku={self.sku!r} quantity={self.quantity}>"

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_stock_level

    def to_dict(self, include_product: bool = False) -> dict:
        data = {
            "id": self.id,
            "product_id": self.product_id,
            "attributes": self.attributes or {},
            "sku": self.sku,
            "purchase_price_cents": self.purchase_price_cents,
            "sale_price_cents": self.sale_price_cents,
            "quantity": self.quantity,
            "min_stock_level": self.min_stock_level,
            "unit_type": self.unit_type,
            "is_low_stock": self.is_low_stock,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_product and self.product is not None:
            data["product"] = self.product.to_dict(include_variants=False)
        return data
