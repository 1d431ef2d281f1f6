from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from .base import new_id


class Sale(db.Model):
    """
    Completed sale. Immutable after creation.

    Created exactly once by sales_service.process_sale together with its
    items, inside the same transaction that decrements stock. The only field
    set afterwards is payment_proof_url (once).
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_org_created", "org_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    org_id = db.Column(db.String(36), db.ForeignKey("organizations.id"), nullable=False, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)

    # Totals in cents, computed from the locked variant prices. A single
    # line can exceed 32 bits (MAX_PRICE_CENTS * MAX_QUANTITY)
    total_amount_cents = db.Column(db.BigInteger, nullable=False)
    total_profit_cents = db.Column(db.BigInteger, nullable=False)

    payment_method = db.Column(db.String(32), nullable=False)
    payment_proof_url = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship("User")
    items = db.relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.line_number",
        lazy=True,
    )

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "org_id": self.org_id,
            "user_id": self.user_id,
            "total_amount_cents": self.total_amount_cents,
            "total_profit_cents": self.total_profit_cents,
            "payment_method": self.payment_method,
            "payment_proof_url": self.payment_proof_url,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """
    Line of a sale.

    quantity, price_at_sale_cents and purchase_price_at_sale_cents are
    snapshots taken from the locked variant row; later price changes on the
    variant never touch them.
    """
    __tablename__ = "sale_items"
    __table_args__ = (
        db.UniqueConstraint("sale_id", "line_number", name="uq_sale_items_sale_line"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    sale_id = db.Column(
        db.String(36), db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True
    )
    variant_id = db.Column(db.String(36), db.ForeignKey("variants.id"), nullable=False, index=True)
    line_number = db.Column(db.Integer, nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    price_at_sale_cents = db.Column(db.Integer, nullable=False)
    purchase_price_at_sale_cents = db.Column(db.Integer, nullable=False)

    sale = db.relationship("Sale", back_populates="items")
    variant = db.relationship("Variant")

    @property
    def line_total_cents(self) -> int:
        return self.quantity * self.price_at_sale_cents

    @property
    def line_profit_cents(self) -> int:
        return self.quantity * (self.price_at_sale_cents - self.purchase_price_at_sale_cents)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "variant_id": self.variant_id,
            "line_number": self.line_number,
            "quantity": self.quantity,
            "price_at_sale_cents": self.price_at_sale_cents,
            "purchase_price_at_sale_cents": self.purchase_price_at_sale_cents,
            "line_total_cents": self.line_total_cents,
            "line_profit_cents": self.line_profit_cents,
            "sku": self.variant.sku if self.variant else None,
        }
