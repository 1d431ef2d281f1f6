from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from .base import new_id


SUBSCRIPTION_STATUSES = ("active", "trial", "canceled")


class Organization(db.Model):
    """
    Multi-tenant root: Every tenant is an Organization.

    All products, variants, vendors, users and sales belong to exactly one
    organization, and every query in the service layer is filtered by org_id.

    owner_id and subscription_id are weak references (plain columns, no FK):
    the owner row is created in the same registration transaction and the
    subscription row is owned by the organization, not the other way round.
    """
    __tablename__ = "organizations"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False, unique=True)
    owner_id = db.Column(db.String(36), nullable=True)
    subscription_id = db.Column(db.String(36), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Organization id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "owner_id": self.owner_id,
            "subscription_id": self.subscription_id,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Plan(db.Model):
    """
    Subscription tier. Read-mostly; only seeding writes it.

    A NULL limit means unlimited.
    """
    __tablename__ = "plans"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(64), nullable=False, unique=True)
    price_monthly_cents = db.Column(db.Integer, nullable=False, default=0)

    product_limit = db.Column(db.Integer, nullable=True)
    user_limit = db.Column(db.Integer, nullable=True)
    location_limit = db.Column(db.Integer, nullable=True)

    analytics_enabled = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Plan id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price_monthly_cents": self.price_monthly_cents,
            "product_limit": self.product_limit,
            "user_limit": self.user_limit,
            "location_limit": self.location_limit,
            "analytics_enabled": self.analytics_enabled,
        }


class Subscription(db.Model):
    """Links one Organization to one Plan. Updated on plan change, never deleted."""
    __tablename__ = "subscriptions"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('active', 'trial', 'canceled')",
            name="ck_subscriptions_status",
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    organization_id = db.Column(
        db.String(36), db.ForeignKey("organizations.id"), nullable=False, unique=True
    )
    plan_id = db.Column(db.String(36), db.ForeignKey("plans.id"), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default="active")
    current_period_end = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    organization = db.relationship(
        "Organization", backref=db.backref("subscription", uselist=False, lazy=True)
    )
    plan = db.relationship("Plan")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "plan_id": self.plan_id,
            "status": self.status,
            "current_period_end": to_utc_z(self.current_period_end),
            "plan": self.plan.to_dict() if self.plan else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
