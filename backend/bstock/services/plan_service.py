# Overview: Service-layer operations for plans and subscriptions; capacity gate for products and users.

"""
Plan enforcement.

Answers "is this organization within its plan's limit for X?" for the
capacity-bound resource kinds, and owns subscription changes.

Two evaluation modes:
- check_limit(..., lock=False): plain count-then-compare. Used by the
  request gate (decorators.require_capacity) before any write. Two
  concurrent requests can both pass it (TOCTOU), so it is advisory only.
- check_limit(..., lock=True): locks the organization row first and must be
  called inside the same transaction_scope as the insert it guards
  (catalog_service.create_product, auth_service.invite_user). Concurrent
  creators for the same organization serialize on that lock, so the count
  they see includes every committed insert: the limit is a hard cap.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..errors import LimitReached, NoActiveSubscription, NotFound, ValidationError
from ..models import Organization, Plan, Product, Subscription, User
from ..time_utils import utcnow
from .concurrency import lock_for_update, transaction_scope


logger = logging.getLogger(__name__)

ACTIVE_STATUSES = ("active", "trial")
BILLING_PERIOD = timedelta(days=30)

# Plan catalog. None = unlimited.
DEFAULT_PLANS = [
    {
        "name": "free",
        "price_monthly_cents": 0,
        "product_limit": 15,
        "user_limit": 2,
        "location_limit": 1,
        "analytics_enabled": False,
    },
    {
        "name": "growth",
        "price_monthly_cents": 29999,
        "product_limit": 500,
        "user_limit": 10,
        "location_limit": 3,
        "analytics_enabled": True,
    },
    {
        "name": "pro",
        "price_monthly_cents": 99999,
        "product_limit": None,
        "user_limit": None,
        "location_limit": None,
        "analytics_enabled": True,
    },
]


class ResourceKind(enum.Enum):
    """Capacity-bound resources. Each kind knows its plan limit and its usage query."""
    PRODUCT = "product"
    USER = "user"

    def limit_of(self, plan: Plan) -> int | None:
        if self is ResourceKind.PRODUCT:
            return plan.product_limit
        return plan.user_limit

    def count(self, session: Session, org_id: str) -> int:
        if self is ResourceKind.PRODUCT:
            query = session.query(func.count(Product.id)).filter(Product.org_id == org_id)
        else:
            query = session.query(func.count(User.id)).filter(
                User.org_id == org_id,
                User.is_active.is_(True),
            )
        return int(query.scalar() or 0)


@dataclass(frozen=True)
class LimitCheck:
    kind: ResourceKind
    limit: int | None
    current_count: int | None

    @property
    def unlimited(self) -> bool:
        return self.limit is None


def get_subscription(session: Session, org_id: str) -> Subscription | None:
    return session.query(Subscription).filter_by(organization_id=org_id).first()


def resolve_plan(session: Session, org_id: str) -> Plan:
    """
    Load the organization's active plan.

    Raises NoActiveSubscription when there is no subscription or it is
    canceled. Every organization is created with one, so this is an
    internal invariant violation.
    """
    plan = (
        session.query(Plan)
        .join(Subscription, Subscription.plan_id == Plan.id)
        .filter(
            Subscription.organization_id == org_id,
            Subscription.status.in_(ACTIVE_STATUSES),
        )
        .first()
    )
    if plan is None:
        logger.error("organization %s has no active subscription", org_id)
        raise NoActiveSubscription("No active subscription")
    return plan


def check_limit(
    session: Session,
    org_id: str,
    kind: ResourceKind,
    *,
    lock: bool = False,
) -> LimitCheck:
    """
    Permit iff the plan has no limit for `kind` or current usage < limit.

    Raises LimitReached on denial. With lock=True the organization row is
    locked before counting; call it inside the transaction that performs
    the insert.
    """
    if lock:
        lock_for_update(session.query(Organization).filter_by(id=org_id)).first()

    plan = resolve_plan(session, org_id)
    limit = kind.limit_of(plan)
    if limit is None:
        return LimitCheck(kind=kind, limit=None, current_count=None)

    current = kind.count(session, org_id)
    if current >= limit:
        logger.info(
            "%s limit reached org=%s plan=%s limit=%d current=%d",
            kind.value, org_id, plan.name, limit, current,
        )
        raise LimitReached(resource=kind.value, limit=limit, current_count=current)
    return LimitCheck(kind=kind, limit=limit, current_count=current)


def get_usage(session: Session, org_id: str) -> dict:
    plan = resolve_plan(session, org_id)
    return {
        "products": {
            "current": ResourceKind.PRODUCT.count(session, org_id),
            "limit": plan.product_limit,
        },
        "users": {
            "current": ResourceKind.USER.count(session, org_id),
            "limit": plan.user_limit,
        },
    }


def has_analytics(session: Session, org_id: str) -> bool:
    return bool(resolve_plan(session, org_id).analytics_enabled)


def list_plans(session: Session) -> list[Plan]:
    return session.query(Plan).order_by(Plan.price_monthly_cents.asc()).all()


def validate_downgrade(session: Session, org_id: str, new_plan: Plan) -> None:
    """Reject a plan whose limits are below what the organization already uses."""
    for kind in ResourceKind:
        limit = kind.limit_of(new_plan)
        if limit is None:
            continue
        current = kind.count(session, org_id)
        if current > limit:
            raise ValidationError(
                f"cannot downgrade: you have {current} {kind.value}s "
                f"but new plan allows only {limit}",
                details={"resource": kind.value, "limit": limit, "current_count": current},
            )


def _apply_plan(session: Session, org_id: str, plan: Plan) -> Subscription:
    with transaction_scope(session):
        subscription = lock_for_update(
            session.query(Subscription).filter_by(organization_id=org_id)
        ).first()
        if subscription is None:
            raise NotFound("No subscription found")

        validate_downgrade(session, org_id, plan)

        # Payment is stubbed: the plan switch takes effect immediately
        subscription.plan_id = plan.id
        subscription.status = "active"
        subscription.current_period_end = utcnow() + BILLING_PERIOD

    logger.info("organization %s switched to plan %s", org_id, plan.name)
    return subscription


def change_plan(session: Session, org_id: str, plan_id: str) -> Subscription:
    plan = session.query(Plan).filter_by(id=plan_id).first()
    if plan is None:
        raise NotFound("Plan not found")
    return _apply_plan(session, org_id, plan)


def set_plan_by_name(session: Session, org_id: str, plan_name: str) -> Subscription:
    """Development helper: switch plan by name without payment."""
    plan = session.query(Plan).filter_by(name=plan_name).first()
    if plan is None:
        raise NotFound("Plan not found")
    return _apply_plan(session, org_id, plan)


def seed_plans(session: Session) -> list[Plan]:
    """Create the default plan catalog. Idempotent: existing plans keep their values."""
    plans = []
    for values in DEFAULT_PLANS:
        plan = session.query(Plan).filter_by(name=values["name"]).first()
        if plan is None:
            plan = Plan(**values)
            session.add(plan)
        plans.append(plan)
    session.commit()
    return plans
