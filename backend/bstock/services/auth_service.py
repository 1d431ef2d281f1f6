# Overview: Service-layer operations for accounts: registration, login and organization users.

"""
Accounts

Registration creates, in one transaction, the organization, its owner, and
its subscription to the default plan, so every organization has exactly one
subscription from the moment it exists.

Passwords are hashed with bcrypt. Users are counted against the plan's
user_limit; invite_user re-checks that limit under the organization row lock
inside the insert transaction (see plan_service).
"""

from __future__ import annotations

import logging

import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import AuthenticationError, ConflictError, NoActiveSubscription, NotFound, ValidationError
from ..models import Organization, Plan, Subscription, User
from ..models.auth import USER_ROLES
from ..time_utils import utcnow
from ..validation import require_str
from .concurrency import transaction_scope
from .plan_service import ResourceKind, check_limit
from .session_service import revoke_all_user_sessions


logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
BCRYPT_ROUNDS = 12


def validate_password(password) -> str:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


def hash_password(password: str, rounds: int | None = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed stored hash
        return False


def register_organization(
    session: Session,
    *,
    organization_name,
    phone_number,
    password,
    plan_name: str = "free",
) -> tuple[Organization, User, Subscription]:
    """Create organization + owner + subscription atomically."""
    organization_name = require_str(organization_name, "organization_name")
    phone_number = require_str(phone_number, "phone_number", max_length=32)
    password_hash = hash_password(validate_password(password))

    try:
        with transaction_scope(session):
            if session.query(Organization).filter_by(name=organization_name).first():
                raise ConflictError("Organization name already taken")

            plan = session.query(Plan).filter_by(name=plan_name).first()
            if plan is None:
                logger.error("default plan %r is not seeded", plan_name)
                raise NoActiveSubscription(f"Failed to find {plan_name} plan")

            org = Organization(name=organization_name)
            session.add(org)
            session.flush()

            owner = User(
                org_id=org.id,
                phone_number=phone_number,
                password_hash=password_hash,
                role="owner",
            )
            session.add(owner)

            subscription = Subscription(organization_id=org.id, plan_id=plan.id, status="active")
            session.add(subscription)
            session.flush()

            org.owner_id = owner.id
            org.subscription_id = subscription.id
    except IntegrityError:
        # Lost a race with a concurrent registration of the same name
        raise ConflictError("Organization name already taken")

    logger.info("registered organization %s (%s) on plan %s", org.id, organization_name, plan_name)
    return org, owner, subscription


def authenticate(session: Session, *, organization_name, phone_number, password) -> User:
    """Return the active user for these credentials or raise AuthenticationError."""
    organization_name = require_str(organization_name, "organization_name")
    phone_number = require_str(phone_number, "phone_number", max_length=32)
    if not isinstance(password, str) or not password:
        raise ValidationError("password is required")

    user = (
        session.query(User)
        .join(Organization, Organization.id == User.org_id)
        .filter(
            Organization.name == organization_name,
            Organization.is_active.is_(True),
            User.phone_number == phone_number,
            User.is_active.is_(True),
        )
        .first()
    )
    if user is None or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid credentials")

    user.last_login_at = utcnow()
    session.commit()
    return user


def list_users(session: Session, org_id: str) -> list[User]:
    return (
        session.query(User)
        .filter(User.org_id == org_id, User.is_active.is_(True))
        .order_by(User.created_at.asc())
        .all()
    )


def invite_user(session: Session, org_id: str, *, phone_number, password, role) -> User:
    """Add a user to the organization, enforcing the plan's user limit as a hard cap."""
    phone_number = require_str(phone_number, "phone_number", max_length=32)
    if role not in USER_ROLES:
        raise ValidationError("role must be owner or cashier")
    password_hash = hash_password(validate_password(password))

    with transaction_scope(session):
        check_limit(session, org_id, ResourceKind.USER, lock=True)

        existing = session.query(User).filter_by(org_id=org_id, phone_number=phone_number).first()
        if existing is not None and existing.is_active:
            raise ConflictError("User already belongs to this organization")

        if existing is not None:
            # Re-activate a previously removed member instead of duplicating the row
            user = existing
            user.password_hash = password_hash
            user.role = role
            user.is_active = True
        else:
            user = User(org_id=org_id, phone_number=phone_number, password_hash=password_hash, role=role)
            session.add(user)
        session.flush()

    logger.info("user %s added to organization %s as %s", user.id, org_id, role)
    return user


def remove_user(session: Session, org_id: str, user_id: str, *, acting_user_id: str) -> None:
    """
    Remove a member. The row is deactivated rather than deleted: sales keep
    referencing their cashier.
    """
    if user_id == acting_user_id:
        raise ValidationError("Cannot remove yourself")

    with transaction_scope(session):
        user = session.query(User).filter_by(id=user_id, org_id=org_id, is_active=True).first()
        if user is None:
            raise NotFound("User not found")

        org = session.query(Organization).filter_by(id=org_id).first()
        if org is not None and org.owner_id == user.id:
            raise ValidationError("Cannot remove the organization owner")

        user.is_active = False
        revoke_all_user_sessions(session, user.id, "Removed from organization")

    logger.info("user %s removed from organization %s", user_id, org_id)
