from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from .base import new_id


USER_ROLES = ("owner", "cashier")


class User(db.Model):
    """
    User accounts for authentication and sale attribution.

    MULTI-TENANT: Users belong to exactly one organization (org_id).
    Phone numbers are unique within an organization, not globally.
    Users of an organization are counted against the plan's user_limit.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("org_id", "phone_number", name="uq_users_org_phone"),
        db.CheckConstraint("role IN ('owner', 'cashier')", name="ck_users_role"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    org_id = db.Column(db.String(36), db.ForeignKey("organizations.id"), nullable=False, index=True)

    phone_number = db.Column(db.String(32), nullable=False)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(16), nullable=False, default="cashier")
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    last_login_at = db.Column(db.DateTime, nullable=True)

    organization = db.relationship("Organization", backref=db.backref("users", lazy=True))

    def __repr__(self) -> str:
        return f"<User id={self.id} phone={self.phone_number!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "phone_number": self.phone_number,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at),
        }


class SessionToken(db.Model):
    """
    Bearer session token with tenant context.

    Tokens are stored as SHA-256 hashes. The org_id and role captured at login
    are the principal handed to every protected route.
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_active", "user_id", "is_revoked"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    org_id = db.Column(db.String(36), db.ForeignKey("organizations.id"), nullable=False, index=True)

    # Token hash (never store plaintext tokens)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    last_used_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime, nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user = db.relationship(
        "User", backref=db.backref("sessions", lazy=True, cascade="all, delete-orphan")
    )
