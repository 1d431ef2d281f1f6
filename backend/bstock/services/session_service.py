# Overview: Service-layer operations for session tokens; establishes the request principal.

"""
Session Token Management

Tokens are 32 random bytes (hex), stored only as SHA-256 hashes. A valid
token yields a SessionContext: the principal (user, org_id, role) that the
HTTP layer hands to every protected route.

- Absolute timeout: SESSION_TTL_HOURS (config, default 24h)
- Idle timeout: SESSION_IDLE_TIMEOUT
- Revocable on logout, user deactivation or organization deactivation
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.orm import Session

from ..models import Organization, SessionToken, User
from ..time_utils import utcnow


SESSION_IDLE_TIMEOUT = timedelta(hours=2)
DEFAULT_SESSION_TTL = timedelta(hours=24)


@dataclass
class SessionContext:
    """Authenticated principal for one request."""
    user: User
    session: SessionToken
    org_id: str
    role: str

    @property
    def user_id(self) -> str:
        return self.user.id


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """Tokens are high-entropy, so a fast hash is sufficient."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(
    session: Session,
    user: User,
    *,
    ttl: timedelta = DEFAULT_SESSION_TTL,
) -> tuple[SessionToken, str]:
    """
    Create a session for the user. Returns (record, plaintext_token).

    Only the hash is stored; the plaintext is returned to the client once.
    """
    plaintext_token = generate_token()
    now = utcnow()

    record = SessionToken(
        user_id=user.id,
        org_id=user.org_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + ttl,
        is_revoked=False,
    )
    session.add(record)
    session.commit()
    return record, plaintext_token


def _revoke(record: SessionToken, reason: str) -> None:
    record.is_revoked = True
    record.revoked_at = utcnow()
    record.revoked_reason = reason


def validate_session(session: Session, token: str) -> SessionContext | None:
    """
    Resolve a bearer token to its SessionContext, or None if it is invalid,
    expired, idle too long, or its user/organization is deactivated.

    Commits the last_used_at bump (or the revocation) before returning, so
    the request starts its own work with no open transaction.
    """
    now = utcnow()

    record = session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not record:
        session.commit()
        return None

    if record.expires_at < now:
        session.commit()
        return None

    if now - record.last_used_at > SESSION_IDLE_TIMEOUT:
        _revoke(record, "Idle timeout")
        session.commit()
        return None

    user = record.user
    if not user or not user.is_active:
        _revoke(record, "User account deactivated")
        session.commit()
        return None

    org = session.query(Organization).filter_by(id=record.org_id).first()
    if not org or not org.is_active:
        _revoke(record, "Organization deactivated")
        session.commit()
        return None

    record.last_used_at = now
    session.commit()

    return SessionContext(user=user, session=record, org_id=record.org_id, role=user.role)


def revoke_session(session: Session, token: str, reason: str = "User logout") -> bool:
    record = session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()
    if not record:
        return False

    _revoke(record, reason)
    session.commit()
    return True


def revoke_all_user_sessions(session: Session, user_id: str, reason: str) -> int:
    """Revoke every active session of a user. Does not commit."""
    records = session.query(SessionToken).filter_by(user_id=user_id, is_revoked=False).all()
    for record in records:
        _revoke(record, reason)
    return len(records)
