# Overview: Pytest coverage for registration, login, sessions and membership.

"""
Accounts Tests

- Registration creates organization, owner and subscription together
- Login is scoped by organization name
- Session tokens expire, idle out and die with their user
- Invitations respect the plan's user limit; removal deactivates
"""

from datetime import timedelta

import pytest

from bstock.errors import AuthenticationError, ConflictError, LimitReached, NotFound, ValidationError
from bstock.models import Organization, SessionToken, Subscription, User
from bstock.services import auth_service, plan_service, session_service
from bstock.services.session_service import SESSION_IDLE_TIMEOUT
from bstock.time_utils import utcnow


PASSWORD = "secret-pass"


class TestRegistration:

    def test_creates_org_owner_and_subscription(self, db_session):
        org, owner, sub = auth_service.register_organization(
            db_session,
            organization_name="Corner Shop",
            phone_number="+15551230000",
            password=PASSWORD,
        )

        assert owner.role == "owner"
        assert owner.org_id == org.id
        assert org.owner_id == owner.id
        assert org.subscription_id == sub.id
        assert sub.status == "active"
        assert sub.plan.name == "free"
        assert owner.password_hash != PASSWORD
        assert auth_service.verify_password(PASSWORD, owner.password_hash)

    def test_duplicate_name_conflict(self, db_session, org_a):
        with pytest.raises(ConflictError):
            auth_service.register_organization(
                db_session,
                organization_name=org_a.name,
                phone_number="+15551230001",
                password=PASSWORD,
            )
        assert db_session.query(Organization).count() == 1
        assert db_session.query(Subscription).count() == 1

    def test_short_password_rejected(self, db_session):
        with pytest.raises(ValidationError):
            auth_service.register_organization(
                db_session, organization_name="Tiny", phone_number="+1555", password="123",
            )


class TestAuthenticate:

    def test_valid_credentials(self, db_session, org_a, owner_a):
        user = auth_service.authenticate(
            db_session,
            organization_name=org_a.name,
            phone_number=owner_a.phone_number,
            password=PASSWORD,
        )
        assert user.id == owner_a.id
        assert user.last_login_at is not None

    @pytest.mark.parametrize("field,value", [
        ("password", "wrong-pass"),
        ("phone_number", "+19999999999"),
        ("organization_name", "Org B - Beta Inc"),
    ])
    def test_invalid_credentials(self, db_session, org_a, org_b, owner_a, field, value):
        creds = {
            "organization_name": org_a.name,
            "phone_number": owner_a.phone_number,
            "password": PASSWORD,
        }
        creds[field] = value

        with pytest.raises(AuthenticationError):
            auth_service.authenticate(db_session, **creds)

    def test_inactive_user_cannot_log_in(self, db_session, org_a, cashier_a):
        cashier_a.is_active = False
        db_session.commit()

        with pytest.raises(AuthenticationError):
            auth_service.authenticate(
                db_session,
                organization_name=org_a.name,
                phone_number=cashier_a.phone_number,
                password=PASSWORD,
            )


class TestSessions:

    def test_token_stored_hashed(self, db_session, owner_a):
        record, token = session_service.create_session(db_session, owner_a)

        assert record.token_hash == session_service.hash_token(token)
        assert db_session.query(SessionToken).filter_by(token_hash=token).count() == 0

    def test_validate_returns_principal(self, db_session, org_a, owner_a):
        _, token = session_service.create_session(db_session, owner_a)

        context = session_service.validate_session(db_session, token)

        assert context.user_id == owner_a.id
        assert context.org_id == org_a.id
        assert context.role == "owner"

    def test_unknown_token(self, db_session):
        assert session_service.validate_session(db_session, "nope") is None

    def test_expired_token(self, db_session, owner_a):
        _, token = session_service.create_session(db_session, owner_a, ttl=timedelta(seconds=-1))
        assert session_service.validate_session(db_session, token) is None

    def test_idle_token_revoked(self, db_session, owner_a):
        record, token = session_service.create_session(db_session, owner_a)
        record.last_used_at = utcnow() - SESSION_IDLE_TIMEOUT - timedelta(minutes=1)
        db_session.commit()

        assert session_service.validate_session(db_session, token) is None
        db_session.refresh(record)
        assert record.is_revoked
        assert record.revoked_reason == "Idle timeout"

    def test_revoked_on_logout(self, db_session, owner_a):
        _, token = session_service.create_session(db_session, owner_a)

        assert session_service.revoke_session(db_session, token)
        assert session_service.validate_session(db_session, token) is None
        assert not session_service.revoke_session(db_session, token)


class TestMembership:

    def test_invite_counts_against_limit(self, db_session, org_a, cashier_a):
        # free: owner + cashier_a fills the 2-user limit
        with pytest.raises(LimitReached) as exc_info:
            auth_service.invite_user(
                db_session, org_a.id, phone_number="+15550000999", password=PASSWORD, role="cashier",
            )
        assert exc_info.value.limit == 2
        assert exc_info.value.current_count == 2

    def test_invite_after_upgrade(self, db_session, org_a, cashier_a):
        plan_service.set_plan_by_name(db_session, org_a.id, "growth")

        user = auth_service.invite_user(
            db_session, org_a.id, phone_number="+15550000999", password=PASSWORD, role="cashier",
        )
        assert user.is_active

    def test_duplicate_phone_conflict(self, db_session, org_a, owner_a):
        with pytest.raises(ConflictError):
            auth_service.invite_user(
                db_session, org_a.id, phone_number=owner_a.phone_number, password=PASSWORD, role="cashier",
            )

    def test_invalid_role(self, db_session, org_a):
        with pytest.raises(ValidationError):
            auth_service.invite_user(
                db_session, org_a.id, phone_number="+15550000999", password=PASSWORD, role="admin",
            )

    def test_remove_deactivates_and_revokes(self, db_session, org_a, owner_a, cashier_a):
        _, token = session_service.create_session(db_session, cashier_a)

        auth_service.remove_user(db_session, org_a.id, cashier_a.id, acting_user_id=owner_a.id)

        db_session.expire_all()
        assert db_session.query(User).filter_by(id=cashier_a.id).one().is_active is False
        assert session_service.validate_session(db_session, token) is None
        assert [u.id for u in auth_service.list_users(db_session, org_a.id)] == [owner_a.id]

    def test_removed_user_can_be_reinvited(self, db_session, org_a, owner_a, cashier_a):
        auth_service.remove_user(db_session, org_a.id, cashier_a.id, acting_user_id=owner_a.id)

        again = auth_service.invite_user(
            db_session, org_a.id, phone_number=cashier_a.phone_number, password=PASSWORD, role="cashier",
        )
        assert again.id == cashier_a.id
        assert again.is_active

    def test_cannot_remove_self(self, db_session, org_a, owner_a):
        with pytest.raises(ValidationError):
            auth_service.remove_user(db_session, org_a.id, owner_a.id, acting_user_id=owner_a.id)

    def test_cannot_remove_user_of_other_org(self, db_session, org_a, owner_a, owner_b):
        with pytest.raises(NotFound):
            auth_service.remove_user(db_session, org_a.id, owner_b.id, acting_user_id=owner_a.id)
