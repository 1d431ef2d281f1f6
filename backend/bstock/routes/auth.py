# Overview: Flask API routes for registration, login and logout; parses input and returns JSON responses.

"""
Authentication API routes

- Registration creates an organization, its owner and its free-plan
  subscription in one step and returns a session token.
- Login is scoped by organization name: phone numbers are only unique
  within an organization.
"""

from datetime import timedelta

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import BStockError
from ..extensions import db
from ..services import auth_service, plan_service, session_service
from ..validation import require_json_object


auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


def _session_ttl() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_TTL_HOURS", 24))


@auth_bp.post("/register")
def register_route():
    """
    Register a new organization with its owner account.

    Body: {organization_name, phone_number, password}
    Returns 201 with the session token; 409 if the name is taken.
    """
    try:
        data = require_json_object(request.get_json(silent=True))

        org, owner, subscription = auth_service.register_organization(
            db.session,
            organization_name=data.get("organization_name"),
            phone_number=data.get("phone_number"),
            password=data.get("password"),
            plan_name=current_app.config.get("DEFAULT_PLAN_NAME", "free"),
        )
        _, token = session_service.create_session(db.session, owner, ttl=_session_ttl())

        return jsonify({
            "token": token,
            "user": owner.to_dict(),
            "organization": org.to_dict(),
            "subscription": subscription.to_dict(),
            "role": owner.role,
        }), 201

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to register organization")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and create a session token.

    Body: {organization_name, phone_number, password}
    The token must be sent as `Authorization: Bearer <token>`.
    """
    try:
        data = require_json_object(request.get_json(silent=True))

        user = auth_service.authenticate(
            db.session,
            organization_name=data.get("organization_name"),
            phone_number=data.get("phone_number"),
            password=data.get("password"),
        )
        _, token = session_service.create_session(db.session, user, ttl=_session_ttl())

        return jsonify({
            "token": token,
            "user": user.to_dict(),
            "organization": user.organization.to_dict(),
            "role": user.role,
            "usage": plan_service.get_usage(db.session, user.org_id),
        }), 200

    except BStockError as e:
        if e.status_code == 401:
            current_app.logger.info("Failed login for %r", request.remote_addr)
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to log in")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the current session token."""
    token = request.headers.get("Authorization", "").split(" ", 1)[1].strip()
    session_service.revoke_session(db.session, token, "User logout")
    return jsonify({"message": "Logged out successfully"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    """Return the authenticated user, organization and plan usage."""
    try:
        return jsonify({
            "user": g.current_user.to_dict(),
            "organization": g.current_user.organization.to_dict(),
            "role": g.role,
            "usage": plan_service.get_usage(db.session, g.org_id),
        }), 200
    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
