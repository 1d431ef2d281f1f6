# Overview: Flask API routes for organization members.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_capacity, require_owner
from ..errors import BStockError
from ..extensions import db
from ..services import auth_service
from ..services.plan_service import ResourceKind
from ..validation import require_json_object, require_uuid


users_bp = Blueprint("users", __name__, url_prefix="/api/v1/users")


@users_bp.get("")
@require_auth
@require_owner
def list_users_route():
    """Active members of the organization. Owner only."""
    try:
        users = auth_service.list_users(db.session, g.org_id)
        return jsonify({"users": [u.to_dict() for u in users]}), 200

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list users")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.post("/invite")
@require_auth
@require_owner
@require_capacity(ResourceKind.USER)
def invite_user_route():
    """
    Add a member to the organization.

    Body: {phone_number, password, role?}  (role defaults to cashier)
    Returns 403 with upgrade_required when the plan's user limit is reached.
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        user = auth_service.invite_user(
            db.session,
            g.org_id,
            phone_number=data.get("phone_number"),
            password=data.get("password"),
            role=data.get("role") or "cashier",
        )
        return jsonify({"user": user.to_dict()}), 201

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to invite user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.delete("/<user_id>")
@require_auth
@require_owner
def remove_user_route(user_id: str):
    """Deactivate a member and revoke their sessions."""
    try:
        user_id = require_uuid(user_id, "user ID")
        auth_service.remove_user(db.session, g.org_id, user_id, acting_user_id=g.current_user.id)
        return jsonify({"message": "User removed"}), 200

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to remove user")
        return jsonify({"error": "Internal server error"}), 500
