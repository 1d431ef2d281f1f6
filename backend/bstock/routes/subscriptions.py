# Overview: Flask API routes for plans, subscriptions and the payment webhook stub.

"""
Subscription API routes

Payment is not processed: change-plan applies the new plan immediately.
The webhook endpoint accepts and logs provider notifications only.
"""

from flask import Blueprint, abort, current_app, g, jsonify, request

from ..decorators import require_auth, require_owner
from ..errors import BStockError
from ..extensions import db
from ..services import plan_service
from ..validation import require_json_object, require_str, require_uuid


subscriptions_bp = Blueprint("subscriptions", __name__, url_prefix="/api/v1/subscriptions")
webhooks_bp = Blueprint("webhooks", __name__, url_prefix="/api/v1/webhooks")


def _current_payload(org_id: str) -> dict:
    subscription = plan_service.get_subscription(db.session, org_id)
    return {
        "subscription": subscription.to_dict() if subscription else None,
        "usage": plan_service.get_usage(db.session, org_id),
    }


@subscriptions_bp.get("/plans")
def list_plans_route():
    """Public plan catalog, cheapest first."""
    plans = plan_service.list_plans(db.session)
    return jsonify({"plans": [p.to_dict() for p in plans]}), 200


@subscriptions_bp.get("/current")
@require_auth
def current_subscription_route():
    """The organization's subscription with its plan and current usage."""
    try:
        return jsonify(_current_payload(g.org_id)), 200

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load subscription")
        return jsonify({"error": "Internal server error"}), 500


@subscriptions_bp.post("/change-plan")
@require_auth
@require_owner
def change_plan_route():
    """
    Switch to another plan.

    Body: {plan_id}
    Returns 400 when current usage exceeds the new plan's limits.
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        plan_id = require_uuid(data.get("plan_id"), "plan ID")

        plan_service.change_plan(db.session, g.org_id, plan_id)
        return jsonify(_current_payload(g.org_id)), 200

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to change plan")
        return jsonify({"error": "Internal server error"}), 500


@subscriptions_bp.post("/dev/set-plan/<plan_name>")
@require_auth
def dev_set_plan_route(plan_name: str):
    """Development only: switch plan by name. 404 unless DEV_ENDPOINTS_ENABLED."""
    if not current_app.config.get("DEV_ENDPOINTS_ENABLED"):
        abort(404)

    try:
        plan_service.set_plan_by_name(db.session, g.org_id, plan_name)
        current_app.logger.warning("Dev plan switch org=%s plan=%s", g.org_id, plan_name)
        return jsonify(_current_payload(g.org_id)), 200

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to set plan")
        return jsonify({"error": "Internal server error"}), 500


@webhooks_bp.post("/payment")
def payment_webhook_route():
    """Payment provider notification. Accepted and logged; no state changes."""
    try:
        data = require_json_object(request.get_json(silent=True))
        event = require_str(data.get("event"), "event", max_length=64)
        current_app.logger.info("Payment webhook received: %s", event)
        return jsonify({"received": True}), 200

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to handle payment webhook")
        return jsonify({"error": "Internal server error"}), 500
