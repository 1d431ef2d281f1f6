# Overview: Flask API routes for variant stock and variant details.

"""
Variant API routes

Stock quantity is changed only by sales and by adjust-stock; PUT on a
variant edits prices and metadata.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import BStockError
from ..extensions import db
from ..services import catalog_service, inventory_service
from ..validation import MAX_QUANTITY, optional_str, require_int, require_json_object, require_uuid


variants_bp = Blueprint("variants", __name__, url_prefix="/api/v1/variants")


@variants_bp.get("/low-stock")
@require_auth
def low_stock_route():
    """Variants at or below their minimum stock level."""
    try:
        variants = inventory_service.list_low_stock(db.session, g.org_id)
        return jsonify({
            "variants": [v.to_dict(include_product=True) for v in variants],
            "count": len(variants),
        }), 200

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list low-stock variants")
        return jsonify({"error": "Internal server error"}), 500


@variants_bp.get("/<variant_id>")
@require_auth
def get_variant_route(variant_id: str):
    try:
        variant_id = require_uuid(variant_id, "variant ID")
        variant = inventory_service.get_variant(db.session, variant_id, g.org_id)
        return jsonify({"variant": variant.to_dict(include_product=True)}), 200

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load variant")
        return jsonify({"error": "Internal server error"}), 500


@variants_bp.post("/<variant_id>/adjust-stock")
@require_auth
def adjust_stock_route(variant_id: str):
    """
    Manual stock correction.

    Body: {adjustment: nonzero int, reason?}
    Returns 400 if the result would be negative.
    """
    try:
        variant_id = require_uuid(variant_id, "variant ID")
        data = require_json_object(request.get_json(silent=True))

        adjustment = require_int(
            data.get("adjustment"),
            "adjustment",
            minimum=-MAX_QUANTITY,
            maximum=MAX_QUANTITY,
            nonzero=True,
        )
        reason = optional_str(data.get("reason"), "reason")

        variant = inventory_service.adjust_stock(
            db.session,
            variant_id,
            adjustment,
            g.org_id,
            reason=reason,
            actor_user_id=g.current_user.id,
        )
        return jsonify({"variant": variant.to_dict()}), 200

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return jsonify({"error": "Internal server error"}), 500


@variants_bp.put("/<variant_id>")
@require_auth
def update_variant_route(variant_id: str):
    """Update prices, sku, min_stock_level, unit_type or attributes."""
    try:
        variant_id = require_uuid(variant_id, "variant ID")
        data = require_json_object(request.get_json(silent=True))

        variant = catalog_service.update_variant(db.session, g.org_id, variant_id, data)
        return jsonify({"variant": variant.to_dict()}), 200

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update variant")
        return jsonify({"error": "Internal server error"}), 500
