# Overview: Flask API routes for vendors.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import BStockError
from ..extensions import db
from ..services import catalog_service
from ..validation import require_json_object, require_uuid


vendors_bp = Blueprint("vendors", __name__, url_prefix="/api/v1/vendors")


@vendors_bp.get("")
@require_auth
def list_vendors_route():
    vendors = catalog_service.list_vendors(db.session, g.org_id)
    return jsonify({"vendors": [v.to_dict() for v in vendors]}), 200


@vendors_bp.post("")
@require_auth
def create_vendor_route():
    """Body: {name, contact_info?}"""
    try:
        data = require_json_object(request.get_json(silent=True))
        vendor = catalog_service.create_vendor(db.session, g.org_id, data)
        return jsonify({"vendor": vendor.to_dict()}), 201

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create vendor")
        return jsonify({"error": "Internal server error"}), 500


@vendors_bp.delete("/<vendor_id>")
@require_auth
def delete_vendor_route(vendor_id: str):
    """Products of the vendor are kept with no vendor."""
    try:
        vendor_id = require_uuid(vendor_id, "vendor ID")
        catalog_service.delete_vendor(db.session, g.org_id, vendor_id)
        return jsonify({"message": "Vendor deleted"}), 200

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete vendor")
        return jsonify({"error": "Internal server error"}), 500
