# Overview: Flask API routes for sales; parses input and returns JSON responses.

"""Sales API routes"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import BStockError
from ..extensions import db
from ..services import sales_service
from ..validation import require_json_object, require_uuid


sales_bp = Blueprint("sales", __name__, url_prefix="/api/v1/sales")


@sales_bp.post("")
@require_auth
def create_sale_route():
    """
    Process a sale in one step.

    Body: {payment_method, items: [{variant_id, quantity}]}
    Prices come from the catalog, never from the request.

    Returns 201 with the sale; 400 for bad input or insufficient stock
    ({error, variant_id, available, requested}); 404 for an unknown variant.
    """
    try:
        data = require_json_object(request.get_json(silent=True))

        sale = sales_service.process_sale(
            db.session,
            g.org_id,
            g.current_user.id,
            data.get("payment_method"),
            data.get("items"),
        )

        return jsonify({"sale": sale.to_dict()}), 201

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to process sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    Sales history, newest first.

    Query: page, limit, start_date, end_date (YYYY-MM-DD, inclusive)
    """
    try:
        result = sales_service.list_sales(
            db.session,
            g.org_id,
            page=request.args.get("page"),
            limit=request.args.get("limit"),
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
        )
        result["sales"] = [sale.to_dict() for sale in result["sales"]]
        return jsonify(result), 200

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<sale_id>")
@require_auth
def get_sale_route(sale_id: str):
    try:
        sale_id = require_uuid(sale_id, "sale ID")
        sale = sales_service.get_sale(db.session, g.org_id, sale_id)
        return jsonify({"sale": sale.to_dict()}), 200

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.post("/<sale_id>/payment-proof")
@require_auth
def payment_proof_route(sale_id: str):
    """
    Record the reference to an uploaded proof of payment.

    Body: {reference}
    Returns 409 if the sale already has one.
    """
    try:
        sale_id = require_uuid(sale_id, "sale ID")
        data = require_json_object(request.get_json(silent=True))

        sale = sales_service.attach_payment_proof(
            db.session, g.org_id, sale_id, data.get("reference")
        )
        return jsonify({"sale": sale.to_dict()}), 200

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to record payment proof")
        return jsonify({"error": "Internal server error"}), 500
