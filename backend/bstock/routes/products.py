# Overview: Flask API routes for products; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_capacity, require_owner
from ..errors import BStockError
from ..extensions import db
from ..services import catalog_service
from ..services.plan_service import ResourceKind
from ..validation import require_json_object, require_uuid


products_bp = Blueprint("products", __name__, url_prefix="/api/v1/products")


def _truthy(value) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes")


@products_bp.get("")
@require_auth
def list_products_route():
    """
    List products with their variants.

    Query: category, search (name substring), low_stock=true
    """
    try:
        products = catalog_service.list_products(
            db.session,
            g.org_id,
            category=request.args.get("category"),
            search=request.args.get("search"),
            low_stock=_truthy(request.args.get("low_stock")),
        )
        return jsonify({"products": [p.to_dict() for p in products]}), 200

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list products")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.post("")
@require_auth
@require_capacity(ResourceKind.PRODUCT)
def create_product_route():
    """
    Create a product with its variants.

    Body: {name, description?, category?, image_url?, vendor_id?,
           variants: [{sku, sale_price_cents, purchase_price_cents?,
                       quantity?, min_stock_level?, unit_type?, attributes?}]}

    Returns 403 {error, limit, current_count, upgrade_required} when the
    plan's product limit is reached.
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        product = catalog_service.create_product(db.session, g.org_id, data)
        return jsonify({"product": product.to_dict()}), 201

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/<product_id>")
@require_auth
def get_product_route(product_id: str):
    try:
        product_id = require_uuid(product_id, "product ID")
        product = catalog_service.get_product(db.session, g.org_id, product_id)
        return jsonify({"product": product.to_dict()}), 200

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.put("/<product_id>")
@require_auth
def update_product_route(product_id: str):
    try:
        product_id = require_uuid(product_id, "product ID")
        data = require_json_object(request.get_json(silent=True))
        product = catalog_service.update_product(db.session, g.org_id, product_id, data)
        return jsonify({"product": product.to_dict()}), 200

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.delete("/<product_id>")
@require_auth
@require_owner
def delete_product_route(product_id: str):
    """Owner only. Products with sales history are kept (409)."""
    try:
        product_id = require_uuid(product_id, "product ID")
        catalog_service.delete_product(db.session, g.org_id, product_id)
        return jsonify({"message": "Product deleted"}), 200

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500
