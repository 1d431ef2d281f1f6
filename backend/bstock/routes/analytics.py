# Overview: Flask API routes for sales analytics; owner only, gated by plan.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_analytics, require_auth, require_owner
from ..errors import BStockError
from ..extensions import db
from ..services import reporting_service


analytics_bp = Blueprint("analytics", __name__, url_prefix="/api/v1/analytics")


@analytics_bp.get("/summary")
@require_auth
@require_owner
@require_analytics
def summary_route():
    """
    Revenue, cost, gross profit, transactions and items sold.

    Query: start_date, end_date (YYYY-MM-DD, inclusive; default last 30 days)
    """
    try:
        result = reporting_service.sales_summary(
            db.session,
            g.org_id,
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
        )
        return jsonify(result), 200

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to build sales summary")
        return jsonify({"error": "Internal server error"}), 500


@analytics_bp.get("/products/top")
@require_auth
@require_owner
@require_analytics
def top_products_route():
    """Query: sort_by=quantity|profit, limit, start_date, end_date"""
    try:
        result = reporting_service.top_products(
            db.session,
            g.org_id,
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
            sort_by=request.args.get("sort_by", "quantity"),
            limit=request.args.get("limit"),
        )
        return jsonify(result), 200

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to build top products")
        return jsonify({"error": "Internal server error"}), 500


@analytics_bp.get("/sales/daily")
@require_auth
@require_owner
@require_analytics
def daily_sales_route():
    try:
        result = reporting_service.daily_sales(
            db.session,
            g.org_id,
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
        )
        return jsonify(result), 200

    except BStockError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to build daily sales")
        return jsonify({"error": "Internal server error"}), 500
