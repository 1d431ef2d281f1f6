# backend/bstock/routes/system.py
"""
System health endpoint.

Reports database connectivity and whether the plan catalog is seeded;
registration cannot succeed without it.
"""

import time
from flask import Blueprint, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Organization, Plan
from ..services.plan_service import DEFAULT_PLANS
from ..time_utils import utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api/v1")


def check_database_health() -> dict:
    """Check database connectivity with two cheap counts."""
    start_time = time.time()
    try:
        org_count = db.session.query(Organization).count()
        plan_names = {name for (name,) in db.session.query(Plan.name).all()}

        elapsed_ms = (time.time() - start_time) * 1000
        missing = [p["name"] for p in DEFAULT_PLANS if p["name"] not in plan_names]

        result = {
            "status": "degraded" if missing else "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "organizations": org_count,
                "plans": len(plan_names),
            },
        }
        if missing:
            result["warning"] = f"Missing plans: {', '.join(missing)}"
        return result
    except SQLAlchemyError:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded (plans not seeded)
    - 503: database unreachable
    """
    database_health = check_database_health()
    db.session.rollback()

    status = database_health["status"]
    http_status = 503 if status == "unhealthy" else 200

    return {
        "status": status,
        "timestamp": utcnow().isoformat() + "Z",
        "checks": {"database": database_health},
    }, http_status
