# Overview: Request decorators for API routes: authentication, roles, plan gates.

from functools import wraps
from flask import current_app, g, jsonify, request

from .errors import LimitReached, NoActiveSubscription
from .extensions import db
from .services import plan_service, session_service
from .services.plan_service import ResourceKind


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'org_id')


def require_auth(f):
    """
    Require authentication and establish tenant context.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.org_id: The organization ID (tenant context)
    - g.role: "owner" or "cashier"
    - g.session_context: The full SessionContext object

    Returns 401 if the Authorization header is missing, the token is
    invalid or expired, or the user/organization is deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(db.session, token)

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.org_id = context.org_id
        g.role = context.role
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles):
    """Require the authenticated user to hold one of the given roles."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if g.role not in roles:
                return jsonify({
                    "error": "Permission denied",
                    "required_roles": list(roles),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_owner(f):
    return require_role("owner")(f)


def require_capacity(kind: ResourceKind):
    """
    Reject the request early when the organization is already at its plan
    limit for `kind`.

    This is the advisory check only; the service re-checks under lock in
    the insert transaction.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            try:
                plan_service.check_limit(db.session, g.org_id, kind)
            except LimitReached as e:
                return jsonify(e.to_dict()), e.status_code
            except NoActiveSubscription as e:
                current_app.logger.error("No active subscription for org %s", g.org_id)
                return jsonify(e.to_dict()), e.status_code
            finally:
                # Release the read transaction before the route opens its own
                db.session.commit()

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_analytics(f):
    """Require a plan with analytics enabled."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return jsonify({"error": "Authentication required"}), 401

        try:
            plan = plan_service.resolve_plan(db.session, g.org_id)
        except NoActiveSubscription as e:
            db.session.rollback()
            return jsonify(e.to_dict()), e.status_code

        if not plan.analytics_enabled:
            db.session.commit()
            return jsonify({
                "error": "Analytics is not available on your current plan",
                "upgrade_required": True,
                "current_plan": plan.name,
            }), 403

        return f(*args, **kwargs)

    return decorated_function
