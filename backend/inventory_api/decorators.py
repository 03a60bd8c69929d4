# Overview: Request authentication and role decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request

from .permissions import can_access_user
from .services import session_service


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user')


def _log_denied(reason: str) -> None:
    user = getattr(g, "current_user", None)
    current_app.logger.warning(
        "Access denied: user=%s role=%s %s %s (%s)",
        user.id if user else None,
        user.role if user else None,
        request.method,
        request.path,
        reason,
    )


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def require_auth(f):
    """
    Require a valid bearer session.

    Sets:
    - g.current_user: the authenticated User
    - g.session_context: the SessionContext (user + session row)

    Returns 401 if the header is missing, the token is unknown, expired or
    revoked, or the account is inactive/deleted.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Require the authenticated user to hold one of the given roles."""
    allowed = frozenset(roles)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if g.current_user.role not in allowed:
                _log_denied(f"requires role in {sorted(allowed)}")
                return jsonify({
                    "error": "Permission denied",
                    "required_roles": sorted(allowed),
                }), 403

            return f(*args, **kwargs)

        return decorated_function

    return decorator


def require_self_or_admin(param: str = "user_id"):
    """Allow access to /<user_id> resources for that user or any admin."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not can_access_user(g.current_user, kwargs.get(param)):
                _log_denied("not owner or admin")
                return jsonify({"error": "Permission denied"}), 403

            return f(*args, **kwargs)

        return decorated_function

    return decorator


def deny(reason: str):
    """403 response for ownership checks done inside a route body."""
    _log_denied(reason)
    return jsonify({"error": "Permission denied"}), 403
