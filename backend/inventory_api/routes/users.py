# Overview: Flask API routes for user accounts (self-service and admin management).

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_role, require_self_or_admin
from ..errors import DOMAIN_ERRORS, error_response, internal_error
from ..models.auth import ROLE_ADMIN, ROLE_SUPER_ADMIN
from ..services import user_service

users_bp = Blueprint("users", __name__, url_prefix="/api")


# =============================================================================
# SELF OR ADMIN
# =============================================================================

@users_bp.get("/users/<int:user_id>")
@require_auth
@require_self_or_admin("user_id")
def get_user_route(user_id: int):
    try:
        user = user_service.get_user(user_id)
        return jsonify({"user": user.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load user")
        return internal_error()


@users_bp.put("/users/<int:user_id>")
@require_auth
@require_self_or_admin("user_id")
def update_user_route(user_id: int):
    """Staff may edit their own username/email/full_name/password only."""
    try:
        user = user_service.update_user(user_id, request.get_json(silent=True), actor=g.current_user)
        return jsonify({"user": user.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update user")
        return internal_error()


# =============================================================================
# ADMIN USER MANAGEMENT
# =============================================================================

@users_bp.get("/admin/users")
@require_auth
@require_role(ROLE_ADMIN, ROLE_SUPER_ADMIN)
def list_users_route():
    try:
        users, pagination = user_service.list_users(
            page=request.args.get("page"),
            limit=request.args.get("limit"),
            role=request.args.get("role"),
        )
        return jsonify({"items": [u.to_dict() for u in users], "pagination": pagination}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list users")
        return internal_error()


@users_bp.post("/admin/users")
@require_auth
@require_role(ROLE_ADMIN, ROLE_SUPER_ADMIN)
def create_user_route():
    """
    Create a user. admin may create staff/admin; only super_admin may create super_admin.
    """
    try:
        user = user_service.create_user(request.get_json(silent=True), actor=g.current_user)
        return jsonify({"user": user.to_dict()}), 201
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create user")
        return internal_error()


@users_bp.delete("/admin/users/<int:user_id>")
@require_auth
@require_role(ROLE_ADMIN, ROLE_SUPER_ADMIN)
def delete_user_route(user_id: int):
    try:
        user_service.delete_user(user_id, actor=g.current_user)
        return jsonify({"message": "User deleted"}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete user")
        return internal_error()
