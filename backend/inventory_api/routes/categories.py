# Overview: Flask API routes for product categories.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import DOMAIN_ERRORS, error_response, internal_error
from ..models.auth import ROLE_ADMIN, ROLE_SUPER_ADMIN
from ..services import category_service

categories_bp = Blueprint("categories", __name__, url_prefix="/api")


@categories_bp.get("/categories")
@require_auth
def list_categories_route():
    try:
        rows, pagination = category_service.list_categories(
            page=request.args.get("page"),
            limit=request.args.get("limit"),
        )
        return jsonify({"items": [c.to_dict() for c in rows], "pagination": pagination}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list categories")
        return internal_error()


@categories_bp.get("/categories/<int:category_id>")
@require_auth
def get_category_route(category_id: int):
    try:
        return jsonify({"category": category_service.get_category(category_id).to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load category")
        return internal_error()


@categories_bp.post("/admin/categories")
@require_auth
@require_role(ROLE_ADMIN, ROLE_SUPER_ADMIN)
def create_category_route():
    """Category names are unique among live categories (409 on duplicate)."""
    try:
        category = category_service.create_category(request.get_json(silent=True))
        return jsonify({"category": category.to_dict()}), 201
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create category")
        return internal_error()


@categories_bp.put("/admin/categories/<int:category_id>")
@require_auth
@require_role(ROLE_ADMIN, ROLE_SUPER_ADMIN)
def update_category_route(category_id: int):
    try:
        category = category_service.update_category(category_id, request.get_json(silent=True))
        return jsonify({"category": category.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update category")
        return internal_error()


@categories_bp.delete("/admin/categories/<int:category_id>")
@require_auth
@require_role(ROLE_ADMIN, ROLE_SUPER_ADMIN)
def delete_category_route(category_id: int):
    try:
        category_service.delete_category(category_id)
        return jsonify({"message": "Category deleted"}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete category")
        return internal_error()
