# Overview: Flask API routes for products, low-stock listing and stock corrections.

# backend/inventory_api/routes/products.py
"""
Product routes.

- Any authenticated user can read products and correct on-hand stock.
- Create / update / delete live under /api/admin/products and need an admin role.
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import DOMAIN_ERRORS, error_response, internal_error
from ..models.auth import ROLE_ADMIN, ROLE_SUPER_ADMIN
from ..services import products_service
from ..validation import optional_int

products_bp = Blueprint("products", __name__, url_prefix="/api")


def _page(**filters):
    rows, pagination = products_service.list_products(
        page=request.args.get("page"),
        limit=request.args.get("limit"),
        **filters,
    )
    return jsonify({"items": [p.to_dict() for p in rows], "pagination": pagination}), 200


@products_bp.get("/products")
@require_auth
def list_products_route():
    """Optional filters: category_id, shelf_id."""
    try:
        return _page(
            category_id=optional_int("category_id", request.args.get("category_id")),
            shelf_id=optional_int("shelf_id", request.args.get("shelf_id")),
        )
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list products")
        return internal_error()


@products_bp.get("/products/low-stock")
@require_auth
def list_low_stock_route():
    try:
        return _page(low_stock=True)
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list low-stock products")
        return internal_error()


@products_bp.get("/products/category/<int:category_id>")
@require_auth
def list_products_by_category_route(category_id: int):
    try:
        return _page(category_id=category_id)
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list products by category")
        return internal_error()


@products_bp.get("/products/shelf/<int:shelf_id>")
@require_auth
def list_products_by_shelf_route(shelf_id: int):
    try:
        return _page(shelf_id=shelf_id)
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list products by shelf")
        return internal_error()


@products_bp.get("/products/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        return jsonify({"product": products_service.get_product(product_id).to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load product")
        return internal_error()


@products_bp.put("/products/<int:product_id>/stock")
@require_auth
def update_stock_route(product_id: int):
    """
    Set on-hand stock to a counted quantity.

    Body: {"quantity": int >= 0, "notes": optional str}
    """
    try:
        data = request.get_json(silent=True) or {}
        product = products_service.update_stock(
            product_id,
            data.get("quantity"),
            notes=data.get("notes"),
            actor_user_id=g.current_user.id,
        )
        return jsonify({"product": product.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update product stock")
        return internal_error()


@products_bp.post("/admin/products")
@require_auth
@require_role(ROLE_ADMIN, ROLE_SUPER_ADMIN)
def create_product_route():
    try:
        product = products_service.create_product(request.get_json(silent=True))
        return jsonify({"product": product.to_dict()}), 201
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return internal_error()


@products_bp.put("/admin/products/<int:product_id>")
@require_auth
@require_role(ROLE_ADMIN, ROLE_SUPER_ADMIN)
def update_product_route(product_id: int):
    try:
        product = products_service.update_product(product_id, request.get_json(silent=True))
        return jsonify({"product": product.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update product")
        return internal_error()


@products_bp.delete("/admin/products/<int:product_id>")
@require_auth
@require_role(ROLE_ADMIN, ROLE_SUPER_ADMIN)
def delete_product_route(product_id: int):
    try:
        products_service.delete_product(product_id)
        return jsonify({"message": "Product deleted"}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return internal_error()
