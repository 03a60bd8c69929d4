# Overview: Flask API routes for sales; parses input and returns JSON responses.

# backend/inventory_api/routes/sales.py
"""
Sales API routes.

Staff see and manage only sales they created; admins see all of them.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import deny, require_auth, require_role
from ..errors import DOMAIN_ERRORS, error_response, internal_error
from ..models.auth import ROLE_ADMIN, ROLE_SUPER_ADMIN
from ..permissions import can_access_sale, is_admin
from ..services import sales_service
from ..validation import optional_int


sales_bp = Blueprint("sales", __name__, url_prefix="/api")


def _sales_page(user_id):
    sales, pagination = sales_service.list_sales(
        user_id=user_id,
        page=request.args.get("page"),
        limit=request.args.get("limit"),
    )
    return jsonify({
        "items": [s.to_dict(include_items=False) for s in sales],
        "pagination": pagination,
    }), 200


@sales_bp.post("/sales")
@require_auth
def create_sale_route():
    """
    Create a completed sale.

    Body: {"items": [{"product_id": int, "quantity": int}, ...]}

    409 when any product cannot cover its quantity; nothing is written then.
    """
    try:
        data = request.get_json(silent=True) or {}
        sale = sales_service.create_sale(data.get("items"), g.current_user.id)
        return jsonify({"sale": sale.to_dict()}), 201

    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return internal_error()


@sales_bp.get("/sales")
@require_auth
def list_sales_route():
    """Admins get every sale; everybody else only their own."""
    try:
        owner = None if is_admin(g.current_user) else g.current_user.id
        return _sales_page(owner)
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return internal_error()


@sales_bp.get("/sales/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(sale_id)
        if not can_access_sale(g.current_user, sale):
            return deny("not sale owner or admin")
        return jsonify({"sale": sale.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load sale")
        return internal_error()


@sales_bp.put("/sales/<int:sale_id>/status")
@require_auth
def update_sale_status_route(sale_id: int):
    """
    Body: {"status": "pending" | "completed" | "cancelled"}

    completed -> cancelled puts the sold quantities back on the shelf.
    """
    try:
        sale = sales_service.get_sale(sale_id)
        if not can_access_sale(g.current_user, sale):
            return deny("not sale owner or admin")

        data = request.get_json(silent=True) or {}
        sale = sales_service.update_sale_status(
            sale_id,
            data.get("status"),
            actor_user_id=g.current_user.id,
        )
        return jsonify({"sale": sale.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update sale status")
        return internal_error()


@sales_bp.get("/admin/sales")
@require_auth
@require_role(ROLE_ADMIN, ROLE_SUPER_ADMIN)
def list_all_sales_route():
    """Optional user_id filter."""
    try:
        return _sales_page(optional_int("user_id", request.args.get("user_id")))
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return internal_error()
