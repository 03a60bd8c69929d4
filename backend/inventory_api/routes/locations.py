# Overview: Flask API routes for warehouses and shelves.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import DOMAIN_ERRORS, error_response, internal_error
from ..models.auth import ROLE_ADMIN, ROLE_SUPER_ADMIN
from ..services import location_service

locations_bp = Blueprint("locations", __name__, url_prefix="/api")


# =============================================================================
# WAREHOUSES
# =============================================================================

@locations_bp.get("/warehouses")
@require_auth
def list_warehouses_route():
    try:
        rows, pagination = location_service.list_warehouses(
            page=request.args.get("page"),
            limit=request.args.get("limit"),
        )
        return jsonify({"items": [w.to_dict() for w in rows], "pagination": pagination}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list warehouses")
        return internal_error()


@locations_bp.get("/warehouses/<int:warehouse_id>")
@require_auth
def get_warehouse_route(warehouse_id: int):
    try:
        return jsonify({"warehouse": location_service.get_warehouse(warehouse_id).to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load warehouse")
        return internal_error()


@locations_bp.post("/admin/warehouses")
@require_auth
@require_role(ROLE_ADMIN, ROLE_SUPER_ADMIN)
def create_warehouse_route():
    try:
        warehouse = location_service.create_warehouse(request.get_json(silent=True))
        return jsonify({"warehouse": warehouse.to_dict()}), 201
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create warehouse")
        return internal_error()


@locations_bp.put("/admin/warehouses/<int:warehouse_id>")
@require_auth
@require_role(ROLE_ADMIN, ROLE_SUPER_ADMIN)
def update_warehouse_route(warehouse_id: int):
    try:
        warehouse = location_service.update_warehouse(warehouse_id, request.get_json(silent=True))
        return jsonify({"warehouse": warehouse.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update warehouse")
        return internal_error()


@locations_bp.delete("/admin/warehouses/<int:warehouse_id>")
@require_auth
@require_role(ROLE_ADMIN, ROLE_SUPER_ADMIN)
def delete_warehouse_route(warehouse_id: int):
    try:
        location_service.delete_warehouse(warehouse_id)
        return jsonify({"message": "Warehouse deleted"}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete warehouse")
        return internal_error()


# =============================================================================
# SHELVES
# =============================================================================

@locations_bp.get("/shelves")
@require_auth
def list_shelves_route():
    try:
        rows, pagination = location_service.list_shelves(
            page=request.args.get("page"),
            limit=request.args.get("limit"),
        )
        return jsonify({"items": [s.to_dict() for s in rows], "pagination": pagination}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list shelves")
        return internal_error()


@locations_bp.get("/shelves/warehouse/<int:warehouse_id>")
@require_auth
def list_warehouse_shelves_route(warehouse_id: int):
    try:
        rows, pagination = location_service.list_shelves(
            warehouse_id=warehouse_id,
            page=request.args.get("page"),
            limit=request.args.get("limit"),
        )
        return jsonify({"items": [s.to_dict() for s in rows], "pagination": pagination}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list shelves for warehouse")
        return internal_error()


@locations_bp.get("/shelves/<int:shelf_id>")
@require_auth
def get_shelf_route(shelf_id: int):
    try:
        return jsonify({"shelf": location_service.get_shelf(shelf_id).to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load shelf")
        return internal_error()


@locations_bp.post("/admin/shelves")
@require_auth
@require_role(ROLE_ADMIN, ROLE_SUPER_ADMIN)
def create_shelf_route():
    try:
        shelf = location_service.create_shelf(request.get_json(silent=True))
        return jsonify({"shelf": shelf.to_dict()}), 201
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create shelf")
        return internal_error()


@locations_bp.put("/admin/shelves/<int:shelf_id>")
@require_auth
@require_role(ROLE_ADMIN, ROLE_SUPER_ADMIN)
def update_shelf_route(shelf_id: int):
    try:
        shelf = location_service.update_shelf(shelf_id, request.get_json(silent=True))
        return jsonify({"shelf": shelf.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update shelf")
        return internal_error()


@locations_bp.delete("/admin/shelves/<int:shelf_id>")
@require_auth
@require_role(ROLE_ADMIN, ROLE_SUPER_ADMIN)
def delete_shelf_route(shelf_id: int):
    try:
        location_service.delete_shelf(shelf_id)
        return jsonify({"message": "Shelf deleted"}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete shelf")
        return internal_error()
