from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_role
from ..models.auth import ROLE_ADMIN, ROLE_SUPER_ADMIN
from ..services import reporting_service
from ..validation import ValidationError


reports_bp = Blueprint("reports", __name__, url_prefix="/api/admin")


@reports_bp.get("/sales/report")
@reports_bp.get("/reports/sales")
@require_auth
@require_role(ROLE_ADMIN, ROLE_SUPER_ADMIN)
def sales_report():
    try:
        report = reporting_service.sales_report(
            request.args.get("start_date"),
            request.args.get("end_date"),
        )
        return jsonify(report), 200
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/reports/revenue")
@require_auth
@require_role(ROLE_ADMIN, ROLE_SUPER_ADMIN)
def revenue_report():
    try:
        report = reporting_service.revenue_report(
            request.args.get("start_date"),
            request.args.get("end_date"),
            request.args.get("group_by", ""),
        )
        return jsonify(report), 200
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/reports/products")
@require_auth
@require_role(ROLE_ADMIN, ROLE_SUPER_ADMIN)
def product_inventory_report():
    return jsonify(reporting_service.inventory_report()), 200
