# Overview: Flask API route for reading the audit trail (admin only).

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import DOMAIN_ERRORS, error_response, internal_error
from ..models.auth import ROLE_ADMIN, ROLE_SUPER_ADMIN
from ..services import audit_service
from ..validation import optional_int, paginate, parse_pagination

"""
Audit events are append-only; there is no write API.
Newest first. Filters: event_type, sale_id, product_id.
"""

audit_bp = Blueprint("audit", __name__, url_prefix="/api/admin/audit-events")


@audit_bp.get("")
@require_auth
@require_role(ROLE_ADMIN, ROLE_SUPER_ADMIN)
def list_audit_events_route():
    try:
        page, limit = parse_pagination(request.args.get("page"), request.args.get("limit"))
        q = audit_service.list_events(
            event_type=request.args.get("event_type"),
            sale_id=optional_int("sale_id", request.args.get("sale_id")),
            product_id=optional_int("product_id", request.args.get("product_id")),
        )
        events, pagination = paginate(q, page, limit)
        return jsonify({"items": [e.to_dict() for e in events], "pagination": pagination}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list audit events")
        return internal_error()
