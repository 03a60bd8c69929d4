# Overview: Warehouse and shelf master data.

from __future__ import annotations

from ..extensions import db
from ..models import Shelf, Warehouse
from ..time_utils import utcnow
from ..validation import ModelValidationPolicy, NotFoundError, paginate, parse_pagination, validate_payload


WAREHOUSE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "address"},
    required_on_create={"name"},
    min_lengths={"name": 3},
)

SHELF_POLICY = ModelValidationPolicy(
    writable_fields={"warehouse_id", "name"},
    required_on_create={"warehouse_id", "name"},
    min_lengths={"name": 3},
)


# =============================================================================
# Warehouses
# =============================================================================

def get_warehouse(warehouse_id: int) -> Warehouse:
    warehouse = (
        db.session.query(Warehouse)
        .filter(Warehouse.id == warehouse_id, Warehouse.deleted_at.is_(None))
        .first()
    )
    if not warehouse:
        raise NotFoundError(f"Warehouse {warehouse_id} not found")
    return warehouse


def list_warehouses(*, page=None, limit=None) -> tuple[list[Warehouse], dict]:
    page_num, limit_num = parse_pagination(page, limit)
    q = (
        db.session.query(Warehouse)
        .filter(Warehouse.deleted_at.is_(None))
        .order_by(Warehouse.name.asc(), Warehouse.id.asc())
    )
    return paginate(q, page_num, limit_num)


def create_warehouse(payload: dict) -> Warehouse:
    patch = validate_payload(model=Warehouse, payload=payload, policy=WAREHOUSE_POLICY, partial=False)
    warehouse = Warehouse(**patch)
    db.session.add(warehouse)
    db.session.commit()
    return warehouse


def update_warehouse(warehouse_id: int, payload: dict) -> Warehouse:
    warehouse = get_warehouse(warehouse_id)
    patch = validate_payload(model=Warehouse, payload=payload, policy=WAREHOUSE_POLICY, partial=True)
    for key, value in patch.items():
        setattr(warehouse, key, value)
    db.session.commit()
    return warehouse


def delete_warehouse(warehouse_id: int) -> None:
    warehouse = get_warehouse(warehouse_id)
    warehouse.deleted_at = utcnow()
    db.session.commit()


# =============================================================================
# Shelves
# =============================================================================

def get_shelf(shelf_id: int) -> Shelf:
    shelf = (
        db.session.query(Shelf)
        .filter(Shelf.id == shelf_id, Shelf.deleted_at.is_(None))
        .first()
    )
    if not shelf:
        raise NotFoundError(f"Shelf {shelf_id} not found")
    return shelf


def list_shelves(*, warehouse_id: int | None = None, page=None, limit=None) -> tuple[list[Shelf], dict]:
    page_num, limit_num = parse_pagination(page, limit)
    q = db.session.query(Shelf).filter(Shelf.deleted_at.is_(None))
    if warehouse_id is not None:
        get_warehouse(warehouse_id)
        q = q.filter(Shelf.warehouse_id == warehouse_id)
    return paginate(q.order_by(Shelf.name.asc(), Shelf.id.asc()), page_num, limit_num)


def create_shelf(payload: dict) -> Shelf:
    patch = validate_payload(model=Shelf, payload=payload, policy=SHELF_POLICY, partial=False)
    get_warehouse(patch["warehouse_id"])
    shelf = Shelf(**patch)
    db.session.add(shelf)
    db.session.commit()
    return shelf


def update_shelf(shelf_id: int, payload: dict) -> Shelf:
    shelf = get_shelf(shelf_id)
    patch = validate_payload(model=Shelf, payload=payload, policy=SHELF_POLICY, partial=True)
    if "warehouse_id" in patch:
        get_warehouse(patch["warehouse_id"])
    for key, value in patch.items():
        setattr(shelf, key, value)
    db.session.commit()
    return shelf


def delete_shelf(shelf_id: int) -> None:
    shelf = get_shelf(shelf_id)
    shelf.deleted_at = utcnow()
    db.session.commit()
