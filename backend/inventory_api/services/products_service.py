# backend/inventory_api/services/products_service.py
"""
Products Service

Product master data plus the manual stock correction entry point.

- stock_quantity can be set on create; afterwards it only changes through
  sales, cancellations or update_stock (all routed via inventory_service).
- Category and shelf references must point at live (non-deleted) rows.
"""
from __future__ import annotations

from ..extensions import db
from ..models import Product
from ..time_utils import utcnow
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    coerce_int,
    paginate,
    parse_pagination,
    validate_payload,
    NotFoundError,
)
from . import audit_service, inventory_service
from .category_service import get_category
from .location_service import get_shelf


PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "category_id", "shelf_id", "name", "description",
        "unit_price", "cost_price", "stock_quantity", "min_stock_level",
    },
    required_on_create={"category_id", "shelf_id", "name", "unit_price", "cost_price"},
    min_lengths={"name": 3},
    non_negative={"unit_price", "cost_price", "stock_quantity", "min_stock_level"},
)

PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=PRODUCT_CREATE_POLICY.writable_fields - {"stock_quantity"},
    min_lengths=PRODUCT_CREATE_POLICY.min_lengths,
    non_negative=PRODUCT_CREATE_POLICY.non_negative,
)


def _live():
    return db.session.query(Product).filter(Product.deleted_at.is_(None))


def _check_references(patch: dict) -> None:
    if "category_id" in patch:
        get_category(patch["category_id"])
    if "shelf_id" in patch:
        get_shelf(patch["shelf_id"])


def get_product(product_id: int) -> Product:
    product = _live().filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def list_products(
    *,
    category_id: int | None = None,
    shelf_id: int | None = None,
    low_stock: bool = False,
    page=None,
    limit=None,
) -> tuple[list[Product], dict]:
    """
    Live products ordered by name, optionally filtered by category, shelf
    or low stock (stock_quantity <= min_stock_level).
    """
    page_num, limit_num = parse_pagination(page, limit)

    q = _live()
    if category_id is not None:
        get_category(category_id)
        q = q.filter(Product.category_id == category_id)
    if shelf_id is not None:
        get_shelf(shelf_id)
        q = q.filter(Product.shelf_id == shelf_id)
    if low_stock:
        q = q.filter(Product.stock_quantity <= Product.min_stock_level)
        q = q.order_by(Product.stock_quantity.asc(), Product.name.asc(), Product.id.asc())
    else:
        q = q.order_by(Product.name.asc(), Product.id.asc())

    return paginate(q, page_num, limit_num)


def create_product(payload: dict) -> Product:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_CREATE_POLICY, partial=False)
    _check_references(patch)

    product = Product(**patch)
    db.session.add(product)
    db.session.commit()
    return product


def update_product(product_id: int, payload: dict) -> Product:
    product = get_product(product_id)
    if isinstance(payload, dict) and "stock_quantity" in payload:
        raise ValidationError("stock_quantity cannot be edited here; use the stock update endpoint")

    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
    _check_references(patch)

    for key, value in patch.items():
        setattr(product, key, value)
    db.session.commit()
    return product


def delete_product(product_id: int) -> None:
    product = get_product(product_id)
    product.deleted_at = utcnow()
    db.session.commit()


def update_stock(product_id: int, quantity, *, notes: str | None = None, actor_user_id: int | None = None, audit=None) -> Product:
    """
    Set on-hand stock to an absolute counted quantity; audited with old/new values.
    """
    if quantity is None:
        raise ValidationError("quantity is required")
    qty = coerce_int("quantity", quantity)
    if qty < 0:
        raise ValidationError("quantity must be >= 0")
    if notes is not None and not isinstance(notes, str):
        raise ValidationError("notes must be a string")

    sink = audit or audit_service.default_sink
    try:
        change = inventory_service.set_stock(product_id, qty)
        sink.record(
            audit_service.STOCK_SET,
            entity_type="product",
            entity_id=product_id,
            actor_user_id=actor_user_id,
            product_id=product_id,
            old_stock=change.old_stock,
            new_stock=change.new_stock,
            note=notes,
            payload={"change": change.new_stock - change.old_stock},
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return get_product(product_id)
