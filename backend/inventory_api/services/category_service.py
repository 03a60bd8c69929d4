# Overview: Product category master data.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Category
from ..time_utils import utcnow
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    paginate,
    parse_pagination,
    validate_payload,
)


CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description"},
    required_on_create={"name"},
    min_lengths={"name": 3},
)


def _live():
    return db.session.query(Category).filter(Category.deleted_at.is_(None))


def _ensure_unique_name(name: str, exclude_id: int | None = None) -> None:
    q = _live().filter(func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        q = q.filter(Category.id != exclude_id)
    if q.first():
        raise ConflictError(f"Category '{name}' already exists")


def get_category(category_id: int) -> Category:
    category = _live().filter(Category.id == category_id).first()
    if not category:
        raise NotFoundError(f"Category {category_id} not found")
    return category


def list_categories(*, page=None, limit=None) -> tuple[list[Category], dict]:
    page_num, limit_num = parse_pagination(page, limit)
    return paginate(_live().order_by(Category.name.asc(), Category.id.asc()), page_num, limit_num)


def create_category(payload: dict) -> Category:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    _ensure_unique_name(patch["name"])
    category = Category(**patch)
    db.session.add(category)
    db.session.commit()
    return category


def update_category(category_id: int, payload: dict) -> Category:
    category = get_category(category_id)
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
    if "name" in patch:
        _ensure_unique_name(patch["name"], exclude_id=category.id)
    for key, value in patch.items():
        setattr(category, key, value)
    db.session.commit()
    return category


def delete_category(category_id: int) -> None:
    category = get_category(category_id)
    category.deleted_at = utcnow()
    db.session.commit()
