# Overview: Atomic stock counter operations on products.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import case, select, update

from ..extensions import db
from ..models import Product
from ..validation import NotFoundError, ValidationError
from .concurrency import lock_for_update

"""
Stock invariants

- stock_quantity never goes below zero (conditional UPDATE + CHECK constraint).
- Every change is a single UPDATE evaluated by the database; concurrent sales
  cannot both pass a check that only one of them can satisfy.
- Soft-deleted products are invisible: they cannot be reserved, adjusted or set.
- Callers own the transaction; nothing here commits.
"""


class InsufficientStockError(Exception):
    """409-level: requested quantity exceeds on-hand stock."""

    def __init__(self, product_id: int, product_name: str, requested: int, available: int):
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product '{product_name}': "
            f"requested {requested}, available {available}"
        )

    @property
    def details(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "requested": self.requested,
            "available": self.available,
        }


@dataclass(frozen=True)
class StockChange:
    product_id: int
    product_name: str
    unit_price: Decimal
    old_stock: int
    new_stock: int


def _live(product_id: int):
    return (Product.id == product_id, Product.deleted_at.is_(None))


def _snapshot(product_id: int):
    row = db.session.execute(
        select(Product.name, Product.unit_price, Product.stock_quantity).where(*_live(product_id))
    ).first()
    if row is None:
        raise NotFoundError(f"Product {product_id} not found")
    return row


def reserve_stock(product_id: int, quantity: int) -> StockChange:
    """
    Deduct quantity if and only if enough stock is on hand.

    One conditional UPDATE: the check and the decrement cannot be split by a
    concurrent writer. When nothing matched, the product is looked up only to
    tell "missing" apart from "not enough".
    """
    if quantity <= 0:
        raise ValidationError("quantity must be > 0")

    stmt = (
        update(Product)
        .where(*_live(product_id), Product.stock_quantity >= quantity)
        .values(stock_quantity=Product.stock_quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)

    if not result.rowcount:
        name, _price, available = _snapshot(product_id)
        raise InsufficientStockError(product_id, name, quantity, available)

    name, unit_price, new_stock = _snapshot(product_id)
    return StockChange(
        product_id=product_id,
        product_name=name,
        unit_price=unit_price,
        old_stock=new_stock + quantity,
        new_stock=new_stock,
    )


def adjust_stock(product_id: int, delta: int) -> StockChange:
    """
    Add delta (positive or negative) to on-hand stock, flooring at zero.
    """
    _name, _price, old_stock = _locked_snapshot(product_id)

    clamped = case(
        (Product.stock_quantity + delta < 0, 0),
        else_=Product.stock_quantity + delta,
    )
    stmt = (
        update(Product)
        .where(*_live(product_id))
        .values(stock_quantity=clamped)
        .execution_options(synchronize_session=False)
    )
    if not db.session.execute(stmt).rowcount:
        raise NotFoundError(f"Product {product_id} not found")

    name, unit_price, new_stock = _snapshot(product_id)
    return StockChange(product_id, name, unit_price, old_stock, new_stock)


def set_stock(product_id: int, quantity: int) -> StockChange:
    """Overwrite on-hand stock with an absolute count (manual correction)."""
    if quantity < 0:
        raise ValidationError("quantity must be >= 0")

    _name, _price, old_stock = _locked_snapshot(product_id)

    stmt = (
        update(Product)
        .where(*_live(product_id))
        .values(stock_quantity=quantity)
        .execution_options(synchronize_session=False)
    )
    if not db.session.execute(stmt).rowcount:
        raise NotFoundError(f"Product {product_id} not found")

    name, unit_price, new_stock = _snapshot(product_id)
    return StockChange(product_id, name, unit_price, old_stock, new_stock)


def _locked_snapshot(product_id: int):
    """Lock the product row (where supported) and return (name, unit_price, stock)."""
    row = db.session.execute(
        lock_for_update(
            select(Product.name, Product.unit_price, Product.stock_quantity).where(*_live(product_id))
        )
    ).first()
    if row is None:
        raise NotFoundError(f"Product {product_id} not found")
    return row
