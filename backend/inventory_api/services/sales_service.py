"""
Sales Service - stock-checked sale creation and status lifecycle

WHY: A sale is the only place stock leaves the warehouse. Reservation, invoice
allocation, header, items and audit trail are one transaction: either the
whole sale exists with its stock deducted, or nothing changed.

Invariants:
- Stock is reserved with conditional UPDATEs in ascending product-id order
  (stable lock order between concurrent sales).
- Line prices are snapshots of Product.unit_price at reservation time.
- total_amount == sum(item.total_price), computed once.
- Only completed -> cancelled gives stock back.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Sale, SaleItem, StockRestoration
from ..models.sales import (
    SALE_CANCELLED,
    SALE_COMPLETED,
    SALE_STATUSES,
    RESTORATION_APPLIED,
    RESTORATION_PENDING,
)
from ..time_utils import utcnow
from ..validation import ConflictError, NotFoundError, ValidationError, coerce_int, paginate, parse_pagination
from . import audit_service, inventory_service, invoice_service
from .concurrency import lock_for_update, run_with_retry


CENT = Decimal("0.01")


@dataclass(frozen=True)
class SaleLineRequest:
    product_id: int
    quantity: int


def parse_sale_items(items) -> list[SaleLineRequest]:
    """Validate raw cart input; raises ValidationError before any DB work."""
    if not isinstance(items, list) or not items:
        raise ValidationError("Sale must contain at least one item")

    lines: list[SaleLineRequest] = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        if raw.get("product_id") is None:
            raise ValidationError(f"items[{index}].product_id is required")
        if raw.get("quantity") is None:
            raise ValidationError(f"items[{index}].quantity is required")

        product_id = coerce_int(f"items[{index}].product_id", raw["product_id"])
        quantity = coerce_int(f"items[{index}].quantity", raw["quantity"])
        if product_id <= 0:
            raise ValidationError(f"items[{index}].product_id must be a positive integer")
        if quantity <= 0:
            raise ValidationError(f"items[{index}].quantity must be > 0")

        lines.append(SaleLineRequest(product_id=product_id, quantity=quantity))
    return lines


def normalize_status(status) -> str:
    if not isinstance(status, str) or status.strip().lower() not in SALE_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(SALE_STATUSES)}")
    return status.strip().lower()


def _create_sale_once(lines: list[SaleLineRequest], user_id: int, sink) -> Sale:
    try:
        requested: dict[int, int] = {}
        for line in lines:
            requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

        changes = {
            product_id: inventory_service.reserve_stock(product_id, requested[product_id])
            for product_id in sorted(requested)
        }

        sale = Sale(
            invoice_number=invoice_service.next_invoice_number(),
            user_id=user_id,
            status=SALE_COMPLETED,
            total_amount=Decimal("0.00"),
        )
        total = Decimal("0.00")
        for line in lines:
            unit_price = Decimal(changes[line.product_id].unit_price).quantize(CENT)
            line_total = (unit_price * line.quantity).quantize(CENT)
            sale.items.append(SaleItem(
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=unit_price,
                total_price=line_total,
            ))
            total += line_total
        sale.total_amount = total

        db.session.add(sale)
        db.session.flush()

        for product_id in sorted(changes):
            change = changes[product_id]
            sink.record(
                audit_service.STOCK_DEDUCTED,
                entity_type="product",
                entity_id=product_id,
                actor_user_id=user_id,
                sale_id=sale.id,
                product_id=product_id,
                old_stock=change.old_stock,
                new_stock=change.new_stock,
                note=f"Sale {sale.invoice_number}",
            )
        sink.record(
            audit_service.SALE_CREATED,
            entity_type="sale",
            entity_id=sale.id,
            actor_user_id=user_id,
            sale_id=sale.id,
            payload={
                "invoice_number": sale.invoice_number,
                "total_amount": str(total),
                "item_count": len(lines),
            },
        )

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return sale


def create_sale(items, user_id: int, *, audit=None) -> Sale:
    """
    Create a completed sale for user_id from [{product_id, quantity}, ...].

    Raises:
        ValidationError: empty cart, non-positive or non-integer quantities
        NotFoundError: a product is missing or soft-deleted
        InsufficientStockError: a product cannot cover the requested quantity
        ConflictError: no unique invoice number after INVOICE_MAX_ATTEMPTS
    """
    lines = parse_sale_items(items)
    sink = audit or audit_service.default_sink
    max_attempts = current_app.config.get("INVOICE_MAX_ATTEMPTS", 5)

    for attempt in range(1, max_attempts + 1):
        try:
            return run_with_retry(lambda: _create_sale_once(lines, user_id, sink))
        except IntegrityError as e:
            db.session.rollback()
            current_app.logger.warning(
                "Integrity error while creating sale (attempt %d/%d), retrying: %s",
                attempt, max_attempts, e.orig if e.orig is not None else e,
            )

    raise ConflictError("Could not allocate a unique invoice number, please retry")


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError(f"Sale {sale_id} not found")
    return sale


def list_sales(*, user_id: int | None = None, page=None, limit=None) -> tuple[list[Sale], dict]:
    """
    Page through sales, newest first. user_id restricts to one owner.
    """
    page_num, limit_num = parse_pagination(page, limit)

    q = db.session.query(Sale)
    if user_id is not None:
        q = q.filter(Sale.user_id == user_id)
    q = q.order_by(Sale.created_at.desc(), Sale.id.desc())

    return paginate(q, page_num, limit_num)


def _restore_sale_stock(sale: Sale, actor_user_id: int | None, sink) -> None:
    """
    Give back stock for every line of a cancelled sale.

    A line whose product is gone cannot be restored now; it is logged and parked
    as a pending StockRestoration instead of failing the cancellation.
    """
    for item in sorted(sale.items, key=lambda i: (i.product_id, i.id)):
        try:
            change = inventory_service.adjust_stock(item.product_id, item.quantity)
        except NotFoundError as exc:
            current_app.logger.error(
                "Could not restore %d units of product %d for sale %s: %s",
                item.quantity, item.product_id, sale.invoice_number, exc,
            )
            db.session.add(StockRestoration(
                sale_id=sale.id,
                sale_item_id=item.id,
                product_id=item.product_id,
                quantity=item.quantity,
                status=RESTORATION_PENDING,
                last_error=str(exc)[:255],
            ))
            sink.record(
                audit_service.STOCK_RESTORE_FAILED,
                entity_type="product",
                entity_id=item.product_id,
                actor_user_id=actor_user_id,
                sale_id=sale.id,
                product_id=item.product_id,
                note=f"Cancel {sale.invoice_number}: {exc}",
            )
            continue

        sink.record(
            audit_service.STOCK_RESTORED,
            entity_type="product",
            entity_id=item.product_id,
            actor_user_id=actor_user_id,
            sale_id=sale.id,
            product_id=item.product_id,
            old_stock=change.old_stock,
            new_stock=change.new_stock,
            note=f"Cancel {sale.invoice_number}",
        )


def update_sale_status(sale_id: int, status, *, actor_user_id: int | None = None, audit=None) -> Sale:
    """
    Move a sale to pending / completed / cancelled.

    Every transition is accepted. completed -> cancelled restores stock in the
    same transaction; leaving cancelled does not deduct stock again.
    """
    new_status = normalize_status(status)
    sink = audit or audit_service.default_sink

    def _op() -> Sale:
        try:
            sale = lock_for_update(db.session.query(Sale).filter(Sale.id == sale_id)).first()
            if sale is None:
                raise NotFoundError(f"Sale {sale_id} not found")

            previous = sale.status
            if previous == new_status:
                db.session.rollback()
                return sale

            sale.status = new_status
            db.session.flush()

            if previous == SALE_COMPLETED and new_status == SALE_CANCELLED:
                _restore_sale_stock(sale, actor_user_id, sink)
            elif previous == SALE_CANCELLED:
                current_app.logger.warning(
                    "Sale %s moved from cancelled to %s; stock was not deducted again",
                    sale.invoice_number, new_status,
                )

            sink.record(
                audit_service.SALE_STATUS_CHANGED,
                entity_type="sale",
                entity_id=sale.id,
                actor_user_id=actor_user_id,
                sale_id=sale.id,
                payload={"from": previous, "to": new_status},
            )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return sale

    return run_with_retry(_op)


def retry_pending_restorations(*, audit=None) -> dict:
    """
    Re-apply parked stock restorations. Returns counts of applied / still pending.
    """
    sink = audit or audit_service.default_sink
    applied = 0
    still_pending = 0

    pending = (
        db.session.query(StockRestoration)
        .filter(StockRestoration.status == RESTORATION_PENDING)
        .order_by(StockRestoration.id.asc())
        .all()
    )
    try:
        for restoration in pending:
            restoration.attempts += 1
            try:
                change = inventory_service.adjust_stock(restoration.product_id, restoration.quantity)
            except NotFoundError as exc:
                restoration.last_error = str(exc)[:255]
                still_pending += 1
                continue

            restoration.status = RESTORATION_APPLIED
            restoration.applied_at = utcnow()
            restoration.last_error = None
            sink.record(
                audit_service.STOCK_RESTORED,
                entity_type="product",
                entity_id=restoration.product_id,
                sale_id=restoration.sale_id,
                product_id=restoration.product_id,
                old_stock=change.old_stock,
                new_stock=change.new_stock,
                note=f"Deferred restoration #{restoration.id}",
            )
            applied += 1
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    if applied or still_pending:
        current_app.logger.info(
            "Stock restoration retry: %d applied, %d still pending", applied, still_pending,
        )
    return {"applied": applied, "pending": still_pending}
