# Overview: Audit sink for stock movements and sale status changes.

from __future__ import annotations

import json
from typing import Any, Optional, Protocol

from flask import current_app

from ..extensions import db
from ..models import AuditEvent

"""
Audit invariants

- Append-only: events are added, never updated or deleted.
- Events are written inside the same DB transaction as the change they record,
  so a rolled-back sale leaves no audit trail behind.
- Services accept any object with a compatible record() method; the ledger sink
  below is the default.
"""

STOCK_DEDUCTED = "STOCK_DEDUCTED"
STOCK_RESTORED = "STOCK_RESTORED"
STOCK_RESTORE_FAILED = "STOCK_RESTORE_FAILED"
STOCK_SET = "STOCK_SET"
SALE_CREATED = "SALE_CREATED"
SALE_STATUS_CHANGED = "SALE_STATUS_CHANGED"


class AuditSink(Protocol):
    def record(
        self,
        event_type: str,
        *,
        entity_type: str,
        entity_id: int,
        actor_user_id: Optional[int] = None,
        sale_id: Optional[int] = None,
        product_id: Optional[int] = None,
        old_stock: Optional[int] = None,
        new_stock: Optional[int] = None,
        note: Optional[str] = None,
        payload: Optional[dict[str, Any]] = None,
    ) -> Any:
        ...


class LedgerAuditSink:
    """Persists audit events to audit_events and mirrors them to the app log."""

    def record(
        self,
        event_type: str,
        *,
        entity_type: str,
        entity_id: int,
        actor_user_id: Optional[int] = None,
        sale_id: Optional[int] = None,
        product_id: Optional[int] = None,
        old_stock: Optional[int] = None,
        new_stock: Optional[int] = None,
        note: Optional[str] = None,
        payload: Optional[dict[str, Any]] = None,
    ) -> AuditEvent:
        event = AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_user_id=actor_user_id,
            sale_id=sale_id,
            product_id=product_id,
            old_stock=old_stock,
            new_stock=new_stock,
            note=note[:255] if note else None,
            payload=json.dumps(payload, default=str, sort_keys=True) if payload else None,
        )
        db.session.add(event)
        db.session.flush()

        current_app.logger.info(
            "audit %s %s=%s actor=%s old_stock=%s new_stock=%s%s",
            event_type, entity_type, entity_id, actor_user_id, old_stock, new_stock,
            f" note={note!r}" if note else "",
        )
        return event


default_sink = LedgerAuditSink()


def list_events(*, event_type: str | None = None, sale_id: int | None = None, product_id: int | None = None):
    """Query for audit events, newest first."""
    q = db.session.query(AuditEvent)
    if event_type:
        q = q.filter(AuditEvent.event_type == event_type)
    if sale_id is not None:
        q = q.filter(AuditEvent.sale_id == sale_id)
    if product_id is not None:
        q = q.filter(AuditEvent.product_id == product_id)
    return q.order_by(AuditEvent.occurred_at.desc(), AuditEvent.id.desc())
