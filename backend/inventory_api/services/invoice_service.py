# Overview: Invoice number allocation backed by per-day sequence rows.

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import select, update

from ..extensions import db
from ..models import InvoiceSequence, Sale
from ..time_utils import utcnow


INVOICE_PREFIX = "INV"
INVOICE_PAD = 4


def format_invoice_number(day: date, number: int) -> str:
    return f"{INVOICE_PREFIX}-{day:%Y%m%d}-{number:0{INVOICE_PAD}d}"


def _allocate(key: str) -> int:
    stmt = (
        update(InvoiceSequence)
        .where(InvoiceSequence.day == key)
        .values(next_number=InvoiceSequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )
    if db.session.execute(stmt).rowcount:
        current = db.session.execute(
            select(InvoiceSequence.next_number).where(InvoiceSequence.day == key)
        ).scalar_one()
        return current - 1

    db.session.add(InvoiceSequence(day=key, next_number=2))
    db.session.flush()
    return 1


def next_invoice_number(day: Optional[date] = None) -> str:
    """
    Allocate the next INV-YYYYMMDD-NNNN for a calendar day.

    The counter row is bumped with a single UPDATE so two transactions never
    read the same value. Numbers already taken by existing sales (e.g. rows
    loaded outside the API) are skipped.

    The first sale of a day inserts the counter row; if another transaction
    inserts it first, the unique constraint on day raises IntegrityError, which
    the caller treats like any invoice collision (roll back, retry the sale).
    Must run inside the caller's transaction.
    """
    day = day or utcnow().date()
    key = f"{day:%Y%m%d}"

    while True:
        candidate = format_invoice_number(day, _allocate(key))
        taken = db.session.execute(
            select(Sale.id).where(Sale.invoice_number == candidate)
        ).first()
        if taken is None:
            return candidate
