# Overview: Sales, revenue and inventory reports over completed sales and live products.

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from flask import current_app
from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Product, Sale, SaleItem
from ..models.sales import SALE_COMPLETED
from ..time_utils import day_bounds, parse_calendar_date
from ..validation import ValidationError


CENT = Decimal("0.01")
GROUP_BY_DAY = "day"
GROUP_BY_MONTH = "month"


def _money(value) -> Decimal:
    return Decimal(value or 0).quantize(CENT)


def parse_date_range(start_date: str | None, end_date: str | None) -> tuple[date, date]:
    """YYYY-MM-DD pair; start must not be after end."""
    try:
        start = parse_calendar_date(start_date)
    except ValueError:
        raise ValidationError("Invalid start_date format. Use YYYY-MM-DD")
    try:
        end = parse_calendar_date(end_date)
    except ValueError:
        raise ValidationError("Invalid end_date format. Use YYYY-MM-DD")
    if start > end:
        raise ValidationError("start_date must be on or before end_date")
    return start, end


def _completed_in_range(start: date, end: date) -> list:
    lower, upper = day_bounds(start, end)
    filters = [Sale.status == SALE_COMPLETED, Sale.created_at >= lower]
    if upper is not None:
        filters.append(Sale.created_at < upper)
    return filters


def _summary(filters: list) -> dict:
    total_sales, total_revenue = db.session.query(
        func.count(Sale.id),
        func.coalesce(func.sum(Sale.total_amount), 0),
    ).filter(*filters).one()

    total_items = (
        db.session.query(func.coalesce(func.sum(SaleItem.quantity), 0))
        .join(Sale, SaleItem.sale_id == Sale.id)
        .filter(*filters)
        .scalar()
    )

    revenue = _money(total_revenue)
    average = (revenue / total_sales).quantize(CENT) if total_sales else Decimal("0.00")
    return {
        "total_sales": int(total_sales or 0),
        "total_revenue": revenue,
        "total_items_sold": int(total_items or 0),
        "average_sale": average,
    }


def sales_report(start_date: str | None, end_date: str | None) -> dict:
    """
    Summary over completed sales created within [start_date, end_date].

    Both days are inclusive. Cancelled and pending sales never count.
    """
    start, end = parse_date_range(start_date, end_date)
    report = {
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
    }
    report.update(_summary(_completed_in_range(start, end)))
    return report


def _period_expr(group_by: str):
    dialect = db.engine.dialect.name
    if dialect == "postgresql":
        return func.to_char(Sale.created_at, "YYYY-MM-DD" if group_by == GROUP_BY_DAY else "YYYY-MM")
    if dialect in ("mysql", "mariadb"):
        return func.date_format(Sale.created_at, "%Y-%m-%d" if group_by == GROUP_BY_DAY else "%Y-%m")
    return func.strftime("%Y-%m-%d" if group_by == GROUP_BY_DAY else "%Y-%m", Sale.created_at)


def _period_rows(group_by: str, filters: list) -> list:
    period = _period_expr(group_by).label("period")
    return (
        db.session.query(
            period,
            func.count(Sale.id).label("sales_count"),
            func.coalesce(func.sum(Sale.total_amount), 0).label("revenue"),
        )
        .filter(*filters)
        .group_by("period")
        .order_by("period")
        .all()
    )


def _month_label(key: str) -> str:
    return datetime.strptime(key, "%Y-%m").strftime("%B %Y")


def revenue_report(start_date: str | None, end_date: str | None, group_by: str | None = "") -> dict:
    """
    Sales summary plus an optional per-day or per-month breakdown.

    Unknown group_by values return the summary only. If the breakdown query
    fails the report still returns the summary; the failure is logged.
    """
    report = sales_report(start_date, end_date)
    group_by = (group_by or "").strip().lower()
    report["group_by"] = group_by if group_by in (GROUP_BY_DAY, GROUP_BY_MONTH) else None
    if report["group_by"] is None:
        return report

    start, end = parse_date_range(start_date, end_date)
    try:
        rows = _period_rows(group_by, _completed_in_range(start, end))
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Revenue breakdown by %s failed; returning summary only", group_by)
        report["group_by"] = None
        return report

    if group_by == GROUP_BY_DAY:
        report["daily_revenue"] = [
            {
                "period": row.period,
                "date": row.period,
                "revenue": _money(row.revenue),
                "sales_count": int(row.sales_count),
            }
            for row in rows
        ]
    else:
        report["monthly_revenue"] = [
            {
                "period": _month_label(row.period),
                "date": row.period,
                "revenue": _money(row.revenue),
                "sales_count": int(row.sales_count),
            }
            for row in rows
        ]
    return report


def inventory_report() -> dict:
    """
    Snapshot of live products: counts, stock totals and inventory value at cost.

    low_stock_count excludes out-of-stock products (0 < stock <= min level).
    """
    live = Product.deleted_at.is_(None)
    low_stock = case(
        ((Product.stock_quantity > 0) & (Product.stock_quantity <= Product.min_stock_level), 1),
        else_=0,
    )
    out_of_stock = case((Product.stock_quantity == 0, 1), else_=0)

    total_products, total_value, total_stock, low_count, out_count = db.session.query(
        func.count(Product.id),
        func.coalesce(func.sum(Product.cost_price * Product.stock_quantity), 0),
        func.coalesce(func.sum(Product.stock_quantity), 0),
        func.coalesce(func.sum(low_stock), 0),
        func.coalesce(func.sum(out_of_stock), 0),
    ).filter(live).one()

    total_products = int(total_products or 0)
    total_stock = int(total_stock or 0)
    return {
        "total_products": total_products,
        "total_value": _money(total_value),
        "total_stock": total_stock,
        "low_stock_count": int(low_count or 0),
        "out_of_stock_count": int(out_count or 0),
        "avg_stock_per_product": round(total_stock / total_products, 2) if total_products else 0,
    }
