"""
Reporting tests.

Covers the sales summary window, revenue breakdowns and the inventory
snapshot. Sales are inserted directly with fixed timestamps.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError

from conftest import make_sale
from inventory_api.services import products_service, reporting_service
from inventory_api.validation import ValidationError


@pytest.fixture
def january_sales(catalog, staff_user):
    widget = catalog["widget"]
    make_sale(staff_user, "10.00", created_at=datetime(2024, 1, 10, 9, 0), product=widget, quantity=2)
    make_sale(staff_user, "20.00", created_at=datetime(2024, 1, 10, 17, 30), product=widget, quantity=4)
    make_sale(staff_user, "30.00", created_at=datetime(2024, 1, 20, 12, 0), product=widget, quantity=6)
    make_sale(staff_user, "100.00", status="cancelled", created_at=datetime(2024, 1, 15, 8, 0), product=widget, quantity=20)


class TestSalesReport:

    def test_only_completed_sales_count(self, january_sales):
        report = reporting_service.sales_report("2024-01-01", "2024-01-31")

        assert report["start_date"] == "2024-01-01"
        assert report["end_date"] == "2024-01-31"
        assert report["total_sales"] == 3
        assert report["total_revenue"] == Decimal("60.00")
        assert report["average_sale"] == Decimal("20.00")
        assert report["total_items_sold"] == 12

    def test_pending_sales_are_excluded(self, catalog, staff_user):
        make_sale(staff_user, "45.00", status="pending", created_at=datetime(2024, 3, 1, 12, 0))

        report = reporting_service.sales_report("2024-03-01", "2024-03-01")
        assert report["total_sales"] == 0

    def test_empty_range_is_zeroed(self, db_session):
        report = reporting_service.sales_report("2023-01-01", "2023-12-31")

        assert report["total_sales"] == 0
        assert report["total_revenue"] == Decimal("0.00")
        assert report["average_sale"] == Decimal("0.00")
        assert report["total_items_sold"] == 0

    def test_end_day_is_inclusive(self, catalog, staff_user):
        make_sale(staff_user, "7.00", created_at=datetime(2024, 2, 29, 23, 59, 59))
        make_sale(staff_user, "9.00", created_at=datetime(2024, 3, 1, 0, 0, 0))

        report = reporting_service.sales_report("2024-02-01", "2024-02-29")
        assert report["total_sales"] == 1
        assert report["total_revenue"] == Decimal("7.00")

    def test_window_ending_on_last_calendar_day(self, january_sales, staff_user):
        make_sale(staff_user, "5.00", created_at=datetime(9999, 12, 31, 23, 59, 59))

        report = reporting_service.sales_report("2024-01-01", "9999-12-31")
        assert report["end_date"] == "9999-12-31"
        assert report["total_sales"] == 4
        assert report["total_revenue"] == Decimal("65.00")

    def test_single_day_window(self, january_sales):
        report = reporting_service.sales_report("2024-01-10", "2024-01-10")
        assert report["total_sales"] == 2
        assert report["total_revenue"] == Decimal("30.00")

    def test_average_is_rounded_to_cents(self, catalog, staff_user):
        for amount in ("10.00", "10.00", "10.01"):
            make_sale(staff_user, amount, created_at=datetime(2024, 5, 5, 10, 0))

        report = reporting_service.sales_report("2024-05-05", "2024-05-05")
        assert report["average_sale"] == Decimal("10.00")

    @pytest.mark.parametrize(
        "start,end",
        [
            ("2024/01/01", "2024-01-31"),
            ("2024-01-01", "31-01-2024"),
            ("2024-13-01", "2024-12-31"),
            ("not-a-date", "2024-01-31"),
            (None, "2024-01-31"),
            ("2024-01-01", None),
        ],
    )
    def test_invalid_dates(self, db_session, start, end):
        with pytest.raises(ValidationError):
            reporting_service.sales_report(start, end)

    def test_start_after_end(self, db_session):
        with pytest.raises(ValidationError):
            reporting_service.sales_report("2024-02-01", "2024-01-01")


class TestRevenueReport:

    def test_daily_breakdown(self, january_sales):
        report = reporting_service.revenue_report("2024-01-01", "2024-01-31", "day")

        assert report["group_by"] == "day"
        assert report["total_revenue"] == Decimal("60.00")
        assert report["daily_revenue"] == [
            {"period": "2024-01-10", "date": "2024-01-10", "revenue": Decimal("30.00"), "sales_count": 2},
            {"period": "2024-01-20", "date": "2024-01-20", "revenue": Decimal("30.00"), "sales_count": 1},
        ]

    def test_monthly_breakdown(self, january_sales, staff_user):
        make_sale(staff_user, "5.50", created_at=datetime(2024, 2, 3, 10, 0))

        report = reporting_service.revenue_report("2024-01-01", "2024-02-29", "month")

        assert report["group_by"] == "month"
        assert report["monthly_revenue"] == [
            {"period": "January 2024", "date": "2024-01", "revenue": Decimal("60.00"), "sales_count": 3},
            {"period": "February 2024", "date": "2024-02", "revenue": Decimal("5.50"), "sales_count": 1},
        ]

    def test_group_by_is_case_insensitive(self, january_sales):
        report = reporting_service.revenue_report("2024-01-01", "2024-01-31", "DAY")
        assert report["group_by"] == "day"
        assert len(report["daily_revenue"]) == 2

    @pytest.mark.parametrize("group_by", [None, "", "week", "year"])
    def test_unknown_grouping_returns_summary_only(self, january_sales, group_by):
        report = reporting_service.revenue_report("2024-01-01", "2024-01-31", group_by)

        assert report["group_by"] is None
        assert report["total_sales"] == 3
        assert "daily_revenue" not in report
        assert "monthly_revenue" not in report

    def test_breakdown_failure_degrades_to_summary(self, january_sales, monkeypatch):
        def broken(group_by, filters):
            raise SQLAlchemyError("period expression not supported")

        monkeypatch.setattr(reporting_service, "_period_rows", broken)

        report = reporting_service.revenue_report("2024-01-01", "2024-01-31", "month")

        assert report["group_by"] is None
        assert report["total_revenue"] == Decimal("60.00")
        assert "monthly_revenue" not in report

    def test_invalid_range_still_rejected(self, db_session):
        with pytest.raises(ValidationError):
            reporting_service.revenue_report("2024-02-01", "2024-01-01", "day")


class TestInventoryReport:

    def test_snapshot(self, catalog):
        report = reporting_service.inventory_report()

        # widget 10 x 3.00 + gadget 3 x 1.00 + gizmo 0 x 8.00
        assert report["total_products"] == 3
        assert report["total_value"] == Decimal("33.00")
        assert report["total_stock"] == 13
        assert report["low_stock_count"] == 1
        assert report["out_of_stock_count"] == 1
        assert report["avg_stock_per_product"] == pytest.approx(4.33)

    def test_deleted_products_are_ignored(self, catalog):
        products_service.delete_product(catalog["widget"].id)

        report = reporting_service.inventory_report()
        assert report["total_products"] == 2
        assert report["total_stock"] == 3
        assert report["total_value"] == Decimal("3.00")

    def test_empty_catalog(self, db_session):
        report = reporting_service.inventory_report()
        assert report == {
            "total_products": 0,
            "total_value": Decimal("0.00"),
            "total_stock": 0,
            "low_stock_count": 0,
            "out_of_stock_count": 0,
            "avg_stock_per_product": 0,
        }
