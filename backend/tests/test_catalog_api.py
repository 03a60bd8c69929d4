"""
Master data API tests: warehouses, shelves, categories, products and
manual stock corrections.
"""

import pytest

from conftest import stock_of
from inventory_api.extensions import db
from inventory_api.models import AuditEvent


class TestWarehousesAndShelves:

    def test_warehouse_crud(self, client, db_session, admin_headers, staff_headers):
        resp = client.post(
            "/api/admin/warehouses",
            json={"name": "East Depot", "address": "4 Rail Lane"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        warehouse_id = resp.get_json()["warehouse"]["id"]

        resp = client.put(
            f"/api/admin/warehouses/{warehouse_id}",
            json={"address": "5 Rail Lane"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["warehouse"]["address"] == "5 Rail Lane"

        resp = client.get(f"/api/warehouses/{warehouse_id}", headers=staff_headers)
        assert resp.status_code == 200
        assert resp.get_json()["warehouse"]["name"] == "East Depot"

        assert client.delete(f"/api/admin/warehouses/{warehouse_id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/warehouses/{warehouse_id}", headers=staff_headers).status_code == 404

    def test_warehouse_validation(self, client, db_session, admin_headers):
        assert client.post("/api/admin/warehouses", json={}, headers=admin_headers).status_code == 400
        assert client.post("/api/admin/warehouses", json={"name": "ab"}, headers=admin_headers).status_code == 400
        resp = client.post(
            "/api/admin/warehouses",
            json={"name": "Valid Name", "owner": "me"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert "Field not allowed" in resp.get_json()["error"]

    def test_shelf_needs_live_warehouse(self, client, catalog, admin_headers):
        resp = client.post(
            "/api/admin/shelves",
            json={"warehouse_id": 777777, "name": "Aisle Z9"},
            headers=admin_headers,
        )
        assert resp.status_code == 404

        resp = client.post(
            "/api/admin/shelves",
            json={"warehouse_id": catalog["warehouse"].id, "name": "Aisle B2"},
            headers=admin_headers,
        )
        assert resp.status_code == 201

    def test_shelves_by_warehouse(self, client, catalog, staff_headers):
        resp = client.get(f"/api/shelves/warehouse/{catalog['warehouse'].id}", headers=staff_headers)
        assert resp.status_code == 200
        names = [s["name"] for s in resp.get_json()["items"]]
        assert names == ["Aisle A1"]

        assert client.get("/api/shelves/warehouse/999999", headers=staff_headers).status_code == 404


class TestCategories:

    def test_duplicate_name_is_409(self, client, catalog, admin_headers):
        resp = client.post("/api/admin/categories", json={"name": "hardware"}, headers=admin_headers)
        assert resp.status_code == 409

    def test_name_reusable_after_delete(self, client, catalog, admin_headers):
        resp = client.post("/api/admin/categories", json={"name": "Seasonal"}, headers=admin_headers)
        category_id = resp.get_json()["category"]["id"]

        assert client.delete(f"/api/admin/categories/{category_id}", headers=admin_headers).status_code == 200

        resp = client.post("/api/admin/categories", json={"name": "Seasonal"}, headers=admin_headers)
        assert resp.status_code == 201

    def test_list(self, client, catalog, staff_headers):
        resp = client.get("/api/categories", headers=staff_headers)
        assert resp.status_code == 200
        body = resp.get_json()
        assert [c["name"] for c in body["items"]] == ["Hardware"]
        assert body["pagination"]["total"] == 1


class TestProducts:

    def _payload(self, catalog, **overrides):
        payload = {
            "category_id": catalog["category"].id,
            "shelf_id": catalog["shelf"].id,
            "name": "Sprocket",
            "unit_price": "4.20",
            "cost_price": "2.10",
            "stock_quantity": 12,
        }
        payload.update(overrides)
        return payload

    def test_create_product(self, client, catalog, admin_headers):
        resp = client.post("/api/admin/products", json=self._payload(catalog), headers=admin_headers)

        assert resp.status_code == 201
        product = resp.get_json()["product"]
        assert product["unit_price"] == "4.20"
        assert product["stock_quantity"] == 12
        assert product["min_stock_level"] == 5
        assert product["is_low_stock"] is False

    @pytest.mark.parametrize(
        "overrides",
        [
            {"unit_price": "-1.00"},
            {"cost_price": "abc"},
            {"stock_quantity": -3},
            {"stock_quantity": 2.5},
            {"name": "ab"},
            {"name": None},
        ],
    )
    def test_create_product_validation(self, client, catalog, admin_headers, overrides):
        resp = client.post("/api/admin/products", json=self._payload(catalog, **overrides), headers=admin_headers)
        assert resp.status_code == 400

    def test_create_product_unknown_reference(self, client, catalog, admin_headers):
        resp = client.post(
            "/api/admin/products",
            json=self._payload(catalog, category_id=123456),
            headers=admin_headers,
        )
        assert resp.status_code == 404

    def test_update_rejects_stock_quantity(self, client, catalog, admin_headers):
        widget_id = catalog["widget"].id
        resp = client.put(f"/api/admin/products/{widget_id}", json={"stock_quantity": 99}, headers=admin_headers)
        assert resp.status_code == 400
        assert stock_of(widget_id) == 10

    def test_update_price(self, client, catalog, admin_headers):
        widget_id = catalog["widget"].id
        resp = client.put(f"/api/admin/products/{widget_id}", json={"unit_price": 6}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["product"]["unit_price"] == "6.00"

    def test_deleted_product_is_hidden(self, client, catalog, admin_headers, staff_headers):
        widget_id = catalog["widget"].id
        assert client.delete(f"/api/admin/products/{widget_id}", headers=admin_headers).status_code == 200

        assert client.get(f"/api/products/{widget_id}", headers=staff_headers).status_code == 404
        listed = client.get("/api/products", headers=staff_headers).get_json()
        assert widget_id not in [p["id"] for p in listed["items"]]

    def test_list_is_sorted_and_paginated(self, client, catalog, staff_headers):
        resp = client.get("/api/products?limit=2", headers=staff_headers)
        assert resp.status_code == 200
        body = resp.get_json()
        assert [p["name"] for p in body["items"]] == ["Gadget", "Gizmo"]
        assert body["pagination"]["total"] == 3
        assert body["pagination"]["has_next"] is True

    def test_low_stock(self, client, catalog, staff_headers):
        resp = client.get("/api/products/low-stock", headers=staff_headers)
        assert resp.status_code == 200
        assert [p["name"] for p in resp.get_json()["items"]] == ["Gizmo", "Gadget"]

    def test_filter_by_category_and_shelf(self, client, catalog, staff_headers):
        by_category = client.get(f"/api/products/category/{catalog['category'].id}", headers=staff_headers)
        by_shelf = client.get(f"/api/products/shelf/{catalog['shelf'].id}", headers=staff_headers)
        assert by_category.get_json()["pagination"]["total"] == 3
        assert by_shelf.get_json()["pagination"]["total"] == 3

        assert client.get("/api/products/category/999999", headers=staff_headers).status_code == 404


class TestStockCorrection:

    def test_set_absolute_stock(self, client, catalog, staff_user, staff_headers):
        widget_id = catalog["widget"].id

        resp = client.put(
            f"/api/products/{widget_id}/stock",
            json={"quantity": 42, "notes": "cycle count"},
            headers=staff_headers,
        )

        assert resp.status_code == 200
        assert resp.get_json()["product"]["stock_quantity"] == 42
        assert stock_of(widget_id) == 42

        event = db.session.query(AuditEvent).filter_by(event_type="STOCK_SET").one()
        assert (event.old_stock, event.new_stock) == (10, 42)
        assert event.actor_user_id == staff_user.id
        assert event.note == "cycle count"

    @pytest.mark.parametrize("quantity", [-1, "1.5", None, "lots", True])
    def test_invalid_quantity(self, client, catalog, staff_headers, quantity):
        widget_id = catalog["widget"].id
        resp = client.put(f"/api/products/{widget_id}/stock", json={"quantity": quantity}, headers=staff_headers)
        assert resp.status_code == 400
        assert stock_of(widget_id) == 10

    def test_unknown_product(self, client, catalog, staff_headers):
        resp = client.put("/api/products/999999/stock", json={"quantity": 1}, headers=staff_headers)
        assert resp.status_code == 404
