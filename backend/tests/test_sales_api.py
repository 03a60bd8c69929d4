"""
Sales API tests.

Covers sale creation over HTTP, ownership rules on reads and status
changes, and the JSON error envelope for every failure class.
"""

from conftest import stock_of


def _sell(client, headers, *lines):
    return client.post('/api/sales', headers=headers, json={
        'items': [{'product_id': pid, 'quantity': qty} for pid, qty in lines],
    })


class TestCreateSaleApi:

    def test_requires_auth(self, client, catalog):
        response = client.post('/api/sales', json={'items': [{'product_id': catalog['widget'].id, 'quantity': 1}]})
        assert response.status_code == 401

    def test_invalid_token(self, client, catalog):
        response = _sell(client, {'Authorization': 'Bearer not-a-real-token'}, (catalog['widget'].id, 1))
        assert response.status_code == 401

    def test_create_sale(self, client, catalog, staff_user, staff_headers):
        widget = catalog['widget']

        response = _sell(client, staff_headers, (widget.id, 3))

        assert response.status_code == 201
        sale = response.get_json()['sale']
        assert sale['total_amount'] == '15.00'
        assert sale['status'] == 'completed'
        assert sale['user_id'] == staff_user.id
        assert sale['invoice_number'].startswith('INV-')
        assert sale['items'][0]['product_name'] == 'Widget'
        assert sale['items'][0]['unit_price'] == '5.00'
        assert stock_of(widget.id) == 7

    def test_insufficient_stock_is_409_with_details(self, client, catalog, staff_headers):
        widget = catalog['widget']
        _sell(client, staff_headers, (widget.id, 3))

        response = _sell(client, staff_headers, (widget.id, 8))

        assert response.status_code == 409
        body = response.get_json()
        assert 'Insufficient stock' in body['error']
        assert body['details'] == {
            'product_id': widget.id,
            'product_name': 'Widget',
            'requested': 8,
            'available': 7,
        }
        assert stock_of(widget.id) == 7

    def test_unknown_product_is_404(self, client, catalog, staff_headers):
        response = _sell(client, staff_headers, (987654, 1))
        assert response.status_code == 404
        assert 'error' in response.get_json()

    def test_empty_cart_is_400(self, client, catalog, staff_headers):
        response = client.post('/api/sales', headers=staff_headers, json={'items': []})
        assert response.status_code == 400

    def test_missing_body_is_400(self, client, catalog, staff_headers):
        response = client.post('/api/sales', headers=staff_headers)
        assert response.status_code == 400

    def test_zero_quantity_is_400(self, client, catalog, staff_headers):
        response = _sell(client, staff_headers, (catalog['widget'].id, 0))
        assert response.status_code == 400
        assert stock_of(catalog['widget'].id) == 10

    def test_oversized_product_id_is_400(self, client, catalog, staff_headers):
        response = _sell(client, staff_headers, (10**20, 1))
        assert response.status_code == 400
        assert 'out of range' in response.get_json()['error']

    def test_oversized_quantity_is_400(self, client, catalog, staff_headers):
        response = _sell(client, staff_headers, (catalog['widget'].id, 10**20))
        assert response.status_code == 400
        assert stock_of(catalog['widget'].id) == 10


class TestSaleAccess:

    def test_owner_can_read(self, client, catalog, staff_headers):
        sale_id = _sell(client, staff_headers, (catalog['widget'].id, 1)).get_json()['sale']['id']

        response = client.get(f'/api/sales/{sale_id}', headers=staff_headers)
        assert response.status_code == 200
        assert response.get_json()['sale']['id'] == sale_id

    def test_other_staff_cannot_read_or_cancel(self, client, catalog, staff_headers, other_staff_headers):
        sale_id = _sell(client, staff_headers, (catalog['widget'].id, 2)).get_json()['sale']['id']

        assert client.get(f'/api/sales/{sale_id}', headers=other_staff_headers).status_code == 403

        response = client.put(
            f'/api/sales/{sale_id}/status',
            headers=other_staff_headers,
            json={'status': 'cancelled'},
        )
        assert response.status_code == 403
        assert stock_of(catalog['widget'].id) == 8

    def test_admin_can_read_any_sale(self, client, catalog, staff_headers, admin_headers):
        sale_id = _sell(client, staff_headers, (catalog['widget'].id, 1)).get_json()['sale']['id']

        response = client.get(f'/api/sales/{sale_id}', headers=admin_headers)
        assert response.status_code == 200

    def test_missing_sale_is_404(self, client, catalog, staff_headers):
        assert client.get('/api/sales/55555', headers=staff_headers).status_code == 404

    def test_staff_list_only_shows_own_sales(self, client, catalog, staff_headers, other_staff_headers, admin_headers):
        widget_id = catalog['widget'].id
        _sell(client, staff_headers, (widget_id, 1))
        _sell(client, staff_headers, (widget_id, 1))
        _sell(client, other_staff_headers, (widget_id, 1))

        own = client.get('/api/sales', headers=staff_headers).get_json()
        assert own['pagination']['total'] == 2
        assert all('items' not in sale for sale in own['items'])

        everything = client.get('/api/sales', headers=admin_headers).get_json()
        assert everything['pagination']['total'] == 3

    def test_list_pagination_limits(self, client, catalog, staff_headers):
        assert client.get('/api/sales?limit=100', headers=staff_headers).status_code == 200
        assert client.get('/api/sales?limit=101', headers=staff_headers).status_code == 400
        assert client.get('/api/sales?page=0', headers=staff_headers).status_code == 400
        assert client.get('/api/sales?limit=abc', headers=staff_headers).status_code == 400
        assert client.get('/api/sales?page=100000000000000000000', headers=staff_headers).status_code == 400

    def test_admin_sales_filter_by_user(self, client, catalog, staff_user, staff_headers, other_staff_headers, admin_headers):
        widget_id = catalog['widget'].id
        _sell(client, staff_headers, (widget_id, 1))
        _sell(client, other_staff_headers, (widget_id, 1))

        response = client.get(f'/api/admin/sales?user_id={staff_user.id}', headers=admin_headers)
        assert response.status_code == 200
        body = response.get_json()
        assert body['pagination']['total'] == 1
        assert body['items'][0]['user_id'] == staff_user.id

    def test_admin_sales_malformed_user_filter_is_400(self, client, catalog, staff_headers, admin_headers):
        _sell(client, staff_headers, (catalog['widget'].id, 1))

        for user_id in ('abc', '1.5', '100000000000000000000'):
            response = client.get(f'/api/admin/sales?user_id={user_id}', headers=admin_headers)
            assert response.status_code == 400, user_id
            assert 'user_id' in response.get_json()['error']

    def test_admin_sales_blank_user_filter_lists_all(self, client, catalog, staff_headers, admin_headers):
        _sell(client, staff_headers, (catalog['widget'].id, 1))

        response = client.get('/api/admin/sales?user_id=', headers=admin_headers)
        assert response.status_code == 200
        assert response.get_json()['pagination']['total'] == 1

    def test_admin_sales_forbidden_for_staff(self, client, catalog, staff_headers):
        assert client.get('/api/admin/sales', headers=staff_headers).status_code == 403


class TestSaleStatusApi:

    def test_owner_cancel_restores_stock(self, client, catalog, staff_headers):
        widget = catalog['widget']
        sale_id = _sell(client, staff_headers, (widget.id, 4)).get_json()['sale']['id']
        assert stock_of(widget.id) == 6

        response = client.put(f'/api/sales/{sale_id}/status', headers=staff_headers, json={'status': 'cancelled'})

        assert response.status_code == 200
        assert response.get_json()['sale']['status'] == 'cancelled'
        assert stock_of(widget.id) == 10

    def test_admin_can_change_any_sale(self, client, catalog, staff_headers, admin_headers):
        sale_id = _sell(client, staff_headers, (catalog['widget'].id, 1)).get_json()['sale']['id']

        response = client.put(f'/api/sales/{sale_id}/status', headers=admin_headers, json={'status': 'pending'})
        assert response.status_code == 200
        assert response.get_json()['sale']['status'] == 'pending'

    def test_invalid_status_is_400(self, client, catalog, staff_headers):
        sale_id = _sell(client, staff_headers, (catalog['widget'].id, 1)).get_json()['sale']['id']

        response = client.put(f'/api/sales/{sale_id}/status', headers=staff_headers, json={'status': 'refunded'})
        assert response.status_code == 400

    def test_missing_sale_is_404(self, client, catalog, admin_headers):
        response = client.put('/api/sales/4242/status', headers=admin_headers, json={'status': 'cancelled'})
        assert response.status_code == 404

    def test_cancel_is_audited(self, client, catalog, staff_headers, admin_headers):
        sale_id = _sell(client, staff_headers, (catalog['widget'].id, 2)).get_json()['sale']['id']
        client.put(f'/api/sales/{sale_id}/status', headers=staff_headers, json={'status': 'cancelled'})

        response = client.get(f'/api/admin/audit-events?sale_id={sale_id}', headers=admin_headers)
        assert response.status_code == 200
        kinds = {event['event_type'] for event in response.get_json()['items']}
        assert {'STOCK_DEDUCTED', 'SALE_CREATED', 'STOCK_RESTORED', 'SALE_STATUS_CHANGED'} <= kinds

    def test_audit_log_is_admin_only(self, client, catalog, staff_headers):
        assert client.get('/api/admin/audit-events', headers=staff_headers).status_code == 403


class TestReportApi:

    def test_sales_report(self, client, catalog, staff_headers, admin_headers):
        widget_id = catalog['widget'].id
        _sell(client, staff_headers, (widget_id, 2))
        sale_id = _sell(client, staff_headers, (widget_id, 1)).get_json()['sale']['id']
        client.put(f'/api/sales/{sale_id}/status', headers=staff_headers, json={'status': 'cancelled'})

        # Wide window so the server's "today" is always inside it
        response = client.get(
            '/api/admin/sales/report?start_date=2000-01-01&end_date=2999-12-31',
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.get_json()
        assert body['total_sales'] == 1
        assert body['total_revenue'] == '10.00'
        assert body['total_items_sold'] == 2

    def test_report_alias_route(self, client, catalog, admin_headers):
        response = client.get(
            '/api/admin/reports/sales?start_date=2024-01-01&end_date=2024-01-31',
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.get_json()['total_sales'] == 0

    def test_report_through_last_calendar_day(self, client, catalog, staff_headers, admin_headers):
        _sell(client, staff_headers, (catalog['widget'].id, 2))

        for path in (
            '/api/admin/reports/sales?start_date=2024-01-01&end_date=9999-12-31',
            '/api/admin/reports/revenue?start_date=2024-01-01&end_date=9999-12-31&group_by=day',
        ):
            response = client.get(path, headers=admin_headers)
            assert response.status_code == 200, path
            assert response.get_json()['total_sales'] == 1

    def test_bad_dates_are_400(self, client, catalog, admin_headers):
        response = client.get(
            '/api/admin/sales/report?start_date=01/01/2024&end_date=2024-01-31',
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert 'YYYY-MM-DD' in response.get_json()['error']

        response = client.get('/api/admin/reports/revenue?end_date=2024-01-31', headers=admin_headers)
        assert response.status_code == 400

    def test_revenue_report_daily(self, client, catalog, staff_headers, admin_headers):
        _sell(client, staff_headers, (catalog['widget'].id, 2))

        response = client.get(
            '/api/admin/reports/revenue?start_date=2000-01-01&end_date=2999-12-31&group_by=day',
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.get_json()
        assert body['group_by'] == 'day'
        assert len(body['daily_revenue']) == 1
        assert body['daily_revenue'][0]['revenue'] == '10.00'
        assert body['daily_revenue'][0]['sales_count'] == 1

    def test_product_report(self, client, catalog, admin_headers):
        response = client.get('/api/admin/reports/products', headers=admin_headers)
        assert response.status_code == 200
        body = response.get_json()
        assert body['total_products'] == 3
        assert body['out_of_stock_count'] == 1

    def test_reports_are_admin_only(self, client, catalog, staff_headers):
        for path in (
            '/api/admin/sales/report?start_date=2024-01-01&end_date=2024-01-31',
            '/api/admin/reports/revenue?start_date=2024-01-01&end_date=2024-01-31',
            '/api/admin/reports/products',
        ):
            assert client.get(path, headers=staff_headers).status_code == 403
