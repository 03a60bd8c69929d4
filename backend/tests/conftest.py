"""
Pytest fixtures for the inventory API tests.

Provides an in-memory database, per-test table wipe, role fixtures,
a small catalog and helpers for bearer tokens.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import select

from inventory_api import create_app
from inventory_api.config import TestConfig
from inventory_api.extensions import db
from inventory_api.models import Category, Product, Sale, SaleItem, Shelf, User, Warehouse
from inventory_api.services.auth_service import hash_password


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Fresh data for each test (schema is kept)."""
    db.session.rollback()
    for table in reversed(db.metadata.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    db.session.rollback()


def make_user(username: str, role: str, *, is_active: bool = True) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        full_name=username.replace("_", " ").title(),
        role=role,
        is_active=is_active,
        password_hash=hash_password(PASSWORD),
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture(scope='function')
def super_admin_user(db_session):
    return make_user("root_admin", "super_admin")


@pytest.fixture(scope='function')
def admin_user(db_session):
    return make_user("admin_user", "admin")


@pytest.fixture(scope='function')
def staff_user(db_session):
    return make_user("staff_user", "staff")


@pytest.fixture(scope='function')
def other_staff_user(db_session):
    return make_user("other_staff", "staff")


def get_auth_token(client, email: str, password: str = PASSWORD) -> str | None:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password,
    })
    if response.status_code == 200:
        return response.get_json().get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def headers_for(client, user: User) -> dict:
    token = get_auth_token(client, user.email)
    assert token, f"login failed for {user.username}"
    return auth_headers(token)


@pytest.fixture(scope='function')
def staff_headers(client, staff_user):
    return headers_for(client, staff_user)


@pytest.fixture(scope='function')
def other_staff_headers(client, other_staff_user):
    return headers_for(client, other_staff_user)


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return headers_for(client, admin_user)


@pytest.fixture(scope='function')
def super_admin_headers(client, super_admin_user):
    return headers_for(client, super_admin_user)


@pytest.fixture(scope='function')
def catalog(db_session):
    """
    One warehouse/shelf/category and three products:
    - widget: stock 10, unit 5.00, cost 3.00
    - gadget: stock 3, unit 2.50, cost 1.00 (low stock)
    - gizmo:  stock 0, unit 12.00, cost 8.00 (out of stock)
    """
    warehouse = Warehouse(name="Main Warehouse", address="1 Dock Road")
    db.session.add(warehouse)
    db.session.flush()

    shelf = Shelf(warehouse_id=warehouse.id, name="Aisle A1")
    category = Category(name="Hardware", description="Small parts")
    db.session.add_all([shelf, category])
    db.session.flush()

    def product(name, stock, unit, cost):
        return Product(
            category_id=category.id,
            shelf_id=shelf.id,
            name=name,
            unit_price=Decimal(unit),
            cost_price=Decimal(cost),
            stock_quantity=stock,
            min_stock_level=5,
        )

    widget = product("Widget", 10, "5.00", "3.00")
    gadget = product("Gadget", 3, "2.50", "1.00")
    gizmo = product("Gizmo", 0, "12.00", "8.00")
    db.session.add_all([widget, gadget, gizmo])
    db.session.commit()

    return {
        "warehouse": warehouse,
        "shelf": shelf,
        "category": category,
        "widget": widget,
        "gadget": gadget,
        "gizmo": gizmo,
    }


def stock_of(product_id: int) -> int:
    """Current on-hand stock straight from the database."""
    return db.session.execute(
        select(Product.stock_quantity).where(Product.id == product_id)
    ).scalar_one()


def make_sale(
    user: User,
    amount: str,
    *,
    status: str = "completed",
    created_at: datetime,
    product: Product | None = None,
    quantity: int = 1,
) -> Sale:
    """Insert a sale row directly (bypasses stock), for report tests."""
    total = Decimal(amount)
    sale = Sale(
        invoice_number=f"INV-{created_at:%Y%m%d}-{db.session.query(Sale).count() + 1:04d}",
        user_id=user.id,
        total_amount=total,
        status=status,
        created_at=created_at,
        updated_at=created_at,
    )
    if product is not None:
        sale.items.append(SaleItem(
            product_id=product.id,
            quantity=quantity,
            unit_price=(total / quantity).quantize(Decimal("0.01")),
            total_price=total,
        ))
    db.session.add(sale)
    db.session.commit()
    return sale
