"""Shared pytest fixtures for craftshop tests."""

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.test import Client

User = get_user_model()

SHIPPING_ADDRESS = {
    "shipping_first_name": "Ayesha",
    "shipping_last_name": "Khan",
    "shipping_address_line_1": "12 Canal Road",
    "shipping_city": "Lahore",
    "shipping_state": "Punjab",
    "shipping_postal_code": "54000",
    "shipping_country": "PK",
}


@pytest.fixture
def user(db):
    """Create a customer account."""
    return User.objects.create_user(
        email="customer@example.com",
        password="testpass123",
        first_name="Ayesha",
        last_name="Khan",
        phone="03001234567",
    )


@pytest.fixture
def admin_user(db):
    """Create a store admin (admin role, not a superuser)."""
    return User.objects.create_user(
        email="owner@example.com",
        password="adminpass123",
        first_name="Store",
        last_name="Owner",
        role=User.Role.ADMIN,
    )


@pytest.fixture
def user_client(user):
    """Client logged in as the customer."""
    client = Client()
    client.force_login(user)
    return client


@pytest.fixture
def admin_client(admin_user):
    """Client logged in as the store admin."""
    client = Client()
    client.force_login(admin_user)
    return client


@pytest.fixture
def category(db):
    from craftshop.catalog.models import Category

    return Category.objects.create(
        name="Wall Decor",
        description="Hangings and frames",
    )


@pytest.fixture
def product(db, category):
    """An active product with 10 units at PKR 2,500."""
    from craftshop.catalog.models import Product

    return Product.objects.create(
        name="Macrame Wall Hanging",
        description="Hand-knotted cotton",
        price=Decimal("2500.00"),
        sku="MWH-001",
        category=category,
        stock_quantity=10,
        images=["macrame-wall-hanging.jpg"],
    )


@pytest.fixture
def second_product(db, category):
    from craftshop.catalog.models import Product

    return Product.objects.create(
        name="Clay Vase",
        price=Decimal("1200.00"),
        compare_at_price=Decimal("1500.00"),
        sku="CV-002",
        category=category,
        stock_quantity=3,
    )


@pytest.fixture
def shipping_address():
    return dict(SHIPPING_ADDRESS)


@pytest.fixture
def make_order(db, shipping_address):
    """Place an order through the checkout service.

    Usage: make_order(product, quantity=2, user=None, **order_data)
    """
    from craftshop.store.services import create_order

    def _make(product, quantity=1, user=None, **extra):
        order_data = {**shipping_address, "customer_email": "guest@example.com", **extra}
        if user is not None and "customer_email" not in extra:
            order_data.pop("customer_email")
        return create_order(
            user=user,
            order_data=order_data,
            items=[{"product_id": str(product.pk), "quantity": quantity}],
        )

    return _make


@pytest.fixture
def order(make_order, product):
    """Guest order for 2 x PKR 2,500: free national shipping, 17% tax, total 5,850."""
    return make_order(product, quantity=2)
