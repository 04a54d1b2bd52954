"""Tests for checkout, cancellation and order status changes."""

import json
import re
from decimal import Decimal

import pytest
from django.core import mail
from django.urls import reverse

from craftshop.store.exceptions import InvalidOrderError, OrderNotCancellableError, OutOfStockError
from craftshop.store.models import CartItem, Order, ShippingMethod, ShippingZone
from craftshop.store.services import cancel_order, create_order, generate_order_number, set_order_status


def post_json(client, url, data):
    return client.post(url, data=json.dumps(data), content_type="application/json")


def test_order_number_format():
    assert re.fullmatch(r"ORD-\d{13}-[0-9A-Z]{9}", generate_order_number())


@pytest.mark.django_db
class TestCreateOrder:
    def test_prices_from_products(self, order, product):
        assert order.subtotal == Decimal("5000.00")
        assert order.shipping_amount == Decimal("0.00")
        assert order.tax_amount == Decimal("850.00")
        assert order.total_amount == Decimal("5850.00")
        assert order.user is None
        assert order.status == Order.Status.PENDING
        item = order.items.get()
        assert (item.product_name, item.unit_price, item.quantity) == ("Macrame Wall Hanging", Decimal("2500.00"), 2)
        product.refresh_from_db()
        assert product.stock_quantity == 8

    def test_national_rate_below_threshold(self, make_order, product):
        order = make_order(product, quantity=1)

        assert order.shipping_amount == Decimal("250.00")
        assert order.total_amount == Decimal("3175.00")

    def test_client_prices_ignored(self, make_order, product):
        order = make_order(product, quantity=1, total_amount="1.00", subtotal="1.00")

        assert order.subtotal == Decimal("2500.00")

    def test_billing_copies_shipping(self, order):
        assert order.billing_city == "Lahore"
        assert order.billing_first_name == "Ayesha"

    def test_logged_in_order_clears_cart(self, make_order, product, user):
        CartItem.objects.create(user=user, product=product, quantity=1)

        order = make_order(product, quantity=1, user=user)

        assert order.customer_email == "customer@example.com"
        assert order.customer_phone == "03001234567"
        assert not CartItem.objects.filter(user=user).exists()

    def test_duplicate_items_merge(self, shipping_address, product):
        order = create_order(
            order_data={**shipping_address, "customer_email": "a@example.com"},
            items=[
                {"product_id": str(product.pk), "quantity": 1},
                {"product_id": str(product.pk), "quantity": 2},
            ],
        )

        assert order.items.get().quantity == 3

    def test_out_of_stock(self, make_order, second_product):
        with pytest.raises(OutOfStockError) as exc_info:
            make_order(second_product, quantity=4)

        assert str(exc_info.value) == "Only 3 units of Clay Vase available (requested 4)"
        second_product.refresh_from_db()
        assert second_product.stock_quantity == 3

    @pytest.mark.parametrize(
        "items",
        [[], [{"product_id": "bad"}], [{"product_id": "00000000-0000-0000-0000-000000000000"}]],
    )
    def test_invalid_items(self, shipping_address, items):
        with pytest.raises(InvalidOrderError):
            create_order(order_data={**shipping_address, "customer_email": "a@example.com"}, items=items)

    def test_guest_needs_email(self, shipping_address, product):
        with pytest.raises(InvalidOrderError):
            create_order(order_data=shipping_address, items=[{"product_id": str(product.pk)}])

    def test_missing_address(self, product):
        with pytest.raises(InvalidOrderError, match="shipping_city"):
            create_order(
                order_data={
                    "customer_email": "a@example.com",
                    "shipping_first_name": "A",
                    "shipping_last_name": "B",
                    "shipping_address_line_1": "1 Street",
                },
                items=[{"product_id": str(product.pk)}],
            )

    def test_inactive_product(self, make_order, product):
        product.is_active = False
        product.save()

        with pytest.raises(InvalidOrderError, match="no longer available"):
            make_order(product)



@pytest.fixture
def standard_method(db):
    zone = ShippingZone.objects.create(name="Pakistan", countries=["PK"])
    method = ShippingMethod.objects.create(name="Standard", base_cost=Decimal("500"))
    method.zones.add(zone)
    return method


@pytest.mark.django_db
class TestShippingMethodSelection:
    def test_selected_method_is_charged(self, make_order, product, standard_method):
        order = make_order(product, quantity=1, shipping_method_id=str(standard_method.pk))

        assert order.shipping_amount == Decimal("500.00")

    def test_no_selection_charges_cheapest(self, make_order, product, standard_method):
        order = make_order(product, quantity=1)

        assert order.shipping_amount == Decimal("500.00")

    def test_unknown_method_is_rejected(self, make_order, product, standard_method):
        with pytest.raises(InvalidOrderError, match="shipping method"):
            make_order(product, quantity=1, shipping_method_id="bogus")

        assert not Order.objects.exists()
        product.refresh_from_db()
        assert product.stock_quantity == 10

    def test_unknown_method_view_is_400(self, client, shipping_address, product, standard_method):
        response = post_json(client, reverse("store:order-create"), {
            "orderData": {**shipping_address, "customer_email": "guest@example.com", "shipping_method_id": "bogus"},
            "orderItems": [{"product_id": str(product.pk), "quantity": 1}],
        })

        assert response.status_code == 400
        assert not Order.objects.exists()

@pytest.mark.django_db
class TestOrderCreateView:
    def test_guest_checkout(self, client, shipping_address, product):
        response = post_json(client, reverse("store:order-create"), {
            "orderData": {**shipping_address, "customer_email": "guest@example.com"},
            "orderItems": [{"product_id": str(product.pk), "quantity": 2}],
        })

        assert response.status_code == 201
        data = response.json()["order"]
        assert data["total_amount"] == 5850.0
        assert data["items"][0]["product_sku"] == "MWH-001"
        assert len(mail.outbox) == 1
        assert mail.outbox[0].subject == f"Order Confirmation - {data['order_number']}"
        assert mail.outbox[0].to == ["guest@example.com"]

    def test_missing_payload(self, client):
        response = post_json(client, reverse("store:order-create"), {"orderData": {}})

        assert response.status_code == 400

    def test_out_of_stock_is_409(self, client, shipping_address, second_product):
        response = post_json(client, reverse("store:order-create"), {
            "orderData": {**shipping_address, "customer_email": "guest@example.com"},
            "orderItems": [{"product_id": str(second_product.pk), "quantity": 9}],
        })

        assert response.status_code == 409

    def test_public_lookup_by_number(self, client, order):
        response = client.get(reverse("store:public-order", args=[order.order_number]))

        assert response.json()["order"]["id"] == str(order.pk)
        assert client.get(reverse("store:public-order", args=["ORD-0"])).status_code == 404


@pytest.mark.django_db
class TestAccountOrders:
    def test_lists_only_own_orders(self, user_client, user, make_order, product):
        mine = make_order(product, user=user)
        make_order(product)

        data = user_client.get(reverse("store:account-orders")).json()

        assert [o["order_number"] for o in data["orders"]] == [mine.order_number]

    def test_other_users_order_is_404(self, user_client, order):
        assert user_client.get(reverse("store:account-order", args=[order.pk])).status_code == 404


@pytest.mark.django_db
class TestCancelOrder:
    def test_cancel_releases_stock(self, order, product):
        result = cancel_order(order, reason="Changed my mind")

        assert result.order.status == Order.Status.CANCELLED
        assert result.order.notes.endswith("Cancelled: Changed my mind")
        assert result.refund_info["will_be_refunded"] is False
        product.refresh_from_db()
        assert product.stock_quantity == 10

    def test_paid_order_reports_refund(self, order):
        order.payment_status = Order.PaymentStatus.PAID
        order.save()

        result = cancel_order(order)

        assert result.refund_info["will_be_refunded"] is True
        assert result.refund_info["amount"] == 5850.0

    def test_shipped_order_cannot_cancel(self, order):
        order.status = Order.Status.SHIPPED
        order.save()

        with pytest.raises(OrderNotCancellableError) as exc_info:
            cancel_order(order)

        assert exc_info.value.status == "shipped"

    def test_cancel_view(self, user_client, user, make_order, product):
        mine = make_order(product, user=user)
        url = reverse("store:order-cancel", args=[mine.pk])

        assert user_client.get(url).json()["canCancel"] is True
        response = post_json(user_client, url, {"reason": "Too slow"})

        assert response.status_code == 200
        assert response.json()["order"]["status"] == "cancelled"
        second = post_json(user_client, url, {})
        assert second.status_code == 400
        assert second.json()["status"] == "cancelled"

    def test_cannot_cancel_someone_elses_order(self, user_client, order):
        response = post_json(user_client, reverse("store:order-cancel", args=[order.pk]), {})

        assert response.status_code == 404


@pytest.mark.django_db
class TestSetOrderStatus:
    def test_change_with_notification(self, order):
        result = set_order_status(order, Order.Status.SHIPPED, notify=True)

        assert result.previous_status == "pending"
        assert result.order.status == "shipped"
        assert result.email.sent is True
        assert mail.outbox[-1].subject == f"Order Shipped - {order.order_number}"

    def test_cancel_and_reactivate_moves_stock(self, order, product):
        set_order_status(order, Order.Status.CANCELLED)
        product.refresh_from_db()
        assert product.stock_quantity == 10

        set_order_status(order, Order.Status.PROCESSING)
        product.refresh_from_db()
        assert product.stock_quantity == 8

    def test_unknown_status(self, order):
        with pytest.raises(InvalidOrderError):
            set_order_status(order, "lost")
