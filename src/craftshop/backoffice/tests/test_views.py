"""Tests for the admin JSON API."""

import json
import uuid
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.core import mail
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse
from rest_framework.authtoken.models import Token

from craftshop.catalog.models import Category, Product
from craftshop.store.models import Order


def send_json(client, method, url, data):
    return getattr(client, method)(url, data=json.dumps(data), content_type="application/json")


@pytest.fixture
def sent_events():
    """Product event payloads handed to the channel layer."""
    with patch("craftshop.catalog.events.send_product_event") as send:
        yield send


def event_types(send):
    return [c.args[0]["type"] for c in send.call_args_list]


@pytest.mark.django_db
class TestAdminAuth:
    def test_anonymous_is_401(self, client):
        assert client.get(reverse("backoffice:dashboard")).status_code == 401

    def test_customer_is_403(self, user_client):
        assert user_client.get(reverse("backoffice:products")).status_code == 403

    def test_bearer_token(self, client, admin_user):
        token = Token.objects.create(user=admin_user)

        response = client.get(reverse("backoffice:products"), headers={"Authorization": f"Bearer {token.key}"})

        assert response.status_code == 200


@pytest.mark.django_db
class TestDashboard:
    def test_stats(self, admin_client, order, second_product):
        Order.objects.filter(pk=order.pk).update(status=Order.Status.DELIVERED)

        data = admin_client.get(reverse("backoffice:dashboard")).json()

        assert data["totalProducts"] == 2
        assert data["totalOrders"] == 1
        assert data["totalCustomers"] == 1
        assert data["totalRevenue"] == 5850.0
        assert data["recentOrders"][0]["customer_email"] == "guest@example.com"
        assert [p["sku"] for p in data["lowStockProducts"]] == ["CV-002", "MWH-001"]
        assert len(data["monthlyRevenue"]) == 6
        assert data["monthlyRevenue"][-1]["revenue"] == 5850.0
        assert data["ordersByStatus"]["delivered"] == 1
        assert data["growth"]["revenue"] == 0.0


@pytest.mark.django_db
class TestProducts:
    def payload(self, category, **overrides):
        data = {
            "name": "Brass Candle Holder",
            "price": "1800",
            "sku": "BCH-100",
            "category_id": str(category.pk),
            "stock_quantity": 5,
            "compare_at_price": "",
            "is_active": True,
        }
        data.update(overrides)
        return data

    def test_create_broadcasts(self, admin_client, category, sent_events, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            response = send_json(admin_client, "post", reverse("backoffice:products"), self.payload(category))

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == 'Product "Brass Candle Holder" created successfully and is now live!'
        assert body["product"]["price"] == 1800.0
        assert "compare_at_price" not in body["product"]
        product = Product.objects.get(sku="BCH-100")
        assert product.is_featured is False
        assert product.compare_at_price is None
        assert event_types(sent_events) == ["new_product"]

    def test_create_defaults_to_first_category(self, admin_client, category):
        response = send_json(admin_client, "post", reverse("backoffice:products"), self.payload(category, category_id=""))

        assert response.json()["product"]["category_id"] == str(category.pk)

    def test_create_without_categories(self, admin_client, db):
        response = send_json(admin_client, "post", reverse("backoffice:products"), {
            "name": "X", "price": "1", "sku": "X-1",
        })

        assert response.status_code == 400
        assert response.json()["error"] == "No categories available. Please create a category first."

    @pytest.mark.parametrize(
        "overrides, error",
        [
            ({"sku": ""}, "Missing required fields: name, price, sku"),
            ({"category_id": "nope"}, "Invalid category ID format"),
            ({"category_id": "00000000-0000-0000-0000-000000000000"}, "Category not found"),
            ({"price": "-3"}, "Invalid price"),
        ],
    )
    def test_create_validation(self, admin_client, category, overrides, error):
        response = send_json(admin_client, "post", reverse("backoffice:products"), self.payload(category, **overrides))

        assert response.status_code == 400
        assert response.json()["error"] == error

    def test_duplicate_sku_is_409(self, admin_client, category, product):
        response = send_json(
            admin_client, "post", reverse("backoffice:products"), self.payload(category, sku="MWH-001")
        )

        assert response.status_code == 409

    def test_patch_collection(self, admin_client, product, sent_events, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            response = send_json(admin_client, "patch", reverse("backoffice:products"), {
                "productId": str(product.pk),
                "updates": {"price": 2750, "is_featured": True, "dimensions": {"length": 0}},
            })

        assert response.status_code == 200
        product.refresh_from_db()
        assert product.price == Decimal("2750")
        assert product.is_featured is True
        assert product.dimensions is None
        assert product.name == "Macrame Wall Hanging"
        assert event_types(sent_events) == ["product_updated"]

    def test_patch_detail(self, admin_client, product):
        response = send_json(
            admin_client, "patch", reverse("backoffice:product-detail", args=[product.pk]), {"stock_quantity": 0}
        )

        assert response.json()["product"]["stock_quantity"] == 0

    def test_delete_broadcasts_product_data(self, admin_client, product, sent_events, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            response = admin_client.delete(reverse("backoffice:product-detail", args=[product.pk]))

        assert response.json() == {"ok": True, "deleted": str(product.pk)}
        assert not Product.objects.exists()
        payload = sent_events.call_args.args[0]
        assert payload["type"] == "product_deleted"
        assert payload["product"]["sku"] == "MWH-001"

    def test_list_includes_inactive(self, admin_client, product, second_product):
        second_product.is_active = False
        second_product.save()

        data = admin_client.get(reverse("backoffice:products")).json()

        assert {p["sku"] for p in data} == {"MWH-001", "CV-002"}

    def test_unknown_product_is_404(self, admin_client):
        assert admin_client.get(reverse("backoffice:product-detail", args=[uuid.uuid4()])).status_code == 404


@pytest.mark.django_db
class TestCategories:
    def test_list_with_counts(self, admin_client, product):
        data = admin_client.get(reverse("backoffice:categories")).json()

        assert data[0]["product_count"] == 1

    def test_create_requires_all_fields(self, admin_client):
        response = send_json(admin_client, "post", reverse("backoffice:categories"), {"name": "Rugs"})

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields: name, description, image_url"

    def test_create(self, admin_client):
        response = send_json(admin_client, "post", reverse("backoffice:categories"), {
            "name": "Rugs", "description": "Hand-knotted", "image_url": "rugs.png",
        })

        assert response.status_code == 201
        assert response.json()["category"]["image_url"] == "https://cdn.example.com/site-assets/rugs.png"

    def test_duplicate_name_is_409(self, admin_client, category):
        response = send_json(admin_client, "post", reverse("backoffice:categories"), {
            "name": "Wall Decor", "description": "x", "image_url": "x.png",
        })

        assert response.status_code == 409

    def test_delete_with_products_is_409(self, admin_client, category, product):
        response = admin_client.delete(reverse("backoffice:category-detail", args=[category.pk]))

        assert response.status_code == 409
        assert response.json()["error"] == "Cannot delete category with 1 existing product(s)"

    def test_delete_empty(self, admin_client, category):
        response = admin_client.delete(reverse("backoffice:category-detail", args=[category.pk]))

        assert response.json()["ok"] is True
        assert not Category.objects.exists()

    def test_sync_category_images(self, admin_client, category):
        Category.objects.create(name="Lighting", image_url="placeholder.svg")
        Category.objects.create(name="Garden Tools")
        Category.objects.create(name="Rugs", image_url="https://img.example.org/rugs.png")
        default_storage.save("site-assets/wall-decor.webp", SimpleUploadedFile("wall-decor.webp", b"img"))

        data = admin_client.post(reverse("backoffice:sync-category-images")).json()

        assert data["checked"] == 4
        assert data["updates"] == 2
        urls = {c.name: c.image_url for c in Category.objects.all()}
        assert urls["Lighting"] == "https://cdn.example.com/site-assets/artisan-lighting.png"
        assert urls["Wall Decor"] == "https://cdn.example.com/site-assets/wall-decor.webp"
        assert urls["Garden Tools"] == ""
        assert urls["Rugs"] == "https://img.example.org/rugs.png"


@pytest.mark.django_db
class TestOrders:
    def test_filter_by_status(self, admin_client, order):
        assert len(admin_client.get(reverse("backoffice:orders"), {"status": "pending"}).json()) == 1
        assert admin_client.get(reverse("backoffice:orders"), {"status": "shipped"}).json() == []
        assert admin_client.get(reverse("backoffice:orders"), {"status": "lost"}).status_code == 400

    def test_patch_status_with_email(self, admin_client, order):
        response = send_json(admin_client, "patch", reverse("backoffice:orders"), {
            "orderId": str(order.pk), "status": "shipped", "notify": True,
        })

        data = response.json()
        assert data["previous_status"] == "pending"
        assert data["order"]["status"] == "shipped"
        assert data["email"]["sent"] is True
        assert mail.outbox[0].to == ["guest@example.com"]

    def test_patch_invalid_status(self, admin_client, order):
        response = send_json(admin_client, "patch", reverse("backoffice:orders"), {
            "orderId": str(order.pk), "status": "lost",
        })

        assert response.status_code == 400

    def test_order_detail(self, admin_client, order):
        data = admin_client.get(reverse("backoffice:order-detail", args=[order.pk])).json()

        assert data["order"]["items"][0]["quantity"] == 2

    def test_send_status_email(self, admin_client, order):
        response = send_json(admin_client, "post", reverse("backoffice:send-status-email"), {"orderId": str(order.pk)})

        assert response.json() == {
            "ok": True,
            "message": "Status email sent",
            "sentTo": "guest@example.com",
            "subject": f"Order Confirmation - {order.order_number}",
            "sentToAdmin": False,
        }

    def test_send_status_email_failure(self, admin_client, order):
        with patch("craftshop.store.emails._send", side_effect=OSError("down")):
            response = send_json(
                admin_client, "post", reverse("backoffice:send-status-email"), {"orderId": str(order.pk)}
            )

        assert response.status_code == 502


@pytest.mark.django_db
class TestCustomers:
    def test_list(self, admin_client, user, make_order, product):
        make_order(product, user=user)

        data = admin_client.get(reverse("backoffice:customers")).json()

        counts = {c["email"]: c["order_count"] for c in data}
        assert counts == {"customer@example.com": 1, "owner@example.com": 0}

    def test_detail(self, admin_client, user, make_order, product):
        placed = make_order(product, user=user)

        data = admin_client.get(reverse("backoffice:customer-detail", args=[user.pk])).json()

        assert data["customer"]["email"] == "customer@example.com"
        assert data["orders"][0]["order_number"] == placed.order_number

    def test_guest(self, admin_client, order):
        data = admin_client.get(reverse("backoffice:guest-customer"), {"email": "GUEST@example.com"}).json()

        assert data["customer"]["role"] == "guest"
        assert data["customer"]["full_name"] == "Ayesha Khan"
        assert len(data["orders"]) == 1

    def test_guest_errors(self, admin_client, db):
        assert admin_client.get(reverse("backoffice:guest-customer")).status_code == 400
        response = admin_client.get(reverse("backoffice:guest-customer"), {"email": "nobody@example.com"})
        assert response.status_code == 404
        assert response.json()["error"] == "Guest customer not found"


@pytest.mark.django_db
class TestUploadAssets:
    def test_upload(self, admin_client):
        files = [
            SimpleUploadedFile("clay-vase.png", b"png-bytes", content_type="image/png"),
            SimpleUploadedFile("notes.txt", b"text", content_type="text/plain"),
        ]

        response = admin_client.post(reverse("backoffice:upload-assets"), {"files": files})

        data = response.json()
        assert data["ok"] is False
        assert data["uploaded"][0]["publicUrl"] == "https://cdn.example.com/site-assets/clay-vase.png"
        assert data["failed"] == [{"file": "notes.txt", "error": "Unsupported file type: notes.txt"}]
        assert default_storage.exists("site-assets/clay-vase.png")

    def test_reupload_replaces(self, admin_client):
        url = reverse("backoffice:upload-assets")
        admin_client.post(url, {"files": [SimpleUploadedFile("rug.jpg", b"v1")]})

        data = admin_client.post(url, {"files": [SimpleUploadedFile("rug.jpg", b"v2")]}).json()

        assert data["uploaded"][0]["path"] == "site-assets/rug.jpg"
        with default_storage.open("site-assets/rug.jpg") as f:
            assert f.read() == b"v2"

    def test_no_files(self, admin_client):
        assert admin_client.post(reverse("backoffice:upload-assets")).status_code == 400
