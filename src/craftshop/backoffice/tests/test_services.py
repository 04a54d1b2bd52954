"""Tests for back-office payload parsing and revenue figures."""

from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import pytest

from craftshop.backoffice.services import (
    ProductPayloadError,
    monthly_revenue,
    product_fields_from_payload,
    revenue_growth,
)
from craftshop.store.models import Order


class TestProductPayload:
    def test_partial_only_returns_sent_fields(self):
        fields = product_fields_from_payload({"price": "99.50", "weight": ""}, partial=True)

        assert fields == {"price": Decimal("99.50"), "weight": None}

    def test_partial_rejects_blank_name(self):
        with pytest.raises(ProductPayloadError, match="name cannot be blank"):
            product_fields_from_payload({"name": "  "}, partial=True)

    def test_invalid_stock(self):
        with pytest.raises(ProductPayloadError, match="Invalid stock_quantity"):
            product_fields_from_payload({"stock_quantity": "lots"}, partial=True)

    def test_dimensions_kept_when_measured(self):
        fields = product_fields_from_payload({"dimensions": {"width": 30, "height": 0}}, partial=True)

        assert fields["dimensions"] == {"width": 30, "height": 0}

    @pytest.mark.django_db
    def test_full_payload_defaults(self, category):
        fields = product_fields_from_payload({"name": "Jug", "price": 500, "sku": "JUG-1", "materials": "clay"})

        assert fields["category"] == category
        assert fields["is_active"] is False
        assert fields["is_featured"] is False
        assert fields["stock_quantity"] == 0
        assert fields["materials"] == []
        assert fields["description"] == ""


@pytest.mark.django_db
class TestRevenue:
    NOW = datetime(2024, 3, 15, 12, tzinfo=dt_timezone.utc)

    def delivered(self, order, created_at, total):
        Order.objects.filter(pk=order.pk).update(
            status=Order.Status.DELIVERED, created_at=created_at, total_amount=total
        )

    def test_monthly_buckets_span_year_boundary(self, make_order, product):
        self.delivered(make_order(product), datetime(2023, 11, 20, tzinfo=dt_timezone.utc), Decimal("1000"))
        self.delivered(make_order(product), datetime(2024, 3, 2, tzinfo=dt_timezone.utc), Decimal("2500"))

        rows = monthly_revenue(self.NOW)

        assert [r["month"] for r in rows] == ["Oct 2023", "Nov 2023", "Dec 2023", "Jan 2024", "Feb 2024", "Mar 2024"]
        assert rows[1]["revenue"] == 1000.0
        assert rows[-1]["revenue"] == 2500.0

    def test_growth(self, make_order, product):
        self.delivered(make_order(product), datetime(2024, 2, 10, tzinfo=dt_timezone.utc), Decimal("2000"))
        self.delivered(make_order(product), datetime(2024, 3, 10, tzinfo=dt_timezone.utc), Decimal("3000"))

        assert revenue_growth(self.NOW) == 50.0

    def test_growth_without_baseline(self, db):
        assert revenue_growth(self.NOW) == 0.0
