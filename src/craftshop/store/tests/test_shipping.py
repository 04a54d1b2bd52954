"""Tests for shipping quotes and tax."""

from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import pytest

from craftshop.store.cart import CartLine
from craftshop.store.exceptions import NoShippingZoneError
from craftshop.store.models import ShippingMethod, ShippingZone
from craftshop.store.shipping import (
    ShippingAddress,
    ShippingCalculator,
    TaxCalculator,
    estimated_delivery_date,
    shipping_from_origin,
)

LAHORE = ShippingAddress(country="PK", state="Punjab", postal_code="54000", city="Lahore")


@pytest.fixture
def zone(db):
    return ShippingZone.objects.create(name="Pakistan", countries=["PK"])


@pytest.fixture
def standard(zone):
    method = ShippingMethod.objects.create(
        name="Standard Delivery",
        type=ShippingMethod.Type.FIXED,
        base_cost=Decimal("300"),
        free_shipping_threshold=Decimal("10000"),
    )
    method.zones.add(zone)
    return method


@pytest.fixture
def express(zone):
    method = ShippingMethod.objects.create(
        name="Express",
        type=ShippingMethod.Type.WEIGHT_BASED,
        base_cost=Decimal("500"),
        per_weight_cost=Decimal("100"),
        max_weight=Decimal("5"),
    )
    method.zones.add(zone)
    return method


@pytest.mark.django_db
class TestShippingCalculator:
    def test_quotes_sorted_cheapest_first(self, product, standard, express):
        product.shipping_weight = Decimal("1.5")
        product.save()

        quotes = ShippingCalculator.from_db().calculate([CartLine(product, 2)], LAHORE)

        assert [q.method_name for q in quotes] == ["Standard Delivery", "Express"]
        assert quotes[0].cost == Decimal("300.00")
        assert quotes[0].estimated_days == 5
        assert quotes[1].cost == Decimal("800.00")
        assert quotes[1].estimated_days == 2

    def test_free_above_threshold(self, product, standard):
        quotes = ShippingCalculator.from_db().calculate([CartLine(product, 4)], LAHORE)

        assert quotes[0].cost == Decimal("0")

    def test_max_weight_excludes_method(self, product, standard, express):
        product.weight = Decimal("3")
        product.save()

        quotes = ShippingCalculator.from_db().calculate([CartLine(product, 2)], LAHORE)

        assert [q.method_name for q in quotes] == ["Standard Delivery"]

    def test_per_item_cost(self, product, zone):
        method = ShippingMethod.objects.create(
            name="Courier", base_cost=Decimal("100"), per_item_cost=Decimal("50")
        )
        method.zones.add(zone)

        quotes = ShippingCalculator.from_db().calculate([CartLine(product, 3)], LAHORE)

        assert quotes[0].cost == Decimal("250.00")
        assert quotes[0].estimated_days is None

    def test_no_zone_raises(self, product, standard):
        with pytest.raises(NoShippingZoneError):
            ShippingCalculator.from_db().calculate([CartLine(product, 1)], ShippingAddress(country="US"))

    def test_state_restricted_zone(self, product, zone, standard):
        zone.states = ["Sindh"]
        zone.save()

        with pytest.raises(NoShippingZoneError):
            ShippingCalculator.from_db().calculate([CartLine(product, 1)], LAHORE)

    def test_postal_prefix_zone(self, product, zone, standard):
        zone.postal_codes = ["54"]
        zone.save()

        quotes = ShippingCalculator.from_db().calculate([CartLine(product, 1)], LAHORE)

        assert len(quotes) == 1

    def test_digital_only_cart_ships_free(self, product):
        product.requires_shipping = False

        quotes = ShippingCalculator([], []).calculate([CartLine(product, 1)], ShippingAddress(country="US"))

        assert quotes[0].method_id == "free"
        assert quotes[0].cost == 0


@pytest.mark.django_db
class TestTaxCalculator:
    def test_destination_rate(self, product):
        assert TaxCalculator.calculate([CartLine(product, 2)], LAHORE) == Decimal("850.00")

    def test_unknown_country_is_untaxed(self, product):
        assert TaxCalculator.calculate([CartLine(product, 1)], ShippingAddress(country="ZZ")) == 0

    def test_product_rate_overrides(self, product, second_product):
        product.tax_rate = Decimal("5")
        second_product.is_taxable = False

        tax = TaxCalculator.calculate([CartLine(product, 1), CartLine(second_product, 1)], LAHORE)

        assert tax == Decimal("125.00")


class TestShippingFromOrigin:
    def test_local_delivery(self):
        quote = shipping_from_origin("pk-mzg", 1000)

        assert quote.service_type == "local"
        assert quote.rate == Decimal("100.00")
        assert quote.is_free is False

    def test_local_free_threshold(self):
        assert shipping_from_origin("pk-mzg", 1500).is_free is True

    def test_national_delivery(self):
        quote = shipping_from_origin("pk-lhe", 2999)

        assert quote.service_type == "national"
        assert quote.rate == Decimal("250.00")
        assert quote.estimated_days == 2

    def test_national_free_threshold(self):
        quote = shipping_from_origin("", 3000)

        assert quote.rate == 0
        assert quote.as_dict()["is_free"] is True

    def test_estimated_delivery_date(self):
        placed = datetime(2024, 3, 1, 10, tzinfo=dt_timezone.utc)

        assert estimated_delivery_date("pk-mzg", placed) == datetime(2024, 3, 3, 10, tzinfo=dt_timezone.utc)
        assert estimated_delivery_date("pk-khi", placed) == datetime(2024, 3, 4, 10, tzinfo=dt_timezone.utc)
