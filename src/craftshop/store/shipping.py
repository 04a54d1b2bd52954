"""Shipping and tax calculation.

`ShippingCalculator` prices a cart against the configured shipping zones
and methods. `shipping_from_origin` is the flat business rate table for
deliveries from the workshop.
"""

import logging
from datetime import timedelta
from decimal import Decimal
from typing import NamedTuple

from django.conf import settings
from django.utils import timezone

from craftshop.core.money import ZERO, round_money

from .exceptions import NoShippingZoneError
from .models import ShippingMethod, ShippingZone

logger = logging.getLogger(__name__)


class ShippingAddress(NamedTuple):
    country: str
    state: str = ""
    postal_code: str = ""
    city: str = ""
    city_id: str = ""


class ShippingQuote(NamedTuple):
    method_id: str
    method_name: str
    cost: Decimal
    estimated_days: int | None = None

    def as_dict(self):
        return {
            "method_id": self.method_id,
            "method_name": self.method_name,
            "cost": float(self.cost),
            "estimated_days": self.estimated_days,
        }


NO_SHIPPING_QUOTE = ShippingQuote(method_id="free", method_name="No Shipping Required", cost=ZERO)

# Substring of the method name -> delivery days
DELIVERY_ESTIMATES = (
    ("standard", 5),
    ("express", 2),
    ("overnight", 1),
    ("ground", 7),
)


class MethodUnavailable(Exception):
    """A shipping method cannot serve this cart."""


def _line_weight(line, default=0):
    product = line.product
    if product.shipping_weight is not None:
        weight = product.shipping_weight
    elif product.weight is not None:
        weight = product.weight
    else:
        weight = default
    return Decimal(weight) * line.quantity


class ShippingCalculator:
    """Quote shipping for cart lines against zones and methods.

    Args:
        methods: ShippingMethod instances; inactive ones are ignored.
        zones: ShippingZone instances; inactive ones are ignored.
    """

    def __init__(self, methods, zones):
        self.methods = [m for m in methods if m.is_active]
        self.zones = [z for z in zones if z.is_active]

    @classmethod
    def from_db(cls):
        return cls(
            ShippingMethod.objects.filter(is_active=True).prefetch_related("zones"),
            ShippingZone.objects.filter(is_active=True),
        )

    def calculate(self, lines, destination: ShippingAddress) -> list[ShippingQuote]:
        """Return quotes sorted by cost, cheapest first.

        Raises:
            NoShippingZoneError: No active zone covers the destination.
        """
        shippable = [line for line in lines if line.product.requires_shipping]
        if not shippable:
            return [NO_SHIPPING_QUOTE]

        zone = self.find_zone(destination)
        if zone is None:
            raise NoShippingZoneError(f"No shipping zone found for {destination.country}")

        quotes = []
        for method in self.methods:
            if zone.pk not in {z.pk for z in method.zones.all()}:
                continue
            try:
                quotes.append(self.quote_method(method, shippable))
            except MethodUnavailable as e:
                logger.info(
                    "Shipping method skipped: %s",
                    e,
                    extra={"method_id": method.pk},
                )

        return sorted(quotes, key=lambda q: q.cost)

    def find_zone(self, destination: ShippingAddress):
        for zone in self.zones:
            if destination.country not in (zone.countries or []):
                continue
            if zone.states and destination.state not in zone.states:
                continue
            if zone.postal_codes:
                postal_code = destination.postal_code or ""
                if not postal_code or not any(postal_code.startswith(p) for p in zone.postal_codes):
                    continue
            return zone
        return None

    def quote_method(self, method, lines) -> ShippingQuote:
        subtotal = sum((line.total_price for line in lines), ZERO)
        weight = sum((_line_weight(line) for line in lines), Decimal(0))

        if method.max_weight is not None and weight > method.max_weight:
            raise MethodUnavailable(f"Total weight {weight} exceeds method limit {method.max_weight}")

        if method.free_shipping_threshold and subtotal >= method.free_shipping_threshold:
            return ShippingQuote(str(method.pk), method.name, ZERO, self.estimated_days(method))

        cost = Decimal(method.base_cost)
        if method.type == ShippingMethod.Type.WEIGHT_BASED:
            cost += (method.per_weight_cost or 0) * weight
        elif method.type == ShippingMethod.Type.CARRIER_CALCULATED:
            # No carrier integration: base plus a per-weight estimate, 1 unit per unweighted item
            carrier_weight = sum((_line_weight(line, default=1) for line in lines), Decimal(0))
            per_weight = method.per_weight_cost if method.per_weight_cost is not None else Decimal(1)
            cost = Decimal(method.base_cost) + per_weight * carrier_weight
        elif method.type == ShippingMethod.Type.FREE:
            cost = ZERO

        if method.per_item_cost:
            cost += method.per_item_cost * sum(line.quantity for line in lines)

        return ShippingQuote(
            method_id=str(method.pk),
            method_name=method.name,
            cost=round_money(max(ZERO, cost)),
            estimated_days=self.estimated_days(method),
        )

    @staticmethod
    def estimated_days(method):
        name = method.name.lower()
        for key, days in DELIVERY_ESTIMATES:
            if key in name:
                return days
        return None


class TaxCalculator:
    """Destination tax on the taxable subtotal."""

    COUNTRY_RATES = {
        "US": Decimal("8.5"),
        "CA": Decimal("12"),
        "GB": Decimal("20"),
        "DE": Decimal("19"),
        "FR": Decimal("20"),
        "AU": Decimal("10"),
        "PK": Decimal("17"),
    }

    @classmethod
    def rate_for(cls, destination: ShippingAddress) -> Decimal:
        return cls.COUNTRY_RATES.get((destination.country or "").upper(), Decimal(0))

    @classmethod
    def calculate(cls, lines, destination: ShippingAddress) -> Decimal:
        """A product's own `tax_rate` overrides the destination rate."""
        default_rate = cls.rate_for(destination)
        tax = ZERO
        for line in lines:
            if not line.product.is_taxable:
                continue
            rate = line.product.tax_rate if line.product.tax_rate is not None else default_rate
            tax += line.total_price * rate / 100
        return round_money(tax)


class OriginShippingQuote(NamedTuple):
    rate: Decimal
    is_free: bool
    estimated_days: int
    description: str
    service_type: str

    def as_dict(self):
        return {
            "rate": float(self.rate),
            "is_free": self.is_free,
            "estimated_days": self.estimated_days,
            "description": self.description,
            "service_type": self.service_type,
        }


def shipping_from_origin(city_id, order_value) -> OriginShippingQuote:
    """Flat rate from the workshop: same-city delivery or national urban delivery."""
    config = settings.STORE_SHIPPING
    order_value = Decimal(order_value)

    if city_id and city_id == config["ORIGIN_CITY_ID"]:
        tier, service_type = config["LOCAL"], "local"
    else:
        tier, service_type = config["NATIONAL"], "national"

    is_free = order_value >= Decimal(tier["free_threshold"])
    return OriginShippingQuote(
        rate=ZERO if is_free else round_money(tier["rate"]),
        is_free=is_free,
        estimated_days=tier["estimated_days"],
        description=tier["description"],
        service_type=service_type,
    )


def estimated_delivery_date(city_id, order_date=None):
    """Order date plus processing days plus transit days."""
    order_date = order_date or timezone.now()
    quote = shipping_from_origin(city_id, 0)
    days = settings.STORE_SHIPPING["PROCESSING_DAYS"] + quote.estimated_days
    return order_date + timedelta(days=days)
