"""Cart arithmetic.

Cart lines are always priced from the current product row; nothing the
client sends about prices is trusted.
"""

import logging
from decimal import Decimal
from typing import NamedTuple

from craftshop.core.money import ZERO, round_money

from .exceptions import NoShippingZoneError
from .models import CartItem
from .shipping import ShippingAddress, ShippingCalculator, ShippingQuote, TaxCalculator

logger = logging.getLogger(__name__)


class CartLine(NamedTuple):
    product: object
    quantity: int

    @property
    def unit_price(self) -> Decimal:
        return self.product.price

    @property
    def total_price(self) -> Decimal:
        return self.product.price * self.quantity


class CartSummary(NamedTuple):
    lines: list
    subtotal: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    total_amount: Decimal
    available_shipping_methods: list[ShippingQuote]
    selected_shipping_method: str | None


class CartValidation(NamedTuple):
    valid: bool
    errors: list[str]


def cart_lines_for_user(user) -> list[CartLine]:
    items = CartItem.objects.filter(user=user).select_related("product")
    return [CartLine(item.product, item.quantity) for item in items]


def cart_subtotal(lines) -> Decimal:
    return round_money(sum((line.total_price for line in lines), ZERO))


def find_quote(quotes, method_id) -> ShippingQuote | None:
    if not method_id:
        return None
    return next((q for q in quotes if q.method_id == str(method_id)), None)


def summarize_cart(
    lines,
    destination: ShippingAddress | None = None,
    method_id: str | None = None,
    calculator: ShippingCalculator | None = None,
) -> CartSummary:
    """Subtotal, shipping, tax and total for a cart.

    Without a destination only the subtotal is computed. The cheapest
    quote is used unless `method_id` selects another one; an unknown
    `method_id` also gets the cheapest quote. When no zone covers the
    destination, shipping and tax are both zero.
    """
    subtotal = cart_subtotal(lines)
    shipping_amount = ZERO
    selected_method = None
    tax_amount = ZERO
    quotes = []

    if destination is not None and lines:
        calculator = calculator or ShippingCalculator.from_db()
        try:
            quotes = calculator.calculate(lines, destination)
        except NoShippingZoneError as e:
            logger.info("No shipping zone for cart destination: %s", e, extra={"country": destination.country})
        else:
            selected = find_quote(quotes, method_id) or (quotes[0] if quotes else None)
            if selected is not None:
                shipping_amount = selected.cost
                selected_method = selected.method_id
            tax_amount = TaxCalculator.calculate(lines, destination)

    return CartSummary(
        lines=list(lines),
        subtotal=subtotal,
        tax_amount=tax_amount,
        shipping_amount=shipping_amount,
        total_amount=round_money(subtotal + shipping_amount + tax_amount),
        available_shipping_methods=quotes,
        selected_shipping_method=selected_method,
    )


def validate_cart(lines) -> CartValidation:
    errors = []
    for line in lines:
        product = line.product
        if not product.is_active:
            errors.append(f"Product {product.name} is no longer available")
            continue
        if product.stock_quantity < line.quantity:
            if product.stock_quantity == 0:
                errors.append(f"Product {product.name} is out of stock")
            else:
                errors.append(
                    f"Only {product.stock_quantity} units of {product.name} available "
                    f"(requested {line.quantity})"
                )
    return CartValidation(valid=not errors, errors=errors)


def free_shipping_eligibility(subtotal, threshold) -> dict:
    subtotal = Decimal(subtotal)
    threshold = Decimal(threshold)
    if subtotal >= threshold:
        return {"qualifies": True, "amount_needed": 0.0}
    return {"qualifies": False, "amount_needed": float(round_money(threshold - subtotal))}


def calculate_savings(lines) -> Decimal:
    """Total saved against `compare_at_price` where it is above the price."""
    savings = ZERO
    for line in lines:
        compare_at = line.product.compare_at_price
        if compare_at is not None and compare_at > line.product.price:
            savings += (compare_at - line.product.price) * line.quantity
    return round_money(savings)


def shipping_requirements(lines) -> dict:
    requirements = {
        "requires_shipping": False,
        "has_digital_items": False,
        "has_physical_items": False,
        "has_fragile_items": False,
        "has_hazardous_items": False,
        "total_weight": 0.0,
    }
    weight = Decimal(0)
    for line in lines:
        product = line.product
        if not product.requires_shipping:
            requirements["has_digital_items"] = True
            continue
        requirements["has_physical_items"] = True
        requirements["has_fragile_items"] |= product.is_fragile
        requirements["has_hazardous_items"] |= product.is_hazardous
        weight += Decimal(product.effective_weight) * line.quantity

    requirements["requires_shipping"] = requirements["has_physical_items"]
    requirements["total_weight"] = float(weight)
    return requirements


def summary_to_dict(summary: CartSummary, serialize_line) -> dict:
    return {
        "items": [serialize_line(line) for line in summary.lines],
        "subtotal": float(summary.subtotal),
        "tax_amount": float(summary.tax_amount),
        "shipping_amount": float(summary.shipping_amount),
        "total_amount": float(summary.total_amount),
        "available_shipping_methods": [q.as_dict() for q in summary.available_shipping_methods],
        "selected_shipping_method": summary.selected_shipping_method,
        "savings": float(calculate_savings(summary.lines)),
    }
