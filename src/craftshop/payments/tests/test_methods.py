"""Tests for payment method fees, limits and helpers."""

import re
from decimal import Decimal

import pytest

from craftshop.payments.methods import (
    BANK_TRANSFER,
    COD,
    EASYPAISA,
    JAZZCASH,
    STRIPE_CARD,
    available_payment_methods,
    calculate_payment_fee,
    format_mobile_for_gateway,
    generate_transaction_ref,
    payment_instructions,
    validate_pakistani_mobile,
    validate_payment_amount,
)


class TestPaymentFees:
    @pytest.mark.parametrize(
        "amount, method, fee",
        [
            (1000, STRIPE_CARD, Decimal("59.00")),
            (1000, "stripe", Decimal("59.00")),
            (5000, JAZZCASH, Decimal("100.00")),
            (500, EASYPAISA, Decimal("20.00")),
            (20000, COD, Decimal("50.00")),
            (20000, BANK_TRANSFER, Decimal("25.00")),
            (20000, "paypal", Decimal("0")),
        ],
    )
    def test_fee(self, amount, method, fee):
        assert calculate_payment_fee(amount, method) == fee


class TestPaymentAmount:
    def test_within_limits(self):
        assert validate_payment_amount(5000, JAZZCASH).valid is True

    def test_zero_amount(self):
        assert validate_payment_amount(0, COD).error == "Amount must be greater than zero"

    def test_unknown_method(self):
        assert validate_payment_amount(100, "paypal").error == "Unknown payment method: paypal"

    def test_above_max(self):
        check = validate_payment_amount(60000, COD)

        assert check.valid is False
        assert check.error == "Amount exceeds Cash on Delivery limit of PKR 50,000"

    def test_below_min(self):
        assert validate_payment_amount(40, JAZZCASH).error == "Minimum amount for JazzCash is PKR 50"

    def test_available_methods_marks_limits(self):
        methods = {m["id"]: m for m in available_payment_methods(400000)}

        assert methods[JAZZCASH]["available"] is True
        assert methods[EASYPAISA]["available"] is False
        assert methods[EASYPAISA]["unavailable_reason"] == "Amount exceeds EasyPaisa limit of PKR 300,000"
        assert methods[COD]["available"] is False
        assert methods[STRIPE_CARD]["fee"] == 11630.0


class TestMobileNumbers:
    @pytest.mark.parametrize("mobile", ["03001234567", "+923001234567"])
    def test_valid(self, mobile):
        assert validate_pakistani_mobile(mobile) is True

    @pytest.mark.parametrize("mobile", ["3001234567", "0300123456", "+92300123456", "", None, "0300-1234567"])
    def test_invalid(self, mobile):
        assert validate_pakistani_mobile(mobile) is False

    def test_gateway_format(self):
        assert format_mobile_for_gateway("+92 300 1234567", JAZZCASH) == "03001234567"
        assert format_mobile_for_gateway("3001234567", JAZZCASH) == "03001234567"
        assert format_mobile_for_gateway("3001234567", EASYPAISA) == "3001234567"


def test_transaction_ref_shape():
    ref = generate_transaction_ref("JC", "ORD-1700000000000-ABCD12345")

    assert re.fullmatch(r"JC\d{13}[0-9A-Z]{6}2345", ref)


def test_instructions_include_amount():
    assert payment_instructions(COD, Decimal("5900"))[0] == "Prepare exact amount: PKR 5,900.00"
    assert payment_instructions("unknown", 1) == ["Follow the payment instructions to complete your order"]
