"""Tests for JazzCash and EasyPaisa signing and verification."""

import hashlib
import hmac
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import pytest

from craftshop.payments import gateways
from craftshop.payments.exceptions import PaymentConfigurationError


def expected_hmac(message, key):
    return hmac.new(key.encode(), message.encode(), hashlib.sha256).hexdigest().upper()


def signed_callback(data, salt="jc-salt"):
    data["pp_SecureHash"] = gateways.jazzcash_secure_hash(data, salt, gateways.JAZZCASH_RESPONSE_HASH_FIELDS)
    return data


class TestJazzCashHash:
    def test_fields_joined_in_order(self):
        data = {name: str(i) for i, name in enumerate(gateways.JAZZCASH_HASH_FIELDS)}
        data["pp_SecureHash"] = "ignored"

        assert gateways.jazzcash_secure_hash(data, "salt") == expected_hmac("&".join(str(i) for i in range(14)), "salt")

    def test_missing_fields_hash_as_empty(self):
        assert gateways.jazzcash_secure_hash({}, "salt") == expected_hmac("&" * 13, "salt")

    def test_verify(self):
        data = signed_callback({"pp_Amount": "585000", "pp_BillReference": "ORD-1", "pp_ResponseCode": "000"})
        data["pp_SecureHash"] = data["pp_SecureHash"].lower()

        assert gateways.verify_jazzcash_callback(data) is True

    def test_verify_rejects_tampering(self):
        data = signed_callback({"pp_Amount": "585000", "pp_BillReference": "ORD-1"})
        data["pp_Amount"] = "100"

        assert gateways.verify_jazzcash_callback(data) is False

    def test_changed_response_code_invalidates_hash(self):
        data = signed_callback({"pp_Amount": "585000", "pp_BillReference": "ORD-1", "pp_ResponseCode": "202"})
        data["pp_ResponseCode"] = "000"

        assert gateways.verify_jazzcash_callback(data) is False

    def test_callback_hash_covers_response_fields(self):
        for name in ("pp_ResponseCode", "pp_ResponseMessage", "pp_RetrievalReferenceNo"):
            assert name in gateways.JAZZCASH_RESPONSE_HASH_FIELDS
        assert "pp_Password" not in gateways.JAZZCASH_RESPONSE_HASH_FIELDS

    @pytest.mark.django_db
    def test_request_form_does_not_verify_as_callback(self, order):
        fields = dict(gateways.build_jazzcash_form(order, Decimal("5967.00")).fields)

        assert gateways.verify_jazzcash_callback(fields) is False
        fields["pp_ResponseCode"] = "000"
        assert gateways.verify_jazzcash_callback(fields) is False

    def test_verify_without_salt(self, settings):
        settings.JAZZCASH_INTEGRITY_SALT = ""
        data = {"pp_SecureHash": gateways.jazzcash_secure_hash({}, "", gateways.JAZZCASH_RESPONSE_HASH_FIELDS)}

        assert gateways.verify_jazzcash_callback(data) is False

    @pytest.mark.parametrize("code, outcome", [("000", "succeeded"), ("124", "pending"), ("202", "failed"), ("", "failed")])
    def test_outcome(self, code, outcome):
        assert gateways.jazzcash_outcome(code) == outcome


class TestEasyPaisaHash:
    NOTIFICATION = {"merchant_id": "EP999", "transaction_id": "T1", "order_id": "ORD-1", "amount": "10.00", "status": "SUCCESS"}

    def test_notification_hash_joins_fields(self):
        assert gateways.easypaisa_secure_hash(self.NOTIFICATION, "k") == expected_hmac("EP999&T1&ORD-1&10.00&SUCCESS", "k")

    def test_field_boundaries_are_signed(self):
        shifted = {**self.NOTIFICATION, "transaction_id": "T1ORD-1", "order_id": ""}

        assert gateways.easypaisa_secure_hash(shifted, "k") != gateways.easypaisa_secure_hash(self.NOTIFICATION, "k")

    def test_verify(self):
        data = dict(self.NOTIFICATION)
        data["secure_hash"] = gateways.easypaisa_secure_hash(data, "ep-hash-key")

        assert gateways.verify_easypaisa_notification(data) is True
        assert gateways.verify_easypaisa_notification({**data, "status": "FAILED"}) is False
        assert gateways.verify_easypaisa_notification({**data, "secure_hash": ""}) is False

    def test_verify_rejects_other_merchant(self):
        data = {**self.NOTIFICATION, "merchant_id": "OTHER"}
        data["secure_hash"] = gateways.easypaisa_secure_hash(data, "ep-hash-key")

        assert gateways.verify_easypaisa_notification(data) is False

    @pytest.mark.parametrize(
        "status, code, outcome",
        [
            ("success", "", "succeeded"),
            ("", "0000", "succeeded"),
            ("PENDING", "", "pending"),
            ("", "0001", "pending"),
            ("FAILED", "", "failed"),
            ("CANCELLED", "0002", "failed"),
            ("WHATEVER", "", "pending"),
            (None, "", "pending"),
        ],
    )
    def test_outcome(self, status, code, outcome):
        assert gateways.easypaisa_outcome(status, code) == outcome


@pytest.mark.django_db
class TestGatewayForms:
    NOW = datetime(2024, 5, 1, 12, 0, tzinfo=dt_timezone.utc)

    def test_jazzcash_form(self, order):
        form = gateways.build_jazzcash_form(order, Decimal("5967.00"), mobile="+923001234567", now=self.NOW)

        fields = form.fields
        assert form.transaction_id.startswith("JC")
        assert fields["pp_TxnRefNo"] == form.transaction_id
        assert fields["pp_Amount"] == "596700"
        assert fields["pp_BillReference"] == order.order_number
        assert fields["pp_MobileNumber"] == "03001234567"
        assert fields["pp_ReturnURL"] == "https://shop.example.com/api/payments/jazzcash/callback/"
        assert len(fields["pp_TxnDateTime"]) == 14
        assert fields["pp_SecureHash"] == gateways.jazzcash_secure_hash(fields, "jc-salt")

    def test_jazzcash_expiry_is_fifteen_minutes(self, order):
        fields = gateways.build_jazzcash_form(order, Decimal("100"), now=self.NOW).fields

        start = datetime.strptime(fields["pp_TxnDateTime"], gateways.GATEWAY_DATETIME_FORMAT)
        end = datetime.strptime(fields["pp_TxnExpiryDateTime"], gateways.GATEWAY_DATETIME_FORMAT)
        assert (end - start).total_seconds() == 15 * 60

    def test_jazzcash_unconfigured(self, order, settings):
        settings.JAZZCASH_MERCHANT_ID = ""

        with pytest.raises(PaymentConfigurationError):
            gateways.build_jazzcash_form(order, Decimal("100"))

    def test_easypaisa_form(self, order):
        form = gateways.build_easypaisa_form(order, Decimal("5967"), now=self.NOW)

        fields = form.fields
        assert form.transaction_id.startswith("EP")
        assert fields["amount"] == "5967.00"
        assert fields["order_id"] == order.order_number
        assert fields["customer_email"] == "guest@example.com"
        assert fields["secure_hash"] == gateways.easypaisa_secure_hash(
            fields, "ep-hash-key", gateways.EASYPAISA_REQUEST_HASH_FIELDS
        )
