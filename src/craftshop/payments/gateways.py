"""JazzCash and EasyPaisa redirect gateways.

Both sign "&"-joined field values with HMAC-SHA256 (upper-case hex).
Outbound forms are signed here. Inbound callbacks and webhooks are
verified over the fields the gateway returns, which include the result,
so a signed request form cannot be replayed as a callback. Without a
configured secret nothing verifies.
"""

import hashlib
import hmac
import logging
from datetime import timedelta
from typing import NamedTuple

from django.conf import settings
from django.utils import timezone

from .exceptions import PaymentConfigurationError
from .methods import EASYPAISA, JAZZCASH, format_mobile_for_gateway, generate_transaction_ref
from .models import PaymentTransaction

logger = logging.getLogger(__name__)

SUCCEEDED = PaymentTransaction.Status.SUCCEEDED
PENDING = PaymentTransaction.Status.PENDING
FAILED = PaymentTransaction.Status.FAILED

JAZZCASH_RESPONSE_CODES = {
    "000": "Transaction Successful",
    "001": "Transaction Failed",
    "101": "Invalid Merchant ID",
    "102": "Invalid Password",
    "103": "Invalid Amount",
    "104": "Invalid Transaction Reference Number",
    "124": "Transaction Pending",
    "201": "Invalid Mobile Number",
    "202": "Insufficient Balance",
    "203": "Mobile Account Blocked",
    "999": "System Error",
}

EASYPAISA_RESPONSE_CODES = {
    "0000": "Success",
    "0001": "Transaction Pending",
    "0002": "Transaction Failed",
    "1001": "Invalid Merchant",
    "1002": "Invalid Amount",
    "1003": "Invalid Mobile Number",
    "2001": "Insufficient Balance",
    "2002": "Account Blocked",
    "3001": "Network Error",
    "9999": "System Error",
}

JAZZCASH_HASH_FIELDS = (
    "pp_Amount",
    "pp_BillReference",
    "pp_Description",
    "pp_Language",
    "pp_MerchantID",
    "pp_Password",
    "pp_ReturnURL",
    "pp_SubMerchantID",
    "pp_TxnCurrency",
    "pp_TxnDateTime",
    "pp_TxnExpiryDateTime",
    "pp_TxnRefNo",
    "pp_TxnType",
    "pp_Version",
)

# Returned by the gateway on the callback; pp_Password is not echoed back.
JAZZCASH_RESPONSE_HASH_FIELDS = (
    "pp_Amount",
    "pp_BillReference",
    "pp_Description",
    "pp_Language",
    "pp_MerchantID",
    "pp_ResponseCode",
    "pp_ResponseMessage",
    "pp_RetrievalReferenceNo",
    "pp_ReturnURL",
    "pp_SubMerchantID",
    "pp_TxnCurrency",
    "pp_TxnDateTime",
    "pp_TxnExpiryDateTime",
    "pp_TxnRefNo",
    "pp_TxnType",
    "pp_Version",
)

EASYPAISA_NOTIFICATION_HASH_FIELDS = ("merchant_id", "transaction_id", "order_id", "amount", "status")
EASYPAISA_REQUEST_HASH_FIELDS = ("merchant_id", "transaction_id", "amount", "currency", "order_id", "return_url")

FORM_EXPIRY = timedelta(minutes=15)
GATEWAY_DATETIME_FORMAT = "%Y%m%d%H%M%S"


class GatewayForm(NamedTuple):
    """A signed form the client posts (or redirects) to the gateway."""

    action_url: str
    fields: dict
    transaction_id: str

    def as_dict(self):
        return {
            "action_url": self.action_url,
            "fields": self.fields,
            "transaction_id": self.transaction_id,
        }


def _hmac_upper(message: str, key: str) -> str:
    return hmac.new(key.encode(), message.encode(), hashlib.sha256).hexdigest().upper()


def _field(data, name):
    value = data.get(name)
    return "" if value is None else str(value)


def _signature_matches(expected: str, received) -> bool:
    if not isinstance(received, str) or not received:
        return False
    return hmac.compare_digest(expected, received.upper())


def _minor_units(amount) -> str:
    """Amount in paisa, as the wallets expect."""
    return str(int(round(amount * 100)))


# JazzCash

def jazzcash_secure_hash(data: dict, integrity_salt: str, fields=JAZZCASH_HASH_FIELDS) -> str:
    message = "&".join(_field(data, name) for name in fields)
    return _hmac_upper(message, integrity_salt)


def verify_jazzcash_callback(data: dict) -> bool:
    salt = settings.JAZZCASH_INTEGRITY_SALT
    if not salt:
        logger.error("JazzCash integrity salt not configured; rejecting callback")
        return False
    expected = jazzcash_secure_hash(data, salt, JAZZCASH_RESPONSE_HASH_FIELDS)
    return _signature_matches(expected, data.get("pp_SecureHash"))


def jazzcash_outcome(response_code) -> str:
    if response_code == "000":
        return SUCCEEDED
    if response_code == "124":
        return PENDING
    return FAILED


def build_jazzcash_form(order, amount, mobile="", now=None) -> GatewayForm:
    """Signed MWALLET form for the JazzCash hosted page.

    Raises:
        PaymentConfigurationError: Merchant credentials are not configured
    """
    if not (settings.JAZZCASH_MERCHANT_ID and settings.JAZZCASH_INTEGRITY_SALT):
        raise PaymentConfigurationError("JazzCash is not configured")

    now = timezone.localtime(now or timezone.now())
    transaction_id = generate_transaction_ref("JC", order.order_number)
    fields = {
        "pp_Version": "1.1",
        "pp_TxnType": "MWALLET",
        "pp_Language": "EN",
        "pp_MerchantID": settings.JAZZCASH_MERCHANT_ID,
        "pp_SubMerchantID": "",
        "pp_Password": settings.JAZZCASH_PASSWORD,
        "pp_TxnRefNo": transaction_id,
        "pp_Amount": _minor_units(amount),
        "pp_TxnCurrency": order.currency,
        "pp_TxnDateTime": now.strftime(GATEWAY_DATETIME_FORMAT),
        "pp_BillReference": order.order_number,
        "pp_Description": f"Payment for Order #{order.order_number}",
        "pp_TxnExpiryDateTime": (now + FORM_EXPIRY).strftime(GATEWAY_DATETIME_FORMAT),
        "pp_ReturnURL": f"{settings.SITE_URL}/api/payments/jazzcash/callback/",
        "pp_MobileNumber": format_mobile_for_gateway(mobile or order.customer_phone, JAZZCASH),
    }
    fields["pp_SecureHash"] = jazzcash_secure_hash(fields, settings.JAZZCASH_INTEGRITY_SALT)
    return GatewayForm(settings.JAZZCASH_POST_URL, fields, transaction_id)


# EasyPaisa

def easypaisa_secure_hash(data: dict, hash_key: str, fields=EASYPAISA_NOTIFICATION_HASH_FIELDS) -> str:
    message = "&".join(_field(data, name) for name in fields)
    return _hmac_upper(message, hash_key)


def verify_easypaisa_notification(data: dict) -> bool:
    key = settings.EASYPAISA_HASH_KEY
    if not key:
        logger.error("EasyPaisa hash key not configured; rejecting notification")
        return False
    if _field(data, "merchant_id") != settings.EASYPAISA_STORE_ID:
        logger.warning("EasyPaisa notification for another merchant", extra={"merchant_id": data.get("merchant_id")})
        return False
    return _signature_matches(easypaisa_secure_hash(data, key), data.get("secure_hash"))


def easypaisa_outcome(status, response_code="") -> str:
    """Map an EasyPaisa status (and optional response code) to an outcome.

    Unrecognised statuses stay pending.
    """
    status = str(status or "").upper()
    if response_code == "0000" or status == "SUCCESS":
        return SUCCEEDED
    if response_code == "0001" or status == "PENDING":
        return PENDING
    if status in ("FAILED", "CANCELLED"):
        return FAILED
    return PENDING


def build_easypaisa_form(order, amount, mobile="", now=None) -> GatewayForm:
    """Signed mobile-account form for the EasyPaisa hosted page.

    Raises:
        PaymentConfigurationError: Store id or hash key is not configured
    """
    if not (settings.EASYPAISA_STORE_ID and settings.EASYPAISA_HASH_KEY):
        raise PaymentConfigurationError("EasyPaisa is not configured")

    now = timezone.localtime(now or timezone.now())
    transaction_id = generate_transaction_ref("EP", order.order_number)
    fields = {
        "merchant_id": settings.EASYPAISA_STORE_ID,
        "transaction_id": transaction_id,
        "amount": f"{amount:.2f}",
        "currency": order.currency,
        "order_id": order.order_number,
        "description": f"Payment for Order #{order.order_number}",
        "customer_mobile": format_mobile_for_gateway(mobile or order.customer_phone, EASYPAISA),
        "customer_email": order.contact_email,
        "return_url": f"{settings.SITE_URL}/api/payments/easypaisa/callback/",
        "cancel_url": f"{settings.SITE_URL}/checkout?payment=cancelled",
        "webhook_url": f"{settings.SITE_URL}/api/payments/easypaisa/webhook/",
        "expiry_time": (now + FORM_EXPIRY).isoformat(),
        "payment_method": "MA",
        "version": "2.0",
    }
    fields["secure_hash"] = easypaisa_secure_hash(
        fields, settings.EASYPAISA_HASH_KEY, EASYPAISA_REQUEST_HASH_FIELDS
    )
    return GatewayForm(settings.EASYPAISA_POST_URL, fields, transaction_id)
