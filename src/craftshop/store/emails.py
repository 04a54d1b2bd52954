"""Transactional email for orders and the newsletter.

All helpers here go through Django's mail framework and never raise:
failures are logged and reported in the return value.
"""

import logging
from typing import NamedTuple

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.utils.html import escape

logger = logging.getLogger(__name__)


class StatusEmailResult(NamedTuple):
    sent: bool
    to: str
    subject: str
    sent_to_admin: bool = False


STATUS_TEMPLATES = {
    "pending": (
        "Order Confirmation - {number}",
        "Thank you for your order! Your order {number} has been received and is "
        "currently pending processing.\n\nWe'll send you another email once your order ships.",
    ),
    "confirmed": (
        "Order Confirmed - {number}",
        "Your order {number} has been confirmed.\n\nWe'll let you know as soon as it is "
        "being prepared for shipment.",
    ),
    "processing": (
        "Order Processing - {number}",
        "Great news! Your order {number} is now being processed.\n\nWe're preparing your "
        "items for shipment and will notify you once they're on their way.",
    ),
    "shipped": (
        "Order Shipped - {number}",
        "Your order {number} has been shipped!\n\nYour items are on their way to you. You "
        "should receive them within 3-7 business days.",
    ),
    "delivered": (
        "Order Delivered - {number}",
        "Your order {number} has been delivered!\n\nWe hope you love your purchase. If you "
        "have any issues, please don't hesitate to contact us.\n\nThank you for your business!",
    ),
    "cancelled": (
        "Order Cancelled - {number}",
        "Your order {number} has been cancelled.\n\nIf you have any questions about this "
        "cancellation, please contact our support team.",
    ),
    "payment_failed": (
        "Payment Failed - {number}",
        "We could not process the payment for your order {number}.\n\nYou can retry the "
        "payment from your order page or choose another payment method.",
    ),
}

DEFAULT_TEMPLATE = (
    "Order Update - {number}",
    "There's been an update to your order {number}.\n\nStatus: {status}",
)


def order_url(order):
    return f"{settings.SITE_URL}/order/{order.order_number}"


def status_email_content(order, status):
    """Return (subject, text body) for a status notification."""
    subject_tpl, body_tpl = STATUS_TEMPLATES.get(status, DEFAULT_TEMPLATE)
    number = order.order_number
    name = order.customer_name or "Customer"
    subject = subject_tpl.format(number=number)
    body = (
        f"Dear {name},\n\n"
        + body_tpl.format(number=number, status=status)
        + f"\n\nView your order: {order_url(order)}\n\nBest regards,\n{settings.STORE_NAME}"
    )
    return subject, body


def _text_to_html(text):
    paragraphs = [escape(p).replace("\n", "<br>") for p in text.split("\n\n")]
    inner = "".join(f"<p>{p}</p>" for p in paragraphs)
    return f'<div style="font-family: Arial, sans-serif; line-height: 1.6;">{inner}</div>'


def _recipient(address):
    """Apply TEST_EMAIL_OVERRIDE when set."""
    override = getattr(settings, "TEST_EMAIL_OVERRIDE", "")
    if override:
        logger.info("Redirecting email to test override", extra={"original_to": address})
        return override
    return address


def _send(subject, text, to, html=None):
    message = EmailMultiAlternatives(
        subject=subject,
        body=text,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[to],
        reply_to=[settings.DEFAULT_FROM_EMAIL],
    )
    message.attach_alternative(html or _text_to_html(text), "text/html")
    message.send(fail_silently=False)


def send_order_status_email(order, status=None) -> StatusEmailResult:
    """Notify the customer about an order's status.

    Orders without any customer email produce an admin notification
    instead. Never raises.
    """
    status = status or order.status
    subject, body = status_email_content(order, status)
    customer_email = order.contact_email

    if customer_email:
        to, sent_to_admin = customer_email, False
    else:
        to, sent_to_admin = settings.STORE_ADMIN_EMAIL, True
        subject = f"[ADMIN NOTIFICATION] {subject}"
        body = (
            f"ADMIN NOTIFICATION: No customer email is on file for order {order.order_number}."
            f"\n\nOriginal email content:\n\n{body}"
        )

    to = _recipient(to)
    try:
        _send(subject, body, to)
    except Exception:
        logger.exception(
            "Failed to send order status email",
            extra={"order_number": order.order_number, "status": status},
        )
        return StatusEmailResult(sent=False, to=to, subject=subject, sent_to_admin=sent_to_admin)

    logger.info(
        "Order status email sent",
        extra={
            "order_number": order.order_number,
            "status": status,
            "sent_to_admin": sent_to_admin,
        },
    )
    return StatusEmailResult(sent=True, to=to, subject=subject, sent_to_admin=sent_to_admin)


def send_discount_code_email(email, code, percent_off=15, valid_days=30) -> bool:
    """Send a newsletter welcome code. Never raises."""
    company = settings.STORE_NAME
    subject = f"Your {company} {percent_off}% discount code"
    text = (
        f"Welcome to {company}!\n\n"
        f"Thanks for subscribing. Here's your {percent_off}% off discount code:\n\n"
        f"{code}\n\n"
        f"Apply this code at checkout. Valid for {valid_days} days, one-time use.\n\n"
        f"Happy shopping!\n{company}"
    )
    html = (
        '<div style="font-family: Arial, sans-serif; line-height: 1.6;">'
        f"<h2>Welcome to {escape(company)}!</h2>"
        f"<p>Thanks for subscribing. Here's your <strong>{percent_off}% off</strong> discount code:</p>"
        f'<p style="font-size: 20px; font-weight: bold; letter-spacing: 2px;">{escape(code)}</p>'
        f"<p>Apply this code at checkout. Valid for {valid_days} days, one-time use.</p>"
        f"<p>Happy shopping!<br/>{escape(company)}</p>"
        "</div>"
    )

    try:
        _send(subject, text, _recipient(email), html=html)
    except Exception:
        logger.exception("Failed to send discount code email", extra={"code": code})
        return False

    logger.info("Discount code email sent", extra={"code": code})
    return True
