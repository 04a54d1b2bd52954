"""Tests for order and newsletter emails."""

from unittest.mock import patch

import pytest
from django.core import mail

from craftshop.store.emails import (
    send_discount_code_email,
    send_order_status_email,
    status_email_content,
)


@pytest.mark.django_db
class TestOrderStatusEmail:
    def test_sent_to_customer_with_html(self, order):
        result = send_order_status_email(order, "processing")

        assert result.sent is True
        assert result.to == "guest@example.com"
        assert result.sent_to_admin is False
        message = mail.outbox[0]
        assert message.subject == f"Order Processing - {order.order_number}"
        assert "Dear Ayesha Khan," in message.body
        assert f"https://shop.example.com/order/{order.order_number}" in message.body
        html, mimetype = message.alternatives[0]
        assert mimetype == "text/html"
        assert "<p>Dear Ayesha Khan,</p>" in html

    def test_falls_back_to_admin_without_customer_email(self, order):
        order.customer_email = ""

        result = send_order_status_email(order, "shipped")

        assert result.sent_to_admin is True
        assert result.to == "admin@shop.example.com"
        assert result.subject.startswith("[ADMIN NOTIFICATION] Order Shipped")
        assert "No customer email is on file" in mail.outbox[0].body

    def test_test_override_redirects(self, order, settings):
        settings.TEST_EMAIL_OVERRIDE = "qa@example.com"

        result = send_order_status_email(order)

        assert result.to == "qa@example.com"
        assert mail.outbox[0].to == ["qa@example.com"]

    def test_failure_is_reported_not_raised(self, order):
        with patch("craftshop.store.emails.EmailMultiAlternatives.send", side_effect=OSError("smtp down")):
            result = send_order_status_email(order, "delivered")

        assert result.sent is False
        assert mail.outbox == []

    def test_unknown_status_uses_generic_template(self, order):
        subject, body = status_email_content(order, "on_hold")

        assert subject == f"Order Update - {order.order_number}"
        assert "Status: on_hold" in body


class TestDiscountCodeEmail:
    def test_sends_code(self):
        assert send_discount_code_email("fan@example.com", "WELCOME15-ABC123") is True

        message = mail.outbox[0]
        assert message.to == ["fan@example.com"]
        assert "WELCOME15-ABC123" in message.body
        assert "15% off" in message.alternatives[0][0]
