"""Tests for the Resend email backend."""

from unittest.mock import MagicMock, patch

import httpx
import pytest
from django.core.mail import EmailMultiAlternatives

from craftshop.core.mail import ResendEmailBackend, ResendError


def make_message(**kwargs):
    defaults = {
        "subject": "Order Confirmation - ORD-1",
        "body": "Thanks!",
        "from_email": "orders@shop.example.com",
        "to": ["buyer@example.com"],
    }
    defaults.update(kwargs)
    return EmailMultiAlternatives(**defaults)


def fake_response(status_code, json_data=None, text=""):
    response = MagicMock(spec=httpx.Response)
    response.status_code = status_code
    response.is_success = 200 <= status_code < 300
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def http_client():
    with patch("craftshop.core.mail.httpx.Client") as client_cls:
        yield client_cls


class TestResendEmailBackend:
    def test_posts_message_payload(self, http_client):
        http_client.return_value.post.return_value = fake_response(200, {"id": "em_123"})
        message = make_message(cc=["cc@example.com"], reply_to=["help@shop.example.com"])
        message.attach_alternative("<p>Thanks!</p>", "text/html")

        sent = ResendEmailBackend(api_key="re_test").send_messages([message])

        assert sent == 1
        http_client.assert_called_once()
        assert http_client.call_args.kwargs["headers"] == {"Authorization": "Bearer re_test"}
        path, = http_client.return_value.post.call_args.args
        payload = http_client.return_value.post.call_args.kwargs["json"]
        assert path == "/emails"
        assert payload["to"] == ["buyer@example.com"]
        assert payload["cc"] == ["cc@example.com"]
        assert payload["reply_to"] == ["help@shop.example.com"]
        assert payload["html"] == "<p>Thanks!</p>"
        assert payload["text"] == "Thanks!"
        http_client.return_value.close.assert_called_once()

    def test_api_error_raises(self, http_client):
        http_client.return_value.post.return_value = fake_response(
            422, {"message": "Invalid from address", "name": "validation_error"}
        )

        with pytest.raises(ResendError) as exc_info:
            ResendEmailBackend(api_key="re_test").send_messages([make_message()])

        assert exc_info.value.status_code == 422
        assert exc_info.value.name == "validation_error"

    def test_api_error_swallowed_when_fail_silently(self, http_client):
        http_client.return_value.post.return_value = fake_response(500, text="boom")

        sent = ResendEmailBackend(api_key="re_test", fail_silently=True).send_messages([make_message()])

        assert sent == 0

    def test_missing_api_key(self, http_client, settings):
        settings.RESEND_API_KEY = ""

        with pytest.raises(ResendError):
            ResendEmailBackend().send_messages([make_message()])
        http_client.assert_not_called()

    def test_empty_batch_sends_nothing(self, http_client):
        assert ResendEmailBackend(api_key="re_test").send_messages([]) == 0
        http_client.assert_not_called()
