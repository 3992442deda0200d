import pytest

from errors import EmailDeliveryError
from services.email_service import MailSender, SmtpMailSender
from services.email_templates import render
from tests.conftest import FakeMailSender, run


def test_password_reset_template_contains_code():
    subject, html = render("passwordReset", {"otp": "123456"})

    assert subject == "Password Reset Request"
    assert "123456" in html
    assert "expire in 1 hour" in html


def test_welcome_template_greets_by_name():
    subject, html = render("welcome", {"name": "Alice"})

    assert "Hi Alice" in html


def test_unknown_template():
    with pytest.raises(ValueError):
        render("newsletter", {})


def test_transport_errors_become_delivery_errors():
    sender = FakeMailSender()
    sender.fail = True

    with pytest.raises(EmailDeliveryError):
        run(sender.send("alice@example.com", "welcome", {"name": "Alice"}))


def test_unconfigured_smtp_sender_refuses_to_send():
    sender = SmtpMailSender(host="localhost", port=25, user=None, password=None)

    with pytest.raises(EmailDeliveryError):
        run(sender.send("alice@example.com", "welcome", {"name": "Alice"}))


def test_smtp_message_is_html():
    sender = SmtpMailSender(host="localhost", port=25, user="noreply@example.com", password="secret")

    message = sender._build_message("alice@example.com", "Hello", "<p>Hi</p>")

    assert message["To"] == "alice@example.com"
    assert message["From"] == "noreply@example.com"
    assert "<p>Hi</p>" in message.get_body(preferencelist=("html",)).get_content()


def test_sender_needs_a_transport():
    with pytest.raises(TypeError):
        MailSender()
