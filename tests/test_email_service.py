"""
Tests for SendGrid delivery and its retry policy.
"""

import pytest
import requests

from printshop.services import email_service
from printshop.services.email_service import EmailDeliveryError


class FakeResponse:
    def __init__(self, status_code, text=""):
        self.status_code = status_code
        self.text = text


@pytest.fixture
def sendgrid(monkeypatch):
    """Configure SendGrid and script the answers of requests.post."""
    monkeypatch.setattr(email_service, "SENDGRID_API_KEY", "SG.test")
    monkeypatch.setattr(email_service, "SENDGRID_FROM_EMAIL", "shop@mail.com")
    monkeypatch.setattr(email_service, "EMAIL_MAX_ATTEMPTS", 3)

    sleeps = []
    monkeypatch.setattr(email_service.time, "sleep", lambda s: sleeps.append(s))

    calls = []
    script = []

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.append({"url": url, "headers": headers, "json": json})
        outcome = script.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(email_service.requests, "post", fake_post)

    class Handle:
        pass

    h = Handle()
    h.calls, h.script, h.sleeps = calls, script, sleeps
    return h


class TestSendEmail:

    def test_delivered_first_time(self, sendgrid):
        sendgrid.script.append(FakeResponse(202))
        email_service.send_otp_email("a@mail.com", "123456", "login")

        assert len(sendgrid.calls) == 1
        call = sendgrid.calls[0]
        assert call["url"] == email_service.SENDGRID_URL
        assert call["headers"]["Authorization"] == "Bearer SG.test"
        assert call["json"]["personalizations"][0]["to"] == [{"email": "a@mail.com"}]
        assert "123456" in call["json"]["content"][0]["value"]
        assert sendgrid.sleeps == []

    def test_retries_transient_network_errors(self, sendgrid):
        sendgrid.script.extend([
            requests.ConnectionError("reset by peer"),
            requests.Timeout("slow"),
            FakeResponse(202),
        ])
        email_service.send_verification_email("a@mail.com", "tok")
        assert len(sendgrid.calls) == 3
        assert len(sendgrid.sleeps) == 2

    def test_retries_server_errors(self, sendgrid):
        sendgrid.script.extend([FakeResponse(503), FakeResponse(200)])
        email_service.send_password_reset_email("a@mail.com", "tok")
        assert len(sendgrid.calls) == 2

    def test_gives_up_after_max_attempts(self, sendgrid):
        sendgrid.script.extend([requests.ConnectionError("down")] * 3)
        with pytest.raises(EmailDeliveryError):
            email_service.send_otp_email("a@mail.com", "123456", "login")
        assert len(sendgrid.calls) == 3
        assert len(sendgrid.sleeps) == 2

    def test_client_errors_are_not_retried(self, sendgrid):
        sendgrid.script.append(FakeResponse(401, "bad key"))
        with pytest.raises(EmailDeliveryError):
            email_service.send_otp_email("a@mail.com", "123456", "login")
        assert len(sendgrid.calls) == 1

    def test_missing_configuration(self, monkeypatch):
        monkeypatch.setattr(email_service, "SENDGRID_API_KEY", None)
        with pytest.raises(EmailDeliveryError):
            email_service.send_otp_email("a@mail.com", "123456", "login")

    def test_verification_link_points_at_frontend(self, sendgrid, monkeypatch):
        monkeypatch.setattr(email_service, "FRONTEND_URL", "https://shop.hugli.in")
        sendgrid.script.append(FakeResponse(202))
        email_service.send_verification_email("a@mail.com", "abc123")
        assert "https://shop.hugli.in/verify-email?token=abc123" in sendgrid.calls[0]["json"]["content"][0]["value"]


class TestDeliver:

    def test_reports_failure_without_raising(self, monkeypatch):
        monkeypatch.setattr(email_service, "SENDGRID_API_KEY", None)
        assert email_service.deliver(email_service.send_otp_email, "a@mail.com", "123456", "login") is False

    def test_reports_success(self, sendgrid):
        sendgrid.script.append(FakeResponse(202))
        assert email_service.deliver(email_service.send_otp_email, "a@mail.com", "123456", "login") is True
