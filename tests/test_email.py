import asyncio
import logging

from services import email_services


class TestDevModeEmail:
    def test_unconfigured_smtp_logs_instead_of_sending(self, caplog):
        assert not email_services.is_email_configured()

        with caplog.at_level(logging.INFO, logger="services.email_services"):
            sent = asyncio.run(email_services.send_otp_email("a@test.com", "123456"))

        assert sent is True
        assert "EMAIL (dev mode)" in caplog.text
        assert "123456" in caplog.text
        assert "<strong>" not in caplog.text

    def test_send_failure_is_logged_not_raised(self, monkeypatch, caplog):
        class BrokenMail:
            async def send_message(self, message):
                raise ConnectionError("smtp down")

        monkeypatch.setattr(email_services, "is_email_configured", lambda: True)
        monkeypatch.setattr(email_services, "_mail_client", lambda: BrokenMail())

        with caplog.at_level(logging.ERROR, logger="services.email_services"):
            sent = asyncio.run(email_services.send_password_changed_notification("a@test.com"))

        assert sent is False
        assert "Email send error" in caplog.text
