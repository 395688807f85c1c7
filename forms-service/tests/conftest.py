"""
Shared fixtures: a recording mailer injected through the app factory, so no
test ever opens an SMTP connection.
"""

import os

import pytest

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("SMTP_HOST", "")

import settings  # noqa: E402
from transport import TransportResult  # noqa: E402


CONTACT_INBOX = "inbox@agency.test"
CAREERS_INBOX = "hr@agency.test"


def _make_mail_settings(to_address: str, from_address: str) -> settings.MailSettings:
    return settings.MailSettings(
        host="smtp.agency.test",
        port=587,
        user="mailer",
        password="secret-password",
        from_address=from_address,
        to_address=to_address,
    )


class RecordingMailer:
    """Stands in for SMTPMailer: keeps every message, optionally fails."""

    def __init__(self, config: settings.MailSettings, fail_with: str | None = None):
        self.config = config
        self.fail_with = fail_with
        self.sent = []

    def send(self, msg):
        self.sent.append(msg)
        if self.fail_with:
            return TransportResult(success=False, error=self.fail_with)
        return TransportResult(success=True)

    def summary(self) -> dict:
        return self.config.summary()


@pytest.fixture
def contact_mailer():
    return RecordingMailer(_make_mail_settings(CONTACT_INBOX, '"7ZeroMedia" <mailer@agency.test>'))


@pytest.fixture
def careers_mailer():
    return RecordingMailer(_make_mail_settings(CAREERS_INBOX, '"7ZeroMedia Careers" <hr-mailer@agency.test>'))


@pytest.fixture
def app(contact_mailer, careers_mailer):
    from main import create_app

    config = settings.load({"APP_ENV": "test"})
    flask_app = create_app(config, contact_mailer=contact_mailer, careers_mailer=careers_mailer)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()
