"""Unit tests for the SMTP client and transmitter.

Tests the SMTPClient for:
- Connection handling (SMTP and SMTP_SSL)
- TLS/STARTTLS negotiation
- Authentication (with and without credentials)
- Classification of failures as transient or permanent

And SMTPTransmitter for message construction from notification jobs.
"""

import smtplib
from email.message import EmailMessage
from unittest.mock import MagicMock, Mock

import pytest

from task_notifier.config.environment import EnvironmentConfig
from task_notifier.config.models import DeliverySettings
from task_notifier.notifications.models import (
    PermanentDeliveryFailure,
    TransientDeliveryFailure,
)
from task_notifier.notifications.smtp_client import (
    SMTPClient,
    SMTPTransmitter,
    build_sender_address,
    classify_smtp_error,
    normalize_recipient,
)


@pytest.fixture
def env_config_with_auth():
    return EnvironmentConfig(
        smtp_host="smtp.example.com",
        smtp_port=587,
        smtp_user="user@example.com",
        smtp_pass="secret123",
    )


@pytest.fixture
def env_config_without_auth():
    return EnvironmentConfig(smtp_host="smtp.example.com", smtp_port=25)


@pytest.fixture
def env_config_implicit_tls():
    return EnvironmentConfig(
        smtp_host="smtp.gmail.com",
        smtp_port=465,
        smtp_user="user@gmail.com",
        smtp_pass="apppassword",
    )


@pytest.fixture
def sample_message():
    msg = EmailMessage()
    msg["Subject"] = "New Task Created"
    msg["From"] = "notifications@example.com"
    msg["To"] = "a@example.com"
    msg.set_content("Test body")
    return msg


def test_smtp_client_send_with_starttls(env_config_with_auth, sample_message):
    mock_smtp = MagicMock()
    mock_factory = Mock(return_value=mock_smtp)

    SMTPClient(smtp_factory=mock_factory).send(sample_message, env_config_with_auth, use_tls=True)

    mock_factory.assert_called_once_with("smtp.example.com", 587)
    mock_smtp.starttls.assert_called_once()
    mock_smtp.login.assert_called_once_with("user@example.com", "secret123")
    mock_smtp.send_message.assert_called_once_with(sample_message)
    mock_smtp.quit.assert_called_once()


def test_smtp_client_send_with_implicit_tls(env_config_implicit_tls, sample_message):
    mock_smtp_ssl = MagicMock()
    mock_ssl_factory = Mock(return_value=mock_smtp_ssl)

    SMTPClient(smtp_ssl_factory=mock_ssl_factory).send(
        sample_message, env_config_implicit_tls, use_tls=True
    )

    call_args = mock_ssl_factory.call_args
    assert call_args[0] == ("smtp.gmail.com", 465)
    assert "context" in call_args[1]
    mock_smtp_ssl.starttls.assert_not_called()
    mock_smtp_ssl.login.assert_called_once_with("user@gmail.com", "apppassword")
    mock_smtp_ssl.quit.assert_called_once()


def test_smtp_client_send_without_auth_or_tls(env_config_without_auth, sample_message):
    mock_smtp = MagicMock()

    SMTPClient(smtp_factory=Mock(return_value=mock_smtp)).send(
        sample_message, env_config_without_auth, use_tls=False
    )

    mock_smtp.starttls.assert_not_called()
    mock_smtp.login.assert_not_called()
    mock_smtp.send_message.assert_called_once_with(sample_message)


def test_smtp_client_permanent_failure_still_quits(env_config_with_auth, sample_message):
    mock_smtp = MagicMock()
    mock_smtp.send_message.side_effect = smtplib.SMTPRecipientsRefused(
        {"a@example.com": (550, b"No such user")}
    )

    with pytest.raises(PermanentDeliveryFailure):
        SMTPClient(smtp_factory=Mock(return_value=mock_smtp)).send(
            sample_message, env_config_with_auth
        )

    mock_smtp.quit.assert_called_once()


def test_smtp_client_connection_error_is_transient(env_config_with_auth, sample_message):
    mock_factory = Mock(side_effect=ConnectionRefusedError("refused"))

    with pytest.raises(TransientDeliveryFailure) as exc_info:
        SMTPClient(smtp_factory=mock_factory).send(sample_message, env_config_with_auth)

    assert isinstance(exc_info.value.__cause__, ConnectionRefusedError)


def test_smtp_client_error_on_quit_is_ignored(env_config_with_auth, sample_message):
    mock_smtp = MagicMock()
    mock_smtp.quit.side_effect = smtplib.SMTPServerDisconnected("gone")

    SMTPClient(smtp_factory=Mock(return_value=mock_smtp)).send(sample_message, env_config_with_auth)

    mock_smtp.send_message.assert_called_once()


class TestClassifySmtpError:
    @pytest.mark.parametrize(
        "error",
        [
            smtplib.SMTPRecipientsRefused({"a@example.com": (550, b"No such user")}),
            smtplib.SMTPSenderRefused(553, b"Sender rejected", "notifications@example.com"),
            smtplib.SMTPDataError(554, b"Policy rejection"),
            smtplib.SMTPAuthenticationError(535, b"Bad credentials"),
        ],
    )
    def test_permanent(self, error):
        failure = classify_smtp_error(error)

        assert isinstance(failure, PermanentDeliveryFailure)
        assert failure.retryable is False

    @pytest.mark.parametrize(
        "error",
        [
            smtplib.SMTPRecipientsRefused({"a@example.com": (450, b"Mailbox busy")}),
            smtplib.SMTPServerDisconnected("Connection unexpectedly closed"),
            smtplib.SMTPConnectError(421, b"Too many connections"),
            smtplib.SMTPDataError(451, b"Try again later"),
            TimeoutError("timed out"),
            OSError("network unreachable"),
            smtplib.SMTPException("unknown"),
        ],
    )
    def test_transient(self, error):
        failure = classify_smtp_error(error)

        assert isinstance(failure, TransientDeliveryFailure)
        assert failure.retryable is True

    def test_mixed_recipient_refusals_are_permanent(self):
        error = smtplib.SMTPRecipientsRefused(
            {"a@example.com": (450, b"busy"), "b@example.com": (550, b"unknown")}
        )

        assert isinstance(classify_smtp_error(error), PermanentDeliveryFailure)


def test_build_sender_address():
    settings = DeliverySettings(sender_name="Task Notifier", sender_email="tasks@acme.com")

    assert build_sender_address(settings) == "Task Notifier <tasks@acme.com>"


def test_normalize_recipient_invalid_is_permanent():
    with pytest.raises(PermanentDeliveryFailure, match="Invalid recipient"):
        normalize_recipient("not an address")


class TestSMTPTransmitter:
    @pytest.fixture
    def transmitter(self, env_config_with_auth):
        settings = DeliverySettings(sender_name="Task Notifier", sender_email="tasks@acme.com")
        return SMTPTransmitter(env_config_with_auth, settings, smtp_client=Mock(spec=SMTPClient))

    def test_build_message_headers(self, transmitter, make_job):
        job = make_job()

        message = transmitter.build_message(job)

        assert message["Subject"] == "New Task Created"
        assert message["From"] == "Task Notifier <tasks@acme.com>"
        assert message["To"] == "a@example.com"
        assert message["Message-ID"] == f"<{job.idempotency_key}@acme.com>"
        assert message["X-Notification-Job"] == job.id

    def test_build_message_is_multipart_with_html(self, transmitter, make_job):
        message = transmitter.build_message(make_job())

        assert message.is_multipart()
        assert message.get_body(preferencelist=("plain",)).get_content().strip() == "Task #7"
        assert "<p>Task #7</p>" in message.get_body(preferencelist=("html",)).get_content()

    def test_build_message_text_only(self, transmitter, make_job):
        message = transmitter.build_message(make_job(html_body=""))

        assert not message.is_multipart()

    def test_redelivered_job_keeps_message_id(self, transmitter, make_job):
        first = make_job()
        second = make_job()

        assert first.id != second.id
        assert (
            transmitter.build_message(first)["Message-ID"]
            == transmitter.build_message(second)["Message-ID"]
        )

    def test_transmit_sends_through_client(self, transmitter, make_job, env_config_with_auth):
        transmitter.transmit(make_job())

        message, env_config, use_tls = transmitter.smtp_client.send.call_args[0]
        assert message["To"] == "a@example.com"
        assert env_config is env_config_with_auth
        assert use_tls is True

    def test_transmit_invalid_recipient_is_permanent(self, transmitter, make_job):
        with pytest.raises(PermanentDeliveryFailure):
            transmitter.transmit(make_job(recipient="not-an-address"))

        transmitter.smtp_client.send.assert_not_called()
