"""SMTP transmission provider.

``SMTPClient`` is a thin wrapper around smtplib that handles TLS/SSL,
authentication and connection cleanup, and classifies every failure as
transient or permanent. ``SMTPTransmitter`` turns a NotificationJob into a
multipart EmailMessage and hands it to the client.
"""

import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Callable, Optional

from email_validator import EmailNotValidError, validate_email

from task_notifier.config.environment import EnvironmentConfig
from task_notifier.config.models import DeliverySettings
from task_notifier.domain.models import NotificationJob

from .models import DeliveryError, PermanentDeliveryFailure, TransientDeliveryFailure

logger = logging.getLogger(__name__)


class SMTPClient:
    """Wrapper around smtplib for sending email messages.

    Factories are injectable so tests can swap in mocks for smtplib.SMTP and
    smtplib.SMTP_SSL.
    """

    def __init__(
        self,
        smtp_factory: Optional[Callable] = None,
        smtp_ssl_factory: Optional[Callable] = None,
    ):
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL

    def send(
        self,
        message: EmailMessage,
        env_config: EnvironmentConfig,
        use_tls: bool = True,
    ) -> None:
        """Send a message, always closing the connection afterwards.

        Port 465 uses implicit TLS; any other port uses STARTTLS when
        ``use_tls`` is set.

        Raises:
            TransientDeliveryFailure: Network errors, disconnects, 4xx replies
            PermanentDeliveryFailure: Refused recipients/sender, 5xx replies
        """
        smtp = None
        try:
            if env_config.smtp_port == 465:
                logger.debug(
                    f"Connecting to {env_config.smtp_host}:{env_config.smtp_port} with implicit TLS"
                )
                smtp = self.smtp_ssl_factory(
                    env_config.smtp_host, env_config.smtp_port, context=ssl.create_default_context()
                )
            else:
                logger.debug(f"Connecting to {env_config.smtp_host}:{env_config.smtp_port}")
                smtp = self.smtp_factory(env_config.smtp_host, env_config.smtp_port)

                if use_tls:
                    logger.debug("Upgrading connection with STARTTLS")
                    smtp.starttls(context=ssl.create_default_context())

            if env_config.smtp_user and env_config.smtp_pass:
                logger.debug(f"Authenticating as {env_config.smtp_user}")
                smtp.login(env_config.smtp_user, env_config.smtp_pass)

            smtp.send_message(message)
            logger.debug(f"Message sent successfully to {message['To']}")

        except (smtplib.SMTPException, OSError) as e:
            failure = classify_smtp_error(e)
            logger.error(f"{type(failure).__name__}: {failure}")
            raise failure from e
        finally:
            if smtp is not None:
                try:
                    smtp.quit()
                except (smtplib.SMTPException, OSError) as e:
                    logger.warning(f"Error closing SMTP connection: {e}")


def classify_smtp_error(error: Exception) -> DeliveryError:
    """Map an smtplib/socket error to a transient or permanent failure.

    - Refused recipients: permanent if any refusal is 5xx, else transient
    - Refused sender: permanent
    - Connect errors and disconnects: transient
    - Other replies: 4xx transient, 5xx permanent
    - Socket errors and anything else: transient
    """
    if isinstance(error, smtplib.SMTPRecipientsRefused):
        codes = [code for code, _ in error.recipients.values()]
        if any(code >= 500 for code in codes):
            return PermanentDeliveryFailure(f"Recipient refused: {error.recipients}")
        return TransientDeliveryFailure(f"Recipient temporarily refused: {error.recipients}")

    if isinstance(error, smtplib.SMTPSenderRefused):
        return PermanentDeliveryFailure(f"Sender refused ({error.smtp_code}): {error.sender}")

    if isinstance(error, (smtplib.SMTPConnectError, smtplib.SMTPServerDisconnected)):
        return TransientDeliveryFailure(f"SMTP connection problem: {error}")

    if isinstance(error, smtplib.SMTPResponseException):
        if 400 <= error.smtp_code < 500:
            return TransientDeliveryFailure(f"SMTP temporary failure ({error.smtp_code}): {error}")
        return PermanentDeliveryFailure(f"SMTP rejected message ({error.smtp_code}): {error}")

    if isinstance(error, OSError):
        return TransientDeliveryFailure(f"Network error during SMTP connection: {error}")

    return TransientDeliveryFailure(f"SMTP error during message delivery: {error}")


def build_sender_address(settings: DeliverySettings) -> str:
    """Format the From header, e.g. ``Task Notifier <notifications@example.com>``."""
    return f"{settings.sender_name} <{settings.sender_email}>"


def normalize_recipient(address: str) -> str:
    """Validate and normalize one recipient address.

    Raises:
        PermanentDeliveryFailure: If the address is syntactically invalid
    """
    try:
        return validate_email(address, check_deliverability=False).normalized
    except EmailNotValidError as e:
        raise PermanentDeliveryFailure(f"Invalid recipient address '{address}': {e}") from e


class SMTPTransmitter:
    """Transmission provider that sends NotificationJobs over SMTP."""

    def __init__(
        self,
        env_config: EnvironmentConfig,
        settings: DeliverySettings,
        smtp_client: Optional[SMTPClient] = None,
    ):
        self.env_config = env_config
        self.settings = settings
        self.smtp_client = smtp_client or SMTPClient()

    def build_message(self, job: NotificationJob) -> EmailMessage:
        """Multipart message (plain text with HTML alternative) for ``job``.

        The Message-ID is derived from the job's idempotency key, so a
        redelivered job carries the same Message-ID as the original.

        Raises:
            PermanentDeliveryFailure: If the recipient address is invalid
        """
        recipient = normalize_recipient(job.recipient)
        sender_domain = str(self.settings.sender_email).split("@", 1)[1]

        message = EmailMessage()
        message["Subject"] = job.subject
        message["From"] = build_sender_address(self.settings)
        message["To"] = recipient
        message["Message-ID"] = f"<{job.idempotency_key}@{sender_domain}>"
        message["X-Notification-Job"] = job.id
        message.set_content(job.text_body)
        if job.html_body:
            message.add_alternative(job.html_body, subtype="html")
        return message

    def transmit(self, job: NotificationJob) -> None:
        """Send ``job``; raises a classified DeliveryError on failure."""
        self.smtp_client.send(self.build_message(job), self.env_config, self.settings.use_tls)
