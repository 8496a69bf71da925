"""Outgoing mail with SMTP or a local sendmail binary."""
from __future__ import annotations

import smtplib
import subprocess
from email.message import EmailMessage
from typing import Optional

from core.config import Settings
from core.exceptions import MailError
from core.logging_config import get_logger

LOGGER = get_logger(__name__)

TRANSPORT_SMTP = "smtp"
TRANSPORT_SENDMAIL = "sendmail"
TRANSPORT_DISABLED = "disabled"


class Mailer:
    """
    Chooses a transport once at startup and sends messages through it.

    Resolution order: explicit configuration, a sendmail binary on disk, then a
    disabled transport that refuses to send.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.transport: Optional[str] = None
        self.state_message: Optional[str] = None

    def init(self) -> str:
        if self.settings.is_mail_configured():
            self.transport = self.settings.mail_transport
        elif self.settings.sendmail_path.exists():
            self.transport = TRANSPORT_SENDMAIL
        else:
            self.transport = TRANSPORT_DISABLED
            self.state_message = (
                "Inkwell is attempting to use a direct method to send e-mail but could not "
                "find a mail transport. Configure MAIL_TRANSPORT to enable e-mail."
            )
            LOGGER.warning(self.state_message)

        LOGGER.info("Mail transport: %s", self.transport)
        return self.transport

    @property
    def enabled(self) -> bool:
        return self.transport in (TRANSPORT_SMTP, TRANSPORT_SENDMAIL)

    def build_message(self, to: str, subject: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.settings.mail_from or f"Inkwell <inkwell@{self._sender_domain()}>"
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html, subtype="html")
        return message

    def send(self, message: EmailMessage) -> None:
        """
        Deliver ``message`` with the configured transport.

        Raises:
            MailError: If mail is not initialised, disabled, or delivery fails.
        """
        if self.transport is None:
            raise MailError("Mail has not been initialised")
        if not self.enabled:
            raise MailError("E-mail has not been configured")

        try:
            if self.transport == TRANSPORT_SMTP:
                self._send_smtp(message)
            else:
                self._send_sendmail(message)
        except (OSError, smtplib.SMTPException, subprocess.SubprocessError) as exc:
            LOGGER.error("Mail delivery failed: %s", exc)
            raise MailError(f"Mail delivery failed: {exc}") from exc

        LOGGER.info("Mail sent to %s", message["To"])

    def _send_smtp(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.settings.mail_host, self.settings.mail_port, timeout=30) as smtp:
            if self.settings.mail_use_tls:
                smtp.starttls()
            if self.settings.mail_user:
                smtp.login(self.settings.mail_user, self.settings.mail_password or "")
            smtp.send_message(message)

    def _send_sendmail(self, message: EmailMessage) -> None:
        subprocess.run(
            [str(self.settings.sendmail_path), "-t", "-oi"],
            input=message.as_bytes(),
            check=True,
            timeout=30,
        )

    def _sender_domain(self) -> str:
        from urllib.parse import urlparse

        return urlparse(self.settings.url).hostname or "localhost"


__all__ = ["Mailer", "TRANSPORT_SMTP", "TRANSPORT_SENDMAIL", "TRANSPORT_DISABLED"]
