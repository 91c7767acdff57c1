# app/mail/transport.py
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Protocol

from app.core.config import get_settings
from app.core.errors import TransientDispatchFailure


@dataclass(frozen=True)
class OutboundMail:
    sender: str
    sender_password: str
    recipient: str
    subject: str
    html: str


class MailTransport(Protocol):
    def send(self, mail: OutboundMail) -> None:
        """Deliver one mail or raise TransientDispatchFailure."""


class SmtpMailTransport:
    """Sends each mail over a fresh SMTP session authenticated as the sender."""

    def __init__(self, host: str, port: int, use_ssl: bool = True, timeout: float = 10.0):
        self.host = host
        self.port = port
        self.use_ssl = use_ssl
        self.timeout = timeout

    def _connect(self) -> smtplib.SMTP:
        if self.use_ssl:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        smtp = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        smtp.starttls()
        return smtp

    def send(self, mail: OutboundMail) -> None:
        message = EmailMessage()
        message["From"] = mail.sender
        message["To"] = mail.recipient
        message["Subject"] = mail.subject
        message.set_content(mail.html, subtype="html")
        try:
            with self._connect() as smtp:
                smtp.login(mail.sender, mail.sender_password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise TransientDispatchFailure(f"Mail to {mail.recipient} failed: {exc}") from exc


def get_mail_transport() -> MailTransport:
    settings = get_settings()
    return SmtpMailTransport(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        use_ssl=settings.SMTP_USE_SSL,
        timeout=settings.SMTP_TIMEOUT_SECONDS,
    )
