"""
Outgoing email for the contact and membership forms.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import List, Optional, Protocol, Tuple, runtime_checkable
import asyncio
import logging
import smtplib

logger = logging.getLogger(__name__)

# (filename, content_type, data)
Attachment = Tuple[str, str, bytes]


class MailDeliveryError(Exception):
    """The SMTP server rejected or could not receive the message."""


def build_message(
    sender: str,
    recipient: str,
    subject: str,
    body: str,
    reply_to: Optional[str] = None,
    attachments: Optional[List[Attachment]] = None,
) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = sender
    msg["To"] = recipient
    if reply_to:
        msg["Reply-To"] = reply_to
    msg.set_content(body)

    for filename, content_type, data in attachments or []:
        maintype, _, subtype = (content_type or "application/octet-stream").partition("/")
        msg.add_attachment(
            data,
            maintype=maintype,
            subtype=subtype or "octet-stream",
            filename=filename,
        )
    return msg


@runtime_checkable
class Mailer(Protocol):
    """Anything that can deliver a form submission to the club inbox."""

    async def send(
        self,
        subject: str,
        body: str,
        reply_to: Optional[str] = None,
        attachments: Optional[List[Attachment]] = None,
    ) -> None:
        ...


class SmtpMailer:
    """Sends mail through the configured SMTP server."""

    def __init__(self, host: str, port: int, user: str, password: str, use_tls: bool,
                 sender: str, recipient: str):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.use_tls = use_tls
        self.sender = sender or user
        self.recipient = recipient or self.sender

    def _deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=15) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.user:
                smtp.login(self.user, self.password)
            smtp.send_message(msg)

    async def send(self, subject: str, body: str, reply_to: Optional[str] = None,
                   attachments: Optional[List[Attachment]] = None) -> None:
        """
        Send one message to the site's contact recipient.

        Raises:
            MailDeliveryError: If the SMTP exchange fails
        """
        msg = build_message(self.sender, self.recipient, subject, body, reply_to, attachments)
        try:
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP delivery failed for '{subject}': {str(e)}")
            raise MailDeliveryError(str(e)) from e
        logger.info(f"Sent email '{subject}' to {self.recipient}")


@dataclass
class InMemoryMailer:
    """Keeps messages in memory; used in tests and when SMTP is not configured."""

    sender: str = "no-reply@localhost"
    recipient: str = "admin@localhost"
    sent: List[EmailMessage] = field(default_factory=list)

    async def send(self, subject: str, body: str, reply_to: Optional[str] = None,
                   attachments: Optional[List[Attachment]] = None) -> None:
        msg = build_message(self.sender, self.recipient, subject, body, reply_to, attachments)
        self.sent.append(msg)
        logger.info(f"Stored email '{subject}' in memory")


def build_mailer(settings) -> Mailer:
    if not settings.SMTP_HOST:
        logger.warning("SMTP_HOST not configured, emails will be kept in memory only")
        return InMemoryMailer(
            sender=settings.SMTP_FROM or "no-reply@localhost",
            recipient=settings.CONTACT_RECIPIENT or "admin@localhost",
        )
    return SmtpMailer(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        user=settings.SMTP_USER,
        password=settings.SMTP_PASSWORD,
        use_tls=settings.SMTP_USE_TLS,
        sender=settings.SMTP_FROM,
        recipient=settings.CONTACT_RECIPIENT,
    )
