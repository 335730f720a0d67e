"""Plain-text email delivery over SMTP."""

from __future__ import annotations

import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional, Sequence

import structlog

from bookastay.config import (
    EMAIL_FROM,
    HTTP_TIMEOUT_SECONDS,
    SMTP_HOST,
    SMTP_PASSWORD,
    SMTP_PORT,
    SMTP_USE_SSL,
    SMTP_USERNAME,
)

logger = structlog.get_logger(__name__)


@dataclass
class Attachment:
    filename: str
    content: bytes
    mime_type: str = "application/pdf"


class Mailer:
    def __init__(
        self,
        host: str = SMTP_HOST,
        port: int = SMTP_PORT,
        username: Optional[str] = SMTP_USERNAME,
        password: Optional[str] = SMTP_PASSWORD,
        use_ssl: bool = SMTP_USE_SSL,
        sender: str = EMAIL_FROM,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_ssl = use_ssl
        self.sender = sender
        self.timeout = timeout

    def _connect(self) -> smtplib.SMTP:
        if self.use_ssl:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        smtp = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        smtp.starttls()
        return smtp

    def send(
        self,
        to: str,
        subject: str,
        body: str,
        attachments: Sequence[Attachment] = (),
    ) -> None:
        """
        Send one message. SMTP errors propagate so the outbox can retry.

        Args:
            to: Recipient address
            subject: Subject line
            body: Plain-text body
            attachments: Files to attach
        """
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)

        for attachment in attachments:
            maintype, _, subtype = attachment.mime_type.partition("/")
            message.add_attachment(
                attachment.content,
                maintype=maintype,
                subtype=subtype or "octet-stream",
                filename=attachment.filename,
            )

        with self._connect() as smtp:
            if self.username and self.password:
                smtp.login(self.username, self.password)
            smtp.send_message(message)

        logger.info("email_sent", to=to, subject=subject, attachments=len(attachments))
