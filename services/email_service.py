import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from typing import Dict, Optional

from fastapi.concurrency import run_in_threadpool

from errors import EmailDeliveryError
from services.email_templates import render

logger = logging.getLogger(__name__)


class MailSender(ABC):
    """Renders a named template and hands it to ``deliver``."""

    async def send(self, to: str, template: str, data: Dict[str, str]) -> None:
        subject, html = render(template, data)
        try:
            await self.deliver(to, subject, html)
        except Exception as e:
            logger.error("Email sending failed for %s: %s", to, e)
            if isinstance(e, EmailDeliveryError):
                raise
            raise EmailDeliveryError() from e
        logger.info("Email '%s' sent to %s", template, to)

    @abstractmethod
    async def deliver(self, to: str, subject: str, html: str) -> None:
        ...


class SmtpMailSender(MailSender):
    def __init__(self, host: str, port: int, user: Optional[str], password: Optional[str]):
        self.host = host
        self.port = port
        self.user = user
        self.password = password

    def _build_message(self, to: str, subject: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.user or "no-reply@localhost"
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html, subtype="html")
        return message

    def _send_sync(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=30) as smtp:
            smtp.starttls()
            if self.user and self.password:
                smtp.login(self.user, self.password)
            smtp.send_message(message)

    async def deliver(self, to: str, subject: str, html: str) -> None:
        if not self.user:
            raise EmailDeliveryError("Email transport is not configured")
        message = self._build_message(to, subject, html)
        await run_in_threadpool(self._send_sync, message)
