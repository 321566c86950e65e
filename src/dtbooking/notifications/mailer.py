"""SMTP mailer rendering Jinja2 templates."""

import asyncio
import logging
import smtplib
import ssl
from email.mime.text import MIMEText
from email.utils import formataddr
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader

from dtbooking.config import settings
from dtbooking.notifications.base import Mailer

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).parent / "templates"


def render_email(template: str, data: dict[str, Any]) -> str:
    """Render ``templates/<template>.txt``."""
    env = Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        keep_trailing_newline=True,
    )
    return env.get_template(f"{template}.txt").render(**data)


class SmtpMailer(Mailer):
    """Sends plain-text mail over SMTP; the blocking session runs in a worker thread."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool | None = None,
    ):
        self.host = host or settings.smtp_host
        self.port = port or settings.smtp_port
        self.username = username if username is not None else settings.smtp_username
        self.password = password if password is not None else settings.smtp_password
        self.use_tls = settings.smtp_use_tls if use_tls is None else use_tls
        self.from_address = formataddr((settings.mail_from_name, settings.mail_from_address))

    async def send(
        self,
        email: str,
        name: str,
        subject: str,
        template: str,
        data: dict[str, Any],
    ) -> bool:
        body = render_email(template, data)
        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = self.from_address
        msg["To"] = formataddr((name or "", email))
        try:
            await asyncio.to_thread(self._deliver, email, msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("SMTP send to %s failed (%s): %s", email, template, exc)
            return False
        logger.info("Email '%s' sent to %s", template, email)
        return True

    def _deliver(self, recipient: str, msg: MIMEText) -> None:
        context = ssl.create_default_context()
        if self.port == 465:
            server = smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=30)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=30)
            if self.use_tls:
                server.starttls(context=context)
        try:
            if self.username:
                server.login(self.username, self.password)
            server.sendmail(settings.mail_from_address, [recipient], msg.as_string())
        finally:
            server.quit()
