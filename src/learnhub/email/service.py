"""
Outgoing email.

Notification emails are rendered from the template registry and handed to
one delivery provider chosen by ``LEARNHUB_EMAIL_PROVIDER``:

- ``stub``: log only (development and tests)
- ``smtp``: aiosmtplib with STARTTLS
- ``resend``: the Resend HTTP API

Delivery is best effort. A provider error is logged and reported as False,
never raised, so callers running in background tasks need no handling.
"""

from __future__ import annotations

import hashlib
import ssl
from abc import ABC, abstractmethod
from collections.abc import Callable
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import TYPE_CHECKING, Any

import aiosmtplib
import httpx
import structlog

from learnhub.config import Settings, get_settings
from learnhub.email.templates import certificate_email, notification_email

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = structlog.get_logger()

Template = Callable[..., tuple[str, str, str]]

_TEMPLATE_REGISTRY: dict[str, Template] = {
    "notification": notification_email,
    "certificate": certificate_email,
}


class BaseEmailProvider(ABC):
    """A delivery backend. ``send`` reports failure as False."""

    name = "base"

    def __init__(self, from_address: str = "", from_name: str = "") -> None:
        self.from_address = from_address
        self.from_name = from_name

    @property
    def sender(self) -> str:
        return f"{self.from_name} <{self.from_address}>"

    @abstractmethod
    async def deliver(self, to_email: str, subject: str, html_body: str, text_body: str) -> None:
        """Hand the message to the backend; raise on failure."""

    async def send(self, to_email: str, subject: str, html_body: str, text_body: str) -> bool:
        try:
            await self.deliver(to_email, subject, html_body, text_body)
        except Exception:
            logger.exception("email_send_failed", to=to_email, provider=self.name)
            return False
        logger.info("email_sent", to=to_email, subject=subject, provider=self.name)
        return True


class StubProvider(BaseEmailProvider):
    """Logs instead of sending."""

    name = "stub"

    async def deliver(self, to_email: str, subject: str, html_body: str, text_body: str) -> None:
        logger.debug("email_stubbed", to=to_email, subject=subject, chars=len(text_body))


class SMTPProvider(BaseEmailProvider):
    name = "smtp"

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_address: str,
        from_name: str,
        use_tls: bool = True,
    ) -> None:
        super().__init__(from_address, from_name)
        self.host = host
        self.port = port
        self.username = username or None
        self.password = password or None
        self.use_tls = use_tls

    def build_message(self, to_email: str, subject: str, html_body: str, text_body: str) -> MIMEMultipart:
        """multipart/alternative with the plain text part first."""
        message = MIMEMultipart("alternative")
        message["From"] = self.sender
        message["To"] = to_email
        message["Subject"] = subject
        for body, subtype in ((text_body, "plain"), (html_body, "html")):
            message.attach(MIMEText(body, subtype, "utf-8"))
        return message

    async def deliver(self, to_email: str, subject: str, html_body: str, text_body: str) -> None:
        await aiosmtplib.send(
            self.build_message(to_email, subject, html_body, text_body),
            hostname=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            start_tls=self.use_tls,
            tls_context=ssl.create_default_context() if self.use_tls else None,
        )


class ResendProvider(BaseEmailProvider):
    name = "resend"
    API_URL = "https://api.resend.com/emails"

    def __init__(self, api_key: str, from_address: str, from_name: str) -> None:
        super().__init__(from_address, from_name)
        self.api_key = api_key

    async def deliver(self, to_email: str, subject: str, html_body: str, text_body: str) -> None:
        payload = {"from": self.sender, "to": [to_email], "subject": subject, "html": html_body, "text": text_body}
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(
                self.API_URL, headers={"Authorization": f"Bearer {self.api_key}"}, json=payload
            )
            response.raise_for_status()


_PROVIDERS: dict[str, Callable[[Settings], BaseEmailProvider]] = {
    "stub": lambda s: StubProvider(s.email_from_address, s.email_from_name),
    "smtp": lambda s: SMTPProvider(
        host=s.smtp_host,
        port=s.smtp_port,
        username=s.smtp_username,
        password=s.smtp_password,
        from_address=s.email_from_address,
        from_name=s.email_from_name,
        use_tls=s.smtp_use_tls,
    ),
    "resend": lambda s: ResendProvider(s.resend_api_key, s.email_from_address, s.email_from_name),
}


def create_provider(settings: Settings | None = None) -> BaseEmailProvider:
    settings = settings or get_settings()
    factory = _PROVIDERS.get(settings.email_provider.lower())
    if factory is None:
        msg = f"Unsupported email provider: {settings.email_provider}"
        raise ValueError(msg)
    return factory(settings)


class EmailService:
    """Template rendering plus a per-recipient hourly cap.

    The cap needs Redis; without it every send is allowed.
    """

    RATE_LIMIT_MAX = 20
    RATE_LIMIT_WINDOW = 3600

    def __init__(self, provider: BaseEmailProvider | None = None, redis: Redis | None = None) -> None:
        self.provider = provider or create_provider()
        self._redis = redis

    @staticmethod
    def _quota_key(email: str) -> str:
        return "email_quota:" + hashlib.sha256(email.strip().lower().encode()).hexdigest()

    async def _within_quota(self, email: str) -> bool:
        if self._redis is None:
            return True
        key = self._quota_key(email)
        sent = await self._redis.incr(key)
        if sent == 1:
            await self._redis.expire(key, self.RATE_LIMIT_WINDOW)
        return sent <= self.RATE_LIMIT_MAX

    async def send_email(self, to: str, subject: str, html_body: str, text_body: str) -> bool:
        """False when the recipient is over quota or delivery failed."""
        if not await self._within_quota(to):
            logger.warning("email_quota_exceeded", to=to, subject=subject)
            return False
        return await self.provider.send(to, subject, html_body, text_body)

    async def send_template(self, to: str, template_name: str, context: dict[str, Any]) -> bool:
        """Render ``template_name`` with ``context`` as keyword arguments and send.

        Raises ValueError for an unregistered template.
        """
        try:
            render = _TEMPLATE_REGISTRY[template_name]
        except KeyError:
            msg = f"Unknown template: {template_name}"
            raise ValueError(msg) from None
        return await self.send_email(to, *render(**context))


_email_service: EmailService | None = None


def get_email_service(redis: Redis | None = None) -> EmailService:
    """Process-wide service, created on first use."""
    global _email_service  # noqa: PLW0603
    if _email_service is None:
        _email_service = EmailService(redis=redis)
    return _email_service


def set_email_service(service: EmailService | None) -> None:
    """Swap the process-wide service (tests install a provider double)."""
    global _email_service  # noqa: PLW0603
    _email_service = service
