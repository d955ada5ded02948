"""Transactional email: rendering, delivery and failure classification.

`ResendEmailTransport` talks to the Resend REST API over httpx and
classifies every failure exactly once into an `EmailFailureKind`.
`Mailer` renders the Jinja2 templates for each auth notification and
hands the result to the transport.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from enum import StrEnum
from functools import lru_cache
from typing import Annotated, Any, Protocol

import httpx
from fastapi import Depends

from shopcore.core.constants import JinjaEmailTemplatesEnv
from shopcore.core.http import get_email_client
from shopcore.core.mixins import utc_now
from shopcore.core.retry import with_retry
from shopcore.core.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class EmailFailureKind(StrEnum):
    network = "network"
    timeout = "timeout"
    authentication = "authentication"
    sender = "sender"
    configuration = "configuration"
    rejected = "rejected"
    unknown = "unknown"


_TRANSIENT_KINDS = frozenset(
    {EmailFailureKind.network, EmailFailureKind.timeout, EmailFailureKind.unknown}
)


class EmailDeliveryError(Exception):
    """Delivery failure with its cause classified at the transport boundary.

    ``detail`` is for operators only and must never reach an API response.
    """

    def __init__(self, kind: EmailFailureKind, detail: str = ""):
        self.kind = kind
        self.detail = detail
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)

    @property
    def transient(self) -> bool:
        return self.kind in _TRANSIENT_KINDS


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html: str
    text: str


class EmailTransport(Protocol):
    async def send(self, message: EmailMessage) -> str: ...


class ResendEmailTransport:
    """Deliver messages through ``POST /emails`` of the Resend API."""

    def __init__(
        self,
        *,
        api_key: str | None,
        sender: str | None,
        client: httpx.AsyncClient,
        attempts: int = 2,
        base_delay: float = 0.2,
    ):
        self.api_key = api_key
        self.sender = sender
        self.client = client
        self.attempts = attempts
        self.base_delay = base_delay

    async def send(self, message: EmailMessage) -> str:
        if not self.api_key:
            raise EmailDeliveryError(
                EmailFailureKind.configuration, "RESEND_API_KEY is not set"
            )
        if not self.sender:
            raise EmailDeliveryError(
                EmailFailureKind.configuration, "EMAIL_FROM is not set"
            )

        return await with_retry(
            lambda: self._post(message),
            attempts=self.attempts,
            exceptions=(EmailDeliveryError,),
            base_delay=self.base_delay,
            retry_if=lambda e: isinstance(e, EmailDeliveryError) and e.transient,
        )

    async def _post(self, message: EmailMessage) -> str:
        payload = {
            "from": self.sender,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
        }
        try:
            response = await self.client.post(
                "/emails",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.TimeoutException as e:
            raise EmailDeliveryError(EmailFailureKind.timeout, str(e)) from e
        except httpx.TransportError as e:
            raise EmailDeliveryError(EmailFailureKind.network, str(e)) from e

        if response.is_success:
            return str(response.json().get("id", ""))

        raise classify_response(response)


def classify_response(response: httpx.Response) -> EmailDeliveryError:
    """Map a non-2xx provider response to a typed delivery error."""
    try:
        body: dict[str, Any] = response.json()
    except ValueError:
        body = {}
    detail = str(body.get("message") or body.get("name") or response.text)
    lowered = detail.lower()
    status = response.status_code

    if status in (401, 403):
        return EmailDeliveryError(EmailFailureKind.authentication, detail)
    if status == 422 and ("from" in lowered or "sender" in lowered):
        return EmailDeliveryError(EmailFailureKind.sender, detail)
    if "api key" in lowered:
        return EmailDeliveryError(EmailFailureKind.configuration, detail)
    if status == 429 or status >= 500:
        return EmailDeliveryError(EmailFailureKind.unknown, f"{status} {detail}")
    return EmailDeliveryError(EmailFailureKind.rejected, f"{status} {detail}")


def _render(template: str, **context: Any) -> tuple[str, str]:
    """Render the html and text variants of an email template."""
    html = JinjaEmailTemplatesEnv.get_template(f"{template}.html.j2").render(**context)
    text = JinjaEmailTemplatesEnv.get_template(f"{template}.txt.j2").render(**context)
    return html, text.strip()


def _format_duration(value: timedelta) -> str:
    minutes = int(value.total_seconds() // 60)
    if minutes % 60 == 0:
        hours = minutes // 60
        return f"{hours} hour" if hours == 1 else f"{hours} hours"
    return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"


class Mailer:
    """Auth notification emails."""

    def __init__(self, transport: EmailTransport, settings: Settings):
        self.transport = transport
        self.settings = settings

    def _context(self, **extra: Any) -> dict[str, Any]:
        return {
            "app_name": self.settings.app_name,
            "client_url": self.settings.client_url,
            "login_url": f"{self.settings.client_url}/login",
            "year": utc_now().year,
            **extra,
        }

    async def _deliver(self, to: str, subject: str, template: str, **ctx: Any) -> str:
        html, text = _render(template, **self._context(**ctx))
        message = EmailMessage(
            to=to,
            subject=f"{subject} - {self.settings.app_name}",
            html=html,
            text=text,
        )
        delivery_id = await self.transport.send(message)
        logger.info("Sent %s email (delivery id %s)", template, delivery_id or "n/a")
        return delivery_id

    def password_reset_url(self, raw_token: str) -> str:
        return f"{self.settings.client_url}/reset-password?token={raw_token}"

    def email_verification_url(self, raw_token: str) -> str:
        return f"{self.settings.client_url}/verify-email/{raw_token}"

    async def send_password_reset(
        self, *, email: str, name: str, raw_token: str
    ) -> str:
        return await self._deliver(
            email,
            "Password Reset Request",
            "password-reset",
            name=name,
            reset_url=self.password_reset_url(raw_token),
            expires_in=_format_duration(self.settings.password_reset_ttl),
        )

    async def send_password_reset_confirmation(self, *, email: str, name: str) -> str:
        return await self._deliver(
            email, "Password Reset Successful", "password-reset-confirmation", name=name
        )

    async def send_password_changed(self, *, email: str, name: str) -> str:
        return await self._deliver(
            email, "Password Changed", "password-changed", name=name
        )

    async def send_email_verification(
        self, *, email: str, name: str, raw_token: str
    ) -> str:
        return await self._deliver(
            email,
            "Verify Your Email",
            "email-verification",
            name=name,
            verification_url=self.email_verification_url(raw_token),
            expires_in=_format_duration(self.settings.email_verification_ttl),
        )

    async def send_email_verified(self, *, email: str, name: str) -> str:
        return await self._deliver(
            email, "Email Verified Successfully", "email-verified", name=name
        )


@lru_cache
def get_mailer() -> Mailer:
    settings = get_settings()
    transport = ResendEmailTransport(
        api_key=settings.resend_api_key,
        sender=settings.email_from,
        client=get_email_client(),
        attempts=settings.email_retry_attempts,
    )
    return Mailer(transport, settings)


MailerDep = Annotated[Mailer, Depends(get_mailer)]
