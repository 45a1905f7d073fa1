"""Transactional email delivery — Resend / SendGrid integration."""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from folio_engine.common.config import FolioSettings

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"
SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"


@dataclass(frozen=True)
class SendResult:
    ok: bool
    provider: str
    provider_id: Optional[str] = None
    error: Optional[str] = None


class EmailSender:
    """Sends HTML email through the configured provider.

    A send counts as delivered only on a 2xx answer that carries a
    provider-assigned message id. Failures come back as a SendResult with
    the provider's own message where it gave one; nothing here raises.
    """

    def __init__(
        self,
        provider: str = "",
        api_key: str = "",
        from_email: str = "no-reply@example.com",
        from_name: str = "Folio",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        self.provider = provider.lower()  # "sendgrid" or "resend"
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.timeout = timeout
        self._http_client = http_client

    @classmethod
    def from_settings(cls, settings: FolioSettings) -> "EmailSender":
        return cls(
            provider=settings.email_provider,
            api_key=settings.email_api_key,
            from_email=settings.email_from,
            from_name=settings.email_from_name,
            timeout=settings.http_timeout,
        )

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def send(
        self,
        to_email: str,
        subject: str,
        html: str,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> SendResult:
        sender = from_email or self.from_email
        name = from_name or self.from_name
        if not self.api_key or self.provider not in ("resend", "sendgrid"):
            logger.warning("No email provider configured", extra={"provider": self.provider})
            return SendResult(ok=False, provider=self.provider or "none", error="Email provider is not configured")

        try:
            if self.provider == "sendgrid":
                return await self._send_sendgrid(to_email, subject, html, sender, name, reply_to)
            return await self._send_resend(to_email, subject, html, sender, name, reply_to)
        except httpx.HTTPError as exc:
            logger.warning("Email send failed", extra={"provider": self.provider, "error": type(exc).__name__})
            return SendResult(ok=False, provider=self.provider, error=f"{self.provider} unreachable: {type(exc).__name__}")

    async def _send_resend(
        self, to: str, subject: str, html: str, sender: str, name: str, reply_to: Optional[str]
    ) -> SendResult:
        body = {
            "from": f"{name} <{sender}>",
            "to": [to],
            "subject": subject,
            "html": html,
        }
        if reply_to:
            body["reply_to"] = reply_to
        resp = await self._get_http_client().post(
            RESEND_URL,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            json=body,
        )
        payload = _json(resp)
        message_id = payload.get("id")
        if resp.is_success and message_id:
            logger.info("Resend email sent", extra={"provider_id": message_id})
            return SendResult(ok=True, provider="resend", provider_id=message_id)
        error = payload.get("message") or payload.get("error") or "send failed"
        logger.warning("Resend error", extra={"status_code": resp.status_code, "error": error})
        return SendResult(ok=False, provider="resend", error=str(error))

    async def _send_sendgrid(
        self, to: str, subject: str, html: str, sender: str, name: str, reply_to: Optional[str]
    ) -> SendResult:
        body = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": sender, "name": name},
            "subject": subject,
            "content": [{"type": "text/html", "value": html}],
        }
        if reply_to:
            body["reply_to"] = {"email": reply_to}
        resp = await self._get_http_client().post(
            SENDGRID_URL,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            json=body,
        )
        message_id = resp.headers.get("X-Message-Id")
        if resp.is_success and message_id:
            logger.info("SendGrid email sent", extra={"provider_id": message_id})
            return SendResult(ok=True, provider="sendgrid", provider_id=message_id)
        errors = _json(resp).get("errors") or []
        error = errors[0].get("message") if errors and isinstance(errors[0], dict) else None
        logger.warning("SendGrid error", extra={"status_code": resp.status_code, "error": error})
        return SendResult(ok=False, provider="sendgrid", error=error or "send failed")

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None


def _json(resp: httpx.Response) -> dict:
    try:
        payload = resp.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}
