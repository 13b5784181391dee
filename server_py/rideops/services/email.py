from __future__ import annotations

import html
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import httpx

from rideops.core.config import settings

logger = logging.getLogger(__name__)

CREDENTIALS_SUBJECT = "Your RideOps account is ready"

CREDENTIALS_TEMPLATE = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2>Welcome to RideOps, {name}!</h2>
  <p>Your {role} account has been approved. Use the credentials below to sign in:</p>
  <table style="border-collapse: collapse;">
    <tr><td style="padding: 4px 12px 4px 0;"><strong>Email:</strong></td><td>{email}</td></tr>
    <tr><td style="padding: 4px 12px 4px 0;"><strong>Password:</strong></td><td><code>{password}</code></td></tr>
  </table>
  <p><a href="{login_url}">Sign in to your account</a></p>
  <p>Please change your password after your first login.</p>
</div>
"""


@dataclass
class EmailResult:
    id: Optional[str] = None
    from_address: str = ""
    to: str = ""
    sent_at: datetime = field(default_factory=datetime.utcnow)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def render_credentials_email(name: str, email: str, password: str, role: str, login_url: str) -> str:
    return CREDENTIALS_TEMPLATE.format(
        name=html.escape(name or ""),
        email=html.escape(email),
        password=html.escape(password),
        role=html.escape(role),
        login_url=html.escape(login_url, quote=True),
    )


class CredentialEmailSender:
    """Отправка письма с временным паролем через Resend.

    Никогда не бросает исключений: ошибка возвращается в EmailResult.error,
    чтобы провижининг аккаунта не прерывался из-за почты.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        from_address: Optional[str] = None,
        api_url: Optional[str] = None,
        app_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = settings.RESEND_API_KEY if api_key is None else api_key
        self.from_address = settings.EMAIL_FROM if from_address is None else from_address
        self.api_url = api_url or settings.RESEND_API_URL
        self.app_url = (app_url or settings.APP_URL).rstrip("/")
        self._transport = transport

    async def send_credentials(self, email: str, name: str, password: str, role: str) -> EmailResult:
        result = EmailResult(from_address=self.from_address, to=email)

        if not self.api_key or not self.from_address:
            result.error = "Email is not configured (RESEND_API_KEY / EMAIL_FROM)"
            return result

        body = {
            "from": self.from_address,
            "to": [email],
            "subject": CREDENTIALS_SUBJECT,
            "html": render_credentials_email(name, email, password, role, f"{self.app_url}/login"),
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
            try:
                resp = await client.post(self.api_url, json=body, headers=headers)
                resp.raise_for_status()
                result.id = resp.json().get("id")
            except httpx.HTTPStatusError as exc:
                result.error = f"Email API returned {exc.response.status_code}: {exc.response.text}"
            except (httpx.HTTPError, ValueError) as exc:
                result.error = f"Email API request failed: {exc}"

        result.sent_at = datetime.utcnow()
        if result.ok:
            logger.info("Credentials email sent to %s (id=%s)", email, result.id)
        return result
