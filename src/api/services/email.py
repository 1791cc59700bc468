"""
Email delivery through the Resend API.
"""

import httpx

from alerts.base import Mailer
from alerts.config import RESEND_API_URL, RESEND_TIMEOUT_SECONDS, AlertSettings
from alerts.errors import DeliveryError


def _error_message(response: httpx.Response) -> str:
    """Pull the provider's error message out of a failed response."""
    try:
        data = response.json()
    except ValueError:
        return f"HTTP {response.status_code}: {response.text[:200]}"
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return f"HTTP {response.status_code}"


class ResendMailer(Mailer):
    """Sends HTML email via POST /emails."""

    def __init__(
        self,
        api_key: str,
        from_email: str,
        base_url: str = RESEND_API_URL,
        timeout: float = RESEND_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not api_key:
            raise ValueError("RESEND_API_KEY not set")

        self.api_key = api_key
        self.from_email = from_email
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: AlertSettings) -> "ResendMailer":
        return cls(api_key=settings.resend_api_key, from_email=settings.from_email)

    async def send(self, to: list[str], subject: str, html: str) -> str:
        payload = {
            "from": self.from_email,
            "to": to,
            "subject": subject,
            "html": html,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(f"{self.base_url}/emails", json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise DeliveryError(f"Resend failed: {type(e).__name__}: {e}") from e

        if response.is_error:
            raise DeliveryError(f"Resend failed: {_error_message(response)}")

        # Accepted by the provider; a missing or non-JSON body only loses the id
        try:
            data = response.json()
        except ValueError:
            return ""
        if not isinstance(data, dict):
            return ""
        return str(data.get("id") or "")
