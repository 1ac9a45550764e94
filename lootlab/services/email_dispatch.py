"""Outbound email through the Resend HTTP API.

Setup:
  1. Set RESEND_API_KEY in .env
  2. Optionally set RESEND_FROM_EMAIL (default: onboarding@resend.dev)
"""

import logging
from typing import Protocol

import httpx

from lootlab.exceptions import EmailDispatchError
from lootlab.load_secrets import resend_api_key, resend_from_email

RESEND_API_URL = "https://api.resend.com/emails"


class Mailer(Protocol):
    async def send(self, to_address: str, subject: str, html_body: str) -> None: ...


class ResendMailer:
    def __init__(
        self,
        api_key: str = resend_api_key,
        from_email: str = resend_from_email,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.client = client
        self.timeout = timeout

    def is_enabled(self) -> bool:
        return bool(self.api_key)

    async def send(self, to_address: str, subject: str, html_body: str) -> None:
        """Send one HTML email

        Args:
            to_address (str): Recipient
            subject (str): Subject line
            html_body (str): Rendered HTML body

        Raises:
            EmailDispatchError: Not configured, transport failure or a non-2xx reply
        """
        if not self.is_enabled():
            logging.warning("Email not sent, RESEND_API_KEY is not configured")
            raise EmailDispatchError("Email service not configured")

        payload = {
            "from": self.from_email,
            "to": [to_address],
            "subject": subject,
            "html": html_body,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            if self.client is not None:
                response = await self.client.post(
                    RESEND_API_URL, json=payload, headers=headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(RESEND_API_URL, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logging.error(f"Email send failed: {e}")
            raise EmailDispatchError() from e

        if response.is_error:
            logging.error(f"Resend API error {response.status_code}: {response.text}")
            if "verify a domain" in response.text:
                raise EmailDispatchError(
                    "Email service not configured. Administrator needs to verify a domain "
                    "at resend.com/domains to enable email sending to all users."
                )
            raise EmailDispatchError()

        logging.info(f"Email sent to {to_address}")


async def get_mailer() -> Mailer:
    """FastAPI dependency for the email collaborator."""
    return ResendMailer()
