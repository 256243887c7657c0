"""WhatsApp Business Cloud API backend."""

import hashlib
import hmac
from typing import Any, Dict, Optional, Sequence

import httpx

from domain.enums import ProviderName
from domain.models import DeliveryStatus
from services.reservation_validation import phone_digits

from .base import HttpProvider


GRAPH_API_BASE_URL = "https://graph.facebook.com"
SIGNATURE_PREFIX = "sha256="


def compute_signature(secret: str, raw_body: bytes) -> str:
    """Header value the Cloud API sends for a body signed with the app secret."""
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


class CloudApiProvider(HttpProvider):
    """Sends through the Graph API messages endpoint and checks signed webhooks."""

    name = ProviderName.META
    supports_templates = True

    def __init__(
        self,
        access_token: str,
        phone_number_id: str,
        api_version: str = "v20.0",
        app_secret: str = "",
        template_language: str = "en_US",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
        default_country_code: str = "91",
    ):
        super().__init__(client=client, timeout=timeout, default_country_code=default_country_code)
        self.access_token = access_token
        self.phone_number_id = phone_number_id
        self.api_version = api_version
        self.app_secret = app_secret
        self.template_language = template_language

    @property
    def messages_url(self) -> str:
        return f"{GRAPH_API_BASE_URL}/{self.api_version}/{self.phone_number_id}/messages"

    async def _send_text(self, recipient: str, body: str) -> DeliveryStatus:
        payload = {
            "messaging_product": "whatsapp",
            "to": phone_digits(recipient),
            "type": "text",
            "text": {"body": body},
        }
        return await self._send(recipient, payload)

    async def _send_template(self, recipient: str, template_name: str, variables: Sequence[str]) -> DeliveryStatus:
        payload = {
            "messaging_product": "whatsapp",
            "to": phone_digits(recipient),
            "type": "template",
            "template": {
                "name": template_name,
                "language": {"code": self.template_language},
                "components": [
                    {
                        "type": "body",
                        "parameters": [{"type": "text", "text": value} for value in variables],
                    }
                ],
            },
        }
        return await self._send(recipient, payload)

    async def _send(self, recipient: str, payload: Dict[str, Any]) -> DeliveryStatus:
        data = await self._post(
            self.messages_url,
            json=payload,
            headers={"Authorization": f"Bearer {self.access_token}"},
        )
        return DeliveryStatus.delivered(self.name.value, recipient, extract_message_id(data))

    def verify_webhook_signature(self, raw_body: bytes, signature_header: Optional[str]) -> bool:
        """
        Check the HMAC-SHA256 signature of the raw request body.

        Passes through when no app secret is configured. Otherwise a missing
        body, a missing header or any mismatch fails.
        """
        if not self.app_secret:
            return True
        if not raw_body or not signature_header:
            return False

        provided = signature_header.strip()
        if not provided.startswith(SIGNATURE_PREFIX):
            return False

        expected = compute_signature(self.app_secret, raw_body)
        return hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))


def extract_message_id(data: Dict[str, Any]) -> str:
    messages = data.get("messages")
    if isinstance(messages, list) and messages and isinstance(messages[0], dict):
        return str(messages[0].get("id") or "")
    return ""
