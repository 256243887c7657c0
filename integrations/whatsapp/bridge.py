"""Twilio WhatsApp bridge backend."""

from typing import Optional

import httpx

from domain.enums import ProviderName
from domain.models import DeliveryStatus

from .base import HttpProvider


TWILIO_API_BASE_URL = "https://api.twilio.com/2010-04-01"
WHATSAPP_ADDRESS_PREFIX = "whatsapp:"


class BridgeProvider(HttpProvider):
    """Sends through the Twilio Messages resource; free text only, no signed webhooks."""

    name = ProviderName.TWILIO

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
        default_country_code: str = "91",
    ):
        super().__init__(client=client, timeout=timeout, default_country_code=default_country_code)
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number

    @property
    def messages_url(self) -> str:
        return f"{TWILIO_API_BASE_URL}/Accounts/{self.account_sid}/Messages.json"

    async def _send_text(self, recipient: str, body: str) -> DeliveryStatus:
        data = await self._post(
            self.messages_url,
            data={
                "From": f"{WHATSAPP_ADDRESS_PREFIX}{self.normalize(self.from_number)}",
                "To": f"{WHATSAPP_ADDRESS_PREFIX}{recipient}",
                "Body": body,
            },
            auth=httpx.BasicAuth(self.account_sid, self.auth_token),
        )
        return DeliveryStatus.delivered(self.name.value, recipient, str(data.get("sid") or ""))


def strip_whatsapp_prefix(address: Optional[str]) -> str:
    """'whatsapp:+14155550100' -> '+14155550100'."""
    value = str(address or "").strip()
    if value.lower().startswith(WHATSAPP_ADDRESS_PREFIX):
        return value[len(WHATSAPP_ADDRESS_PREFIX):]
    return value
