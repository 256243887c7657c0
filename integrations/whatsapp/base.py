"""Common WhatsApp provider interface."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Sequence

import httpx

from domain.enums import DeliveryReason, ProviderName
from domain.models import DeliveryStatus
from services.reservation_validation import normalize_phone


logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Raised when a vendor API call fails, times out or answers garbage."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class WhatsAppProvider(ABC):
    """
    Uniform send/verify operations over one WhatsApp backend.

    Recipients are run through the phone normalizer before any vendor call;
    subclasses only ever see canonical '+<digits>' numbers.
    """

    name: ProviderName
    supports_templates: bool = False

    def __init__(self, default_country_code: str = "91"):
        self.default_country_code = default_country_code

    @property
    def enabled(self) -> bool:
        return True

    def normalize(self, phone: Optional[str]) -> str:
        return normalize_phone(phone, self.default_country_code)

    async def send_text(self, to: str, body: str) -> DeliveryStatus:
        """
        Send a free-text message.

        Raises:
            ProviderError: If the vendor call fails
        """
        recipient = self.normalize(to)
        if not recipient:
            return DeliveryStatus.failed(DeliveryReason.MISSING_RECIPIENT)
        return await self._send_text(recipient, body)

    async def send_template(
        self,
        to: str,
        template_name: str,
        variables: Sequence[Any],
    ) -> DeliveryStatus:
        """
        Send a pre-approved template with ordered body variables.

        Raises:
            ProviderError: If the vendor call fails
        """
        recipient = self.normalize(to)
        if not recipient:
            return DeliveryStatus.failed(DeliveryReason.MISSING_RECIPIENT)
        if not self.supports_templates:
            return DeliveryStatus.failed(DeliveryReason.TEMPLATE_UNSUPPORTED, recipient=recipient)
        return await self._send_template(recipient, template_name, [str(value) for value in variables])

    def verify_webhook_signature(self, raw_body: bytes, signature_header: Optional[str]) -> bool:
        """Backends without a signing scheme accept every delivery."""
        return True

    @abstractmethod
    async def _send_text(self, recipient: str, body: str) -> DeliveryStatus:
        ...

    async def _send_template(self, recipient: str, template_name: str, variables: Sequence[str]) -> DeliveryStatus:
        return DeliveryStatus.failed(DeliveryReason.TEMPLATE_UNSUPPORTED, recipient=recipient)

    async def aclose(self) -> None:
        pass


class DisabledProvider(WhatsAppProvider):
    """No backend configured: every send is reported, never attempted."""

    name = ProviderName.NONE

    @property
    def enabled(self) -> bool:
        return False

    async def _send_text(self, recipient: str, body: str) -> DeliveryStatus:
        return DeliveryStatus.failed(DeliveryReason.PROVIDER_DISABLED, recipient=recipient)


class HttpProvider(WhatsAppProvider):
    """Backend reached over HTTPS through a shared httpx client."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
        default_country_code: str = "91",
    ):
        super().__init__(default_country_code)
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def _post(self, url: str, **kwargs: Any) -> Dict[str, Any]:
        """
        POST to the vendor and decode the JSON answer.

        Raises:
            ProviderError: On timeout, transport failure, non-2xx or non-JSON body
        """
        try:
            response = await self.client.post(url, **kwargs)
        except httpx.TimeoutException as e:
            raise ProviderError(self.name.value, f"{self.name.value} request timed out") from e
        except httpx.HTTPError as e:
            raise ProviderError(self.name.value, f"{self.name.value} request failed: {e}") from e

        if not response.is_success:
            raise ProviderError(
                self.name.value,
                f"WhatsApp API error ({response.status_code}): {response.text}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(self.name.value, "Malformed response from WhatsApp API") from e
        if not isinstance(data, dict):
            raise ProviderError(self.name.value, "Malformed response from WhatsApp API")
        return data

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
