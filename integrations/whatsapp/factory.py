"""Provider selection, done once at startup."""

import logging
from typing import Optional

import httpx

from core.settings import Settings
from domain.enums import ProviderName

from .base import DisabledProvider, WhatsAppProvider
from .bridge import BridgeProvider
from .cloud_api import CloudApiProvider


logger = logging.getLogger(__name__)


def build_provider(settings: Settings, client: Optional[httpx.AsyncClient] = None) -> WhatsAppProvider:
    """
    Build the configured WhatsApp backend.

    Args:
        settings: Application settings
        client: Shared HTTP client; a private one is created when omitted

    Returns:
        Provider instance for the configured backend
    """
    provider_name = settings.whatsapp_provider
    country_code = settings.whatsapp_default_country_code
    timeout = settings.whatsapp_http_timeout_seconds

    if provider_name == ProviderName.META:
        if not settings.whatsapp_meta_access_token or not settings.whatsapp_meta_phone_number_id:
            logger.warning("Cloud API provider selected without access token or phone number id")
        provider: WhatsAppProvider = CloudApiProvider(
            access_token=settings.whatsapp_meta_access_token,
            phone_number_id=settings.whatsapp_meta_phone_number_id,
            api_version=settings.whatsapp_meta_api_version,
            app_secret=settings.whatsapp_meta_app_secret,
            template_language=settings.whatsapp_template_language,
            client=client,
            timeout=timeout,
            default_country_code=country_code,
        )
    elif provider_name == ProviderName.TWILIO:
        if not settings.whatsapp_twilio_account_sid or not settings.whatsapp_twilio_auth_token:
            logger.warning("Twilio provider selected without account SID or auth token")
        provider = BridgeProvider(
            account_sid=settings.whatsapp_twilio_account_sid,
            auth_token=settings.whatsapp_twilio_auth_token,
            from_number=settings.whatsapp_twilio_from,
            client=client,
            timeout=timeout,
            default_country_code=country_code,
        )
    else:
        provider = DisabledProvider(default_country_code=country_code)

    logger.info(f"WhatsApp provider: {provider.name.value}")
    return provider
