"""WhatsApp provider backends and webhook payload helpers."""

from .base import DisabledProvider, HttpProvider, ProviderError, WhatsAppProvider
from .bridge import BridgeProvider
from .cloud_api import CloudApiProvider, compute_signature
from .factory import build_provider
from .inbound import InboundMessage, parse_bridge_form, parse_cloud_payload

__all__ = [
    "WhatsAppProvider",
    "HttpProvider",
    "DisabledProvider",
    "CloudApiProvider",
    "BridgeProvider",
    "ProviderError",
    "compute_signature",
    "build_provider",
    "InboundMessage",
    "parse_cloud_payload",
    "parse_bridge_form",
]
