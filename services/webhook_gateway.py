"""Inbound WhatsApp webhook handling: verification, signature checks, dispatch to the bot."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from domain.enums import ChatIntent, DeliveryReason
from domain.models import DeliveryStatus
from integrations.whatsapp.base import ProviderError, WhatsAppProvider
from integrations.whatsapp.inbound import InboundMessage, parse_bridge_form, parse_cloud_payload

from .chat_bot import ConversationalBot


logger = logging.getLogger(__name__)


class SignatureError(Exception):
    """Raised when a webhook delivery fails signature verification."""


class WebhookPayloadError(Exception):
    """Raised when a signed delivery body is not valid JSON."""


@dataclass(frozen=True)
class HandledMessage:
    sender: str
    intent: ChatIntent
    reply: str
    delivery: DeliveryStatus


@dataclass
class DispatchResult:
    """Outcome of one webhook delivery."""

    handled: List[HandledMessage] = field(default_factory=list)

    @property
    def processed_messages(self) -> int:
        return len(self.handled)


class WebhookGateway:
    """Verifies vendor webhook calls and routes their messages to the bot."""

    def __init__(
        self,
        provider: WhatsAppProvider,
        bot: ConversationalBot,
        verify_token: str = "",
    ):
        self.provider = provider
        self.bot = bot
        self.verify_token = verify_token

    def verify_subscription(
        self,
        mode: Optional[str],
        token: Optional[str],
        challenge: Optional[str],
    ) -> Optional[str]:
        """
        Cloud API subscription handshake.

        Returns:
            The challenge to echo back, or None when verification fails
        """
        if mode == "subscribe" and self.verify_token and token == self.verify_token:
            return str(challenge or "")
        return None

    async def handle_cloud_delivery(self, raw_body: bytes, signature_header: Optional[str]) -> DispatchResult:
        """
        Process a Cloud API delivery.

        Raises:
            SignatureError: If the signature does not match the raw body
            WebhookPayloadError: If the body is not a JSON document
        """
        if not self.provider.verify_webhook_signature(raw_body, signature_header):
            raise SignatureError("Invalid webhook signature")

        try:
            payload: Any = json.loads(raw_body) if raw_body else {}
        except ValueError as e:
            raise WebhookPayloadError("Webhook body is not valid JSON") from e

        messages = parse_cloud_payload(payload, self.provider.default_country_code)
        return await self.dispatch(messages)

    async def handle_bridge_delivery(self, form: Mapping[str, Any]) -> DispatchResult:
        """Process a bridge delivery; it carries at most one message."""
        messages = parse_bridge_form(form, self.provider.default_country_code)
        return await self.dispatch(messages)

    async def dispatch(self, messages: List[InboundMessage]) -> DispatchResult:
        """Answer every message that has both a sender and text."""
        result = DispatchResult()
        for message in messages:
            if not message.sender or not message.text:
                continue

            reply = await self.bot.respond(message.sender, message.text)
            try:
                delivery = await self.provider.send_text(message.sender, reply.text)
            except ProviderError as e:
                logger.warning(f"Failed to send bot reply: {e}", extra={"sender": message.sender})
                delivery = DeliveryStatus.failed(DeliveryReason.SEND_FAILED, detail=str(e))

            result.handled.append(
                HandledMessage(
                    sender=message.sender,
                    intent=reply.intent,
                    reply=reply.text,
                    delivery=delivery,
                )
            )

        logger.info(f"Webhook processed {result.processed_messages} message(s)")
        return result
