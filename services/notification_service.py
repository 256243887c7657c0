"""
Reservation notifications over WhatsApp.

Sends the admin alert and the customer confirmation for a new booking.
Both attempts are independent and every failure is reported as a
DeliveryStatus; nothing here can fail a booking.
"""

import asyncio
import logging
from typing import Awaitable, Optional
from urllib.parse import quote

from core.logging import log_api_failure
from domain.enums import DeliveryReason
from domain.models import DeliveryReport, DeliveryStatus, ReservationRecord
from integrations.whatsapp.base import ProviderError, WhatsAppProvider

from .reservation_validation import format_slot, phone_digits


logger = logging.getLogger(__name__)


def build_admin_alert(reservation: ReservationRecord) -> str:
    return (
        f"New reservation: Table {reservation.table_number} for {reservation.name} "
        f"at {format_slot(reservation.slot)}. Guests: {reservation.guests}, Phone: {reservation.phone}"
    )


def build_customer_confirmation(reservation: ReservationRecord, restaurant_name: str) -> str:
    return (
        f"Hi {reservation.name}, your reservation is confirmed at {restaurant_name}. "
        f"Table {reservation.table_number}, {format_slot(reservation.slot)}, "
        f"Guests: {reservation.guests}. Reply HELP for support."
    )


def build_whatsapp_link(admin_number: str, reservation: ReservationRecord) -> Optional[str]:
    """wa.me deep link opening a chat with the admin, prefilled with the alert."""
    digits = phone_digits(admin_number)
    if not digits:
        return None
    return f"https://wa.me/{digits}?text={quote(build_admin_alert(reservation), safe='')}"


class NotificationService:
    """Drives the admin alert and customer confirmation for one reservation."""

    def __init__(
        self,
        provider: WhatsAppProvider,
        admin_number: str = "",
        restaurant_name: str = "our restaurant",
        template_name: str = "",
    ):
        self.provider = provider
        self.admin_number = admin_number
        self.restaurant_name = restaurant_name
        self.template_name = template_name

    async def notify(self, reservation: ReservationRecord) -> DeliveryReport:
        """
        Attempt both notifications concurrently.

        Args:
            reservation: The committed reservation

        Returns:
            DeliveryReport with one status per channel
        """
        admin, customer = await asyncio.gather(
            self._attempt("admin", self.notify_admin(reservation)),
            self._attempt("customer", self.confirm_customer(reservation)),
        )
        logger.info(
            "Reservation notifications finished",
            extra={
                "reservation_id": str(reservation.id),
                "admin_sent": admin.sent,
                "customer_sent": customer.sent,
            },
        )
        return DeliveryReport(admin=admin, customer=customer)

    async def notify_admin(self, reservation: ReservationRecord) -> DeliveryStatus:
        if not self.provider.enabled:
            return DeliveryStatus.failed(DeliveryReason.PROVIDER_DISABLED)
        if not self.admin_number:
            return DeliveryStatus.failed(DeliveryReason.MISSING_ADMIN_NUMBER)
        return await self.provider.send_text(self.admin_number, build_admin_alert(reservation))

    async def confirm_customer(self, reservation: ReservationRecord) -> DeliveryStatus:
        if not self.provider.enabled:
            return DeliveryStatus.failed(DeliveryReason.PROVIDER_DISABLED)
        if not reservation.whatsapp_opt_in:
            return DeliveryStatus.failed(DeliveryReason.CUSTOMER_NOT_OPTED_IN)

        target = self.provider.normalize(reservation.phone)
        if not target:
            return DeliveryStatus.failed(DeliveryReason.INVALID_CUSTOMER_PHONE)

        text = build_customer_confirmation(reservation, self.restaurant_name)
        if not (self.provider.supports_templates and self.template_name):
            return await self.provider.send_text(target, text)

        variables = [
            reservation.name,
            reservation.table_number,
            format_slot(reservation.slot),
            reservation.guests,
        ]
        try:
            return await self.provider.send_template(target, self.template_name, variables)
        except ProviderError as template_error:
            logger.warning(f"Template send failed, falling back to free text: {template_error}")
            template_detail = str(template_error)

        # One free-text attempt, no further retries.
        try:
            status = await self.provider.send_text(target, text)
        except ProviderError as fallback_error:
            return DeliveryStatus.failed(
                DeliveryReason.TEMPLATE_SEND_FAILED,
                detail=f"{template_detail}; free-text fallback: {fallback_error}",
                recipient=target,
            )
        return status.model_copy(
            update={"detail": f"{DeliveryReason.TEMPLATE_SEND_FAILED.value}: {template_detail}"}
        )

    async def _attempt(self, channel: str, send: Awaitable[DeliveryStatus]) -> DeliveryStatus:
        try:
            return await send
        except ProviderError as e:
            log_api_failure(logger, f"reservation.create.whatsapp.{channel}", e, provider=e.provider)
            return DeliveryStatus.failed(DeliveryReason.SEND_FAILED, detail=str(e))
        except Exception as e:
            logger.exception(f"Unexpected error sending {channel} notification")
            return DeliveryStatus.failed(DeliveryReason.SEND_FAILED, detail=str(e))
