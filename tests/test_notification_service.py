"""Tests for reservation notifications."""
from datetime import datetime, timezone
from uuid import uuid4

import pytest

from domain.enums import DeliveryReason, ReservationStatus
from domain.models import DeliveryReport, ReservationRecord
from integrations.whatsapp.base import DisabledProvider
from services.notification_service import (
    NotificationService,
    build_admin_alert,
    build_customer_confirmation,
    build_whatsapp_link,
)


ADMIN = "+919876543210"
CUSTOMER = "+919123456789"


def make_reservation(**kwargs):
    data = {
        "id": uuid4(),
        "name": "Asha Rao",
        "email": "asha@example.com",
        "phone": "91234 56789",
        "slot": datetime(2025, 6, 1, 19, 0),
        "guests": 4,
        "table_number": 12,
        "whatsapp_opt_in": True,
        "whatsapp_delivery": DeliveryReport.not_attempted(),
        "status": ReservationStatus.BOOKED,
        "created_at": datetime.now(timezone.utc),
    }
    data.update(kwargs)
    return ReservationRecord(**data)


def service_for(provider, admin_number=ADMIN, template_name="reservation_confirmation"):
    return NotificationService(
        provider=provider,
        admin_number=admin_number,
        restaurant_name="RAHMAN Restaurant",
        template_name=template_name,
    )


@pytest.mark.unit
class TestMessages:
    """Message texts and the admin deep link."""

    def test_admin_alert(self):
        """Test admin alert text."""
        assert build_admin_alert(make_reservation()) == (
            "New reservation: Table 12 for Asha Rao at 2025-06-01T19:00. Guests: 4, Phone: 91234 56789"
        )

    def test_customer_confirmation(self):
        """Test customer confirmation text."""
        text = build_customer_confirmation(make_reservation(), "RAHMAN Restaurant")

        assert text.startswith("Hi Asha Rao, your reservation is confirmed at RAHMAN Restaurant.")
        assert "Table 12" in text
        assert "Guests: 4" in text

    def test_whatsapp_link(self):
        """Test admin WhatsApp deep link."""
        link = build_whatsapp_link(ADMIN, make_reservation())

        assert link.startswith("https://wa.me/919876543210?text=New%20reservation%3A%20Table%2012")

    def test_no_link_without_admin_number(self):
        """Test no link without admin number."""
        assert build_whatsapp_link("", make_reservation()) is None


@pytest.mark.unit
class TestNotify:
    """Admin and customer channels."""

    async def test_both_channels_sent(self, make_provider):
        """Test both channels sent."""
        provider = make_provider()

        report = await service_for(provider).notify(make_reservation())

        assert report.admin.sent is True
        assert report.admin.recipient == ADMIN
        assert report.customer.sent is True
        assert report.customer.recipient == CUSTOMER
        assert provider.texts[0]["to"] == ADMIN
        assert provider.templates[0]["variables"] == ["Asha Rao", "12", "2025-06-01T19:00", "4"]

    async def test_admin_failure_does_not_stop_customer(self, make_provider):
        """Test admin failure does not stop customer."""
        provider = make_provider(fail_for=ADMIN)

        report = await service_for(provider).notify(make_reservation())

        assert report.admin.sent is False
        assert report.admin.reason == DeliveryReason.SEND_FAILED
        assert "500" in report.admin.detail
        assert report.customer.sent is True

    async def test_customer_failure_does_not_stop_admin(self, make_provider):
        """Test customer failure does not stop admin."""
        provider = make_provider(supports_templates=False, fail_for=CUSTOMER)

        report = await service_for(provider).notify(make_reservation())

        assert report.admin.sent is True
        assert report.customer.sent is False
        assert report.customer.reason == DeliveryReason.SEND_FAILED

    async def test_disabled_provider(self):
        """Test that a disabled provider skips both channels."""
        report = await service_for(DisabledProvider()).notify(make_reservation())

        assert report.admin.reason == DeliveryReason.PROVIDER_DISABLED
        assert report.customer.reason == DeliveryReason.PROVIDER_DISABLED

    async def test_missing_admin_number(self, make_provider):
        """Test missing admin number."""
        provider = make_provider()

        report = await service_for(provider, admin_number="").notify(make_reservation())

        assert report.admin.sent is False
        assert report.admin.reason == DeliveryReason.MISSING_ADMIN_NUMBER
        assert report.customer.sent is True

    async def test_customer_not_opted_in(self, make_provider):
        """Test customer not opted in."""
        provider = make_provider()

        report = await service_for(provider).notify(make_reservation(whatsapp_opt_in=False))

        assert report.customer.reason == DeliveryReason.CUSTOMER_NOT_OPTED_IN
        assert provider.templates == []

    async def test_invalid_customer_phone(self, make_provider):
        """Test invalid customer phone."""
        provider = make_provider()

        report = await service_for(provider).notify(make_reservation(phone="call me"))

        assert report.customer.reason == DeliveryReason.INVALID_CUSTOMER_PHONE

    async def test_free_text_without_template_name(self, make_provider):
        """Test free text without template name."""
        provider = make_provider()

        report = await service_for(provider, template_name="").notify(make_reservation())

        assert report.customer.sent is True
        assert provider.templates == []
        assert CUSTOMER in [t["to"] for t in provider.texts]


@pytest.mark.unit
class TestTemplateFallback:
    """A failed template gets exactly one free-text attempt."""

    async def test_fallback_success_keeps_template_error(self, make_provider):
        """Test fallback success keeps template error."""
        provider = make_provider(fail_template=True)

        status = await service_for(provider).confirm_customer(make_reservation())

        assert status.sent is True
        assert status.detail.startswith("template-send-failed:")
        assert "template not approved" in status.detail
        assert len(provider.templates) == 1
        assert [t["to"] for t in provider.texts] == [CUSTOMER]

    async def test_fallback_failure(self, make_provider):
        """Test failure of both template and free-text fallback."""
        provider = make_provider(fail_template=True, fail_text=True)

        status = await service_for(provider).confirm_customer(make_reservation())

        assert status.sent is False
        assert status.reason == DeliveryReason.TEMPLATE_SEND_FAILED
        assert "template not approved" in status.detail
        assert "free-text fallback" in status.detail
        assert len(provider.texts) == 1

    async def test_success_payload_omits_empty_fields(self, make_provider):
        """Test success payload omits empty fields."""
        status = await service_for(make_provider()).confirm_customer(make_reservation())

        assert status.to_payload() == {
            "sent": True,
            "provider": "meta",
            "recipient": CUSTOMER,
            "messageId": "wamid.tpl.1",
        }
