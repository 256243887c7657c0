"""Pytest configuration and fixtures for reservation service tests."""
import asyncio
from typing import Any, Dict, List, Optional, Sequence

import pytest

from core.settings import Settings
from db.session import create_session_factory, create_test_engine, drop_db, init_db
from domain.enums import ProviderName
from domain.models import DeliveryStatus, ReservationRequest
from integrations.whatsapp.base import ProviderError, WhatsAppProvider
from services.notification_service import NotificationService
from services.reservation_service import ReservationService


ADMIN_NUMBER = "+919876543210"


class FakeProvider(WhatsAppProvider):
    """In-memory provider recording every send; failures and latency are switchable."""

    name = ProviderName.META

    def __init__(
        self,
        supports_templates: bool = True,
        fail_text: bool = False,
        fail_template: bool = False,
        fail_for: Optional[str] = None,
        delay: float = 0.0,
    ):
        super().__init__(default_country_code="91")
        self.supports_templates = supports_templates
        self.fail_text = fail_text
        self.fail_template = fail_template
        self.fail_for = fail_for
        self.delay = delay
        self.texts: List[Dict[str, Any]] = []
        self.templates: List[Dict[str, Any]] = []

    async def _send_text(self, recipient: str, body: str) -> DeliveryStatus:
        if self.delay:
            await asyncio.sleep(self.delay)
        self.texts.append({"to": recipient, "body": body})
        if self.fail_text or recipient == self.fail_for:
            raise ProviderError(self.name.value, "WhatsApp API error (500): boom", status_code=500)
        return DeliveryStatus.delivered(self.name.value, recipient, f"wamid.{len(self.texts)}")

    async def _send_template(self, recipient: str, template_name: str, variables: Sequence[str]) -> DeliveryStatus:
        self.templates.append({"to": recipient, "name": template_name, "variables": list(variables)})
        if self.fail_template:
            raise ProviderError(self.name.value, "WhatsApp API error (400): template not approved", status_code=400)
        return DeliveryStatus.delivered(self.name.value, recipient, f"wamid.tpl.{len(self.templates)}")


@pytest.fixture(scope="function")
def make_settings(tmp_path):
    """Factory for isolated settings that never read .env."""
    def _make(**overrides):
        values = {
            "app_env": "development",
            "database_url": f"sqlite+aiosqlite:///{tmp_path / 'app.db'}",
            "whatsapp_provider": "none",
            "reservation_whatsapp_number": "",
            "whatsapp_verify_token": "",
            "whatsapp_meta_app_secret": "",
            "openai_api_key": "",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)
    return _make


@pytest.fixture(scope="function")
async def db_engine(tmp_path):
    """File-backed SQLite engine so concurrent sessions see each other's commits."""
    engine = create_test_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield engine
    await drop_db(engine)
    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture(scope="function")
def fake_provider():
    return FakeProvider()


@pytest.fixture(scope="function")
def notification_service(fake_provider):
    return NotificationService(
        provider=fake_provider,
        admin_number=ADMIN_NUMBER,
        restaurant_name="RAHMAN Restaurant",
        template_name="reservation_confirmation",
    )


@pytest.fixture(scope="function")
def reservation_service(session_factory, notification_service):
    return ReservationService(
        session_factory=session_factory,
        notifications=notification_service,
        notification_budget_seconds=5.0,
    )


@pytest.fixture(scope="function")
def booking_request():
    """Factory for booking requests with sensible defaults."""
    def _create(**kwargs):
        data = {
            "name": "Asha Rao",
            "email": "Asha@Example.com",
            "phone": "91234 56789",
            "slot": "2025-06-01T19:00",
            "guests": 4,
            "table_number": 12,
            "whatsapp_opt_in": True,
        }
        data.update(kwargs)
        return ReservationRequest(**data)
    return _create


@pytest.fixture(scope="function")
def make_provider():
    """Factory for fake providers with custom failure behaviour."""
    return FakeProvider
