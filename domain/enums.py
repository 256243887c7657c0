"""Domain enums for the table reservation service."""

from enum import Enum


class ReservationStatus(str, Enum):
    """Reservation lifecycle status."""

    BOOKED = "booked"


class ProviderName(str, Enum):
    """WhatsApp backend selected at startup."""

    NONE = "none"
    META = "meta"  # WhatsApp Business Cloud API
    TWILIO = "twilio"  # telephony bridge

    @classmethod
    def parse(cls, value: str) -> "ProviderName":
        """Resolve a configured provider name, accepting generic aliases."""
        aliases = {
            "": cls.NONE,
            "none": cls.NONE,
            "disabled": cls.NONE,
            "meta": cls.META,
            "cloud-api": cls.META,
            "twilio": cls.TWILIO,
            "bridge": cls.TWILIO,
        }
        key = value.strip().lower()
        if key not in aliases:
            raise ValueError(f"Unknown WhatsApp provider: {value!r}")
        return aliases[key]


class DeliveryReason(str, Enum):
    """Why a notification was not sent."""

    NOT_ATTEMPTED = "not-attempted"
    MISSING_RECIPIENT = "missing-recipient"
    MISSING_ADMIN_NUMBER = "missing-admin-number"
    PROVIDER_DISABLED = "provider-disabled"
    CUSTOMER_NOT_OPTED_IN = "customer-not-opted-in"
    INVALID_CUSTOMER_PHONE = "invalid-customer-phone"
    SEND_FAILED = "send-failed"
    TEMPLATE_SEND_FAILED = "template-send-failed"
    TEMPLATE_UNSUPPORTED = "template-only-supported-on-one-provider"


class ChatIntent(str, Enum):
    """Coarse category of an inbound WhatsApp message."""

    RESERVATION = "reservation"
    MENU = "menu"
    GREETING = "greeting"
    CONFIRMATION = "confirmation"
    HELP = "help"
    FALLBACK = "fallback"
