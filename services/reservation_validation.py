"""
Reservation input validation and normalization.
Handles phone canonicalization, slot parsing and the ordered field checks
a booking request must pass before it reaches the database.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from domain.models import ReservationRequest


MIN_GUESTS = 1
MAX_GUESTS = 10
MIN_TABLE_NUMBER = 1
MAX_TABLE_NUMBER = 50

NON_DIGITS = re.compile(r"\D")


class ReservationValidationError(Exception):
    """Raised when a booking request has a missing or out-of-range field."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


# ============================================================================
# Phone Number Normalization
# ============================================================================

def normalize_phone(raw: Optional[str], default_country_code: str = "91") -> str:
    """
    Canonicalize a phone number into '+<digits>' international form.

    Args:
        raw: Phone number as typed by a person or sent by a vendor
        default_country_code: Country code assumed for 10-digit local numbers

    Returns:
        Canonical number, or '' when there is nothing usable
    """
    value = str(raw or "").strip()
    if not value:
        return ""

    digits = NON_DIGITS.sub("", value)
    if not digits:
        return ""

    if value.startswith("+"):
        return f"+{digits}"

    if len(digits) == 10:
        country_code = NON_DIGITS.sub("", default_country_code)
        return f"+{country_code}{digits}"

    return f"+{digits}"


def phone_digits(phone: str) -> str:
    """Digits-only form used by the Cloud API and wa.me links."""
    return NON_DIGITS.sub("", phone or "")


def normalize_email(email: Optional[str]) -> str:
    return str(email or "").strip().lower()


# ============================================================================
# Slot Handling
# ============================================================================

def parse_slot(value: str) -> datetime:
    """
    Parse an ISO 8601 slot into a naive UTC datetime.

    Naive input is taken as already being UTC. The value is not rounded;
    the request decides the granularity.

    Raises:
        ValueError: If the value is not an ISO 8601 date-time
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def format_slot(slot: datetime) -> str:
    """Human-facing slot text used in WhatsApp messages."""
    if slot.second == 0 and slot.microsecond == 0:
        return slot.isoformat(timespec="minutes")
    return slot.isoformat()


# ============================================================================
# Complete Validation
# ============================================================================

@dataclass(frozen=True)
class ValidatedReservation:
    """Booking request after all checks passed."""

    name: str
    email: str
    phone: str
    slot: datetime
    guests: int
    table_number: int
    whatsapp_opt_in: bool


def validate_reservation_request(request: ReservationRequest) -> ValidatedReservation:
    """
    Run the ordered booking checks; the first failing one wins.

    Order: required fields, guest count, table number.

    Raises:
        ReservationValidationError: Naming the failing field
    """
    name = request.name.strip()
    email = normalize_email(request.email)
    phone = request.phone.strip()
    slot_text = request.slot.strip()

    for field, value in (("name", name), ("email", email), ("phone", phone), ("slot", slot_text)):
        if not value:
            raise ReservationValidationError(field, "All reservation fields are required.")

    if not MIN_GUESTS <= request.guests <= MAX_GUESTS:
        raise ReservationValidationError(
            "guests", f"Guests must be between {MIN_GUESTS} and {MAX_GUESTS}."
        )

    if not MIN_TABLE_NUMBER <= request.table_number <= MAX_TABLE_NUMBER:
        raise ReservationValidationError(
            "tableNumber",
            f"Table number must be between {MIN_TABLE_NUMBER} and {MAX_TABLE_NUMBER}.",
        )

    try:
        slot = parse_slot(slot_text)
    except ValueError:
        raise ReservationValidationError("slot", "Slot must be an ISO 8601 date-time.")

    return ValidatedReservation(
        name=name,
        email=email,
        phone=phone,
        slot=slot,
        guests=request.guests,
        table_number=request.table_number,
        whatsapp_opt_in=request.whatsapp_opt_in,
    )
