"""Domain layer for the table reservation service."""

from .enums import (
    ReservationStatus,
    ProviderName,
    DeliveryReason,
    ChatIntent,
)
from .models import (
    CamelModel,
    ReservationRequest,
    DeliveryStatus,
    DeliveryReport,
    ReservationRecord,
    BookingResult,
    ReservationList,
)

__all__ = [
    # Enums
    "ReservationStatus",
    "ProviderName",
    "DeliveryReason",
    "ChatIntent",
    # Models
    "CamelModel",
    "ReservationRequest",
    "DeliveryStatus",
    "DeliveryReport",
    "ReservationRecord",
    "BookingResult",
    "ReservationList",
]
