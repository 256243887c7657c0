"""Domain models using Pydantic v2 for the table reservation service."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    model_serializer,
)
from pydantic.alias_generators import to_camel

from .enums import DeliveryReason, ReservationStatus


class CamelModel(BaseModel):
    """Base model exposing camelCase keys on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ReservationRequest(CamelModel):
    """Booking request exactly as submitted; checked by the reservation validator."""

    name: str = ""
    email: str = ""
    phone: str = ""
    slot: str = Field(default="", validation_alias=AliasChoices("slot", "dateTime"))
    guests: int = 1
    table_number: int = 0
    whatsapp_opt_in: bool = False


class DeliveryStatus(CamelModel):
    """Outcome of one notification attempt."""

    sent: bool
    provider: Optional[str] = None
    recipient: Optional[str] = None
    message_id: Optional[str] = None
    reason: Optional[DeliveryReason] = None
    detail: Optional[str] = None

    @classmethod
    def delivered(cls, provider: str, recipient: str, message_id: str) -> "DeliveryStatus":
        return cls(sent=True, provider=provider, recipient=recipient, message_id=message_id)

    @classmethod
    def failed(
        cls,
        reason: DeliveryReason,
        detail: Optional[str] = None,
        recipient: Optional[str] = None,
    ) -> "DeliveryStatus":
        return cls(sent=False, reason=reason, detail=detail, recipient=recipient)

    @model_serializer(mode="wrap")
    def _drop_empty_fields(self, handler: SerializerFunctionWrapHandler) -> Dict[str, Any]:
        # {sent: true, provider, recipient, messageId} or {sent: false, reason, detail?}
        return {key: value for key, value in handler(self).items() if value is not None}

    def to_payload(self) -> Dict[str, Any]:
        """Serialize as stored and returned."""
        return self.model_dump(by_alias=True, mode="json")


class DeliveryReport(CamelModel):
    """Per-channel delivery status written with the reservation."""

    admin: DeliveryStatus
    customer: DeliveryStatus

    @classmethod
    def not_attempted(cls) -> "DeliveryReport":
        return cls(
            admin=DeliveryStatus.failed(DeliveryReason.NOT_ATTEMPTED),
            customer=DeliveryStatus.failed(DeliveryReason.NOT_ATTEMPTED),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {"admin": self.admin.to_payload(), "customer": self.customer.to_payload()}


class ReservationRecord(CamelModel):
    """Complete reservation record from database."""

    id: UUID
    name: str
    email: str
    phone: str
    slot: datetime
    guests: int
    table_number: int
    whatsapp_opt_in: bool
    whatsapp_delivery: DeliveryReport
    status: ReservationStatus
    created_at: Optional[datetime] = None


class BookingResult(CamelModel):
    """Response for a successful booking."""

    success: bool = True
    reservation: ReservationRecord
    whatsapp_link: Optional[str] = None
    whatsapp_delivery: DeliveryReport
    provider_hint: str = ""


class ReservationList(CamelModel):
    """Response for reservation listing."""

    reservations: List[ReservationRecord]
