"""SQLAlchemy models for the table reservation service."""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin
from domain.enums import ReservationStatus


SLOT_UNIQUE_CONSTRAINT = "uq_reservations_table_slot"


class Reservation(Base, TimestampMixin):
    """Reservation table model."""

    __tablename__ = "reservations"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
        nullable=False,
    )

    # Kept for attaching an identity later; bookings are anonymous today.
    user_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    user_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    name: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    email: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    phone: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        index=True,
    )

    # naive UTC
    slot: Mapped[datetime] = mapped_column(
        DateTime(),
        nullable=False,
    )

    guests: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    table_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    whatsapp_opt_in: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    whatsapp_delivery: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ReservationStatus.BOOKED.value,
        index=True,
    )

    __table_args__ = (
        UniqueConstraint("table_number", "slot", name=SLOT_UNIQUE_CONSTRAINT),
        Index("ix_reservations_slot_table", "slot", "table_number"),
    )

    def __repr__(self) -> str:
        """String representation of Reservation."""
        return (
            f"<Reservation(id={self.id}, name='{self.name}', "
            f"slot={self.slot}, table={self.table_number}, guests={self.guests}, "
            f"status='{self.status}')>"
        )
