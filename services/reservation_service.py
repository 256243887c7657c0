"""
Reservation Service for booking restaurant tables.
Handles validation, slot conflict checking, persistence and the hand-off
to WhatsApp notifications.
"""
import asyncio
import logging
from datetime import datetime
from typing import List, Optional, Set
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from db.models_sqlalchemy import Reservation, SLOT_UNIQUE_CONSTRAINT
from domain.enums import ReservationStatus
from domain.models import BookingResult, DeliveryReport, ReservationRecord, ReservationRequest

from .notification_service import NotificationService, build_whatsapp_link
from .reservation_validation import ValidatedReservation, parse_slot, validate_reservation_request


logger = logging.getLogger(__name__)

PROVIDER_HINT = "Set WHATSAPP_PROVIDER=meta or twilio in .env to enable automated sends."


class SlotConflictError(Exception):
    """Raised when the table is already reserved for the requested slot."""

    def __init__(self, table_number: int, slot: datetime):
        super().__init__("Table is already reserved for this slot.")
        self.table_number = table_number
        self.slot = slot


def is_slot_conflict(error: IntegrityError) -> bool:
    """True when the integrity error comes from the (table, slot) uniqueness rule."""
    message = str(error.orig)
    return (
        SLOT_UNIQUE_CONSTRAINT in message
        or "reservations.table_number, reservations.slot" in message
    )


class ReservationService:
    """
    Books tables so that no (table, slot) pair is ever reserved twice.

    The lookup before insert only saves a round trip for the common case;
    the unique constraint on (table_number, slot) is what actually decides
    between concurrent requests, and losing that race surfaces as the same
    SlotConflictError as the lookup.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notifications: NotificationService,
        notification_budget_seconds: float = 8.0,
    ):
        self.session_factory = session_factory
        self.notifications = notifications
        self.notification_budget_seconds = notification_budget_seconds
        self._background_tasks: Set[asyncio.Task] = set()

    async def book(self, request: ReservationRequest) -> BookingResult:
        """
        Validate, reserve the slot and notify.

        Args:
            request: Booking request as submitted

        Returns:
            BookingResult with the stored reservation and delivery status

        Raises:
            ReservationValidationError: If a field is missing or out of range
            SlotConflictError: If the table is already taken for the slot
        """
        payload = validate_reservation_request(request)
        reservation = await self.create_reservation(payload)

        delivery = await self._dispatch_notifications(reservation)
        reservation = reservation.model_copy(update={"whatsapp_delivery": delivery})

        provider = self.notifications.provider
        return BookingResult(
            reservation=reservation,
            whatsapp_link=build_whatsapp_link(self.notifications.admin_number, reservation),
            whatsapp_delivery=delivery,
            provider_hint="" if provider.enabled else PROVIDER_HINT,
        )

    async def create_reservation(self, payload: ValidatedReservation) -> ReservationRecord:
        """
        Insert the reservation with not-attempted delivery placeholders.

        Raises:
            SlotConflictError: If the (table, slot) pair is already booked
        """
        async with self.session_factory() as session:
            existing = await self._find_slot_holder(session, payload.table_number, payload.slot)
            if existing is not None:
                raise SlotConflictError(payload.table_number, payload.slot)

            reservation = Reservation(
                name=payload.name,
                email=payload.email,
                phone=payload.phone,
                slot=payload.slot,
                guests=payload.guests,
                table_number=payload.table_number,
                whatsapp_opt_in=payload.whatsapp_opt_in,
                whatsapp_delivery=DeliveryReport.not_attempted().to_payload(),
                status=ReservationStatus.BOOKED.value,
            )
            session.add(reservation)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                if is_slot_conflict(e):
                    raise SlotConflictError(payload.table_number, payload.slot) from e
                raise
            await session.refresh(reservation)

            logger.info(
                "Reservation created",
                extra={
                    "reservation_id": str(reservation.id),
                    "table_number": reservation.table_number,
                    "slot": reservation.slot.isoformat(),
                },
            )
            return ReservationRecord.model_validate(reservation)

    async def list_reservations(
        self,
        slot: Optional[str] = None,
        table_number: Optional[int] = None,
    ) -> List[ReservationRecord]:
        """
        List reservations ordered by slot, then table.

        Args:
            slot: Exact slot to match (ISO 8601), optional
            table_number: Table to match; values <= 0 are ignored

        Raises:
            ValueError: If slot is not an ISO 8601 date-time
        """
        query = select(Reservation)
        if slot:
            query = query.where(Reservation.slot == parse_slot(slot))
        if table_number and table_number > 0:
            query = query.where(Reservation.table_number == table_number)
        query = query.order_by(Reservation.slot, Reservation.table_number)

        async with self.session_factory() as session:
            result = await session.execute(query)
            return [ReservationRecord.model_validate(row) for row in result.scalars().all()]

    async def get_reservation(self, reservation_id: UUID) -> Optional[ReservationRecord]:
        async with self.session_factory() as session:
            reservation = await session.get(Reservation, reservation_id)
            return ReservationRecord.model_validate(reservation) if reservation else None

    async def _find_slot_holder(
        self,
        session: AsyncSession,
        table_number: int,
        slot: datetime,
    ) -> Optional[UUID]:
        result = await session.execute(
            select(Reservation.id)
            .where(Reservation.table_number == table_number, Reservation.slot == slot)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _dispatch_notifications(self, reservation: ReservationRecord) -> DeliveryReport:
        """
        Run notifications as a detached task and wait a bounded time for them.

        If the budget runs out the task keeps going, stores its outcome
        when done, and the caller gets the not-attempted placeholders. If
        the caller itself is cancelled, the sends are cancelled too; the
        reservation stays committed.
        """
        task = asyncio.create_task(self._notify_and_store(reservation))
        try:
            return await asyncio.wait_for(asyncio.shield(task), timeout=self.notification_budget_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "Notification budget exceeded, finishing in background",
                extra={"reservation_id": str(reservation.id)},
            )
            self._background_tasks.add(task)
            task.add_done_callback(self._background_tasks.discard)
            return reservation.whatsapp_delivery
        except asyncio.CancelledError:
            task.cancel()
            raise

    async def _notify_and_store(self, reservation: ReservationRecord) -> DeliveryReport:
        delivery = await self.notifications.notify(reservation)
        try:
            await self.store_delivery(reservation.id, delivery)
        except Exception:
            logger.exception(
                "Failed to store delivery status",
                extra={"reservation_id": str(reservation.id)},
            )
        return delivery

    async def store_delivery(self, reservation_id: UUID, delivery: DeliveryReport) -> None:
        async with self.session_factory() as session:
            reservation = await session.get(Reservation, reservation_id)
            if reservation is None:
                return
            reservation.whatsapp_delivery = delivery.to_payload()
            await session.commit()

    async def wait_for_background_tasks(self) -> None:
        """Let detached notification tasks finish, e.g. on shutdown."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)
