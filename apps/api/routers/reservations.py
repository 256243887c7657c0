"""Reservation booking and listing endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from apps.api.deps import get_reservation_service, get_settings, server_error
from core.logging import log_api_failure
from core.settings import Settings
from domain.models import ReservationList, ReservationRequest
from services.reservation_service import ReservationService, SlotConflictError
from services.reservation_validation import ReservationValidationError


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reservations", tags=["reservations"])


@router.post("", status_code=201)
async def create_reservation(
    request: Request,
    payload: ReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    settings: Settings = Depends(get_settings),
):
    """
    Book a table for a slot and send WhatsApp notifications.

    Args:
        request: FastAPI request object
        payload: Booking request body
        service: Reservation service
        settings: Application settings

    Returns:
        JSONResponse: 201 with reservation, deep link and delivery status,
        400 on invalid input, 409 when the slot is taken
    """
    try:
        result = await service.book(payload)
    except ReservationValidationError as e:
        log_api_failure(
            logger, "reservation.create", e,
            method=request.method, path=request.url.path, field=e.field,
        )
        return JSONResponse(status_code=400, content={"message": e.message, "field": e.field})
    except SlotConflictError as e:
        log_api_failure(
            logger, "reservation.create", "slot-already-booked",
            method=request.method, path=request.url.path,
            table_number=e.table_number, slot=e.slot.isoformat(),
        )
        return JSONResponse(status_code=409, content={"message": str(e)})
    except Exception as e:
        logger.exception("Failed to create reservation")
        return server_error(settings, "Failed to create reservation", e)

    return JSONResponse(status_code=201, content=result.model_dump(by_alias=True, mode="json"))


@router.get("")
async def list_reservations(
    request: Request,
    slot: Optional[str] = Query(None, description="Exact slot (ISO 8601)"),
    date_time: Optional[str] = Query(None, alias="dateTime", description="Alias of slot"),
    table_number: Optional[int] = Query(None, alias="tableNumber", description="Table number"),
    service: ReservationService = Depends(get_reservation_service),
    settings: Settings = Depends(get_settings),
):
    """
    List reservations ordered by slot, then table.

    Args:
        request: FastAPI request object
        slot: Filter by exact slot
        date_time: Same as slot, for older clients
        table_number: Filter by table
        service: Reservation service
        settings: Application settings

    Returns:
        JSONResponse: {reservations: [...]}
    """
    try:
        reservations = await service.list_reservations(
            slot=(slot or date_time or "").strip() or None,
            table_number=table_number,
        )
    except ValueError as e:
        log_api_failure(logger, "reservation.list", e, method=request.method, path=request.url.path)
        return JSONResponse(status_code=400, content={"message": "Slot must be an ISO 8601 date-time.", "field": "slot"})
    except Exception as e:
        logger.exception("Failed to fetch reservations")
        return server_error(settings, "Failed to fetch reservations", e)

    body = ReservationList(reservations=reservations)
    return JSONResponse(content=body.model_dump(by_alias=True, mode="json"))
