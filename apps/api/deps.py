"""FastAPI dependencies and shared response helpers."""

from typing import Any, Dict

from fastapi import Request
from fastapi.responses import JSONResponse

from core.settings import Settings
from services.reservation_service import ReservationService
from services.webhook_gateway import WebhookGateway


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_reservation_service(request: Request) -> ReservationService:
    return request.app.state.reservation_service


def get_webhook_gateway(request: Request) -> WebhookGateway:
    return request.app.state.webhook_gateway


def server_error(settings: Settings, message: str, error: Exception) -> JSONResponse:
    """
    500 response for an unexpected failure.

    The exception text is only exposed outside production.
    """
    content: Dict[str, Any] = {"message": message}
    if not settings.is_production:
        content["detail"] = str(error)
    return JSONResponse(status_code=500, content=content)
