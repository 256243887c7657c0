"""WhatsApp webhook endpoints for the Cloud API and the Twilio bridge."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from apps.api.deps import get_settings, get_webhook_gateway, server_error
from core.logging import log_api_failure
from core.settings import Settings
from integrations.twilio.twiml import generate_error_twiml, generate_messaging_twiml
from services.webhook_gateway import SignatureError, WebhookGateway, WebhookPayloadError


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/whatsapp", tags=["whatsapp"])

SIGNATURE_HEADER = "X-Hub-Signature-256"


@router.get("/webhook")
async def verify_webhook(
    mode: Optional[str] = Query(None, alias="hub.mode"),
    token: Optional[str] = Query(None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(None, alias="hub.challenge"),
    gateway: WebhookGateway = Depends(get_webhook_gateway),
):
    """
    Cloud API subscription handshake.

    Returns:
        200 echoing the challenge, or 403
    """
    echoed = gateway.verify_subscription(mode, token, challenge)
    if echoed is None:
        return JSONResponse(status_code=403, content={"message": "Webhook verification failed"})
    return PlainTextResponse(echoed)


@router.post("/webhook")
async def receive_cloud_webhook(
    request: Request,
    gateway: WebhookGateway = Depends(get_webhook_gateway),
    settings: Settings = Depends(get_settings),
):
    """
    Handle a Cloud API delivery: verify signature, answer each message.

    Returns:
        JSON acknowledgment with the number of processed messages
    """
    raw_body = await request.body()
    try:
        result = await gateway.handle_cloud_delivery(raw_body, request.headers.get(SIGNATURE_HEADER))
    except SignatureError:
        log_api_failure(logger, "whatsapp.webhook", "invalid-signature", method=request.method, path=request.url.path)
        return JSONResponse(status_code=401, content={"message": "Invalid webhook signature"})
    except WebhookPayloadError as e:
        log_api_failure(logger, "whatsapp.webhook", e, method=request.method, path=request.url.path)
        return JSONResponse(status_code=400, content={"message": str(e)})
    except Exception as e:
        logger.exception("Failed to process WhatsApp webhook")
        return server_error(settings, "Failed to process WhatsApp webhook", e)

    return {"ok": True, "processedMessages": result.processed_messages}


@router.post("/bridge")
@router.post("/twilio", include_in_schema=False)
async def receive_bridge_webhook(
    request: Request,
    gateway: WebhookGateway = Depends(get_webhook_gateway),
):
    """
    Handle a Twilio bridge delivery (form fields From, Body).

    Always answers with a TwiML envelope, including on failure.
    """
    try:
        form = await request.form()
        await gateway.handle_bridge_delivery(dict(form))
    except Exception:
        logger.exception("Failed to process bridge webhook")
        return Response(content=generate_error_twiml(), status_code=500, media_type="application/xml")

    return Response(content=generate_messaging_twiml(), media_type="application/xml")
