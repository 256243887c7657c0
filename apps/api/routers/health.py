"""Service health endpoint."""

import logging
import re
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError

from apps.api.deps import get_settings
from core.settings import Settings
from db.session import is_sqlite, ping_db


logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def mask_database_url(url: str) -> str:
    """Hide the password part of a database URL."""
    return re.sub(r":[^:@/]+@", ":****@", url)


@router.get("/health")
async def health_check(request: Request, settings: Settings = Depends(get_settings)):
    """
    Report database connectivity and WhatsApp provider state.

    Returns:
        dict: Health summary; 'ok' is false when the database is unreachable
    """
    started = time.perf_counter()
    state = request.app.state

    ping_ok = False
    ping_error = None
    ping_latency_ms = None
    try:
        ping_latency_ms = await ping_db(state.engine)
        ping_ok = True
    except SQLAlchemyError as e:
        logger.warning(f"Database ping failed: {e}")
        ping_error = str(e)

    provider = state.provider
    return {
        "ok": ping_ok,
        "service": settings.app_name,
        "uptimeSeconds": int(time.monotonic() - state.started_monotonic),
        "startedAt": state.started_at.isoformat(),
        "db": {
            "engine": "sqlite" if is_sqlite(settings.database_url) else "postgresql",
            "connected": ping_ok,
            "pingLatencyMs": ping_latency_ms,
            "url": mask_database_url(settings.database_url),
            "pingError": ping_error if not settings.is_production else None,
        },
        "whatsapp": {
            "provider": provider.name.value,
            "enabled": provider.enabled,
        },
        "latencyMs": (time.perf_counter() - started) * 1000,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
