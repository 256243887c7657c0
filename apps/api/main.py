"""FastAPI application entrypoint for the table reservation service."""

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from apps.api.deps import server_error
from apps.api.routers import health, reservations, whatsapp
from core.logging import get_logger, setup_logging
from core.settings import Settings, settings
from db.session import close_db, create_engine, create_session_factory, init_db
from integrations.whatsapp.factory import build_provider
from services.chat_bot import ConversationalBot
from services.conversation_sessions import ConversationSessionStore
from services.generative_reply import GenerativeReplyService
from services.notification_service import NotificationService
from services.reservation_service import ReservationService
from services.webhook_gateway import WebhookGateway


logger = get_logger(__name__)


def create_app(
    app_settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    openai_client: Optional[Any] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        app_settings: Settings to use instead of the environment-loaded ones
        http_client: HTTP client for WhatsApp vendor calls
        openai_client: Client for generated chat replies

    Returns:
        FastAPI: Configured application
    """
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.
        Handles startup and shutdown events.
        """
        # Startup
        logger.info(f"Starting {app_settings.app_name}...")

        engine = create_engine(app_settings.database_url)
        try:
            await init_db(engine)
            logger.info("Database initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            raise

        provider = build_provider(app_settings, client=http_client)
        if openai_client is not None:
            generator = GenerativeReplyService(
                client=openai_client,
                model=app_settings.openai_model,
                temperature=app_settings.openai_temperature,
                restaurant_name=app_settings.restaurant_name,
            )
        else:
            generator = GenerativeReplyService.from_settings(app_settings)

        notifications = NotificationService(
            provider=provider,
            admin_number=app_settings.admin_number,
            restaurant_name=app_settings.restaurant_name,
            template_name=app_settings.whatsapp_reservation_template_name,
        )
        reservation_service = ReservationService(
            session_factory=create_session_factory(engine),
            notifications=notifications,
            notification_budget_seconds=app_settings.notification_budget_seconds,
        )
        bot = ConversationalBot(
            sessions=ConversationSessionStore(
                ttl_seconds=app_settings.session_timeout_minutes * 60,
                max_sessions=app_settings.max_conversation_sessions,
            ),
            generator=generator,
            restaurant_name=app_settings.restaurant_name,
        )

        app.state.engine = engine
        app.state.provider = provider
        app.state.reservation_service = reservation_service
        app.state.webhook_gateway = WebhookGateway(
            provider=provider,
            bot=bot,
            verify_token=app_settings.whatsapp_verify_token,
        )
        app.state.started_at = datetime.now(timezone.utc)
        app.state.started_monotonic = time.monotonic()

        logger.info("Application startup complete")

        yield

        # Shutdown
        logger.info(f"Shutting down {app_settings.app_name}...")
        await reservation_service.wait_for_background_tasks()
        await provider.aclose()
        await generator.aclose()
        await close_db(engine)

    app = FastAPI(
        title=app_settings.app_name,
        description="Table reservations with WhatsApp notifications and chat bot",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = app_settings

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        field = str(errors[0]["loc"][-1]) if errors and errors[0].get("loc") else None
        return JSONResponse(status_code=400, content={"message": "Invalid request.", "field": field})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return server_error(app_settings, "Internal server error", exc)

    # Include routers
    app.include_router(reservations.router, prefix=app_settings.api_prefix)
    app.include_router(whatsapp.router, prefix=app_settings.api_prefix)
    app.include_router(health.router, prefix=app_settings.api_prefix)

    @app.get("/")
    async def root():
        """Root endpoint - service banner."""
        return {
            "app": app_settings.app_name,
            "status": "running",
            "version": "1.0.0"
        }

    return app


setup_logging(settings)
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "apps.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
