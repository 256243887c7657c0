"""
Application settings and configuration management using Pydantic Settings.
"""
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from domain.enums import ProviderName
from services.reservation_validation import normalize_phone


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Application Settings
    app_name: str = Field(default="Table Reservation Service", description="Application name")
    app_env: str = Field(default="development", description="Environment (development, staging, production)")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    api_prefix: str = Field(default="/api", description="Prefix for all API routes")

    # Database Configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///./reservations.db",
        description="Database connection URL"
    )

    # Restaurant Configuration
    restaurant_name: str = Field(default="RAHMAN Restaurant", description="Restaurant name")

    # CORS Settings
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        description="Allowed CORS origins (comma-separated)"
    )

    # WhatsApp Configuration
    whatsapp_provider: ProviderName = Field(default=ProviderName.NONE, description="none, meta or twilio")
    reservation_whatsapp_number: str = Field(default="", description="Admin number alerted on new bookings")
    whatsapp_default_country_code: str = Field(default="91", description="Country code for 10-digit local numbers")
    whatsapp_meta_access_token: str = Field(default="", description="Cloud API bearer token")
    whatsapp_meta_phone_number_id: str = Field(default="", description="Cloud API sender phone number id")
    whatsapp_meta_api_version: str = Field(default="v20.0", description="Graph API version")
    whatsapp_meta_app_secret: str = Field(default="", description="Webhook signing secret")
    whatsapp_verify_token: str = Field(default="", description="Webhook verification token")
    whatsapp_twilio_account_sid: str = Field(default="", description="Twilio Account SID")
    whatsapp_twilio_auth_token: str = Field(default="", description="Twilio Auth Token")
    whatsapp_twilio_from: str = Field(default="", description="Twilio WhatsApp sender number")
    whatsapp_reservation_template_name: str = Field(default="", description="Approved confirmation template")
    whatsapp_template_language: str = Field(default="en_US", description="Template language code")
    whatsapp_http_timeout_seconds: float = Field(default=10.0, gt=0, description="Timeout per provider call")
    notification_budget_seconds: float = Field(
        default=8.0, gt=0, description="How long a booking response waits for notification outcomes"
    )

    # OpenAI Configuration
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o-mini", description="OpenAI model to use")
    openai_temperature: float = Field(default=0.3, ge=0.0, le=2.0, description="Model temperature")
    openai_timeout_seconds: float = Field(default=8.0, gt=0, description="Timeout for generative replies")

    # Session Configuration
    session_timeout_minutes: int = Field(default=30, ge=1, description="Session timeout in minutes")
    max_conversation_sessions: int = Field(default=10000, ge=1, description="Maximum in-memory chat sessions")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed_levels:
            raise ValueError(f"log_level must be one of {allowed_levels}")
        return v_upper

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed_envs = ["development", "staging", "production"]
        v_lower = v.lower()
        if v_lower not in allowed_envs:
            raise ValueError(f"app_env must be one of {allowed_envs}")
        return v_lower

    @field_validator("whatsapp_provider", mode="before")
    @classmethod
    def validate_whatsapp_provider(cls, v):
        """Accept vendor names as well as the generic provider aliases."""
        if isinstance(v, ProviderName):
            return v
        return ProviderName.parse(str(v or ""))

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Ensure the async driver is used for PostgreSQL URLs."""
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string to list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"

    @property
    def whatsapp_enabled(self) -> bool:
        return self.whatsapp_provider != ProviderName.NONE

    @property
    def admin_number(self) -> str:
        """Admin recipient in canonical international format, or ''."""
        return normalize_phone(self.reservation_whatsapp_number, self.whatsapp_default_country_code)


# Global settings instance
settings = Settings()
