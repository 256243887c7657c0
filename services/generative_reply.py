"""Optional OpenAI-generated chat replies."""

import logging
from typing import Any, Optional

from openai import AsyncOpenAI

from core.settings import Settings
from domain.enums import ChatIntent


logger = logging.getLogger(__name__)


def build_prompt(restaurant_name: str, user_text: str, intent: ChatIntent) -> str:
    return "\n".join([
        f"You are a concise WhatsApp assistant for {restaurant_name}.",
        "Reply in under 2 short sentences.",
        "If booking related, direct user to website reservation or ask date/time and guests.",
        f"Detected intent: {intent.value}",
        f"User message: {user_text}",
    ])


class GenerativeReplyService:
    """
    Best-effort reply generation.

    ``generate`` never raises: a disabled backend, a timeout or an API
    error all come back as '' so callers fall through to templates.
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.3,
        restaurant_name: str = "our restaurant",
    ):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.restaurant_name = restaurant_name

    @classmethod
    def from_settings(cls, settings: Settings) -> "GenerativeReplyService":
        client = None
        if settings.openai_api_key:
            client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.openai_timeout_seconds,
                max_retries=0,
            )
        return cls(
            client=client,
            model=settings.openai_model,
            temperature=settings.openai_temperature,
            restaurant_name=settings.restaurant_name,
        )

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def generate(self, user_text: str, intent: ChatIntent) -> str:
        if self.client is None:
            return ""

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                messages=[{"role": "user", "content": build_prompt(self.restaurant_name, user_text, intent)}],
            )
            content = response.choices[0].message.content
        except Exception as e:
            logger.warning(f"Generative reply failed, using template: {e}")
            return ""

        return str(content or "").strip()

    async def aclose(self) -> None:
        if self.client is not None and hasattr(self.client, "close"):
            await self.client.close()
