"""WhatsApp conversational bot: intent classification plus reply selection."""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from domain.enums import ChatIntent

from .conversation_sessions import ConversationSession, ConversationSessionStore
from .generative_reply import GenerativeReplyService
from .intent_classifier import classify


logger = logging.getLogger(__name__)


def default_replies(restaurant_name: str) -> Dict[ChatIntent, str]:
    """Fixed reply per intent, used whenever no generated reply is available."""
    return {
        ChatIntent.GREETING: (
            f"Welcome to {restaurant_name}! You can book a table, ask for menu highlights, "
            "or check a reservation."
        ),
        ChatIntent.RESERVATION: (
            "For instant booking, use our website reservation form. Share your preferred "
            "date/time and number of guests, and we can guide you."
        ),
        ChatIntent.MENU: (
            "Today's popular items include Butter Chicken, Tandoori Chicken, and Chana Masala. "
            "Want veg or non-veg suggestions?"
        ),
        ChatIntent.CONFIRMATION: (
            "Please share your name and reservation date/time, and our team will confirm availability."
        ),
        ChatIntent.HELP: (
            "Type BOOK TABLE, MENU, or STATUS. You can also call us directly for urgent support."
        ),
        ChatIntent.FALLBACK: (
            "I can help with table bookings, menu queries, and reservation confirmations. "
            "Type HELP to see options."
        ),
    }


@dataclass(frozen=True)
class BotReply:
    """Reply text together with the intent it answers."""

    intent: ChatIntent
    text: str
    generated: bool = False


class ConversationalBot:
    """Composes classifier, session tracking and optional generated replies."""

    def __init__(
        self,
        sessions: ConversationSessionStore,
        generator: Optional[GenerativeReplyService] = None,
        restaurant_name: str = "our restaurant",
    ):
        self.sessions = sessions
        self.generator = generator
        self.templates = default_replies(restaurant_name)

    async def respond(self, sender: str, text: str) -> BotReply:
        """
        Classify the message, record it on the sender's session and pick a reply.

        Args:
            sender: Canonical sender phone number
            text: Message text

        Returns:
            BotReply with the detected intent
        """
        intent = classify(text)
        self.sessions.record(sender, intent)

        if self.generator is not None:
            generated = await self.generator.generate(text, intent)
            if generated:
                return BotReply(intent=intent, text=generated, generated=True)

        return BotReply(intent=intent, text=self.templates[intent])

    async def reply(self, sender: str, text: str) -> str:
        return (await self.respond(sender, text)).text

    def session_for(self, sender: str) -> Optional[ConversationSession]:
        return self.sessions.get(sender)
