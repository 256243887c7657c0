"""
Keyword intent classifier for inbound WhatsApp messages.

Rules are tested in order and the first match wins, so overlapping
messages resolve by priority: "check my reservation status" is a
reservation question, not a confirmation one.
"""

import re
from typing import List, Pattern, Tuple

from domain.enums import ChatIntent


# Greeting words match whole words only ("this" is not "hi"); every other
# keyword matches anywhere in the text, so "seafood" is a menu question.
_GREETING_WORDS = r"hello|hi|hey|start"

INTENT_RULES: List[Tuple[ChatIntent, Pattern[str]]] = [
    (ChatIntent.RESERVATION, re.compile(r"(book|reserv|table)", re.IGNORECASE)),
    # A message that opens with a salutation is a greeting even if it
    # goes on to mention the menu.
    (ChatIntent.GREETING, re.compile(rf"^\W*({_GREETING_WORDS})\b", re.IGNORECASE)),
    (ChatIntent.MENU, re.compile(r"(menu|dish|food|item|price)", re.IGNORECASE)),
    (ChatIntent.GREETING, re.compile(rf"\b({_GREETING_WORDS})\b", re.IGNORECASE)),
    (ChatIntent.CONFIRMATION, re.compile(r"(confirm|status|check)", re.IGNORECASE)),
    (ChatIntent.HELP, re.compile(r"(help|support)", re.IGNORECASE)),
]


def classify(text: str) -> ChatIntent:
    """Map free text to an intent; 'fallback' when nothing matches."""
    message = str(text or "")
    for intent, pattern in INTENT_RULES:
        if pattern.search(message):
            return intent
    return ChatIntent.FALLBACK
