"""Extraction of inbound WhatsApp messages from vendor webhook payloads."""

from dataclasses import dataclass
from typing import Any, Iterator, List, Mapping

from services.reservation_validation import normalize_phone

from .bridge import strip_whatsapp_prefix


@dataclass(frozen=True)
class InboundMessage:
    """One inbound chat message: canonical sender and human-readable text."""

    sender: str
    text: str


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def extract_message_text(message: Any) -> str:
    """
    Human-readable body of a Cloud API message, by type.

    Supports 'text', 'button' (quick reply) and 'interactive'
    (button or list reply). Other types yield ''.
    """
    message = _as_dict(message)
    message_type = message.get("type")

    if message_type == "text":
        return str(_as_dict(message.get("text")).get("body") or "").strip()
    if message_type == "button":
        return str(_as_dict(message.get("button")).get("text") or "").strip()
    if message_type == "interactive":
        interactive = _as_dict(message.get("interactive"))
        title = (
            _as_dict(interactive.get("button_reply")).get("title")
            or _as_dict(interactive.get("list_reply")).get("title")
            or ""
        )
        return str(title).strip()
    return ""


def iter_cloud_messages(payload: Any) -> Iterator[dict]:
    """Walk entry -> changes -> value.messages of a Cloud API webhook."""
    for entry in _as_list(_as_dict(payload).get("entry")):
        for change in _as_list(_as_dict(entry).get("changes")):
            value = _as_dict(_as_dict(change).get("value"))
            for message in _as_list(value.get("messages")):
                yield _as_dict(message)


def parse_cloud_payload(payload: Any, default_country_code: str = "91") -> List[InboundMessage]:
    """All messages of a Cloud API delivery, in payload order."""
    return [
        InboundMessage(
            sender=normalize_phone(message.get("from"), default_country_code),
            text=extract_message_text(message),
        )
        for message in iter_cloud_messages(payload)
    ]


def parse_bridge_form(form: Mapping[str, Any], default_country_code: str = "91") -> List[InboundMessage]:
    """The single message of a bridge delivery (form fields From, Body)."""
    sender = normalize_phone(strip_whatsapp_prefix(form.get("From")), default_country_code)
    text = str(form.get("Body") or "").strip()
    return [InboundMessage(sender=sender, text=text)]
