"""TwiML XML response generation for the WhatsApp bridge webhook."""

from typing import Optional
from xml.etree.ElementTree import Element, SubElement, tostring


DEFAULT_ERROR_MESSAGE = "Temporary issue. Please retry later."


def create_twiml_response() -> Element:
    """
    Create a basic TwiML Response element.

    Returns:
        Element: XML Element for TwiML Response
    """
    return Element("Response")


def add_message(response: Element, body: str) -> Element:
    """
    Add a Message verb to TwiML response.

    Args:
        response: TwiML Response element
        body: Text sent back to the WhatsApp user

    Returns:
        Element: Message element
    """
    message_element = SubElement(response, "Message")
    message_element.text = body
    return message_element


def generate_messaging_twiml(message: Optional[str] = None) -> str:
    """
    Generate TwiML acknowledging an inbound message.

    Replies are sent through the REST API, so the envelope is normally empty.

    Args:
        message: Optional text to answer inline

    Returns:
        str: TwiML XML string
    """
    response = create_twiml_response()
    if message:
        add_message(response, message)
    return twiml_to_string(response)


def generate_error_twiml(error_message: Optional[str] = None) -> str:
    """
    Generate TwiML for an internal failure.

    Args:
        error_message: Custom error message

    Returns:
        str: TwiML XML string
    """
    return generate_messaging_twiml(error_message or DEFAULT_ERROR_MESSAGE)


def twiml_to_string(response: Element) -> str:
    """
    Convert TwiML Element to XML string.

    Args:
        response: TwiML Response element

    Returns:
        str: XML string with proper declaration
    """
    xml_string = tostring(response, encoding='unicode', method='xml')
    return f'<?xml version="1.0" encoding="UTF-8"?>{xml_string}'
