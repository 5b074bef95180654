"""
Channel adapters
"""
from .whatsapp_session import (
    WhatsAppSession,
    MediaContent,
    InboundMessage,
    EVENT_READY,
    EVENT_QR,
    EVENT_AUTH_FAILURE,
    EVENT_MESSAGE,
)

__all__ = [
    "WhatsAppSession",
    "MediaContent",
    "InboundMessage",
    "EVENT_READY",
    "EVENT_QR",
    "EVENT_AUTH_FAILURE",
    "EVENT_MESSAGE",
]
