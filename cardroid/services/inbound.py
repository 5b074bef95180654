"""
Inbound WhatsApp message handling
"""
import logging
from typing import Optional

from cardroid.adapters.whatsapp_session import InboundMessage
from cardroid.database import crm_operations
from cardroid.models import Interaction, InteractionType
from cardroid.services.dispatcher import BroadcastDispatcher
from cardroid.services.promotions import send_catalogue

logger = logging.getLogger(__name__)

OFFER_COMMAND = "oferta"
FINANCING_KEYWORD = "financ"
ACCEPTANCE_PHRASES = ("si acepto", "sí acepto")


def classify_message(text: str, has_offer: bool = False) -> Optional[InteractionType]:
    """
    Interaction type for an incoming text, or None when nothing is logged

    Args:
        text: Message body
        has_offer: Whether the sender already received the initial offer
    """
    normalized = (text or "").strip().lower()
    if normalized == OFFER_COMMAND:
        return InteractionType.OFFER_REQUEST
    if FINANCING_KEYWORD in normalized:
        return InteractionType.INFO_REQUEST
    if normalized in ACCEPTANCE_PHRASES:
        return InteractionType.CONTRACT_ACCEPTANCE
    if has_offer:
        return InteractionType.OFFER_RESPONSE
    return None


class InboundMessageHandler:
    """Registered on the session's ``message`` event."""

    def __init__(self, dispatcher: BroadcastDispatcher):
        self.dispatcher = dispatcher

    async def __call__(self, message: InboundMessage) -> Optional[InteractionType]:
        logger.info(f"Mensaje entrante de {message.phone}")
        await crm_operations.touch_customer(message.phone)

        offer = await crm_operations.find_offer(message.phone)
        interaction_type = classify_message(message.text, has_offer=offer is not None)
        if interaction_type is None:
            return None

        await crm_operations.log_interaction(
            Interaction(
                phone=message.phone,
                type=interaction_type,
                message=message.text,
                offer_reference=offer.id if offer and interaction_type == InteractionType.OFFER_RESPONSE else None,
            )
        )

        if interaction_type == InteractionType.OFFER_REQUEST:
            await send_catalogue(self.dispatcher, message.phone)
        elif interaction_type == InteractionType.INFO_REQUEST:
            await crm_operations.upsert_marketing_interest(message.phone, message.text)

        return interaction_type
