"""
Daily reminder jobs: warranty expiry and installments due today
"""
import logging
from typing import Dict, List, Tuple

from cardroid.adapters.whatsapp_session import WhatsAppSession
from cardroid.database import financing_operations, warranty_operations
from cardroid.models import Buyer, Financing
from cardroid.utils.dates import BusinessClock, add_days, format_date

logger = logging.getLogger(__name__)


def warranty_reminder_message(buyer: Buyer) -> str:
    plate = f" (Placa: {buyer.plate})" if buyer.plate else ""
    return (
        f"Recordatorio: Tu garantía para {buyer.product}{plate} "
        f"expira el {format_date(buyer.expiration_date)}."
    )


def installment_reminder_message(financing: Financing, position: int) -> str:
    installment = financing.installments[position]
    return (
        f"Recordatorio: Tu cuota {position + 1} para {financing.plate} vence hoy "
        f"({format_date(installment.due_date)}). Por favor realiza tu pago."
    )


async def _send_all(session: WhatsAppSession, messages: List[Tuple[str, str]]) -> Dict[str, int]:
    summary = {"matched": len(messages), "sent": 0, "failed": 0}
    for phone, text in messages:
        try:
            chat_id = await session.resolve_chat_id(phone)
            await session.send_message(chat_id, text)
            summary["sent"] += 1
            logger.info(f"Recordatorio enviado a {phone}")
        except Exception as e:
            summary["failed"] += 1
            logger.error(f"Error enviando recordatorio a {phone}: {e}")
    return summary


async def warranty_expiry_job(session: WhatsAppSession, clock: BusinessClock, days_ahead: int = 7) -> Dict[str, int]:
    """
    Remind every buyer whose warranty expires ``days_ahead`` days from today

    Returns:
        Summary with matched, sent and failed counts
    """
    target = add_days(clock.today(), days_ahead)
    logger.info(f"Recordatorio: buscando garantías que expiran el {format_date(target)}")

    buyers = await warranty_operations.find_buyers_expiring_on(target)
    messages = [(b.phone, warranty_reminder_message(b)) for b in buyers]
    summary = await _send_all(session, messages)
    logger.info(f"Recordatorios de garantía: {summary}")
    return summary


async def installment_due_job(session: WhatsAppSession, clock: BusinessClock) -> Dict[str, int]:
    """
    Remind every unpaid installment due today

    Returns:
        Summary with matched, sent and failed counts
    """
    today = clock.today()
    logger.info(f"Recordatorio cuotas: buscando cuotas que vencen hoy {format_date(today)}")

    messages = []
    for financing in await financing_operations.list_financings():
        for position, installment in financing.pending_installments():
            if installment.due_date == today:
                messages.append((financing.phone, installment_reminder_message(financing, position)))

    summary = await _send_all(session, messages)
    logger.info(f"Recordatorios de cuotas: {summary}")
    return summary
