"""
Financing plans: schedule calculation, creation, search and payments
"""
import asyncio
import logging
from datetime import date
from typing import List, Optional, Tuple

from cardroid.adapters.whatsapp_session import MediaContent, WhatsAppSession
from cardroid.config import settings
from cardroid.database import financing_operations
from cardroid.exceptions import InstallmentOutOfRangeError, NotFoundError, ValidationError
from cardroid.models import ContractDocument, Financing, FinancingCreate, Installment
from cardroid.models.financing import new_installment_id
from cardroid.services.pdf_renderer import render_contract_pdf
from cardroid.utils.dates import BusinessClock, add_days, format_date

logger = logging.getLogger(__name__)

CONTRACT_FILENAME = "ContratoFinanciamiento.pdf"
CONTRACT_CAPTION = "Adjunto: Contrato de Financiamiento y cronograma de pagos"


def build_installment_schedule(
    total_amount: float,
    down_payment: float,
    count: int,
    start: date,
    interval_days: int = 30,
) -> List[Installment]:
    """
    Split the financed balance into equal installments

    Installment i (1-based) is due ``start + i * interval_days`` days; the
    interval is a fixed number of days, not a calendar month.

    Raises:
        ValidationError: on a non-positive count or a down payment above the total
    """
    if count < 1:
        raise ValidationError("El número de cuotas debe ser al menos 1.")
    if down_payment > total_amount:
        raise ValidationError("La cuota inicial no puede superar el monto total.")

    amount = round((total_amount - down_payment) / count, 2)
    return [
        Installment(
            installment_id=new_installment_id(),
            amount=amount,
            due_date=add_days(start, interval_days * i),
        )
        for i in range(1, count + 1)
    ]


def build_financing(data: FinancingCreate, start: date) -> Financing:
    down_payment = data.down_payment if data.down_payment is not None else settings.default_down_payment
    count = data.installment_count or settings.default_installments
    installments = build_installment_schedule(
        data.total_amount, down_payment, count, start, settings.installment_interval_days
    )
    return Financing(
        customer_name=data.customer_name,
        phone=data.phone,
        id_document=data.id_document,
        plate=data.plate,
        total_amount=data.total_amount,
        down_payment=down_payment,
        installments=installments,
        start_date=start,
        end_date=installments[-1].due_date,
    )


def mark_paid_at(installments: List[Installment], index: int) -> List[Installment]:
    """
    Copy of the list with the installment at ``index`` marked paid

    Raises:
        InstallmentOutOfRangeError: when index is outside the list
    """
    if index < 0 or index >= len(installments):
        raise InstallmentOutOfRangeError(index, len(installments))
    updated = [c.model_copy() for c in installments]
    updated[index] = updated[index].model_copy(update={"paid": True})
    return updated


def locate_installment(
    financing: Financing,
    installment_id: Optional[str] = None,
    index: Optional[int] = None,
) -> Tuple[int, Installment]:
    """
    Find an installment by stable id, or by positional index

    Raises:
        ValidationError: neither reference given
        NotFoundError: unknown installment id
        InstallmentOutOfRangeError: index outside the list
    """
    if installment_id:
        for position, installment in enumerate(financing.installments):
            if installment.installment_id == installment_id:
                return position, installment
        raise NotFoundError("No se encontró la cuota indicada.")

    if index is None:
        raise ValidationError("Parámetros incompletos: 'numero' y 'cuota_id' o 'indice' son requeridos.")
    if index < 0 or index >= len(financing.installments):
        raise InstallmentOutOfRangeError(index, len(financing.installments))
    return index, financing.installments[index]


def payment_receipt_message(financing: Financing, currency: str = "S/") -> str:
    """Thank-you text listing the installments still pending."""
    message = "¡Gracias por tu pago!\n"
    pending = financing.pending_installments()
    if not pending:
        return message + "Has completado todos tus pagos. ¡Felicitaciones!"

    message += "Cuotas pendientes:\n"
    for position, installment in pending:
        message += (
            f"Cuota {position + 1}: {currency} {installment.amount:.2f}, "
            f"vence el {format_date(installment.due_date)}\n"
        )
    return message


class FinancingService:
    """Financing workflows used by the HTTP handlers."""

    def __init__(self, session: WhatsAppSession, clock: BusinessClock):
        self.session = session
        self.clock = clock

    async def create(self, data: FinancingCreate) -> Tuple[Financing, bool]:
        """
        Store a new plan and send its contract

        The plan is persisted first; the contract send is best effort and a
        failure never undoes the insert.

        Returns:
            (financing, contract_sent)
        """
        financing = build_financing(data, self.clock.today())
        financing.id = await financing_operations.insert_financing(financing)
        logger.info(f"Financiamiento guardado para el número: {financing.phone}")

        try:
            pdf = await asyncio.to_thread(render_contract_pdf, ContractDocument.from_financing(financing))
            chat_id = await self.session.resolve_chat_id(financing.phone)
            media = MediaContent.from_bytes(pdf, "application/pdf", CONTRACT_FILENAME)
            await self.session.send_media(chat_id, media, caption=CONTRACT_CAPTION)
        except Exception as e:
            logger.error(f"Error enviando contrato a {financing.phone}: {e}")
            return financing, False

        return financing, True

    async def search(self, term: str) -> List[Financing]:
        if not term or not term.strip():
            raise ValidationError("Ingresa un número o placa para buscar.")
        results = await financing_operations.search_financings(term.strip())
        if not results:
            raise NotFoundError("No se encontró financiamiento para el criterio dado.")
        return results

    async def mark_paid(
        self,
        phone: str,
        installment_id: Optional[str] = None,
        index: Optional[int] = None,
    ) -> Tuple[Financing, bool]:
        """
        Mark one installment paid and notify the customer

        Marking an already-paid installment again leaves it paid.

        Returns:
            (updated financing, notification_sent)
        """
        if not phone:
            raise ValidationError("Parámetros incompletos: 'numero' y 'cuota_id' o 'indice' son requeridos.")

        financing = await financing_operations.find_financing_by_phone(phone)
        if financing is None:
            raise NotFoundError("No se encontró financiamiento para ese número.")

        position, installment = locate_installment(financing, installment_id, index)
        found = await financing_operations.set_installment_paid(
            phone, installment.installment_id, position
        )
        if not found:
            raise NotFoundError("No se encontró la cuota indicada.")
        financing.installments = mark_paid_at(financing.installments, position)
        logger.info(f"Cuota {position + 1} de {phone} marcada como pagada")

        try:
            chat_id = await self.session.resolve_chat_id(phone)
            await self.session.send_message(chat_id, payment_receipt_message(financing, settings.currency))
        except Exception as e:
            logger.error(f"Error enviando mensaje de marca de cuota a {phone}: {e}")
            return financing, False

        return financing, True
