"""
Warranty certificates
"""
import asyncio
import logging
from datetime import date
from typing import Optional, Tuple

from cardroid.adapters.whatsapp_session import MediaContent, WhatsAppSession
from cardroid.database import warranty_operations
from cardroid.models import Buyer, WarrantyDocument
from cardroid.services.pdf_renderer import render_warranty_pdf
from cardroid.utils.dates import add_years

logger = logging.getLogger(__name__)

WARRANTY_FILENAME = "CertificadoGarantia.pdf"
WARRANTY_CAPTION = "Adjunto: Certificado de Garantía"
WARRANTY_YEARS = 1


def build_buyer(phone: str, product: str, install_date: date, plate: Optional[str] = None) -> Buyer:
    """Buyer record whose warranty runs one calendar year from installation."""
    return Buyer(
        phone=phone,
        product=product,
        plate=plate or None,
        install_date=install_date,
        expiration_date=add_years(install_date, WARRANTY_YEARS),
    )


class WarrantyService:
    def __init__(self, session: WhatsAppSession):
        self.session = session

    async def create(self, phone: str, product: str, install_date: date, plate: Optional[str] = None) -> Tuple[Buyer, bool]:
        """
        Render the certificate, store the buyer and send the PDF

        Returns:
            (buyer, certificate_sent)
        """
        buyer = build_buyer(phone, product, install_date, plate)
        document = WarrantyDocument(
            phone=buyer.phone,
            product=buyer.product,
            plate=buyer.plate,
            install_date=buyer.install_date,
            expiration_date=buyer.expiration_date,
        )
        pdf = await asyncio.to_thread(render_warranty_pdf, document)

        buyer.id = await warranty_operations.insert_buyer(buyer)
        logger.info(f"Comprador guardado: {buyer.phone} ({buyer.product})")

        try:
            chat_id = await self.session.resolve_chat_id(phone)
            media = MediaContent.from_bytes(pdf, "application/pdf", WARRANTY_FILENAME)
            await self.session.send_media(chat_id, media, caption=WARRANTY_CAPTION)
        except Exception as e:
            logger.error(f"Error enviando certificado de garantía a {phone}: {e}")
            return buyer, False

        return buyer, True
