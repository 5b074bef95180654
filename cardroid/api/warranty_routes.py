"""
Warranty certificate routes
"""
from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, PlainTextResponse
from typing import Optional

from cardroid.api import pages
from cardroid.api.dependencies import get_warranty_service
from cardroid.exceptions import ValidationError
from cardroid.middleware.rate_limiter import get_rate_limit, limiter
from cardroid.services.warranty import WarrantyService
from cardroid.utils.dates import parse_date

router = APIRouter(prefix="/garantia", tags=["garantia"])


@router.get("/crear", response_class=HTMLResponse)
async def warranty_form():
    return HTMLResponse(pages.render_warranty_form())


@router.post("/crear", response_class=PlainTextResponse)
@limiter.limit(get_rate_limit("form"))
async def create_warranty(
    request: Request,
    numeroCelular: str = Form(...),
    fechaInstalacion: str = Form(...),
    nombreProducto: str = Form(...),
    placa: Optional[str] = Form(None),
    service: WarrantyService = Depends(get_warranty_service),
):
    """Store the buyer and send the one-year warranty certificate."""
    if not numeroCelular.strip() or not nombreProducto.strip():
        raise ValidationError("El número y el producto son obligatorios.")

    install_date = parse_date(fechaInstalacion)
    _, sent = await service.create(
        numeroCelular.strip(),
        nombreProducto.strip(),
        install_date,
        plate=placa.strip() if placa else None,
    )
    if sent:
        return PlainTextResponse("Certificado generado, comprador guardado y enviado correctamente.")
    return PlainTextResponse("Certificado generado y comprador guardado, pero no se pudo enviar por WhatsApp.")
