"""
Financing routes: create plans, search them and mark installments paid
"""
from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, PlainTextResponse
from pydantic import ValidationError as PydanticValidationError
from typing import Optional
import logging

from cardroid.api import pages
from cardroid.api.dependencies import get_financing_service
from cardroid.config import settings
from cardroid.exceptions import ValidationError
from cardroid.middleware.rate_limiter import get_rate_limit, limiter
from cardroid.models import FinancingCreate
from cardroid.services.financing import FinancingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/financiamiento", tags=["financiamiento"])


def _optional_number(value: Optional[str], field: str, cast=float):
    """Blank form inputs mean "use the default"."""
    if value is None or not value.strip():
        return None
    try:
        return cast(value.strip())
    except ValueError:
        raise ValidationError(f"Valor inválido para '{field}'.")


@router.get("/crear", response_class=HTMLResponse)
async def financing_form():
    return HTMLResponse(pages.render_financing_form())


@router.post("/crear", response_class=PlainTextResponse)
@limiter.limit(get_rate_limit("form"))
async def create_financing(
    request: Request,
    nombre: str = Form(...),
    numero: str = Form(...),
    dni: str = Form(...),
    placa: str = Form(...),
    montoTotal: float = Form(...),
    cuotaInicial: Optional[str] = Form(None),
    numCuotas: Optional[str] = Form(None),
    service: FinancingService = Depends(get_financing_service),
):
    """
    Register a financing plan and send the contract over WhatsApp

    The plan stays stored even when the contract cannot be delivered.
    """
    try:
        data = FinancingCreate(
            customer_name=nombre.strip(),
            phone=numero.strip(),
            id_document=dni.strip(),
            plate=placa.strip(),
            total_amount=montoTotal,
            down_payment=_optional_number(cuotaInicial, "cuotaInicial"),
            installment_count=_optional_number(numCuotas, "numCuotas", int),
        )
    except PydanticValidationError as e:
        fields = ", ".join(str(err["loc"][-1]) for err in e.errors())
        raise ValidationError(f"Datos de financiamiento inválidos: {fields}")

    financing, sent = await service.create(data)
    if sent:
        return PlainTextResponse("Financiamiento registrado y contrato enviado.")
    return PlainTextResponse("Financiamiento registrado, pero no se pudo enviar el contrato por WhatsApp.")


@router.get("/buscar", response_class=HTMLResponse)
async def search_form():
    return HTMLResponse(pages.render_search_form())


@router.get("/buscar/result", response_class=HTMLResponse)
async def search_results(
    buscar: str = Query(""),
    service: FinancingService = Depends(get_financing_service),
):
    """Plans whose number or plate starts with the search term."""
    financings = await service.search(buscar)
    return HTMLResponse(pages.render_search_results(financings, settings.currency))


@router.post("/marcar", response_class=PlainTextResponse)
@limiter.limit(get_rate_limit("form"))
async def mark_installment_paid(
    request: Request,
    numero: str = Form(""),
    cuota_id: Optional[str] = Form(None),
    indice: Optional[str] = Form(None),
    service: FinancingService = Depends(get_financing_service),
):
    """
    Mark one installment paid and send the customer the pending list

    The installment is addressed by ``cuota_id``, or by its 0-based
    ``indice`` in the plan.
    """
    index = None
    if not (cuota_id and cuota_id.strip()):
        if indice is None or not indice.strip():
            raise ValidationError("Parámetros incompletos: 'numero' y 'cuota_id' o 'indice' son requeridos.")
        try:
            index = int(indice.strip())
        except ValueError:
            raise ValidationError("Índice de cuota inválido.")

    _, notified = await service.mark_paid(
        numero.strip(),
        installment_id=cuota_id.strip() if cuota_id else None,
        index=index,
    )
    if notified:
        return PlainTextResponse("Cuota marcada como pagada y mensaje enviado.")
    return PlainTextResponse("Cuota marcada como pagada, pero no se pudo enviar el mensaje.")
