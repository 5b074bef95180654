"""
CRM routes: dashboard, ledger, custom broadcasts and the initial offer campaign
"""
from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import FileResponse, HTMLResponse, RedirectResponse
from typing import List, Optional
import logging

from cardroid.api import pages
from cardroid.api.dependencies import get_broadcast_queue, get_clock, get_ledger
from cardroid.config import settings
from cardroid.database import crm_operations
from cardroid.exceptions import NotFoundError, ValidationError
from cardroid.middleware.rate_limiter import get_rate_limit, limiter
from cardroid.models import InteractionType, LedgerEntry, ReportPeriod, TransactionType
from cardroid.services.dispatcher import BroadcastQueue, FixedDelay
from cardroid.services.ledger import EXPORT_FILENAME, TransactionLedger
from cardroid.services.promotions import queue_initial_offers
from cardroid.utils.dates import BusinessClock, parse_date

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/crm", tags=["crm"])


@router.get("", response_class=HTMLResponse)
async def dashboard():
    """Customer count, interaction counts by type and the customer list."""
    total = await crm_operations.count_customers()
    counts = await crm_operations.count_interactions_by_type(list(InteractionType))
    customers = await crm_operations.list_customers()
    return HTMLResponse(pages.render_dashboard(total, counts, customers))


# ============================================================
# Ledger
# ============================================================

@router.get("/export-transactions")
async def export_transactions(ledger: TransactionLedger = Depends(get_ledger)):
    if not ledger.exists():
        raise NotFoundError("No se encontró el archivo de transacciones.")
    return FileResponse(ledger.path, filename=EXPORT_FILENAME, media_type="text/csv")


@router.get("/transacciones", response_class=HTMLResponse)
async def ledger_form():
    return HTMLResponse(pages.render_ledger_form())


@router.post("/transacciones", response_class=HTMLResponse)
@limiter.limit(get_rate_limit("form"))
async def add_transaction(
    request: Request,
    tipo: str = Form(...),
    monto: float = Form(..., ge=0),
    descripcion: str = Form(""),
    fecha: Optional[str] = Form(None),
    ledger: TransactionLedger = Depends(get_ledger),
    clock: BusinessClock = Depends(get_clock),
):
    """Append a Ventas or Gastos row; the date defaults to today."""
    if tipo not in {t.value for t in TransactionType}:
        raise ValidationError("Tipo de transacción inválido: use Ventas o Gastos.")

    entry = LedgerEntry(
        entry_date=parse_date(fecha) if fecha and fecha.strip() else clock.today(),
        type=tipo,
        description=descripcion.strip(),
        amount=monto,
        currency=settings.currency,
    )
    ledger.append(entry)
    return HTMLResponse(pages.render_ledger_form("Transacción registrada."))


@router.get("/reportes", response_class=HTMLResponse)
async def ledger_report(
    periodo: str = Query(ReportPeriod.DAILY.value),
    fecha: Optional[str] = Query(None),
    ledger: TransactionLedger = Depends(get_ledger),
    clock: BusinessClock = Depends(get_clock),
):
    """Sales, expenses, balance and row count for the period around ``fecha``."""
    try:
        period = ReportPeriod(periodo.lower())
    except ValueError:
        raise ValidationError("Periodo inválido: use diario, semanal o mensual.")

    reference = parse_date(fecha) if fecha else clock.today()
    report = ledger.report(period, reference)
    return HTMLResponse(pages.render_report(report, settings.currency))


# ============================================================
# Broadcasts
# ============================================================

@router.get("/send-custom", response_class=HTMLResponse)
async def broadcast_form():
    return HTMLResponse(pages.render_broadcast_form())


@router.get("/send-custom/list")
async def broadcast_recipients(listType: str = Query("")):
    """Recipients of a named list as ``[{phone, producto}]``."""
    return await crm_operations.list_recipients(listType)


@router.post("/send-custom")
@limiter.limit(get_rate_limit("broadcast"))
async def send_custom(
    request: Request,
    message: str = Form(""),
    recipients: List[str] = Form([]),
    imageUrl: Optional[str] = Form(None),
    listType: Optional[str] = Form(None),
    queue: BroadcastQueue = Depends(get_broadcast_queue),
):
    """
    Queue a custom broadcast

    Sends go out one by one with the fixed broadcast delay between them; the
    response redirects to the job page where results appear as they happen.
    """
    phones = [p for p in recipients if p is not None]
    if not message.strip() or not phones:
        raise ValidationError("Debe ingresar un mensaje y al menos un destinatario.")

    job = queue.submit(
        phones,
        message,
        policy=FixedDelay(settings.broadcast_fixed_delay_seconds),
        image_url=imageUrl or None,
        description=f"Mensaje personalizado ({listType or 'personalizado'})",
    )
    return RedirectResponse(f"/crm/send-custom/jobs/{job.job_id}", status_code=303)


@router.get("/send-custom/jobs/{job_id}", response_class=HTMLResponse)
async def broadcast_job(job_id: str, queue: BroadcastQueue = Depends(get_broadcast_queue)):
    job = queue.get(job_id)
    if job is None:
        raise NotFoundError("No se encontró el envío solicitado.")
    return HTMLResponse(pages.render_job(job))


@router.post("/send-offers")
@limiter.limit(get_rate_limit("broadcast"))
async def send_offers(request: Request, queue: BroadcastQueue = Depends(get_broadcast_queue)):
    """Queue the initial offer for every customer that has not received it."""
    job = await queue_initial_offers(queue)
    return RedirectResponse(f"/crm/send-custom/jobs/{job.job_id}", status_code=303)
