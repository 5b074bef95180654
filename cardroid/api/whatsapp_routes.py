"""
WhatsApp session routes: pairing QR, forced restart and the gateway webhook

Gateway webhook events follow the Evolution API format:
https://doc.evolution-api.com/
"""
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import FileResponse, PlainTextResponse
from typing import Any, Dict
import logging

from cardroid.adapters.whatsapp_session import WhatsAppSession
from cardroid.api.dependencies import get_chat_session
from cardroid.exceptions import ChatSessionError, ValidationError
from cardroid.middleware.rate_limiter import get_rate_limit, get_rate_limit_key_ip_only, limiter

logger = logging.getLogger(__name__)

router = APIRouter(tags=["whatsapp"])


@router.get("/qr")
async def pairing_qr(session: WhatsAppSession = Depends(get_chat_session)):
    """Latest pairing QR image written by the session."""
    if not session.qr_image_path.is_file():
        return PlainTextResponse("El archivo QR no existe o aún no se ha generado.", status_code=404)
    return FileResponse(session.qr_image_path, media_type="image/png")


@router.api_route("/whatsapp/restart", methods=["GET", "POST"], response_class=PlainTextResponse)
@limiter.limit(get_rate_limit("session"))
async def restart_session(request: Request, session: WhatsAppSession = Depends(get_chat_session)):
    """Destroy the session, wipe persisted credentials and start pairing again."""
    try:
        await session.restart()
    except ChatSessionError as e:
        logger.error(f"Error reiniciando la sesión: {e.message}")
        raise ChatSessionError("Error reiniciando la sesión") from e
    return PlainTextResponse("Sesión reiniciada. Revisa /qr para escanear el nuevo código, si no se autogenera.")


@router.post("/whatsapp/webhook")
@limiter.limit(get_rate_limit("webhook"), key_func=get_rate_limit_key_ip_only)
async def gateway_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    session: WhatsAppSession = Depends(get_chat_session),
) -> Dict[str, Any]:
    """
    Receive gateway events (QR updates, connection changes, messages)

    Events are processed after the response is sent, so the gateway never
    waits on outbound sends triggered by an incoming message.
    """
    try:
        payload = await request.json()
    except ValueError:
        raise ValidationError("Cuerpo del webhook inválido.")
    if not isinstance(payload, dict):
        raise ValidationError("Cuerpo del webhook inválido.")

    logger.debug(f"WhatsApp gateway event: {payload.get('event')}")
    background_tasks.add_task(session.handle_gateway_event, payload)
    return {"status": "received"}
