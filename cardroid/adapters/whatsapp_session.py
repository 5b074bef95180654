"""
WhatsApp Web session backed by an Evolution-API compatible gateway

The gateway owns the browser session and the WhatsApp protocol; this module
keeps one explicitly owned session object with its lifecycle (start, destroy,
restart), lifecycle events (ready, qr, auth_failure, message) and the send
operations the rest of the bot uses.

Reference: https://doc.evolution-api.com/
"""
import asyncio
import base64
import inspect
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import httpx

from cardroid.exceptions import ChatSessionError
from cardroid.utils.http_client import create_http_client, MEDIA_TIMEOUT

logger = logging.getLogger(__name__)

EventHandler = Callable[[Any], Union[None, Awaitable[None]]]

EVENT_READY = "ready"
EVENT_QR = "qr"
EVENT_AUTH_FAILURE = "auth_failure"
EVENT_MESSAGE = "message"


@dataclass
class MediaContent:
    """Media attachment: a public URL or base64 payload plus its metadata."""

    mimetype: str
    data: str
    filename: str
    media_type: str = "image"

    @classmethod
    def from_bytes(cls, payload: bytes, mimetype: str, filename: str) -> "MediaContent":
        media_type = "document" if mimetype == "application/pdf" else "image"
        return cls(
            mimetype=mimetype,
            data=base64.b64encode(payload).decode("ascii"),
            filename=filename,
            media_type=media_type,
        )

    @classmethod
    def from_url(cls, url: str, mimetype: str = "image/png", filename: str = "promocion.png") -> "MediaContent":
        return cls(mimetype=mimetype, data=url, filename=filename, media_type="image")


@dataclass
class InboundMessage:
    """Incoming text message normalised from a gateway event."""

    phone: str
    chat_id: str
    text: str
    message_id: Optional[str] = None


class WhatsAppSession:
    """
    Single long-lived WhatsApp session.

    Handles:
    - Session lifecycle (start / destroy / restart with credential wipe)
    - Lifecycle events pushed by the gateway webhook
    - Number lookup and text/media sends
    """

    CHAT_ID_SUFFIX = "@c.us"

    def __init__(
        self,
        base_url: str,
        instance_name: str,
        api_key: Optional[str] = None,
        session_dir: Union[str, Path] = ".wwebjs_auth",
        qr_image_path: Union[str, Path] = "whatsapp-qr.png",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Gateway base URL
            instance_name: Gateway instance (one per paired phone)
            api_key: Gateway API key sent as the ``apikey`` header
            session_dir: Directory holding persisted session credentials
            qr_image_path: Where the pairing QR PNG is written
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.instance_name = instance_name
        self.api_key = api_key
        self.session_path = Path(session_dir) / instance_name
        self.qr_image_path = Path(qr_image_path)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._handlers: Dict[str, List[EventHandler]] = {}
        self.state = "disconnected"

        self.on(EVENT_QR, self._on_qr)
        self.on(EVENT_READY, self._on_ready)
        self.on(EVENT_AUTH_FAILURE, self._on_auth_failure)

    # ========================================
    # Events
    # ========================================

    def on(self, event: str, handler: EventHandler) -> None:
        """Register a handler for a lifecycle or message event."""
        self._handlers.setdefault(event, []).append(handler)

    async def emit(self, event: str, payload: Any = None) -> None:
        """Run every handler of the event; a failing handler does not stop the rest."""
        for handler in self._handlers.get(event, []):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Handler for WhatsApp event '{event}' failed")

    async def _on_qr(self, qr_data_url: Optional[str]) -> None:
        self.state = "qr"
        if qr_data_url:
            await asyncio.to_thread(self.save_qr_image, qr_data_url)
            logger.info(f"QR generado en '{self.qr_image_path}'. Visita /qr para escanearlo.")

    def _on_ready(self, _payload: Any) -> None:
        self.state = "ready"
        logger.info("WhatsApp Bot listo para recibir mensajes")

    def _on_auth_failure(self, payload: Any) -> None:
        self.state = "auth_failure"
        logger.error(f"Error de autenticación de WhatsApp: {payload}")

    @property
    def is_ready(self) -> bool:
        return self.state == "ready"

    def save_qr_image(self, qr_data_url: str) -> Path:
        """Write a ``data:image/png;base64,...`` QR payload to the QR image path."""
        encoded = qr_data_url.split(",", 1)[1] if "," in qr_data_url else qr_data_url
        self.qr_image_path.parent.mkdir(parents=True, exist_ok=True)
        self.qr_image_path.write_bytes(base64.b64decode(encoded))
        return self.qr_image_path

    async def handle_gateway_event(self, payload: Dict[str, Any]) -> None:
        """
        Translate a gateway webhook payload into session events.

        Args:
            payload: Webhook body, ``{"event": ..., "data": {...}}``
        """
        event = str(payload.get("event", "")).lower().replace("_", ".")
        data = payload.get("data") or {}

        if event == "qrcode.updated":
            qrcode = data.get("qrcode") or {}
            await self.emit(EVENT_QR, qrcode.get("base64"))

        elif event == "connection.update":
            state = data.get("state")
            if state == "open":
                await self.emit(EVENT_READY, data)
            elif state == "close" and data.get("statusReason") == 401:
                await self.emit(EVENT_AUTH_FAILURE, data)
            else:
                logger.info(f"WhatsApp connection state: {state}")

        elif event == "messages.upsert":
            message = self._parse_message(data)
            if message:
                await self.emit(EVENT_MESSAGE, message)

        else:
            logger.debug(f"Ignoring WhatsApp gateway event: {event}")

    def _parse_message(self, data: Dict[str, Any]) -> Optional[InboundMessage]:
        key = data.get("key") or {}
        if key.get("fromMe"):
            return None

        remote_jid = key.get("remoteJid") or ""
        if not remote_jid or remote_jid.endswith("@g.us"):
            return None

        content = data.get("message") or {}
        text = content.get("conversation") or (content.get("extendedTextMessage") or {}).get("text")
        if not text:
            return None

        return InboundMessage(
            phone=remote_jid.split("@", 1)[0],
            chat_id=remote_jid,
            text=text,
            message_id=key.get("id"),
        )

    # ========================================
    # Lifecycle
    # ========================================

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"apikey": self.api_key} if self.api_key else {}
            self._client = create_http_client(self.base_url, headers=headers, transport=self._transport)
        return self._client

    async def start(self) -> None:
        """
        Connect the gateway instance

        Emits ``ready`` when the instance is already paired, otherwise ``qr``
        with the pairing code image.
        """
        self.session_path.mkdir(parents=True, exist_ok=True)
        state = await self.connection_state()
        if state == "open":
            await self.emit(EVENT_READY, {"state": state})
            return

        data = await self._request("GET", f"/instance/connect/{self.instance_name}")
        await self.emit(EVENT_QR, data.get("base64"))

    async def connection_state(self) -> Optional[str]:
        data = await self._request("GET", f"/instance/connectionState/{self.instance_name}")
        return (data.get("instance") or {}).get("state")

    async def destroy(self) -> None:
        """Log the instance out and close the HTTP client."""
        try:
            await self._request("DELETE", f"/instance/logout/{self.instance_name}")
        finally:
            await self.close()
            self.state = "disconnected"

    async def close(self) -> None:
        """Close the HTTP client; the gateway keeps the paired session."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def restart(self) -> None:
        """
        Tear the session down and start a fresh one

        Persisted credentials and the previous QR image are deleted, so a new
        pairing is required.
        """
        logger.info("Forzando reinicio de la sesión de WhatsApp...")
        try:
            await self.destroy()
        except ChatSessionError as e:
            logger.warning(f"Logout failed during restart, continuing: {e}")

        if self.session_path.exists():
            shutil.rmtree(self.session_path, ignore_errors=True)
            logger.info(f"Carpeta de sesión eliminada: {self.session_path}")
        if self.qr_image_path.exists():
            self.qr_image_path.unlink()

        await self.start()

    # ========================================
    # Messaging
    # ========================================

    async def get_number_id(self, phone: str) -> Optional[str]:
        """
        Resolve a raw phone number to its WhatsApp chat id

        Returns:
            The chat id, or None when the number is not on WhatsApp
        """
        data = await self._request(
            "POST",
            f"/chat/whatsappNumbers/{self.instance_name}",
            json={"numbers": [phone]},
        )
        items = data if isinstance(data, list) else data.get("numbers", [])
        for item in items:
            if item.get("exists"):
                return item.get("jid")
        return None

    async def resolve_chat_id(self, phone: str) -> str:
        """Chat id for a number, falling back to ``<number>@c.us``."""
        if "@" in phone:
            return phone
        chat_id = await self.get_number_id(phone)
        return chat_id or f"{phone}{self.CHAT_ID_SUFFIX}"

    async def send_message(self, chat_id: str, text: str) -> Dict[str, Any]:
        """Send a plain text message."""
        return await self._request(
            "POST",
            f"/message/sendText/{self.instance_name}",
            json={"number": chat_id, "text": text},
        )

    async def send_media(self, chat_id: str, media: MediaContent, caption: Optional[str] = None) -> Dict[str, Any]:
        """Send an image or document, optionally with a caption."""
        payload = {
            "number": chat_id,
            "mediatype": media.media_type,
            "mimetype": media.mimetype,
            "media": media.data,
            "fileName": media.filename,
        }
        if caption:
            payload["caption"] = caption
        return await self._request(
            "POST",
            f"/message/sendMedia/{self.instance_name}",
            json=payload,
            timeout=MEDIA_TIMEOUT,
        )

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        client = self._get_client()
        try:
            response = await client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"WhatsApp gateway returned HTTP {e.response.status_code} for {method} {path}")
            raise ChatSessionError(f"WhatsApp gateway error: HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"WhatsApp gateway request failed for {method} {path}: {e}")
            raise ChatSessionError(f"WhatsApp gateway unreachable: {e}") from e

        if not response.content:
            return {}
        return response.json()
