"""
Promotion catalogue and the initial offer campaign
"""
import logging
from dataclasses import dataclass
from typing import List

from cardroid.config import settings
from cardroid.database import crm_operations
from cardroid.models import Interaction, InteractionType
from cardroid.services.dispatcher import BroadcastDispatcher, BroadcastJob, BroadcastQueue, SpreadOverWindow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Promotion:
    image_url: str
    caption: str


PROMOTIONS: List[Promotion] = [
    Promotion(
        "https://res.cloudinary.com/do1ryjvol/image/upload/v1739505408/2_by377e.png",
        "Mejora la seguridad de tu vehiculo con nuestra alarma con bluetooth, puedes activar y desactivar "
        "la alarma desde tu celular. Incluye dos llaveros, instalación incluida.",
    ),
    Promotion(
        "https://res.cloudinary.com/do1ryjvol/image/upload/v1739505406/1_ipwvpm.png",
        "Evita que se lleven tu vehiculo. Nuestro trabagas apaga tu vehiculo al alejar el sensor, aunque "
        "la llave se encuentre dentro del auto. Precio incluye instalacion y garantia.",
    ),
    Promotion(
        "https://res.cloudinary.com/do1ryjvol/image/upload/v1739505402/3_y3nwmb.png",
        "Vigila tu auto desde cualquier lugar con nuestro GPS con aplicativo, puedes apagar el vehículo, "
        "ver su recorrido diario y ubicación en tiempo real. Precio incluye instalación.",
    ),
    Promotion(
        "https://res.cloudinary.com/do1ryjvol/image/upload/v1739505401/6_cq7qsl.png",
        "Mejora el audio de tu vehículo y estremece al resto con la potencia de nuestro amplificador.",
    ),
    Promotion(
        "https://res.cloudinary.com/do1ryjvol/image/upload/v1739505396/5_cxtaft.png",
        "Añade entretenimiento a tu vehículo con nuestra pantalla android, puedes ver YouTube, Netflix, "
        "TV en vivo y estacionarte con mayor facilidad con la camara de 170° HD. Precio incluye "
        "instalación y garantia.",
    ),
    Promotion(
        "https://res.cloudinary.com/do1ryjvol/image/upload/v1739505395/4_rv930u.png",
        "Mejora la calidad de sonido con nuestra oferta irrepetible en parlantes pioneer. Precio incluye "
        "instalacion y garantía.",
    ),
]

INITIAL_OFFER_MESSAGE = (
    "¡Hola! En Cardroid tenemos promociones en radios Android, alarmas, GPS y audio, "
    "con instalación incluida. Responde *oferta* para ver el catálogo completo."
)


async def send_catalogue(dispatcher: BroadcastDispatcher, phone: str) -> int:
    """
    Send every promotion (image + caption) to one chat, in order

    Returns:
        Number of promotions delivered
    """
    delivered = 0
    for promo in PROMOTIONS:
        try:
            await dispatcher.send_one(phone, promo.caption, image_url=promo.image_url)
            delivered += 1
        except Exception as e:
            logger.error(f"Error al enviar promoción a {phone}: {e}")
    logger.info(f"Catálogo enviado a {phone}: {delivered}/{len(PROMOTIONS)}")
    return delivered


async def _record_initial_offer(phone: str) -> None:
    await crm_operations.record_offer(phone)
    await crm_operations.log_interaction(
        Interaction(
            phone=phone,
            type=InteractionType.INITIAL_OFFER,
            message=INITIAL_OFFER_MESSAGE,
            offer_reference=phone,
        )
    )


async def queue_initial_offers(queue: BroadcastQueue) -> BroadcastJob:
    """
    Queue the initial offer for every customer without an Offer record

    Sends are spread evenly over the campaign window. Each delivered number
    gets its Offer record and an ``ofertaInicial`` log entry.
    """
    recipients = await crm_operations.customers_without_offer()
    logger.info(f"Oferta inicial para {len(recipients)} clientes")
    return queue.submit(
        recipients,
        INITIAL_OFFER_MESSAGE,
        policy=SpreadOverWindow(settings.offer_campaign_window_seconds),
        description="Oferta inicial",
        after_send=_record_initial_offer,
    )
