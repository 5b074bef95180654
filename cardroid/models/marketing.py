"""
Marketing models: financing interest and offer membership
"""
from pydantic import Field
from datetime import datetime
from typing import Optional

from cardroid.models.base import StoredModel


class MarketingInterest(StoredModel):
    """Último mensaje de un interesado en financiamiento (upsert por número)"""

    phone: str = Field(..., alias="numero")
    message: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow, alias="createdAt")


class Offer(StoredModel):
    """Número que ya recibió la oferta inicial"""

    phone: str = Field(..., alias="numero")
