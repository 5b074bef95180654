"""
Interaction log models
"""
from pydantic import Field
from datetime import datetime
from typing import Optional
from enum import Enum

from cardroid.models.base import StoredModel


class InteractionType(str, Enum):
    """Interaction type values"""
    OFFER_REQUEST = "solicitudOferta"
    OFFER_RESPONSE = "respuestaOferta"
    INFO_REQUEST = "solicitudInfo"
    INITIAL_OFFER = "ofertaInicial"
    CONTRACT_ACCEPTANCE = "aceptacionContrato"


class Interaction(StoredModel):
    """Entrada del historial de interacciones (solo se agregan)"""

    phone: str = Field(..., alias="numero")
    type: InteractionType = Field(..., alias="tipo")
    message: Optional[str] = Field(None, alias="mensaje")
    offer_reference: Optional[str] = Field(None, alias="ofertaReferencia")
    created_at: datetime = Field(default_factory=datetime.utcnow, alias="createdAt")

    class Config:
        populate_by_name = True
        use_enum_values = True
