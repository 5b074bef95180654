"""
Customer models
"""
from pydantic import Field
from typing import Optional
from datetime import datetime

from cardroid.models.base import StoredModel


class Customer(StoredModel):
    """Cliente que escribió al bot; el número es la clave única"""

    phone: str = Field(..., alias="numero", description="Número de WhatsApp")
    created_at: datetime = Field(default_factory=datetime.utcnow, alias="createdAt")
    last_interaction: Optional[datetime] = Field(None, alias="lastInteraction")
