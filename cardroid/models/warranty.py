"""
Buyer / warranty models
"""
from pydantic import BaseModel, Field
from typing import Optional

from cardroid.models.base import StoredDate, StoredModel


class Buyer(StoredModel):
    """Comprador con garantía vigente"""

    phone: str = Field(..., alias="numero")
    product: str = Field(..., alias="producto")
    plate: Optional[str] = Field(None, alias="placa")
    install_date: StoredDate = Field(..., alias="fechaInicio")
    expiration_date: StoredDate = Field(..., alias="fechaExpiracion")


class WarrantyDocument(BaseModel):
    """Campos que se imprimen en el certificado de garantía"""

    phone: str
    product: str
    plate: Optional[str] = None
    install_date: StoredDate
    expiration_date: StoredDate
