"""
Financing plan models
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from uuid import uuid4

from cardroid.models.base import StoredDate, StoredModel


def new_installment_id() -> str:
    return uuid4().hex


class Installment(BaseModel):
    """Cuota de un financiamiento"""

    # older plans were stored without ids
    installment_id: Optional[str] = Field(None, alias="cuotaId")
    amount: float = Field(..., alias="monto")
    due_date: StoredDate = Field(..., alias="vencimiento")
    paid: bool = Field(False, alias="pagada")

    class Config:
        populate_by_name = True


class Financing(StoredModel):
    """Financiamiento directo con cronograma de cuotas"""

    customer_name: str = Field(..., alias="nombre")
    phone: str = Field(..., alias="numero")
    id_document: str = Field(..., alias="dni")
    plate: str = Field(..., alias="placa")
    total_amount: float = Field(..., alias="montoTotal")
    down_payment: float = Field(350.0, alias="cuotaInicial")
    installments: List[Installment] = Field(default_factory=list, alias="cuotas")
    start_date: StoredDate = Field(..., alias="fechaInicio")
    end_date: Optional[StoredDate] = Field(None, alias="fechaFin")

    def pending_installments(self) -> List[tuple[int, Installment]]:
        """Unpaid installments with their 0-based position."""
        return [(i, c) for i, c in enumerate(self.installments) if not c.paid]


class FinancingCreate(BaseModel):
    """Datos del formulario de financiamiento"""

    customer_name: str
    phone: str
    id_document: str
    plate: str
    total_amount: float = Field(..., gt=0)
    down_payment: Optional[float] = Field(None, ge=0)
    installment_count: Optional[int] = Field(None, ge=1)


class ContractDocument(BaseModel):
    """Campos que se imprimen en el contrato de financiamiento"""

    customer_name: str
    id_document: str
    plate: str
    total_amount: float
    down_payment: float
    installments: List[Installment]
    start_date: StoredDate
    end_date: StoredDate

    @classmethod
    def from_financing(cls, financing: Financing) -> "ContractDocument":
        return cls(
            customer_name=financing.customer_name,
            id_document=financing.id_document,
            plate=financing.plate,
            total_amount=financing.total_amount,
            down_payment=financing.down_payment,
            installments=financing.installments,
            start_date=financing.start_date,
            end_date=financing.end_date or financing.start_date,
        )
