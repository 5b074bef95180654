"""
Transaction ledger models
"""
from pydantic import BaseModel, Field
from datetime import date
from enum import Enum


class TransactionType(str, Enum):
    """Ledger row type"""
    SALE = "Ventas"
    EXPENSE = "Gastos"


class ReportPeriod(str, Enum):
    """Report window around a reference day"""
    DAILY = "diario"
    WEEKLY = "semanal"
    MONTHLY = "mensual"


class LedgerEntry(BaseModel):
    """Fila del libro de transacciones"""

    entry_date: date = Field(..., alias="fecha")
    type: TransactionType = Field(..., alias="tipo")
    description: str = Field("", alias="descripcion")
    amount: float = Field(..., ge=0, alias="monto")
    currency: str = Field("S/", alias="moneda")

    class Config:
        populate_by_name = True
        use_enum_values = True


class LedgerReport(BaseModel):
    """Totales de un periodo"""

    period: ReportPeriod
    start: date
    end: date
    sales_total: float
    expenses_total: float
    balance: float
    transaction_count: int
