"""
Pydantic models for data validation
"""
from .base import StoredModel, StoredDate
from .customer import Customer
from .warranty import Buyer, WarrantyDocument
from .financing import Installment, Financing, FinancingCreate, ContractDocument
from .interaction import Interaction, InteractionType
from .marketing import MarketingInterest, Offer
from .ledger import LedgerEntry, LedgerReport, TransactionType, ReportPeriod

__all__ = [
    "StoredModel",
    "StoredDate",
    "Customer",
    "Buyer",
    "WarrantyDocument",
    "Installment",
    "Financing",
    "FinancingCreate",
    "ContractDocument",
    "Interaction",
    "InteractionType",
    "MarketingInterest",
    "Offer",
    "LedgerEntry",
    "LedgerReport",
    "TransactionType",
    "ReportPeriod",
]
