"""
Business workflows
"""
from .dispatcher import (
    BroadcastDispatcher,
    BroadcastQueue,
    BroadcastJob,
    SendResult,
    FixedDelay,
    SpreadOverWindow,
)
from .financing import FinancingService, build_installment_schedule, build_financing, payment_receipt_message
from .warranty import WarrantyService, build_buyer
from .inbound import InboundMessageHandler, classify_message
from .promotions import PROMOTIONS, INITIAL_OFFER_MESSAGE, queue_initial_offers, send_catalogue
from .reminders import warranty_expiry_job, installment_due_job
from .ledger import TransactionLedger, period_bounds
from .scheduler import create_scheduler

__all__ = [
    "BroadcastDispatcher",
    "BroadcastQueue",
    "BroadcastJob",
    "SendResult",
    "FixedDelay",
    "SpreadOverWindow",
    "FinancingService",
    "build_installment_schedule",
    "build_financing",
    "payment_receipt_message",
    "WarrantyService",
    "build_buyer",
    "InboundMessageHandler",
    "classify_message",
    "PROMOTIONS",
    "INITIAL_OFFER_MESSAGE",
    "queue_initial_offers",
    "send_catalogue",
    "warranty_expiry_job",
    "installment_due_job",
    "TransactionLedger",
    "period_bounds",
    "create_scheduler",
]
