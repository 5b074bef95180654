"""
FastAPI dependencies for the objects owned by the application

The lifespan in main.py creates them once and stores them on ``app.state``;
handlers receive them through ``Depends`` and tests override them.
"""
from fastapi import Depends, Request

from cardroid.adapters.whatsapp_session import WhatsAppSession
from cardroid.services.dispatcher import BroadcastQueue
from cardroid.services.financing import FinancingService
from cardroid.services.ledger import TransactionLedger
from cardroid.services.warranty import WarrantyService
from cardroid.utils.dates import BusinessClock


def get_chat_session(request: Request) -> WhatsAppSession:
    return request.app.state.chat_session


def get_broadcast_queue(request: Request) -> BroadcastQueue:
    return request.app.state.broadcast_queue


def get_clock(request: Request) -> BusinessClock:
    return request.app.state.clock


def get_ledger(request: Request) -> TransactionLedger:
    return request.app.state.ledger


def get_financing_service(
    session: WhatsAppSession = Depends(get_chat_session),
    clock: BusinessClock = Depends(get_clock),
) -> FinancingService:
    return FinancingService(session, clock)


def get_warranty_service(session: WhatsAppSession = Depends(get_chat_session)) -> WarrantyService:
    return WarrantyService(session)
