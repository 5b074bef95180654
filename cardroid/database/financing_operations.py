"""
Database operations for financing plans
"""
import re
from typing import List, Optional

from cardroid.database.connection import get_collection, COLLECTION_FINANCINGS
from cardroid.database.documents import load_valid
from cardroid.models import Financing


async def insert_financing(financing: Financing) -> str:
    """
    Insert a new financing plan

    Returns:
        Inserted document id
    """
    collection = get_collection(COLLECTION_FINANCINGS)
    result = await collection.insert_one(financing.to_document())
    return str(result.inserted_id)


async def search_financings(term: str) -> List[Financing]:
    """
    Plans whose phone starts with ``term`` or whose plate starts with it

    Plate matching is case-insensitive. The term is escaped, so it is always
    matched literally.
    """
    prefix = "^" + re.escape(term)
    query = {
        "$or": [
            {"numero": {"$regex": prefix}},
            {"placa": {"$regex": prefix, "$options": "i"}},
        ]
    }
    collection = get_collection(COLLECTION_FINANCINGS)
    return await load_valid(collection.find(query), Financing)


async def find_financing_by_phone(phone: str) -> Optional[Financing]:
    doc = await get_collection(COLLECTION_FINANCINGS).find_one({"numero": phone})
    return Financing.from_document(doc) if doc else None


async def list_financings() -> List[Financing]:
    collection = get_collection(COLLECTION_FINANCINGS)
    return await load_valid(collection.find({}), Financing)


async def set_installment_paid(phone: str, installment_id: Optional[str], position: int) -> bool:
    """
    Flag one installment as paid

    Installments with a stable id are addressed through the positional
    operator, so other installments are never rewritten. Older plans store
    installments without ``cuotaId``; those are addressed by ``position``.

    Returns:
        True if a plan holding that installment was found
    """
    collection = get_collection(COLLECTION_FINANCINGS)
    if installment_id:
        query = {"numero": phone, "cuotas.cuotaId": installment_id}
        update = {"$set": {"cuotas.$.pagada": True}}
    else:
        query = {"numero": phone}
        update = {"$set": {f"cuotas.{position}.pagada": True}}
    result = await collection.update_one(query, update)
    return result.matched_count > 0
