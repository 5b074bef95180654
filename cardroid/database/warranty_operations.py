"""
Database operations for buyers and their warranties
"""
from datetime import date
from typing import List

from cardroid.database.connection import get_collection, COLLECTION_BUYERS
from cardroid.database.documents import load_valid
from cardroid.models import Buyer
from cardroid.utils.dates import store_match


async def insert_buyer(buyer: Buyer) -> str:
    """
    Insert a buyer / warranty record

    Returns:
        Inserted document id
    """
    collection = get_collection(COLLECTION_BUYERS)
    result = await collection.insert_one(buyer.to_document())
    return str(result.inserted_id)


async def find_buyers_expiring_on(expiration: date) -> List[Buyer]:
    """Buyers whose warranty expires exactly on the given day."""
    collection = get_collection(COLLECTION_BUYERS)
    cursor = collection.find({"fechaExpiracion": store_match(expiration)})
    return await load_valid(cursor, Buyer)
