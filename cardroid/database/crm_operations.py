"""
Database operations for customers, interactions and marketing lists
"""
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from cardroid.database.connection import (
    get_collection,
    COLLECTION_BUYERS,
    COLLECTION_CUSTOMERS,
    COLLECTION_INTERACTIONS,
    COLLECTION_MARKETING_INTEREST,
    COLLECTION_OFFERS,
)
from cardroid.models import Customer, Interaction, InteractionType, MarketingInterest, Offer


# Recipient lists offered by the broadcast form
RECIPIENT_LISTS = {
    "clientes": COLLECTION_CUSTOMERS,
    "compradores": COLLECTION_BUYERS,
    "publifinanciamiento": COLLECTION_MARKETING_INTEREST,
}


async def touch_customer(phone: str, now: Optional[datetime] = None) -> None:
    """
    Upsert the customer record and refresh its last interaction time

    Args:
        phone: Customer phone number (unique key)
        now: Interaction time (defaults to utcnow)
    """
    now = now or datetime.utcnow()
    collection = get_collection(COLLECTION_CUSTOMERS)
    await collection.update_one(
        {"numero": phone},
        {"$set": {"lastInteraction": now}, "$setOnInsert": {"createdAt": now}},
        upsert=True,
    )


async def count_customers() -> int:
    return await get_collection(COLLECTION_CUSTOMERS).count_documents({})


async def list_customers() -> List[Customer]:
    collection = get_collection(COLLECTION_CUSTOMERS)
    customers = []
    async for doc in collection.find({}).sort("lastInteraction", -1):
        customers.append(Customer.from_document(doc))
    return customers


async def count_interactions_by_type(types: Iterable[InteractionType]) -> Dict[str, int]:
    """Count interaction log entries for each of the given types."""
    collection = get_collection(COLLECTION_INTERACTIONS)
    counts = {}
    for interaction_type in types:
        counts[interaction_type.value] = await collection.count_documents({"tipo": interaction_type.value})
    return counts


async def log_interaction(interaction: Interaction) -> str:
    """
    Append an interaction to the log

    Returns:
        Inserted document id
    """
    collection = get_collection(COLLECTION_INTERACTIONS)
    result = await collection.insert_one(interaction.to_document())
    return str(result.inserted_id)


async def upsert_marketing_interest(phone: str, message: str, now: Optional[datetime] = None) -> None:
    """Keep only the latest financing-interest message per number."""
    interest = MarketingInterest(phone=phone, message=message, created_at=now or datetime.utcnow())
    collection = get_collection(COLLECTION_MARKETING_INTEREST)
    await collection.update_one(
        {"numero": phone},
        {"$set": interest.to_document()},
        upsert=True,
    )


async def find_offer(phone: str) -> Optional[Offer]:
    doc = await get_collection(COLLECTION_OFFERS).find_one({"numero": phone})
    return Offer.from_document(doc) if doc else None


async def record_offer(phone: str) -> None:
    """Register the number as having received the initial offer."""
    await get_collection(COLLECTION_OFFERS).update_one(
        {"numero": phone},
        {"$setOnInsert": {"numero": phone}},
        upsert=True,
    )


async def customers_without_offer() -> List[str]:
    """Phone numbers of customers that never received the initial offer."""
    offered = [doc["numero"] async for doc in get_collection(COLLECTION_OFFERS).find({})]
    cursor = get_collection(COLLECTION_CUSTOMERS).find({"numero": {"$nin": offered}})
    return [doc["numero"] async for doc in cursor]


async def list_recipients(list_type: str) -> List[Dict[str, str]]:
    """
    Recipients of a named list for the broadcast form

    Args:
        list_type: clientes, compradores or publifinanciamiento

    Returns:
        ``[{"phone": ..., "producto": ...}]``; empty for unknown lists.
        Documents without a phone number are skipped.
    """
    collection_name = RECIPIENT_LISTS.get((list_type or "").lower())
    if collection_name is None:
        return []

    recipients = []
    async for doc in get_collection(collection_name).find({}):
        phone = doc.get("numero") or doc.get("telefono")
        if not phone:
            continue
        recipients.append({"phone": phone, "producto": doc.get("producto", "")})
    return recipients

