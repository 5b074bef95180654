"""
MongoDB connection management using Motor (async)
"""
import logging
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase, AsyncIOMotorCollection
from typing import Optional

from cardroid.config import settings
from cardroid.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

# Global async client instance
_client: Optional[AsyncIOMotorClient] = None


def get_client() -> AsyncIOMotorClient:
    """
    Get or create async MongoDB client instance

    Returns:
        AsyncIOMotorClient: Async MongoDB client

    Raises:
        StoreUnavailableError: if MONGODB_URI is not configured
    """
    global _client
    if _client is None:
        if not settings.mongodb_uri:
            raise StoreUnavailableError("MONGODB_URI no configurado")
        _client = AsyncIOMotorClient(settings.mongodb_uri, serverSelectionTimeoutMS=5000)
    return _client


def get_database() -> AsyncIOMotorDatabase:
    """
    Get the business database

    Returns:
        AsyncIOMotorDatabase: Async MongoDB database instance
    """
    client = get_client()
    return client[settings.database_name]


def get_collection(collection_name: str) -> AsyncIOMotorCollection:
    """
    Get a specific collection from the database

    Args:
        collection_name: Name of the collection

    Returns:
        AsyncIOMotorCollection: Async MongoDB collection instance
    """
    db = get_database()
    return db[collection_name]


async def close_connection():
    """Close the async MongoDB connection"""
    global _client
    if _client is not None:
        _client.close()
        _client = None


# Collection names
COLLECTION_CUSTOMERS = "clientes"
COLLECTION_BUYERS = "compradores"
COLLECTION_FINANCINGS = "financiamientos"
COLLECTION_INTERACTIONS = "interacciones"
COLLECTION_MARKETING_INTEREST = "publifinanciamiento"
COLLECTION_OFFERS = "offers"


async def ensure_indexes():
    """
    Create all required indexes for the database
    """
    db = get_database()

    # Phone number is unique for customers, interest records and offers
    await db[COLLECTION_CUSTOMERS].create_index([("numero", 1)], unique=True)
    await db[COLLECTION_MARKETING_INTEREST].create_index([("numero", 1)], unique=True)
    await db[COLLECTION_OFFERS].create_index([("numero", 1)], unique=True)

    # Buyers are looked up by expiration date in the daily reminder
    await db[COLLECTION_BUYERS].create_index([("fechaExpiracion", 1)])
    await db[COLLECTION_BUYERS].create_index([("numero", 1)])

    # Financing search is a prefix match on number or plate
    await db[COLLECTION_FINANCINGS].create_index([("numero", 1)])
    await db[COLLECTION_FINANCINGS].create_index([("placa", 1)])

    # Dashboard counts interactions by type
    await db[COLLECTION_INTERACTIONS].create_index([("tipo", 1)])
    await db[COLLECTION_INTERACTIONS].create_index([("numero", 1), ("createdAt", -1)])


async def ping() -> bool:
    """Return True when the server answers a ping."""
    try:
        await get_client().admin.command("ping")
        return True
    except Exception as e:
        logger.warning(f"MongoDB ping failed: {e}")
        return False
