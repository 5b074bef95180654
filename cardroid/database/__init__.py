"""
Database connection and utilities
"""
from .connection import (
    get_client,
    get_database,
    get_collection,
    close_connection,
    ensure_indexes,
    ping,
    COLLECTION_CUSTOMERS,
    COLLECTION_BUYERS,
    COLLECTION_FINANCINGS,
    COLLECTION_INTERACTIONS,
    COLLECTION_MARKETING_INTEREST,
    COLLECTION_OFFERS,
)

__all__ = [
    "get_client",
    "get_database",
    "get_collection",
    "close_connection",
    "ensure_indexes",
    "ping",
    "COLLECTION_CUSTOMERS",
    "COLLECTION_BUYERS",
    "COLLECTION_FINANCINGS",
    "COLLECTION_INTERACTIONS",
    "COLLECTION_MARKETING_INTEREST",
    "COLLECTION_OFFERS",
]
