"""
Loading stored documents into models one at a time
"""
import logging
from typing import Any, AsyncIterable, Dict, List, Type, TypeVar

from pydantic import ValidationError as ModelValidationError

from cardroid.exceptions import ValidationError
from cardroid.models.base import StoredModel
from cardroid.utils.monitoring import capture_exception

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=StoredModel)


async def load_valid(cursor: AsyncIterable[Dict[str, Any]], model: Type[ModelT]) -> List[ModelT]:
    """
    Validate each document from ``cursor`` into ``model``

    Documents that fail validation (malformed dates, missing fields) are
    logged, reported and skipped; the rest are returned in cursor order.
    """
    loaded = []
    async for doc in cursor:
        try:
            loaded.append(model.from_document(doc))
        except (ModelValidationError, ValidationError) as e:
            doc_id = str(doc.get("_id"))
            logger.warning(f"Skipping invalid {model.__name__} document {doc_id}: {e}")
            capture_exception(e, model=model.__name__, document_id=doc_id)
    return loaded
