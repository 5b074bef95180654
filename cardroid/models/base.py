"""
Base model for documents persisted in MongoDB
"""
from datetime import date, datetime
from typing import Annotated, Any, Dict, Optional

from pydantic import BaseModel, BeforeValidator, Field, field_validator

from cardroid.utils.dates import from_store, to_store


def _to_store_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return to_store(value)
    if isinstance(value, dict):
        return {k: _to_store_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_store_value(v) for v in value]
    return value


def parse_stored_date(value: Any) -> Any:
    """Before-validator accepting BSON datetimes and DD/MM/YYYY strings."""
    if isinstance(value, (datetime, str)):
        return from_store(value)
    return value


# date field that also accepts the stored representations
StoredDate = Annotated[date, BeforeValidator(parse_stored_date)]


class StoredModel(BaseModel):
    """
    Document model with camelCase store aliases.

    Attributes use English names; ``to_document`` writes the aliased keys
    the collections already hold, with dates converted to datetimes.
    """

    id: Optional[str] = Field(None, alias="_id")

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value: Any) -> Any:
        return str(value) if value is not None else None

    def to_document(self) -> Dict[str, Any]:
        doc = self.model_dump(by_alias=True, exclude={"id"}, mode="python")
        return _to_store_value(doc)

    @classmethod
    def from_document(cls, document: Dict[str, Any]):
        return cls.model_validate(document)

    class Config:
        populate_by_name = True
