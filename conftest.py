import copy
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

# Ensure required env vars exist before importing app modules.
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("SENTRY_DSN", "")


# ============================================================
# In-memory MongoDB collection
# ============================================================

def _resolve(document: Any, path: str) -> List[Any]:
    """Values at a dotted path, flattening arrays on the way."""
    values = [document]
    for part in path.split("."):
        next_values = []
        for value in values:
            if isinstance(value, list):
                next_values.extend(v.get(part) for v in value if isinstance(v, dict) and part in v)
            elif isinstance(value, dict) and part in value:
                next_values.append(value[part])
        values = next_values
    flat = []
    for value in values:
        if isinstance(value, list):
            flat.extend(value)
        flat.append(value)
    return flat


def _matches_condition(values: List[Any], condition: Any) -> bool:
    if isinstance(condition, dict) and any(k.startswith("$") for k in condition):
        for op, arg in condition.items():
            if op == "$in" and not any(v in arg for v in values):
                return False
            if op == "$nin" and any(v in arg for v in values):
                return False
            if op == "$regex":
                flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
                if not any(isinstance(v, str) and re.search(arg, v, flags) for v in values):
                    return False
        return True
    return condition in values


def matches(document: Dict[str, Any], query: Optional[Dict[str, Any]]) -> bool:
    for key, condition in (query or {}).items():
        if key == "$or":
            if not any(matches(document, sub) for sub in condition):
                return False
        elif not _matches_condition(_resolve(document, key), condition):
            return False
    return True


class _InsertResult:
    def __init__(self, inserted_id):
        self.inserted_id = inserted_id


class _UpdateResult:
    def __init__(self, matched_count: int, modified_count: int, upserted_id=None):
        self.matched_count = matched_count
        self.modified_count = modified_count
        self.upserted_id = upserted_id


class FakeCollection:
    def __init__(self, documents: Optional[List[Dict[str, Any]]] = None) -> None:
        self.documents: List[Dict[str, Any]] = []
        self.inserted = []
        self.updated = []
        self._counter = 0
        for document in documents or []:
            self._store(document)

    def _store(self, document: Dict[str, Any]) -> Dict[str, Any]:
        self._counter += 1
        stored = copy.deepcopy(document)
        stored.setdefault("_id", f"fake_id_{self._counter}")
        self.documents.append(stored)
        return stored

    def _apply_set(self, document: Dict[str, Any], values: Dict[str, Any], query: Dict[str, Any]) -> None:
        for key, value in values.items():
            if ".$." in key:
                array_field, field = key.split(".$.", 1)
                element_filter = {
                    k[len(array_field) + 1:]: v for k, v in query.items() if k.startswith(array_field + ".")
                }
                for element in document.get(array_field, []):
                    if matches(element, element_filter):
                        element[field] = value
                        break
            else:
                *parents, last = key.split(".")
                target = document
                for part in parents:
                    target = target[int(part)] if isinstance(target, list) else target.setdefault(part, {})
                if isinstance(target, list):
                    target[int(last)] = value
                else:
                    target[last] = value

    async def insert_one(self, document: Dict[str, Any], *args, **kwargs):
        stored = self._store(document)
        self.inserted.append({"document": stored, "args": args, "kwargs": kwargs})
        return _InsertResult(stored["_id"])

    async def update_one(self, filter_dict, update_dict, upsert: bool = False, *args, **kwargs):
        self.updated.append({"filter": filter_dict, "update": update_dict, "upsert": upsert})
        for document in self.documents:
            if matches(document, filter_dict):
                before = copy.deepcopy(document)
                self._apply_set(document, update_dict.get("$set", {}), filter_dict)
                return _UpdateResult(1, int(before != document))

        if not upsert:
            return _UpdateResult(0, 0)

        new_doc = {k: v for k, v in filter_dict.items() if not k.startswith("$") and not isinstance(v, dict)}
        new_doc.update(update_dict.get("$setOnInsert", {}))
        new_doc.update(update_dict.get("$set", {}))
        stored = self._store(new_doc)
        return _UpdateResult(0, 0, upserted_id=stored["_id"])

    async def find_one(self, filter_dict=None, *args, **kwargs):
        for document in self.documents:
            if matches(document, filter_dict):
                return copy.deepcopy(document)
        return None

    def find(self, filter_dict=None, *args, **kwargs):
        return FakeCursor([copy.deepcopy(d) for d in self.documents if matches(d, filter_dict)])

    async def count_documents(self, filter_dict=None, *args, **kwargs):
        return sum(1 for d in self.documents if matches(d, filter_dict))

    async def create_index(self, *args, **kwargs):
        return "fake_index"


class FakeCursor:
    def __init__(self, items):
        self.items = list(items)

    def sort(self, key, direction: int = 1):
        present = [i for i in self.items if i.get(key) is not None]
        missing = [i for i in self.items if i.get(key) is None]
        present.sort(key=lambda i: i[key], reverse=direction < 0)
        self.items = present + missing
        return self

    def limit(self, limit_count: int):
        self.items = self.items[:limit_count]
        return self

    def __aiter__(self):
        self._iter = iter(self.items)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


# ============================================================
# Fake WhatsApp session
# ============================================================

class FakeChatSession:
    """Records sends instead of talking to the gateway."""

    CHAT_ID_SUFFIX = "@c.us"

    def __init__(self, failing: Optional[set] = None, qr_image_path: Optional[Path] = None) -> None:
        self.failing = set(failing or ())
        self.texts = []
        self.media = []
        self.restarts = 0
        self.state = "ready"
        self.qr_image_path = Path(qr_image_path or "whatsapp-qr-test.png")

    @property
    def is_ready(self) -> bool:
        return self.state == "ready"

    async def resolve_chat_id(self, phone: str) -> str:
        return phone if "@" in phone else f"{phone}{self.CHAT_ID_SUFFIX}"

    def _check(self, chat_id: str) -> None:
        if chat_id.split("@", 1)[0] in self.failing:
            from cardroid.exceptions import ChatSessionError

            raise ChatSessionError(f"send to {chat_id} failed")

    async def send_message(self, chat_id: str, text: str):
        self._check(chat_id)
        self.texts.append((chat_id, text))
        return {"key": {"id": f"msg_{len(self.texts)}"}}

    async def send_media(self, chat_id: str, media, caption: Optional[str] = None):
        self._check(chat_id)
        self.media.append((chat_id, media, caption))
        return {"key": {"id": f"media_{len(self.media)}"}}

    async def restart(self) -> None:
        self.restarts += 1
        self.state = "qr"

    async def handle_gateway_event(self, payload):
        self.last_event = payload


import pytest
from cardroid.database import (
    COLLECTION_CUSTOMERS,
    COLLECTION_BUYERS,
    COLLECTION_FINANCINGS,
    COLLECTION_INTERACTIONS,
    COLLECTION_MARKETING_INTEREST,
    COLLECTION_OFFERS,
)


@pytest.fixture
def fake_db(monkeypatch):
    collections = {
        COLLECTION_CUSTOMERS: FakeCollection(),
        COLLECTION_BUYERS: FakeCollection(),
        COLLECTION_FINANCINGS: FakeCollection(),
        COLLECTION_INTERACTIONS: FakeCollection(),
        COLLECTION_MARKETING_INTEREST: FakeCollection(),
        COLLECTION_OFFERS: FakeCollection(),
    }

    def _get_collection(name: str) -> FakeCollection:
        return collections[name]

    monkeypatch.setattr("cardroid.database.get_collection", _get_collection)
    monkeypatch.setattr("cardroid.database.crm_operations.get_collection", _get_collection)
    monkeypatch.setattr("cardroid.database.financing_operations.get_collection", _get_collection)
    monkeypatch.setattr("cardroid.database.warranty_operations.get_collection", _get_collection)

    return collections


@pytest.fixture
def fake_session(tmp_path):
    return FakeChatSession(qr_image_path=tmp_path / "whatsapp-qr.png")


@pytest.fixture
def no_sleep():
    """Sleep replacement that records requested delays."""
    delays = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    _sleep.delays = delays
    return _sleep
