from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Protocol

from pydantic import ValidationError
from pymongo.errors import PyMongoError

from signage.db.mongo import Mongo
from signage.models.content import ContentItem

log = logging.getLogger("contents.repo")


class ContentRepository(Protocol):
    def list_for_device(self, device_id: str) -> List[ContentItem]:
        ...

    def list_all(self, device_id: Optional[str] = None) -> List[ContentItem]:
        ...


def to_items(docs: Iterable[Dict[str, Any]]) -> List[ContentItem]:
    """
    Raw documents -> ContentItem, keeping storage order.
    Documents that don't validate are skipped (never shown).
    """
    items: List[ContentItem] = []
    for doc in docs:
        doc = dict(doc)
        raw_id = doc.pop("_id", None)
        if "id" not in doc and raw_id is not None:
            doc["id"] = str(raw_id)
        try:
            items.append(ContentItem.model_validate(doc))
        except ValidationError as e:
            log.warning(
                "content_doc_invalid",
                extra={"content_id": doc.get("id"), "errors": e.error_count()},
            )
    return items


class MongoContentRepository:
    def __init__(self, mongo: Mongo):
        self.mongo = mongo

    def list_for_device(self, device_id: str) -> List[ContentItem]:
        return self.list_all(device_id)

    def list_all(self, device_id: Optional[str] = None) -> List[ContentItem]:
        query: Dict[str, Any] = {}
        if device_id is not None:
            query["deviceId"] = device_id
        try:
            # natural order = insertion order, which breaks `order` ties
            docs = list(self.mongo.contents.find(query).sort("$natural", 1))
        except PyMongoError:
            log.exception("mongo_contents_query_error", extra={"device_id": device_id})
            raise
        return to_items(docs)


class InMemoryContentRepository:
    def __init__(self, docs: Optional[Iterable[Dict[str, Any]]] = None):
        self._docs: List[Dict[str, Any]] = list(docs or [])

    def add(self, doc: Dict[str, Any]) -> None:
        self._docs.append(doc)

    def list_for_device(self, device_id: str) -> List[ContentItem]:
        return self.list_all(device_id)

    def list_all(self, device_id: Optional[str] = None) -> List[ContentItem]:
        docs = self._docs
        if device_id is not None:
            docs = [d for d in docs if d.get("deviceId") == device_id]
        return to_items(docs)
