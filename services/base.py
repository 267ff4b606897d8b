# services/base.py

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.errors import NotFound
from core.store import DocumentStore, Page, QueryFilter


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EntityRepository:
    """
    Collection-scoped wrapper around a DocumentStore.

    Stamps `created_at`/`updated_at` and, when an actor is given,
    `created_by`/`updated_by` on every write.
    """

    def __init__(self, store: DocumentStore, collection: str, label: Optional[str] = None):
        self.store = store
        self.collection = collection
        self.label = label or collection.rstrip("s").capitalize()

    # ----------------------------------------------------------
    # Writes
    # ----------------------------------------------------------
    def create(self, data: Dict[str, Any], actor_id: Optional[str] = None, doc_id: Optional[str] = None) -> str:
        now = utc_now()
        record = {**data, "created_at": now, "updated_at": now}
        if actor_id:
            record["created_by"] = actor_id
            record["updated_by"] = actor_id
        return self.store.create(self.collection, record, doc_id)

    def update(self, doc_id: str, data: Dict[str, Any], actor_id: Optional[str] = None) -> Dict[str, Any]:
        record = {**data, "updated_at": utc_now()}
        if actor_id:
            record["updated_by"] = actor_id
        self.store.update(self.collection, doc_id, record)
        return record

    def delete(self, doc_id: str) -> None:
        self.store.delete(self.collection, doc_id)

    # ----------------------------------------------------------
    # Reads
    # ----------------------------------------------------------
    def get_by_id(self, doc_id: str) -> Optional[Dict[str, Any]]:
        return self.store.get_by_id(self.collection, doc_id)

    def require(self, doc_id: str) -> Dict[str, Any]:
        doc = self.get_by_id(doc_id)
        if doc is None:
            raise NotFound(f"{self.label} not found")
        return doc

    def query(self, filters: Optional[List[QueryFilter]] = None) -> List[Dict[str, Any]]:
        return self.store.query(self.collection, filters or [])

    def all(self) -> List[Dict[str, Any]]:
        return self.query([])

    def where(self, field: str, value: Any) -> List[Dict[str, Any]]:
        return self.query([QueryFilter.where(field, "=", value)])

    def find_one_by(self, field: str, value: Any) -> Optional[Dict[str, Any]]:
        rows = self.query([QueryFilter.where(field, "=", value), QueryFilter.limit(1)])
        return rows[0] if rows else None

    def query_paginated(
        self,
        filters: Optional[List[QueryFilter]] = None,
        page_size: int = 20,
        cursor: Optional[int] = None,
    ) -> Page:
        return self.store.query_paginated(self.collection, filters or [], page_size, cursor)
