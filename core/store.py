# core/store.py

from typing import Any, Dict, List, Optional, Protocol

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from core.errors import InvalidArgument, handle_supabase_error
from models.enums import BaseStrEnum


# ============================================================
# Collections (schema-in-code)
# ============================================================
class Collections(BaseStrEnum):
    users = "users"
    clients = "clients"
    leads = "leads"
    jobs = "jobs"
    products = "products"
    proposals = "proposals"
    activity_logs = "activity_logs"
    notifications = "notifications"
    file_metadata = "file_metadata"
    company_settings = "company_settings"


# ============================================================
# Query clauses
# ============================================================
WHERE_OPERATORS = ("=", "<", "<=", ">", ">=")


class QueryFilter(BaseModel):
    """
    One conjunctive clause: a where predicate, an ordering, or a limit.

        [QueryFilter.where("client_id", "=", cid),
         QueryFilter.order_by("created_at", descending=True),
         QueryFilter.limit(1)]
    """

    type: str
    field: Optional[str] = None
    operator: Optional[str] = None
    value: Any = None
    descending: bool = False

    @classmethod
    def where(cls, field: str, operator: str, value: Any) -> "QueryFilter":
        if operator == "==":
            operator = "="
        if operator not in WHERE_OPERATORS:
            raise InvalidArgument(f"Unsupported filter operator: {operator}")
        return cls(type="where", field=field, operator=operator, value=value)

    @classmethod
    def order_by(cls, field: str, descending: bool = False) -> "QueryFilter":
        return cls(type="order_by", field=field, descending=descending)

    @classmethod
    def limit(cls, count: int) -> "QueryFilter":
        return cls(type="limit", value=count)


class Page(BaseModel):
    data: List[Dict[str, Any]]
    next_cursor: Optional[int] = None
    has_more: bool = False


# ============================================================
# Store contract
# ============================================================
class DocumentStore(Protocol):
    def create(self, collection: str, data: Dict[str, Any], doc_id: Optional[str] = None) -> str: ...

    def get_by_id(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]: ...

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None: ...

    def delete(self, collection: str, doc_id: str) -> None: ...

    def query(self, collection: str, filters: List[QueryFilter]) -> List[Dict[str, Any]]: ...

    def query_paginated(
        self,
        collection: str,
        filters: List[QueryFilter],
        page_size: int,
        cursor: Optional[int] = None,
    ) -> Page: ...


# ============================================================
# Supabase implementation
# ============================================================
_OPERATOR_METHODS = {
    "=": "eq",
    "<": "lt",
    "<=": "lte",
    ">": "gt",
    ">=": "gte",
}


class SupabaseDocumentStore:
    """
    DocumentStore over PostgREST tables.

    Reads and writes are plain request/response calls with no retries and
    no transactions; read-modify-write sequences built on top of this are
    last-writer-wins.
    """

    def __init__(self, client):
        self.client = client

    def _apply(self, query, filters: List[QueryFilter], with_limit: bool = True):
        for f in filters:
            if f.type == "where":
                query = getattr(query, _OPERATOR_METHODS[f.operator])(f.field, jsonable_encoder(f.value))
            elif f.type == "order_by":
                query = query.order(f.field, desc=f.descending)
            elif f.type == "limit" and with_limit:
                query = query.limit(f.value)
        return query

    def create(self, collection: str, data: Dict[str, Any], doc_id: Optional[str] = None) -> str:
        payload = jsonable_encoder(data)
        if doc_id:
            payload["id"] = doc_id

        try:
            result = self.client.table(collection).insert(payload).execute()
        except Exception as e:
            raise handle_supabase_error(e, f"Failed to insert into {collection}") from e

        if not result.data:
            raise handle_supabase_error(RuntimeError("Insert returned no data"), f"Failed to insert into {collection}")
        return str(result.data[0]["id"])

    def get_by_id(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        try:
            result = (
                self.client.table(collection)
                .select("*")
                .eq("id", doc_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, f"Failed to fetch from {collection}") from e

        return result.data[0] if result.data else None

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        try:
            (
                self.client.table(collection)
                .update(jsonable_encoder(data))
                .eq("id", doc_id)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, f"Failed to update {collection}") from e

    def delete(self, collection: str, doc_id: str) -> None:
        try:
            self.client.table(collection).delete().eq("id", doc_id).execute()
        except Exception as e:
            raise handle_supabase_error(e, f"Failed to delete from {collection}") from e

    def query(self, collection: str, filters: List[QueryFilter]) -> List[Dict[str, Any]]:
        try:
            query = self._apply(self.client.table(collection).select("*"), filters)
            result = query.execute()
        except Exception as e:
            raise handle_supabase_error(e, f"Failed to query {collection}") from e

        return result.data or []

    def query_paginated(
        self,
        collection: str,
        filters: List[QueryFilter],
        page_size: int,
        cursor: Optional[int] = None,
    ) -> Page:
        offset = cursor or 0

        try:
            query = self._apply(self.client.table(collection).select("*"), filters, with_limit=False)
            # One extra row tells us whether another page exists
            result = query.range(offset, offset + page_size).execute()
        except Exception as e:
            raise handle_supabase_error(e, f"Failed to query {collection}") from e

        rows = result.data or []
        has_more = len(rows) > page_size
        return Page(
            data=rows[:page_size],
            next_cursor=offset + page_size if has_more else None,
            has_more=has_more,
        )
