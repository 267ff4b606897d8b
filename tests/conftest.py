# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.

Services run against an in-memory DocumentStore and a fake identity
provider; the API tests swap them in through dependency overrides.
"""

import copy
import operator
import uuid
from collections import defaultdict
from typing import Any, Dict, Generator, List, Optional

import pytest
from fastapi import Header, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.testclient import TestClient

from core.audit import AuditLogger
from core.identity import Principal
from core.roles import coerce_role
from core.store import Page, QueryFilter
from models.enums import Role


# ============================================================
# In-memory DocumentStore
# ============================================================
_COMPARATORS = {
    "=": operator.eq,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


class InMemoryDocumentStore:
    """Stores JSON-encoded copies, like the Supabase store does on the wire."""

    def __init__(self):
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = defaultdict(dict)
        self.writes: List[tuple] = []

    def create(self, collection: str, data: Dict[str, Any], doc_id: Optional[str] = None) -> str:
        doc_id = doc_id or uuid.uuid4().hex
        record = jsonable_encoder(data)
        record["id"] = doc_id
        self.collections[collection][doc_id] = record
        self.writes.append(("create", collection, doc_id))
        return doc_id

    def get_by_id(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        doc = self.collections[collection].get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self.writes.append(("update", collection, doc_id))
        if doc_id in self.collections[collection]:
            self.collections[collection][doc_id].update(jsonable_encoder(data))

    def delete(self, collection: str, doc_id: str) -> None:
        self.writes.append(("delete", collection, doc_id))
        self.collections[collection].pop(doc_id, None)

    def _select(self, collection: str, filters: List[QueryFilter]) -> List[Dict[str, Any]]:
        rows = list(self.collections[collection].values())
        limit = None

        for f in filters:
            if f.type == "where":
                compare = _COMPARATORS[f.operator]
                expected = jsonable_encoder(f.value)
                rows = [
                    r for r in rows
                    if (f.operator == "=" or r.get(f.field) is not None)
                    and compare(r.get(f.field), expected)
                ]
            elif f.type == "order_by":
                # Latest insert wins ties when descending
                ordered = list(reversed(rows)) if f.descending else rows
                rows = sorted(
                    ordered,
                    key=lambda r: (r.get(f.field) is not None, r.get(f.field)),
                    reverse=f.descending,
                )
            elif f.type == "limit":
                limit = f.value

        if limit is not None:
            rows = rows[:limit]
        return [copy.deepcopy(r) for r in rows]

    def query(self, collection: str, filters: List[QueryFilter]) -> List[Dict[str, Any]]:
        return self._select(collection, filters)

    def query_paginated(
        self,
        collection: str,
        filters: List[QueryFilter],
        page_size: int,
        cursor: Optional[int] = None,
    ) -> Page:
        rows = self._select(collection, [f for f in filters if f.type != "limit"])
        offset = cursor or 0
        chunk = rows[offset:offset + page_size]
        has_more = offset + page_size < len(rows)
        return Page(data=chunk, next_cursor=offset + page_size if has_more else None, has_more=has_more)

    # Helpers for assertions
    def all(self, collection: str) -> List[Dict[str, Any]]:
        return [copy.deepcopy(r) for r in self.collections[collection].values()]

    def count_writes(self, collection: str) -> int:
        return sum(1 for _, c, _ in self.writes if c == collection)


# ============================================================
# Fake identity provider
# ============================================================
class FakeIdentityProvider:
    def __init__(self):
        self.accounts: Dict[str, Dict[str, Any]] = {}

    def add(self, user_id: str, role: Optional[str] = None, email: Optional[str] = None, disabled: bool = False):
        app_metadata: Dict[str, Any] = {"disabled": disabled}
        if role is not None:
            app_metadata["role"] = str(role)
        self.accounts[user_id] = {
            "email": email or f"{user_id}@example.com",
            "app_metadata": app_metadata,
            "ban_duration": None,
        }
        return user_id

    def resolve_caller(self, user_id: str) -> Optional[Principal]:
        account = self.accounts.get(user_id)
        if account is None:
            return None
        claim = account["app_metadata"].get("role")
        return Principal(
            id=user_id,
            email=account["email"],
            role=coerce_role(claim),
            is_active=not account["app_metadata"].get("disabled", False),
            has_role_claim=claim is not None,
        )

    def get_role_claim(self, user_id: str) -> Optional[str]:
        account = self.accounts.get(user_id)
        return account["app_metadata"].get("role") if account else None

    def get_email(self, user_id: str) -> Optional[str]:
        account = self.accounts.get(user_id)
        return account["email"] if account else None

    def set_role(self, user_id: str, role: Role) -> None:
        account = self.accounts.setdefault(user_id, {"email": None, "app_metadata": {}, "ban_duration": None})
        account["app_metadata"]["role"] = str(role)

    def set_disabled(self, user_id: str, disabled: bool) -> None:
        account = self.accounts[user_id]
        account["app_metadata"]["disabled"] = disabled
        account["ban_duration"] = "876000h" if disabled else "none"


# ============================================================
# Fixtures
# ============================================================
@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def identity():
    return FakeIdentityProvider()


@pytest.fixture
def audit(store):
    return AuditLogger(store)


def make_principal(role: Role, user_id: Optional[str] = None) -> Principal:
    return Principal(id=user_id or f"{role.value}-1", email=f"{role.value}@example.com", role=role)


@pytest.fixture
def owner():
    return make_principal(Role.owner)


@pytest.fixture
def admin():
    return make_principal(Role.admin)


@pytest.fixture
def sales_rep():
    return make_principal(Role.sales_rep)


@pytest.fixture
def technician():
    return make_principal(Role.technician)


@pytest.fixture
def guest():
    return make_principal(Role.guest)


def activity_of_type(store: InMemoryDocumentStore, type: str) -> List[Dict[str, Any]]:
    return [e for e in store.all("activity_logs") if e["type"] == type]


# ============================================================
# API client
# ============================================================
def _header_caller_id(x_test_user: Optional[str] = Header(None)) -> str:
    if not x_test_user:
        raise HTTPException(status_code=401, detail="Invalid or expired authentication token")
    return x_test_user


@pytest.fixture(scope="function")
def app(store, identity):
    """App wired to the in-memory store and fake identity provider."""
    from main import create_app
    from dependencies.auth import get_caller_id
    from dependencies.services import get_identity_provider, get_store

    application = create_app()
    application.dependency_overrides[get_store] = lambda: store
    application.dependency_overrides[get_identity_provider] = lambda: identity
    application.dependency_overrides[get_caller_id] = _header_caller_id
    return application


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


def as_user(user_id: str) -> Dict[str, str]:
    return {"X-Test-User": user_id}
