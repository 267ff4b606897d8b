# tests/test_supabase_adapters.py

"""
Tests for the Supabase-backed store and identity provider, against a
mocked supabase client.
"""

from unittest.mock import Mock

import pytest

from core.config import settings
from core.errors import AlreadyExists, HelioError
from core.identity import SupabaseIdentityProvider
from core.store import QueryFilter, SupabaseDocumentStore
from models.enums import Role


# ============================================================
# Document store
# ============================================================
@pytest.fixture
def mock_supabase_client():
    mock_client = Mock()
    mock_table = Mock()
    mock_client.table.return_value = mock_table
    return mock_client


def test_create_returns_new_id(mock_supabase_client):
    table = mock_supabase_client.table.return_value
    table.insert.return_value.execute.return_value = Mock(data=[{"id": 42}])

    store = SupabaseDocumentStore(mock_supabase_client)
    assert store.create("clients", {"first_name": "Jane"}) == "42"

    mock_supabase_client.table.assert_called_with("clients")
    table.insert.assert_called_once_with({"first_name": "Jane"})


def test_create_with_explicit_id(mock_supabase_client):
    table = mock_supabase_client.table.return_value
    table.insert.return_value.execute.return_value = Mock(data=[{"id": "uid-1"}])

    SupabaseDocumentStore(mock_supabase_client).create("users", {"email": "a@b.co"}, doc_id="uid-1")
    table.insert.assert_called_once_with({"email": "a@b.co", "id": "uid-1"})


def test_duplicate_key_maps_to_already_exists(mock_supabase_client):
    table = mock_supabase_client.table.return_value
    table.insert.return_value.execute.side_effect = Exception(
        "duplicate key value violates unique constraint \"clients_email_key\""
    )

    with pytest.raises(AlreadyExists):
        SupabaseDocumentStore(mock_supabase_client).create("clients", {"email": "a@b.co"})


def test_other_failures_are_helio_errors(mock_supabase_client):
    table = mock_supabase_client.table.return_value
    table.select.return_value.eq.return_value.limit.return_value.execute.side_effect = Exception("boom")

    with pytest.raises(HelioError):
        SupabaseDocumentStore(mock_supabase_client).get_by_id("clients", "1")


def test_query_applies_filters_in_order(mock_supabase_client):
    table = mock_supabase_client.table.return_value
    query = Mock()
    table.select.return_value = query
    query.eq.return_value = query
    query.order.return_value = query
    query.limit.return_value = query
    query.execute.return_value = Mock(data=[{"id": "1"}])

    rows = SupabaseDocumentStore(mock_supabase_client).query("jobs", [
        QueryFilter.where("client_id", "==", "c1"),
        QueryFilter.order_by("created_at", descending=True),
        QueryFilter.limit(1),
    ])

    assert rows == [{"id": "1"}]
    query.eq.assert_called_once_with("client_id", "c1")
    query.order.assert_called_once_with("created_at", desc=True)
    query.limit.assert_called_once_with(1)


def test_paginated_query_detects_next_page(mock_supabase_client):
    table = mock_supabase_client.table.return_value
    query = Mock()
    table.select.return_value = query
    query.order.return_value = query
    query.range.return_value.execute.return_value = Mock(data=[{"id": str(i)} for i in range(3)])

    page = SupabaseDocumentStore(mock_supabase_client).query_paginated(
        "clients", [QueryFilter.order_by("created_at")], page_size=2, cursor=4
    )

    query.range.assert_called_once_with(4, 6)
    assert len(page.data) == 2
    assert page.has_more is True
    assert page.next_cursor == 6


def test_unsupported_operator():
    with pytest.raises(HelioError):
        QueryFilter.where("a", "!=", 1)


# ============================================================
# Identity provider
# ============================================================
def _auth_user(user_id="u1", role="admin", disabled=False, email="u1@example.com"):
    app_metadata = {"disabled": disabled}
    if role is not None:
        app_metadata["role"] = role
    return Mock(user=Mock(id=user_id, email=email, app_metadata=app_metadata))


def test_resolve_caller_reads_app_metadata():
    client = Mock()
    client.auth.admin.get_user_by_id.return_value = _auth_user(role="sales_rep")

    principal = SupabaseIdentityProvider(client).resolve_caller("u1")
    assert principal.role == Role.sales_rep
    assert principal.is_active is True
    assert principal.has_role_claim is True


def test_resolve_caller_unknown_claim_is_guest():
    client = Mock()
    client.auth.admin.get_user_by_id.return_value = _auth_user(role="superuser", disabled=True)

    principal = SupabaseIdentityProvider(client).resolve_caller("u1")
    assert principal.role == Role.guest
    assert principal.is_active is False


def test_resolve_caller_not_found():
    client = Mock()
    client.auth.admin.get_user_by_id.side_effect = Exception("User not found")
    assert SupabaseIdentityProvider(client).resolve_caller("ghost") is None


def test_set_role_merges_app_metadata():
    client = Mock()
    client.auth.admin.get_user_by_id.return_value = _auth_user(role="guest")

    SupabaseIdentityProvider(client).set_role("u1", Role.technician)
    client.auth.admin.update_user_by_id.assert_called_once_with(
        "u1", {"app_metadata": {"disabled": False, "role": "technician"}}
    )


def test_set_disabled_bans_account():
    client = Mock()
    client.auth.admin.get_user_by_id.return_value = _auth_user()

    provider = SupabaseIdentityProvider(client)
    provider.set_disabled("u1", True)
    _, attributes = client.auth.admin.update_user_by_id.call_args[0]
    assert attributes["app_metadata"]["disabled"] is True
    assert attributes["ban_duration"] == settings.DISABLED_BAN_DURATION

    provider.set_disabled("u1", False)
    _, attributes = client.auth.admin.update_user_by_id.call_args[0]
    assert attributes["ban_duration"] == "none"
