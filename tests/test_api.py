# tests/test_api.py

"""
Tests for the HTTP surface: callables, resource routers and error mapping.
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch

from conftest import activity_of_type, as_user


@pytest.fixture
def accounts(identity, store):
    for user_id, role in [("owner-1", "owner"), ("admin-1", "admin"), ("rep-1", "sales_rep"), ("tech-1", "technician")]:
        identity.add(user_id, role)
        store.create("users", {"email": f"{user_id}@example.com", "role": role, "is_active": True}, doc_id=user_id)
    return identity


CLIENT_BODY = {
    "first_name": "Jane",
    "last_name": "Doe",
    "email": "jane@example.com",
    "phone": "416-555-0100",
    "address": {"street": "12 Sunny Road", "city": "Toronto", "postal_code": "M5V 2T6"},
}


# ============================================================
# Health
# ============================================================
def test_health_app(client: TestClient):
    response = client.get("/health/app")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_health_db_not_configured(client: TestClient):
    with patch("core.supabase_client.get_supabase_client", return_value=None):
        response = client.get("/health/db")
    assert response.status_code == 200
    assert response.json()["status"] == "not_configured"


# ============================================================
# Callables
# ============================================================
def test_set_user_role_route(client: TestClient, store, accounts):
    response = client.post(
        "/functions/set-user-role",
        json={"target_user_id": "tech-1", "role": "sales_rep"},
        headers=as_user("owner-1"),
    )

    assert response.status_code == 200
    assert response.json()["success"] is True
    [entry] = activity_of_type(store, "role_changed")
    assert entry["ip"] == "testclient"


def test_set_user_role_denied_maps_to_403(client: TestClient, accounts):
    response = client.post(
        "/functions/set-user-role",
        json={"target_user_id": "tech-1", "role": "owner"},
        headers=as_user("admin-1"),
    )
    assert response.status_code == 403
    assert response.json()["code"] == "permission-denied"


def test_users_role_route_updates_claim(client: TestClient, store, accounts):
    response = client.post("/users/tech-1/role", params={"role": "admin"}, headers=as_user("owner-1"))

    assert response.status_code == 200
    assert accounts.get_role_claim("tech-1") == "admin"
    assert store.get_by_id("users", "tech-1")["role"] == "admin"
    [entry] = activity_of_type(store, "role_changed")
    assert entry["metadata"] == {"old_role": "technician", "new_role": "admin"}

    # The promoted account now passes admin-only checks
    assert client.get("/users/stats", headers=as_user("tech-1")).status_code == 200


def test_users_role_route_demotion_revokes_access(client: TestClient, accounts):
    client.post("/users/admin-1/role", params={"role": "technician"}, headers=as_user("owner-1"))

    assert accounts.get_role_claim("admin-1") == "technician"
    assert client.get("/users/stats", headers=as_user("admin-1")).status_code == 403


def test_users_role_route_admin_cannot_assign_owner(client: TestClient, accounts):
    response = client.post("/users/tech-1/role", params={"role": "owner"}, headers=as_user("admin-1"))
    assert response.status_code == 403
    assert accounts.get_role_claim("tech-1") == "technician"


def test_missing_token_is_401(client: TestClient, accounts):
    response = client.post("/functions/get-user-role", json={})
    assert response.status_code == 401


def test_unknown_caller_is_401(client: TestClient, accounts):
    response = client.post("/functions/get-user-role", json={}, headers=as_user("ghost"))
    assert response.status_code == 401
    assert response.json()["code"] == "unauthenticated"


def test_get_user_role_route(client: TestClient, accounts):
    response = client.post("/functions/get-user-role", json={}, headers=as_user("rep-1"))
    assert response.status_code == 200
    body = response.json()
    assert body["role"] == "sales_rep"
    assert body["permissions"]["canAccessClientData"] is True


def test_deactivate_self_route(client: TestClient, accounts):
    response = client.post(
        "/functions/deactivate-user",
        json={"target_user_id": "owner-1"},
        headers=as_user("owner-1"),
    )
    assert response.status_code == 403


def test_deactivated_caller_is_rejected(client: TestClient, accounts):
    client.post("/functions/deactivate-user", json={"target_user_id": "rep-1"}, headers=as_user("owner-1"))

    response = client.get("/clients", headers=as_user("rep-1"))
    assert response.status_code == 403

    client.post("/functions/reactivate-user", json={"target_user_id": "rep-1"}, headers=as_user("owner-1"))
    assert client.get("/clients", headers=as_user("rep-1")).status_code == 200


# ============================================================
# Resources
# ============================================================
def test_client_routes(client: TestClient, accounts):
    created = client.post("/clients", json=CLIENT_BODY, headers=as_user("rep-1"))
    assert created.status_code == 200
    client_id = created.json()["data"]["id"]

    duplicate = client.post("/clients", json=CLIENT_BODY, headers=as_user("rep-1"))
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "already-exists"

    invalid = client.post("/clients", json={**CLIENT_BODY, "email": "x@example.com", "phone": "1"}, headers=as_user("rep-1"))
    assert invalid.status_code == 422
    assert "Invalid phone number format" in invalid.json()["errors"]

    updated = client.patch(f"/clients/{client_id}", json={"company": "Sunrise"}, headers=as_user("rep-1"))
    assert updated.json()["data"]["changes"]["company"]["new"] == "Sunrise"

    listing = client.get("/clients", headers=as_user("tech-1"))
    assert listing.status_code == 200
    assert [c["id"] for c in listing.json()["data"]] == [client_id]

    activity = client.get(f"/clients/{client_id}/activity", headers=as_user("owner-1"))
    assert [e["type"] for e in activity.json()["data"]] == ["client_updated", "client_created"]


def test_job_completion_route(client: TestClient, store, accounts):
    client_id = client.post("/clients", json=CLIENT_BODY, headers=as_user("owner-1")).json()["data"]["id"]
    job = client.post(
        "/jobs",
        json={
            "title": "Rooftop install",
            "description": "Ten panel rooftop installation",
            "client_id": client_id,
            "final_price": 7000,
        },
        headers=as_user("owner-1"),
    )
    job_id = job.json()["data"]["id"]

    response = client.post(f"/jobs/{job_id}/status", json={"status": "completed"}, headers=as_user("owner-1"))
    assert response.status_code == 200

    totals = client.get(f"/clients/{client_id}", headers=as_user("owner-1")).json()["data"]
    assert totals["total_revenue"] == 7000
    assert totals["total_jobs"] == 1


def test_product_routes(client: TestClient, store, accounts):
    body = {"name": "Mono 400W Panel", "category": "panel", "stock_quantity": 15, "minimum_stock": 10}

    assert client.post("/products", json=body, headers=as_user("rep-1")).status_code == 403

    product_id = client.post("/products", json=body, headers=as_user("admin-1")).json()["data"]["id"]

    moved = client.post(
        f"/products/{product_id}/stock",
        json={"quantity": 6, "operation": "subtract"},
        headers=as_user("admin-1"),
    )
    assert moved.json()["data"]["stock_quantity"] == 9

    low = client.get("/products/low-stock", headers=as_user("tech-1"))
    assert [p["id"] for p in low.json()["data"]] == [product_id]

    bad = client.post(
        f"/products/{product_id}/stock",
        json={"quantity": 1, "operation": "multiply"},
        headers=as_user("admin-1"),
    )
    assert bad.status_code == 422


def test_activity_log_routes(client: TestClient, accounts):
    client.post("/clients", json=CLIENT_BODY, headers=as_user("rep-1"))

    mine = client.get("/activity-logs/me", headers=as_user("rep-1"))
    assert [e["type"] for e in mine.json()["data"]] == ["client_created"]

    assert client.get("/activity-logs/actor/rep-1", headers=as_user("tech-1")).status_code == 403
    assert client.get("/activity-logs", headers=as_user("tech-1")).status_code == 403
    assert client.get("/activity-logs", headers=as_user("rep-1")).status_code == 200

    unknown = client.get("/activity-logs", params={"type": "bogus"}, headers=as_user("owner-1"))
    assert unknown.status_code == 400
    assert unknown.json()["code"] == "invalid-log-type"
