# routers/clients.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.config import settings
from core.identity import Principal
from dependencies.auth import get_current_user
from dependencies.services import get_client_manager
from models.client import ClientCreate, ClientSearch, ClientUpdate, ContactPayload, TagsPayload
from services.client_manager import ClientManager


router = APIRouter(
    prefix="/clients",
    tags=["Clients"],
)


# ============================================================
# LIST CLIENTS
# ============================================================
@router.get(
    "",
    summary="List Clients",
    description="""
    Newest first, offset-cursor paginated.

    **Response:**
    - `data`: page of client documents
    - `next_cursor`: pass back as `cursor` for the next page, null on the last
    """,
)
def list_clients(
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    cursor: Optional[int] = Query(None, ge=0),
    current_user: Principal = Depends(get_current_user),
    manager: ClientManager = Depends(get_client_manager),
):
    page = manager.list_clients(page_size, cursor)
    return {"success": True, **page.model_dump()}


@router.post("/search", summary="Search Clients")
def search_clients(
    filters: ClientSearch,
    current_user: Principal = Depends(get_current_user),
    manager: ClientManager = Depends(get_client_manager),
):
    return {"success": True, "data": manager.search_clients(filters.model_dump(exclude_unset=True))}


@router.get("/follow-up", summary="Clients due for follow-up")
def clients_requiring_follow_up(
    current_user: Principal = Depends(get_current_user),
    manager: ClientManager = Depends(get_client_manager),
):
    return {"success": True, "data": manager.get_clients_requiring_follow_up()}


@router.get("/stats", summary="Client statistics")
def client_stats(
    current_user: Principal = Depends(get_current_user),
    manager: ClientManager = Depends(get_client_manager),
):
    return {"success": True, "data": manager.get_client_stats()}


# ============================================================
# GET CLIENT
# ============================================================
@router.get("/{client_id}", summary="Get Client")
def get_client(
    client_id: str,
    current_user: Principal = Depends(get_current_user),
    manager: ClientManager = Depends(get_client_manager),
):
    return {"success": True, "data": manager.clients.require(client_id)}


@router.get("/{client_id}/activity", summary="Activity history for a client")
def client_activity(
    client_id: str,
    current_user: Principal = Depends(get_current_user),
    manager: ClientManager = Depends(get_client_manager),
):
    return {"success": True, "data": manager.get_client_activity(client_id)}


# ============================================================
# CREATE CLIENT
# ============================================================
@router.post(
    "",
    summary="Create Client",
    description="""
    Requires `manage_clients` (owner, admin or sales rep).
    Emails are unique across clients; a duplicate returns 409.
    """,
)
def create_client(
    payload: ClientCreate,
    current_user: Principal = Depends(get_current_user),
    manager: ClientManager = Depends(get_client_manager),
):
    client_id = manager.create_client(payload, current_user)
    return {"success": True, "data": {"id": client_id}}


# ============================================================
# UPDATE CLIENT
# ============================================================
@router.patch(
    "/{client_id}",
    summary="Update Client",
    description="""
    Sales reps may only update clients assigned to them.
    `total_jobs` and `total_revenue` are read-only.
    """,
)
def update_client(
    client_id: str,
    payload: ClientUpdate,
    current_user: Principal = Depends(get_current_user),
    manager: ClientManager = Depends(get_client_manager),
):
    changes = manager.update_client(client_id, payload.model_dump(exclude_unset=True), current_user)
    return {"success": True, "data": {"id": client_id, "changes": changes}}


@router.post("/{client_id}/tags", summary="Add tags")
def add_tags(
    client_id: str,
    payload: TagsPayload,
    current_user: Principal = Depends(get_current_user),
    manager: ClientManager = Depends(get_client_manager),
):
    return {"success": True, "data": manager.add_client_tags(client_id, payload.tags, current_user)}


@router.delete("/{client_id}/tags", summary="Remove tags")
def remove_tags(
    client_id: str,
    payload: TagsPayload,
    current_user: Principal = Depends(get_current_user),
    manager: ClientManager = Depends(get_client_manager),
):
    return {"success": True, "data": manager.remove_client_tags(client_id, payload.tags, current_user)}


@router.post("/{client_id}/contact", summary="Record a contact with the client")
def record_contact(
    client_id: str,
    payload: ContactPayload,
    current_user: Principal = Depends(get_current_user),
    manager: ClientManager = Depends(get_client_manager),
):
    manager.update_last_contact(client_id, current_user, payload.next_follow_up_date)
    return {"success": True}
