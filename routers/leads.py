# routers/leads.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.config import settings
from core.identity import Principal
from dependencies.auth import get_current_user
from dependencies.services import get_lead_manager
from models.client import LeadCreate, LeadStatusUpdate
from models.enums import LeadStatus, Priority
from services.client_manager import LeadManager


router = APIRouter(
    prefix="/leads",
    tags=["Leads"],
)


# ============================================================
# LIST / FILTER
# ============================================================
@router.get("", summary="List Leads")
def list_leads(
    status: Optional[LeadStatus] = None,
    priority: Optional[Priority] = None,
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    cursor: Optional[int] = Query(None, ge=0),
    current_user: Principal = Depends(get_current_user),
    manager: LeadManager = Depends(get_lead_manager),
):
    if status:
        return {"success": True, "data": manager.get_leads_by_status(status)}
    if priority:
        return {"success": True, "data": manager.get_leads_by_priority(priority)}

    page = manager.list_leads(page_size, cursor)
    return {"success": True, **page.model_dump()}


@router.get("/stats", summary="Lead pipeline statistics")
def lead_stats(
    current_user: Principal = Depends(get_current_user),
    manager: LeadManager = Depends(get_lead_manager),
):
    return {"success": True, "data": manager.get_lead_stats()}


# ============================================================
# CREATE / STATUS / CONVERT
# ============================================================
@router.post("", summary="Create Lead")
def create_lead(
    payload: LeadCreate,
    current_user: Principal = Depends(get_current_user),
    manager: LeadManager = Depends(get_lead_manager),
):
    lead_id = manager.create_lead(payload, current_user)
    return {"success": True, "data": {"id": lead_id}}


@router.post("/{lead_id}/status", summary="Move a lead through the pipeline")
def update_lead_status(
    lead_id: str,
    payload: LeadStatusUpdate,
    current_user: Principal = Depends(get_current_user),
    manager: LeadManager = Depends(get_lead_manager),
):
    manager.update_lead_status(lead_id, payload.status, current_user, payload.notes)
    return {"success": True}


@router.post(
    "/{lead_id}/convert",
    summary="Convert a lead into a client",
    description="Creates a `customer` client from the lead and marks the lead `won`.",
)
def convert_lead(
    lead_id: str,
    current_user: Principal = Depends(get_current_user),
    manager: LeadManager = Depends(get_lead_manager),
):
    client_id = manager.convert_lead_to_client(lead_id, current_user)
    return {"success": True, "data": {"client_id": client_id}}
